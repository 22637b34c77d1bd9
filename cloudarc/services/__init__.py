"""서비스 패키지 - 비즈니스 로직 계층.

Service package. Services orchestrate business rules over the repositories;
routes own the commit, except where a service must persist a security
response before raising.
"""
