"""레포지토리 패키지 - 데이터베이스 쿼리 계층.

Repository package. Contains the classes that perform pure database
operations on the request-scoped ``AsyncSession``; they never commit.
"""
