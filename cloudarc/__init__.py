"""CloudArc API 패키지.

CloudArc API package: JWT authentication core with refresh-token rotation,
session-family revocation and password reset, fronting users/tasks CRUD.
"""

__version__ = "1.0.0"
