"""SQLAlchemy ORM 모델 패키지 - 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package. Importing from this package registers every
model with the metadata, which Alembic and ``create_all`` rely on.

Modules:
    user: 사용자 (Users)
    token: 리프레시 토큰 및 재설정 토큰 (Refresh and password reset tokens)
    task: 작업 (Tasks)
    audit: 감사 로그 (Audit log)
"""

from cloudarc.models.user import User
from cloudarc.models.token import PasswordResetToken, RefreshToken
from cloudarc.models.task import Task
from cloudarc.models.audit import AuditLog

__all__ = [
    "User",
    "RefreshToken", "PasswordResetToken",
    "Task",
    "AuditLog",
]
