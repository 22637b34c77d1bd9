"""인증 토큰 모델 - 리프레시 토큰 및 비밀번호 재설정 토큰 저장.

Token models for session management and password recovery.

Tables:
    - refresh_tokens: 발급된 리프레시 토큰 (Issued refresh tokens grouped into families)
    - password_reset_tokens: 일회용 재설정 토큰 (Single-use password reset tokens)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cloudarc.database import Base


class RefreshToken(Base):
    """리프레시 토큰 테이블.

    Refresh token table. Every token issued by one login belongs to the same
    family; a rotation revokes the presented token and issues a successor in
    the same family. Presenting a revoked token revokes the whole family.

    Attributes:
        id: 고유 식별자 (Primary key UUID)
        token: JWT 리프레시 토큰 문자열 (Signed JWT string, unique)
        user_id: 소유 사용자 ID (Owner user UUID)
        family: 세션 계열 ID (Session family UUID shared across rotations)
        revoked: 폐기 여부 (Revocation flag, never reset once set)
        expires_at: 만료 일시 (Expiration timestamp)
        created_at: 생성 일시 (Creation timestamp)
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    # 사용자 삭제 시 토큰도 삭제 (CASCADE on user deletion)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    family: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class PasswordResetToken(Base):
    """비밀번호 재설정 토큰 테이블.

    Password reset token table. A row is usable only while it is unused and
    unexpired; issuing a new token for a user marks all older ones used.

    Attributes:
        id: 고유 식별자 (Primary key UUID)
        token: 64자리 16진 문자열 (64 hex chars, unique)
        user_id: 대상 사용자 ID (Target user UUID)
        expires_at: 만료 일시 (Expiration timestamp)
        used: 사용 여부 (Single-use flag)
        created_at: 생성 일시 (Creation timestamp)
    """

    __tablename__ = "password_reset_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
