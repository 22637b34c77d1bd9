"""비밀번호 재설정 토큰 레포지토리.

Password Reset Repository. Stores opaque single-use reset tokens; validity
(exists, unused, unexpired) is always checked in one SQL predicate.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.token import PasswordResetToken


class PasswordResetRepository:
    """재설정 토큰 테이블 쿼리 (Queries on password_reset_tokens)."""

    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        token: str,
        expires_at: datetime,
    ) -> PasswordResetToken:
        """새 재설정 토큰을 저장합니다 (Persist a new reset token)."""
        row: PasswordResetToken = PasswordResetToken(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
        )
        db.add(row)
        await db.flush()
        return row

    async def get_valid(
        self,
        db: AsyncSession,
        token: str,
        now: datetime,
    ) -> PasswordResetToken | None:
        """사용 가능한 토큰만 조회합니다.

        Return the row only if it exists, is unused and has not expired.
        The caller cannot tell which condition failed.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            token: 재설정 토큰 원문 (Raw reset token)
            now: 기준 시각 (Reference time, UTC)

        Returns:
            PasswordResetToken | None: 유효한 토큰 또는 None (Valid row or None)
        """
        query = select(PasswordResetToken).where(
            PasswordResetToken.token == token,
            PasswordResetToken.used.is_(False),
            PasswordResetToken.expires_at > now,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def mark_used(self, db: AsyncSession, token_id: UUID) -> bool:
        """미사용 토큰을 사용 처리합니다.

        Conditional update; only one of several concurrent callers sees True.
        """
        stmt = (
            update(PasswordResetToken)
            .where(PasswordResetToken.id == token_id, PasswordResetToken.used.is_(False))
            .values(used=True)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    async def invalidate_all_for_user(self, db: AsyncSession, user_id: UUID) -> int:
        """사용자의 미사용 토큰을 한 번에 무효화합니다.

        Mark every unused token of a user as used in one statement.

        Returns:
            int: 무효화된 토큰 수 (Number of tokens invalidated)
        """
        stmt = (
            update(PasswordResetToken)
            .where(PasswordResetToken.user_id == user_id, PasswordResetToken.used.is_(False))
            .values(used=True)
        )
        result = await db.execute(stmt)
        return result.rowcount

    async def delete_expired(self, db: AsyncSession, now: datetime) -> int:
        result = await db.execute(delete(PasswordResetToken).where(PasswordResetToken.expires_at < now))
        return result.rowcount


# 싱글턴 인스턴스 - Singleton instance
password_reset_repository: PasswordResetRepository = PasswordResetRepository()
