"""AuthService 단위 테스트 - HTTP 계층 없이 서비스 직접 호출.

AuthService tests that call the service directly: the lost-rotation race,
expired-token purge and session counts.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.token import PasswordResetToken, RefreshToken
from cloudarc.repositories.auth_repository import auth_repository
from cloudarc.repositories.password_reset_repository import password_reset_repository
from cloudarc.schemas.auth import LoginRequest
from cloudarc.services.auth_service import AuthService
from cloudarc.utils.exceptions import TokenInvalidError, TokenReuseDetectedError


async def _login(db: AsyncSession, service: AuthService) -> str:
    result = await service.login(db, LoginRequest(email="alice@x.com", password="Secret123"))
    await db.commit()
    return result.refresh_token


class TestRotationRace:
    """동시 갱신 경쟁 테스트."""

    async def test_losing_conditional_revoke_is_reuse(
        self, db: AsyncSession, auth_service: AuthService, alice, monkeypatch
    ):
        """조건부 폐기에서 진 요청은 재사용으로 간주되어 계열 폐기."""
        refresh_token = await _login(db, auth_service)

        async def _lost_race(_db, _token):
            return False

        monkeypatch.setattr(auth_repository, "revoke_if_active", _lost_race)

        with pytest.raises(TokenReuseDetectedError):
            await auth_service.refresh(db, refresh_token)

        result = await db.execute(
            select(RefreshToken)
            .where(RefreshToken.user_id == alice.id)
            .execution_options(populate_existing=True)
        )
        rows = list(result.scalars().all())
        assert len(rows) == 1
        assert rows[0].revoked is True

    async def test_second_refresh_of_same_token_fails(self, db: AsyncSession, auth_service: AuthService, alice):
        """같은 토큰으로 순차 갱신 시 두 번째는 실패하고 새 토큰도 폐기."""
        refresh_token = await _login(db, auth_service)

        winner = await auth_service.refresh(db, refresh_token)
        await db.commit()

        with pytest.raises(TokenReuseDetectedError):
            await auth_service.refresh(db, refresh_token)

        with pytest.raises(TokenInvalidError):
            await auth_service.refresh(db, winner.refresh_token)

    async def test_revoke_if_active_only_once(self, db: AsyncSession, auth_service: AuthService, alice):
        refresh_token = await _login(db, auth_service)
        assert await auth_repository.revoke_if_active(db, refresh_token) is True
        assert await auth_repository.revoke_if_active(db, refresh_token) is False


class TestSessions:
    """세션 관리 테스트."""

    async def test_logout_all_count(self, db: AsyncSession, auth_service: AuthService, alice):
        for _ in range(3):
            await _login(db, auth_service)
        assert await auth_service.logout_all(db, alice.id) == 3
        assert await auth_service.logout_all(db, alice.id) == 0

    async def test_get_me_deleted_user(self, db: AsyncSession, auth_service: AuthService, alice):
        """토큰은 유효하지만 사용자가 삭제된 경우."""
        await db.delete(alice)
        await db.commit()
        with pytest.raises(TokenInvalidError):
            await auth_service.get_me(db, alice.id)


class TestPurge:
    """만료 토큰 정리 테스트."""

    async def test_purge_expired(self, db: AsyncSession, auth_service: AuthService, alice):
        """만료된 토큰만 삭제, 폐기되었지만 만료되지 않은 토큰은 유지."""
        now = datetime.now(timezone.utc)
        live = await _login(db, auth_service)
        await auth_repository.revoke_if_active(db, live)
        await auth_repository.create_refresh_token(
            db,
            user_id=alice.id,
            token="expired-refresh",
            family=alice.id,
            expires_at=now - timedelta(days=1),
        )
        await password_reset_repository.create(db, alice.id, "c" * 64, now - timedelta(minutes=5))
        await password_reset_repository.create(db, alice.id, "d" * 64, now + timedelta(minutes=5))
        await db.commit()

        assert await auth_service.purge_expired(db) == (1, 1)
        assert await auth_service.purge_expired(db) == (0, 0)

        tokens = (await db.execute(select(RefreshToken.token))).scalars().all()
        assert tokens == [live]
        resets = (await db.execute(select(PasswordResetToken.token))).scalars().all()
        assert resets == ["d" * 64]
