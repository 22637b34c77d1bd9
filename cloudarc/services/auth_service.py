"""인증 서비스 - 회원가입, 로그인, 토큰 갱신, 로그아웃, 비밀번호 재설정.

Auth Service. Business logic for the credential lifecycle:
register, login, refresh-token rotation with reuse detection, logout,
logout-all, forgot-password and reset-password.

Rotation protocol:
    Each login starts a new token family. A refresh revokes the presented
    token with a conditional update and issues a successor in the same
    family. Presenting a token that is already revoked (or losing the
    conditional update to a concurrent caller) revokes the whole family.
"""

import logging
import secrets
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.config import settings
from cloudarc.models.token import PasswordResetToken, RefreshToken
from cloudarc.models.user import User
from cloudarc.repositories.auth_repository import auth_repository
from cloudarc.repositories.password_reset_repository import password_reset_repository
from cloudarc.schemas.auth import AuthResult, LoginRequest, RegisterRequest, ResetPasswordRequest
from cloudarc.schemas.user import UserResponse
from cloudarc.services.audit_service import audit_service
from cloudarc.utils.email import Notifier, render_password_reset_email
from cloudarc.utils.exceptions import (
    EmailTakenError,
    InvalidCredentialsError,
    NotificationError,
    ResetTokenInvalidError,
    TokenInvalidError,
    TokenReuseDetectedError,
    UsernameTakenError,
)
from cloudarc.utils.jwt import RefreshClaims, TokenCodec, token_codec
from cloudarc.utils.password import DUMMY_PASSWORD_HASH, hash_password, verify_password

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling the authentication state machine. The token codec and
    notifier are injected so tests can substitute them.

    Attributes:
        codec: 토큰 서명/검증기 (Token codec)
        notifier: 메일 발송기 (Message notifier)
        reset_ttl: 재설정 토큰 유효 기간 (Reset token lifetime)
        app_base_url: 재설정 링크 기준 URL (Base URL for reset links)
    """

    def __init__(
        self,
        codec: TokenCodec,
        notifier: Notifier,
        reset_ttl: timedelta = timedelta(minutes=30),
        app_base_url: str = "http://localhost:3000",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.codec: TokenCodec = codec
        self.notifier: Notifier = notifier
        self.reset_ttl: timedelta = reset_ttl
        self.app_base_url: str = app_base_url.rstrip("/")
        self._clock: Callable[[], datetime] = clock

    async def _issue_tokens(
        self,
        db: AsyncSession,
        user: User,
        family: UUID,
    ) -> AuthResult:
        """액세스 토큰과 리프레시 토큰을 발급합니다.

        Issue an access token and a refresh token in ``family`` and persist
        the refresh token.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 사용자 모델 (User model instance)
            family: 세션 계열 ID (New at login, inherited on refresh)

        Returns:
            AuthResult: 사용자 정보와 토큰 쌍 (User plus token pair)
        """
        access_token: str = self.codec.sign_access(user)
        refresh_token: str = self.codec.sign_refresh(user.id, self.codec.new_jti())

        await auth_repository.create_refresh_token(
            db,
            user_id=user.id,
            token=refresh_token,
            family=family,
            expires_at=self.codec.refresh_expires_at(),
        )

        return AuthResult(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        )

    async def register(
        self,
        db: AsyncSession,
        data: RegisterRequest,
    ) -> AuthResult:
        """회원가입을 처리합니다.

        Create a user and start a new session family. Both uniqueness checks
        run before failing; a taken email is reported ahead of a taken
        username.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 회원가입 요청 데이터 (Registration request data)

        Returns:
            AuthResult: 생성된 사용자와 토큰 쌍 (Created user plus token pair)

        Raises:
            EmailTakenError: 이메일 중복 (Email already registered)
            UsernameTakenError: 사용자명 중복 (Username already taken)
        """
        email_owner: User | None = await auth_repository.get_user_by_email(db, data.email)
        username_owner: User | None = await auth_repository.get_user_by_username(db, data.username)
        if email_owner is not None:
            raise EmailTakenError()
        if username_owner is not None:
            raise UsernameTakenError()

        password_hash: str = hash_password(data.password)
        try:
            user: User = await auth_repository.create_user(
                db,
                username=data.username,
                email=data.email,
                password_hash=password_hash,
            )
        except IntegrityError as exc:
            # 동시 가입이 검사를 통과한 경우 - unique 제약으로 감지
            # A concurrent registration slipped past the checks; the unique constraint caught it
            await db.rollback()
            if await auth_repository.get_user_by_email(db, data.email) is not None:
                raise EmailTakenError() from exc
            raise UsernameTakenError() from exc

        logger.info("user registered", extra={"user_id": str(user.id)})
        return await self._issue_tokens(db, user, family=uuid.uuid4())

    async def login(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> AuthResult:
        """로그인을 처리합니다.

        Verify credentials and start a new session family. A bcrypt
        comparison always runs, against a dummy hash when the email is
        unknown, so timing does not reveal whether the account exists.

        Raises:
            InvalidCredentialsError: 이메일 또는 비밀번호 불일치 (Unknown email or wrong password)
        """
        user: User | None = await auth_repository.get_user_by_email(db, data.email)
        stored_hash: str = user.password_hash if user is not None else DUMMY_PASSWORD_HASH
        password_ok: bool = verify_password(data.password, stored_hash)

        if user is None or not password_ok:
            logger.info(
                "login failed",
                extra={"user_id": str(user.id) if user is not None else None},
            )
            raise InvalidCredentialsError()

        return await self._issue_tokens(db, user, family=uuid.uuid4())

    async def refresh(
        self,
        db: AsyncSession,
        raw_token: str,
    ) -> AuthResult:
        """리프레시 토큰을 회전합니다.

        Rotate a refresh token:
            1. verify signature and expiry
            2. look up the row by its literal string
            3. a revoked row means reuse: revoke the family, commit, fail
            4. revoke the row with a conditional update; losing the race is reuse
            5. re-fetch the user and issue a successor in the same family

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            raw_token: 클라이언트가 제시한 리프레시 토큰 (Presented refresh token)

        Returns:
            AuthResult: 새 토큰 쌍 (New token pair)

        Raises:
            TokenInvalidError: 위조, 만료, 미등록 토큰 또는 삭제된 사용자
                               (Forged, expired or unknown token, or deleted user)
            TokenReuseDetectedError: 폐기된 토큰 재사용 (Revoked token presented again)
        """
        claims: RefreshClaims = self.codec.verify_refresh(raw_token)

        row: RefreshToken | None = await auth_repository.get_refresh_token(db, raw_token)
        if row is None or row.user_id != claims.id:
            raise TokenInvalidError()

        family: UUID = row.family
        user_id: UUID = row.user_id

        if row.revoked:
            await self._revoke_family_on_reuse(db, user_id, family)

        # 조건부 폐기 - 동시 요청 중 하나만 성공 (Conditional revoke, at most one caller wins)
        if not await auth_repository.revoke_if_active(db, raw_token):
            await self._revoke_family_on_reuse(db, user_id, family)

        user: User | None = await auth_repository.get_user_by_id(db, user_id)
        if user is None:
            raise TokenInvalidError()

        return await self._issue_tokens(db, user, family=family)

    async def _revoke_family_on_reuse(
        self,
        db: AsyncSession,
        user_id: UUID,
        family: UUID,
    ) -> None:
        """재사용 감지 시 계열 전체를 폐기하고 예외를 던집니다.

        Revoke the whole family, commit so the revocation survives the
        failing request, then raise. Never issues tokens.

        Raises:
            TokenReuseDetectedError: 항상 (Always)
        """
        revoked: int = await auth_repository.revoke_family(db, family)
        await audit_service.record(
            db,
            action="auth.refresh_reuse",
            actor_id=user_id,
            resource="refresh_token_family",
            resource_id=str(family),
            details={"revoked": revoked},
        )
        await db.commit()
        logger.warning(
            "refresh token reuse detected",
            extra={"user_id": str(user_id), "family": str(family), "revoked": revoked},
        )
        raise TokenReuseDetectedError()

    async def logout(
        self,
        db: AsyncSession,
        raw_token: str,
    ) -> None:
        """로그아웃 - 제시된 리프레시 토큰 하나만 폐기합니다.

        Revoke exactly the presented token. Unknown or already revoked
        tokens are not errors.
        """
        await auth_repository.revoke_if_active(db, raw_token)

    async def logout_all(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """모든 기기에서 로그아웃합니다.

        Revoke every refresh token of the user across all families.

        Returns:
            int: 폐기된 토큰 수 (Number of tokens revoked)
        """
        revoked: int = await auth_repository.revoke_user_refresh_tokens(db, user_id)
        logger.info("logout all sessions", extra={"user_id": str(user_id), "revoked": revoked})
        return revoked

    async def forgot_password(
        self,
        db: AsyncSession,
        email: str,
    ) -> None:
        """비밀번호 재설정 메일을 발송합니다.

        Unknown email: no side effect. Known email: invalidate older unused
        reset tokens, store a new one and email the reset link. A delivery
        failure is logged and swallowed so the caller's response is the
        same in every case.
        """
        user: User | None = await auth_repository.get_user_by_email(db, email.lower())
        if user is None:
            return

        await password_reset_repository.invalidate_all_for_user(db, user.id)

        # 서명 없는 불투명 토큰 - DB 비교 전용 (Opaque secret, only ever compared in the store)
        raw_token: str = secrets.token_hex(32)
        await password_reset_repository.create(
            db,
            user_id=user.id,
            token=raw_token,
            expires_at=self._clock() + self.reset_ttl,
        )

        reset_url: str = f"{self.app_base_url}/reset-password?token={raw_token}"
        text, html = render_password_reset_email(reset_url, int(self.reset_ttl.total_seconds() // 60))
        try:
            await self.notifier.send(user.email, "Reset your password", text, html)
        except NotificationError as exc:
            logger.error("password reset email failed: %s", exc, extra={"user_id": str(user.id)})

    async def reset_password(
        self,
        db: AsyncSession,
        data: ResetPasswordRequest,
    ) -> None:
        """비밀번호를 재설정합니다.

        Consume a valid reset token, in this order: mark the token used,
        overwrite the password hash, revoke every refresh token of the user.

        Raises:
            ResetTokenInvalidError: 토큰 없음, 만료 또는 사용됨 (Unknown, expired or used token)
        """
        row: PasswordResetToken | None = await password_reset_repository.get_valid(
            db, data.token, self._clock()
        )
        if row is None:
            raise ResetTokenInvalidError()

        user_id: UUID = row.user_id
        if not await password_reset_repository.mark_used(db, row.id):
            raise ResetTokenInvalidError()

        await auth_repository.update_password(db, user_id, hash_password(data.password))
        revoked: int = await auth_repository.revoke_user_refresh_tokens(db, user_id)
        await audit_service.record(
            db,
            action="auth.password_reset",
            actor_id=user_id,
            resource="user",
            resource_id=str(user_id),
            details={"sessions_revoked": revoked},
        )
        logger.info("password reset completed", extra={"user_id": str(user_id), "revoked": revoked})

    async def get_me(self, db: AsyncSession, user_id: UUID) -> UserResponse:
        """현재 사용자 정보를 조회합니다.

        Load the caller's profile. A valid access token whose user has since
        been deleted is treated as an invalid token.
        """
        user: User | None = await auth_repository.get_user_by_id(db, user_id)
        if user is None:
            raise TokenInvalidError()
        return UserResponse.model_validate(user)

    async def purge_expired(self, db: AsyncSession) -> tuple[int, int]:
        """만료된 리프레시/재설정 토큰을 삭제합니다.

        Delete expired refresh and reset tokens. Idempotent.

        Returns:
            tuple[int, int]: (삭제된 리프레시 토큰 수, 삭제된 재설정 토큰 수)
        """
        now: datetime = self._clock()
        refresh_deleted: int = await auth_repository.delete_expired_refresh_tokens(db, now)
        reset_deleted: int = await password_reset_repository.delete_expired(db, now)
        return refresh_deleted, reset_deleted


def build_auth_service(notifier: Notifier) -> AuthService:
    """설정값으로 AuthService를 생성합니다 (Assemble an AuthService from settings)."""
    return AuthService(
        codec=token_codec,
        notifier=notifier,
        reset_ttl=timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
        app_base_url=settings.APP_BASE_URL,
    )
