"""JWT 토큰 생성 및 검증 유틸리티 모듈.

JWT token creation and verification utility module.
``TokenCodec`` signs access and refresh tokens with two distinct secrets, so
leaking one secret cannot forge the other kind of token.

JWT Payload Structure:
    액세스 토큰 (Access token):
    {
        "id": "user_uuid",          # 사용자 ID (User identifier)
        "username": "alice",        # 사용자명 (Username)
        "email": "alice@x.com",     # 이메일 (Email)
        "role": "user",             # 역할 (Role name)
        "type": "access",           # 토큰 유형 (Token type discriminator)
        "iat": 1234567000,          # 발급 시각 (Issued at)
        "exp": 1234567890           # 만료 시각 (Expiration)
    }

    리프레시 토큰 (Refresh token):
    {
        "id": "user_uuid",
        "jti": "hex nonce",         # 토큰마다 새 난수 (Fresh nonce per token)
        "type": "refresh",
        "iat": 1234567000,
        "exp": 1234567890
    }
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from pydantic import BaseModel

from cloudarc.config import Settings, settings
from cloudarc.models.user import User
from cloudarc.utils.exceptions import TokenExpiredError, TokenInvalidError

logger = logging.getLogger(__name__)


class AccessClaims(BaseModel):
    """검증된 액세스 토큰 클레임 (Verified access token claims)."""

    id: uuid.UUID
    username: str
    email: str
    role: str


class RefreshClaims(BaseModel):
    """검증된 리프레시 토큰 클레임 (Verified refresh token claims)."""

    id: uuid.UUID
    jti: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """액세스/리프레시 JWT 서명 및 검증기.

    Signs and verifies access and refresh JWTs.

    Attributes:
        access_secret: 액세스 토큰 서명 키 (Access token secret)
        refresh_secret: 리프레시 토큰 서명 키 (Refresh token secret)
        algorithm: 서명 알고리즘 (Signing algorithm)
        access_ttl: 액세스 토큰 유효 기간 (Access token lifetime)
        refresh_ttl: 리프레시 토큰 유효 기간 (Refresh token lifetime)
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if access_secret == refresh_secret:
            raise ValueError("access and refresh secrets must differ")
        self.access_secret: str = access_secret
        self.refresh_secret: str = refresh_secret
        self.algorithm: str = algorithm
        self.access_ttl: timedelta = access_ttl
        self.refresh_ttl: timedelta = refresh_ttl
        self._clock: Callable[[], datetime] = clock

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenCodec":
        """설정 객체로부터 코덱을 생성합니다 (Build a codec from settings)."""
        return cls(
            access_secret=config.JWT_ACCESS_SECRET,
            refresh_secret=config.JWT_REFRESH_SECRET,
            algorithm=config.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=config.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=config.JWT_REFRESH_TOKEN_EXPIRE_DAYS),
        )

    @staticmethod
    def new_jti() -> str:
        """새 토큰 식별 난수를 생성합니다 (Fresh random nonce, never reused)."""
        return uuid.uuid4().hex

    def refresh_expires_at(self) -> datetime:
        """지금 발급할 리프레시 토큰의 만료 시각 (Expiry for a refresh token issued now)."""
        return self._clock() + self.refresh_ttl

    def sign_access(self, user: User) -> str:
        """JWT 액세스 토큰을 생성합니다.

        Generate a short-lived access token carrying the user's identity.
        No random component: identical user and clock give identical tokens.

        Args:
            user: 토큰 대상 사용자 (User the token is issued to)

        Returns:
            str: 인코딩된 JWT 문자열 (Encoded JWT token string)
        """
        now: datetime = self._clock()
        payload: dict[str, Any] = {
            "id": str(user.id),
            "username": user.username,
            "email": user.email,
            "role": user.role,
            "type": "access",
            "iat": now,
            "exp": now + self.access_ttl,
        }
        return jwt.encode(payload, self.access_secret, algorithm=self.algorithm)

    def sign_refresh(self, user_id: uuid.UUID, jti: str) -> str:
        """JWT 리프레시 토큰을 생성합니다.

        Generate a long-lived refresh token. ``jti`` makes every token string
        unique even for the same user within the same second.

        Args:
            user_id: 토큰 소유자 ID (Owner user UUID)
            jti: 토큰 식별 난수 (Nonce from ``new_jti``)

        Returns:
            str: 인코딩된 JWT 리프레시 토큰 문자열 (Encoded JWT refresh token string)
        """
        now: datetime = self._clock()
        payload: dict[str, Any] = {
            "id": str(user_id),
            "jti": jti,
            "type": "refresh",
            "iat": now,
            "exp": now + self.refresh_ttl,
        }
        return jwt.encode(payload, self.refresh_secret, algorithm=self.algorithm)

    def verify_access(self, token: str) -> AccessClaims:
        """액세스 토큰을 검증하고 클레임을 반환합니다.

        Raises:
            TokenExpiredError: 토큰 만료 시 (When the token has expired)
            TokenInvalidError: 서명 불일치, 형식 오류, 유형 불일치 (Bad signature, shape or type)
        """
        payload: dict[str, Any] = self._decode(token, self.access_secret, "access")
        try:
            return AccessClaims(
                id=payload["id"],
                username=payload["username"],
                email=payload["email"],
                role=payload["role"],
            )
        except (KeyError, ValueError) as exc:
            logger.debug("access token rejected: malformed claims (%s)", type(exc).__name__)
            raise TokenInvalidError() from exc

    def verify_refresh(self, token: str) -> RefreshClaims:
        """리프레시 토큰을 검증하고 클레임을 반환합니다.

        Raises:
            TokenExpiredError: 토큰 만료 시 (When the token has expired)
            TokenInvalidError: 서명 불일치, 형식 오류, 유형 불일치 (Bad signature, shape or type)
        """
        payload: dict[str, Any] = self._decode(token, self.refresh_secret, "refresh")
        try:
            return RefreshClaims(id=payload["id"], jti=payload["jti"])
        except (KeyError, ValueError) as exc:
            logger.debug("refresh token rejected: malformed claims (%s)", type(exc).__name__)
            raise TokenInvalidError() from exc

    def _decode(self, token: str, secret: str, expected_type: str) -> dict[str, Any]:
        # 실패 사유는 debug 로그에만 남김 (Failure reason only goes to the debug log)
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            logger.debug("%s token rejected: expired", expected_type)
            raise TokenExpiredError() from exc
        except jwt.InvalidTokenError as exc:
            logger.debug("%s token rejected: %s", expected_type, type(exc).__name__)
            raise TokenInvalidError() from exc

        if payload.get("type") != expected_type:
            logger.debug("%s token rejected: wrong type claim", expected_type)
            raise TokenInvalidError()
        return payload


# 싱글턴 인스턴스 - Singleton instance built from settings
token_codec: TokenCodec = TokenCodec.from_settings(settings)
