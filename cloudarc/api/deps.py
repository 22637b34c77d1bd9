"""FastAPI 의존성 주입 모듈 - 인증, 권한 검사, 서비스 조립.

FastAPI dependency injection module.
Provides the request authentication gate, role gating and the
``AuthService`` instance routes depend on.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출 (HTTPBearer extracts the token)
    3. TokenCodec.verify_access()가 JWT를 검증하고 클레임을 반환
       (verify_access checks signature, expiry and type, returns claims)
    4. DB 조회 없이 클레임을 요청 사용자로 사용
       (Claims are used as the caller identity without a DB lookup)
"""

from typing import Annotated, Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cloudarc.models.user import ROLE_ADMIN
from cloudarc.services.auth_service import AuthService, build_auth_service
from cloudarc.utils.email import smtp_notifier
from cloudarc.utils.exceptions import ForbiddenError, UnauthenticatedError
from cloudarc.utils.jwt import AccessClaims, token_codec

# HTTP Bearer 토큰 추출기 - 누락 시 401을 직접 발생시키기 위해 auto_error=False
# Extracts the bearer token; auto_error=False so a missing header becomes our own 401
security: HTTPBearer = HTTPBearer(auto_error=False)

# 싱글턴 인스턴스 - Singleton instance wired with the SMTP notifier
auth_service: AuthService = build_auth_service(smtp_notifier)


def get_auth_service() -> AuthService:
    """AuthService 의존성 (Tests override this to inject a recording notifier)."""
    return auth_service


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> AccessClaims:
    """액세스 토큰에서 현재 인증된 사용자를 추출합니다.

    Verify the bearer access token and return its claims.

    Raises:
        UnauthenticatedError: 헤더 누락 (Missing bearer credential)
        TokenInvalidError: 토큰이 유효하지 않거나 만료됨 (Invalid or expired token)
    """
    if credentials is None:
        raise UnauthenticatedError()
    return token_codec.verify_access(credentials.credentials)


def require_role(*roles: str) -> Callable[..., Awaitable[AccessClaims]]:
    """역할 기반 권한 검사 의존성 팩토리.

    Dependency factory allowing only the given roles.

    Returns:
        FastAPI 의존성 함수 - 인증된 사용자 반환 또는 403 발생
        (Dependency returning the claims or raising 403)
    """

    async def _check(
        current_user: Annotated[AccessClaims, Depends(get_current_user)],
    ) -> AccessClaims:
        if current_user.role not in roles:
            raise ForbiddenError()
        return current_user

    return _check


# 편의 의존성 - Admin only
require_admin = require_role(ROLE_ADMIN)


def client_ip(request: Request) -> str | None:
    """요청 IP를 반환합니다 (Client address, honoring X-Forwarded-For)."""
    forwarded: str | None = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
