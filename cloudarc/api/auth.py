"""인증 라우터 - 회원가입, 로그인, 토큰 갱신, 로그아웃, 비밀번호 재설정.

Auth Router. Registration, login, token refresh, logout, logout-all,
password recovery and current-user endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.api.deps import get_auth_service, get_current_user
from cloudarc.database import get_db
from cloudarc.schemas.auth import (
    AuthResult,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from cloudarc.schemas.common import MessageResponse
from cloudarc.schemas.user import UserResponse
from cloudarc.services.auth_service import AuthService
from cloudarc.utils.jwt import AccessClaims

router: APIRouter = APIRouter()

# 가입 여부와 무관하게 항상 같은 응답 (Same body whether or not the email exists)
FORGOT_PASSWORD_MESSAGE: str = "If that email is registered, a password reset link has been sent"


@router.post("/register", response_model=AuthResult, status_code=201)
async def register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResult:
    """회원가입 - 사용자 생성 및 토큰 발급.

    Register a new user and return a token pair.
    """
    result: AuthResult = await service.register(db, data)
    await db.commit()
    return result


@router.post("/login", response_model=AuthResult)
async def login(
    data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResult:
    """로그인 - 새 세션 계열의 토큰 쌍 발급.

    Log in and start a new session family.
    """
    result: AuthResult = await service.login(db, data)
    await db.commit()
    return result


@router.post("/refresh", response_model=AuthResult)
async def refresh_token(
    data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResult:
    """토큰 갱신 - 리프레시 토큰 회전.

    Rotate a refresh token. The old token becomes unusable; presenting it
    again revokes the whole session family.
    """
    result: AuthResult = await service.refresh(db, data.refresh_token)
    await db.commit()
    return result


@router.post("/logout", status_code=204)
async def logout(
    data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> Response:
    """로그아웃 - 리프레시 토큰 폐기 (Revoke the given refresh token)."""
    await service.logout(db, data.refresh_token)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/logout-all", status_code=204)
async def logout_all(
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
) -> Response:
    """모든 기기에서 로그아웃 (Revoke every refresh token of the caller)."""
    await service.logout_all(db, current_user.id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """비밀번호 재설정 메일 요청.

    Request a password reset email. The response never reveals whether
    the email is registered.
    """
    await service.forgot_password(db, data.email)
    await db.commit()
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """비밀번호 재설정 - 모든 세션이 종료됩니다.

    Set a new password with a reset token. Every session of the user is
    revoked.
    """
    await service.reset_password(db, data)
    await db.commit()
    return MessageResponse(message="Password has been reset. Please log in again")


@router.get("/me", response_model=UserResponse)
async def get_me(
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
) -> UserResponse:
    """현재 사용자 프로필 조회 (Profile of the authenticated user)."""
    return await service.get_me(db, current_user.id)
