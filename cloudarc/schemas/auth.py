"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Covers registration, login, token refresh/logout and password reset.
"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

from cloudarc.schemas.user import UserResponse
from cloudarc.utils.password import MAX_PASSWORD_BYTES


def check_password_strength(value: str) -> str:
    """비밀번호 규칙: 대문자 1자 이상, 숫자 1자 이상.

    Password rule shared by registration and reset: at least one uppercase
    letter and one digit. The field caps the length at 72 characters; the
    UTF-8 encoding must also fit bcrypt's 72-byte input limit.
    """
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number")
    return value


class RegisterRequest(BaseModel):
    """회원가입 요청 스키마.

    Self-registration request schema.

    Attributes:
        username: 사용자 아이디 (Alphanumeric, 3..30 chars)
        email: 이메일 (Stored lower-cased)
        password: 비밀번호 (Plain text, bcrypt-hashed on the server)
    """

    username: str = Field(min_length=3, max_length=30, pattern=r"^[A-Za-z0-9]+$")
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """로그인 요청 스키마.

    Attributes:
        email: 이메일 (Email, matched case-insensitively)
        password: 비밀번호 (Plain text, compared to the bcrypt hash)
    """

    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class RefreshRequest(BaseModel):
    """토큰 갱신 및 로그아웃 요청 스키마.

    Token refresh and logout request schema.

    Attributes:
        refresh_token: 기존 리프레시 토큰 (Current refresh token)
    """

    refresh_token: str = Field(min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ResetPasswordRequest(BaseModel):
    """비밀번호 재설정 요청 스키마.

    Attributes:
        token: 이메일로 받은 재설정 토큰 (Reset token from the email link)
        password: 새 비밀번호 (New password, same rules as registration)
    """

    token: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class AuthResult(BaseModel):
    """인증 성공 응답 스키마.

    Returned by register, login and refresh. ``user`` never carries the
    password hash.

    Attributes:
        user: 사용자 정보 (Public user fields)
        access_token: JWT 액세스 토큰 (Short-lived access token)
        refresh_token: JWT 리프레시 토큰 (Single-use refresh token)
        token_type: 토큰 유형 (Always "bearer")
    """

    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
