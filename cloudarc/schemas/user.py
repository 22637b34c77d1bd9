"""사용자 Pydantic 요청/응답 스키마 정의.

User request/response schemas. ``UserResponse`` deliberately has no
password hash field, so no endpoint can leak it.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


class UserResponse(BaseModel):
    """사용자 응답 스키마.

    Attributes:
        id: 사용자 UUID (User identifier)
        username: 로그인 아이디 (Username)
        email: 이메일 (Email)
        role: 역할 (Role, "user" or "admin")
        created_at: 생성 일시 (Creation timestamp)
        updated_at: 수정 일시 (Last update timestamp)
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    role: str
    created_at: datetime
    updated_at: datetime


class UserUpdate(BaseModel):
    """사용자 수정 요청 스키마 (부분 업데이트).

    Partial update; at least one field must be present. Only admins may
    change ``role``.
    """

    username: str | None = Field(default=None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9]+$")
    email: EmailStr | None = None
    role: Literal["user", "admin"] | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str | None) -> str | None:
        return v.lower() if v is not None else None

    @model_validator(mode="after")
    def at_least_one_field(self) -> "UserUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self
