"""작업 Pydantic 요청/응답 스키마 정의.

Task request/response schemas.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

TaskStatus = Literal["pending", "in_progress", "completed"]


class TaskCreate(BaseModel):
    """작업 생성 요청 스키마.

    Attributes:
        title: 제목 (1..255 chars)
        description: 설명 (Optional, up to 2000 chars)
        status: 상태 (Defaults to "pending")
        user_id: 소유자 (Admins may create tasks for another user; ignored otherwise)
    """

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus = "pending"
    user_id: UUID | None = None


class TaskUpdate(BaseModel):
    """작업 수정 요청 스키마 (부분 업데이트)."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus | None = None

    @model_validator(mode="after")
    def at_least_one_field(self) -> "TaskUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    status: str
    user_id: UUID
    created_at: datetime
    updated_at: datetime
