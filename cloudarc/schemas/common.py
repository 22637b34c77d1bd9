"""공통 Pydantic 응답 스키마 정의.

Common response schemas shared across API domains.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    """단순 메시지 응답 (Plain message response)."""

    message: str


class ErrorResponse(BaseModel):
    """오류 응답 스키마 (Error body rendered by the exception handler)."""

    detail: str
    code: str


class AuditLogResponse(BaseModel):
    """감사 로그 응답 스키마.

    ``metadata`` is read from the model's ``details`` attribute.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    actor_id: UUID | None
    actor_email: str | None
    action: str
    resource: str | None
    resource_id: str | None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="details")
    ip: str | None
    created_at: datetime
