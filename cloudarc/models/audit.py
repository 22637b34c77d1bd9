"""감사 로그 모델.

Audit log model. Rows record who did what to which resource; the actor
reference is nulled when the user is deleted so history survives.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cloudarc.database import Base


class AuditLog(Base):
    """감사 로그 테이블.

    Audit log table.

    Attributes:
        id: 고유 식별자 (Primary key UUID)
        actor_id: 수행 사용자 ID (Acting user, nullable)
        actor_email: 수행 사용자 이메일 스냅샷 (Email snapshot of the actor)
        action: 동작 (Action name, e.g. "task.create", "auth.refresh_reuse")
        resource: 리소스 종류 (Resource type, e.g. "task")
        resource_id: 리소스 ID (Resource identifier)
        details: 부가 정보 (Extra JSON payload, stored in the "metadata" column)
        ip: 요청 IP (Client IP address)
        created_at: 생성 일시 (Creation timestamp)
    """

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    actor_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    resource: Mapped[str | None] = mapped_column(String(100), nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # "metadata"는 Declarative 예약어라 속성명은 details (attribute renamed, column keeps its name)
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
