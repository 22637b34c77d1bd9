"""작업 SQLAlchemy ORM 모델 정의.

Task SQLAlchemy ORM model definition.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cloudarc.database import Base

# 작업 상태 값 (Task status values)
TASK_STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed")


class Task(Base):
    """작업 모델 - 사용자가 소유한 할 일 항목.

    Task model. Each task is owned by exactly one user.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        title: 제목 (Title, up to 255 chars)
        description: 설명 (Optional description, up to 2000 chars)
        status: 상태 (pending | in_progress | completed)
        user_id: 소유자 FK (Owner user foreign key)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
