"""감사 로그 레포지토리.

Audit Log Repository. Append-only: rows are inserted and listed, never
updated or deleted.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.audit import AuditLog
from cloudarc.repositories.base import BaseRepository


class AuditRepository(BaseRepository[AuditLog]):
    """감사 로그 조회/기록 (Audit log queries)."""

    def __init__(self) -> None:
        super().__init__(AuditLog)

    async def get_filtered(
        self,
        db: AsyncSession,
        actor_id: UUID | None = None,
        action: str | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[AuditLog], int]:
        """감사 로그를 최신순으로 조회합니다 (Newest entries first, optionally filtered)."""
        query: Select = select(AuditLog)
        if actor_id is not None:
            query = query.where(AuditLog.actor_id == actor_id)
        if action is not None:
            query = query.where(AuditLog.action == action)

        query = query.order_by(AuditLog.created_at.desc(), AuditLog.id)
        return await self.get_paginated(db, query, page, per_page)


# 싱글턴 인스턴스 - Singleton instance
audit_repository: AuditRepository = AuditRepository()
