"""감사 로그 서비스.

Audit Service. Writes audit entries inside a savepoint so a failed write
rolls back only the audit row; the surrounding request carries on.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.audit import AuditLog
from cloudarc.repositories.audit_repository import audit_repository
from cloudarc.schemas.common import AuditLogResponse
from cloudarc.utils.pagination import Page

logger = logging.getLogger(__name__)


class AuditService:
    """감사 로그 기록/조회 서비스 (Audit log recording and listing)."""

    async def record(
        self,
        db: AsyncSession,
        action: str,
        actor_id: UUID | None = None,
        actor_email: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
        ip: str | None = None,
    ) -> None:
        """감사 로그 한 건을 기록합니다. 실패해도 예외를 던지지 않습니다.

        Append one audit entry. Failures are logged, never raised.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            action: 동작 이름 (Action, e.g. "task.create")
            actor_id: 수행 사용자 ID (Acting user)
            actor_email: 수행 사용자 이메일 (Acting user's email)
            resource: 리소스 종류 (Resource type)
            resource_id: 리소스 ID (Resource identifier)
            details: 부가 정보 (Extra JSON payload)
            ip: 요청 IP (Client IP)
        """
        try:
            async with db.begin_nested():
                db.add(
                    AuditLog(
                        actor_id=actor_id,
                        actor_email=actor_email,
                        action=action,
                        resource=resource,
                        resource_id=resource_id,
                        details=details,
                        ip=ip,
                    )
                )
        except SQLAlchemyError as exc:
            logger.error("audit write failed for %s: %s", action, exc)

    async def get_list(
        self,
        db: AsyncSession,
        actor_id: UUID | None = None,
        action: str | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> Page[AuditLogResponse]:
        """감사 로그 목록을 조회합니다 (List audit entries, newest first)."""
        rows, total = await audit_repository.get_filtered(db, actor_id, action, page, per_page)
        items: list[AuditLogResponse] = [AuditLogResponse.model_validate(row) for row in rows]
        return Page[AuditLogResponse].build(items, total, page, per_page)


# 싱글턴 인스턴스 - Singleton instance
audit_service: AuditService = AuditService()
