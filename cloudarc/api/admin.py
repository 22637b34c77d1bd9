"""관리자 라우터 - 감사 로그 조회.

Admin Router. Audit log listing, admin only.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.api.deps import require_admin
from cloudarc.database import get_db
from cloudarc.schemas.common import AuditLogResponse
from cloudarc.services.audit_service import audit_service
from cloudarc.utils.jwt import AccessClaims
from cloudarc.utils.pagination import MAX_PER_PAGE, Page

router: APIRouter = APIRouter()


@router.get("/audit-logs", response_model=Page[AuditLogResponse])
async def list_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    _admin: Annotated[AccessClaims, Depends(require_admin)],
    actor_id: UUID | None = None,
    action: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=MAX_PER_PAGE)] = 50,
) -> Page[AuditLogResponse]:
    """감사 로그 목록 조회 - 최신순.

    List audit entries, newest first, filtered by actor and action.
    """
    return await audit_service.get_list(db, actor_id, action, page, per_page)
