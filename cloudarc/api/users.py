"""사용자 라우터 - 사용자 목록, 조회, 수정, 삭제.

Users Router. Listing and deletion are admin-only; a user may read and
update their own record.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.api.deps import client_ip, get_current_user, require_admin
from cloudarc.database import get_db
from cloudarc.models.user import ROLE_ADMIN
from cloudarc.schemas.user import UserResponse, UserUpdate
from cloudarc.services.task_service import task_service
from cloudarc.services.user_service import user_service
from cloudarc.utils.exceptions import ForbiddenError
from cloudarc.utils.jwt import AccessClaims
from cloudarc.utils.pagination import MAX_PER_PAGE, Page

router: APIRouter = APIRouter()


@router.get("", response_model=Page[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    _admin: Annotated[AccessClaims, Depends(require_admin)],
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=MAX_PER_PAGE)] = 20,
) -> Page[UserResponse]:
    """사용자 목록 조회 (관리자 전용).

    List users, paginated. Admin only.
    """
    return await user_service.list_users(db, page, per_page)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
) -> UserResponse:
    """사용자 상세 조회 - 본인 또는 관리자 (Self or admin)."""
    if current_user.id != user_id and current_user.role != ROLE_ADMIN:
        raise ForbiddenError()
    return await user_service.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
) -> UserResponse:
    """사용자 정보 수정 - 본인 또는 관리자 (Self or admin)."""
    result: UserResponse = await user_service.update_user(db, current_user, user_id, data)
    await db.commit()
    return result


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[AccessClaims, Depends(require_admin)],
) -> Response:
    """사용자 삭제 (관리자 전용).

    Delete a user together with their tasks and sessions. Admin only.
    """
    await user_service.delete_user(db, admin, user_id, ip=client_ip(request))
    await db.commit()
    # 작업이 CASCADE로 삭제되므로 작업 캐시 전체 삭제 (Tasks cascaded away with the user)
    await task_service.invalidate_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
