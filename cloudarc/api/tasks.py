"""작업 라우터 - 작업 CRUD.

Tasks Router. Every endpoint requires a bearer token; regular users only
see their own tasks.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.api.deps import client_ip, get_current_user
from cloudarc.database import get_db
from cloudarc.schemas.task import TaskCreate, TaskResponse, TaskStatus, TaskUpdate
from cloudarc.services.task_service import task_service
from cloudarc.utils.jwt import AccessClaims
from cloudarc.utils.pagination import MAX_PER_PAGE, Page

router: APIRouter = APIRouter()


@router.get("", response_model=Page[TaskResponse])
async def list_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
    user_id: UUID | None = None,
    status_filter: Annotated[TaskStatus | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=MAX_PER_PAGE)] = 20,
) -> Page[TaskResponse]:
    """작업 목록 조회 - 소유자/상태 필터, 페이지네이션.

    List tasks filtered by owner (admins only) and status, paginated.
    """
    return await task_service.list_tasks(db, current_user, user_id, status_filter, page, per_page)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
) -> TaskResponse:
    """작업 상세 조회 (Retrieve one task)."""
    return await task_service.get_task(db, current_user, task_id)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    data: TaskCreate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
) -> TaskResponse:
    """작업 생성 (Create a task owned by the caller)."""
    result: TaskResponse = await task_service.create_task(db, current_user, data, ip=client_ip(request))
    await db.commit()
    await task_service.invalidate()
    return result


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
) -> TaskResponse:
    """작업 수정 (Partially update a task)."""
    result: TaskResponse = await task_service.update_task(db, current_user, task_id, data, ip=client_ip(request))
    await db.commit()
    await task_service.invalidate(task_id)
    return result


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[AccessClaims, Depends(get_current_user)],
) -> Response:
    """작업 삭제 (Delete a task)."""
    await task_service.delete_task(db, current_user, task_id, ip=client_ip(request))
    await db.commit()
    await task_service.invalidate(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
