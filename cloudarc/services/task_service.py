"""작업 서비스 - 작업 CRUD 비즈니스 로직.

Task Service. Business logic for task CRUD with a Redis read-through cache.

Caching strategy:
    - list: ``tasks:list:<sorted query>``
    - detail: ``tasks:<id>``
    Routes call ``invalidate`` after committing a mutation. Ownership is
    checked after a cache hit, so cached entries never bypass it.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.task import Task
from cloudarc.models.user import ROLE_ADMIN
from cloudarc.repositories.task_repository import task_repository
from cloudarc.repositories.user_repository import user_repository
from cloudarc.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from cloudarc.services.audit_service import audit_service
from cloudarc.utils.cache import JsonCache, cache
from cloudarc.utils.exceptions import ErrorCode, NotFoundError
from cloudarc.utils.jwt import AccessClaims
from cloudarc.utils.pagination import Page

CACHE_PREFIX: str = "tasks"


def list_key(query: dict[str, Any]) -> str:
    """쿼리 파라미터로 결정적인 캐시 키를 만듭니다 (Deterministic list cache key)."""
    suffix: str = "&".join(f"{k}={v}" for k, v in sorted(query.items()) if v is not None)
    return f"{CACHE_PREFIX}:list:{suffix or 'all'}"


def item_key(task_id: UUID) -> str:
    return f"{CACHE_PREFIX}:{task_id}"


class TaskService:
    """작업 관련 비즈니스 로직을 처리하는 서비스.

    Regular users only see and change their own tasks; admins see all.
    A task owned by someone else is reported as not found.
    """

    def __init__(self, task_cache: JsonCache) -> None:
        self.cache: JsonCache = task_cache

    @staticmethod
    def _not_found() -> NotFoundError:
        return NotFoundError("Task not found", code=ErrorCode.TASK_NOT_FOUND)

    @staticmethod
    def _visible(actor: AccessClaims, owner_id: UUID) -> bool:
        return actor.role == ROLE_ADMIN or owner_id == actor.id

    async def list_tasks(
        self,
        db: AsyncSession,
        actor: AccessClaims,
        user_id: UUID | None = None,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Page[TaskResponse]:
        """작업 목록을 조회합니다.

        List tasks, newest first. For non-admins the owner filter is forced
        to the caller.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            actor: 요청 사용자 (Calling user)
            user_id: 소유자 필터, 관리자 전용 (Owner filter, admins only)
            status: 상태 필터 (Status filter)
            page: 페이지 번호 (Page number)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            Page[TaskResponse]: 작업 목록 페이지 (Page of tasks)
        """
        if actor.role != ROLE_ADMIN:
            user_id = actor.id

        key: str = list_key({"user_id": user_id, "status": status, "page": page, "per_page": per_page})
        cached: Any | None = await self.cache.get(key)
        if cached is not None:
            return Page[TaskResponse].model_validate(cached)

        tasks, total = await task_repository.get_filtered(db, user_id, status, page, per_page)
        items: list[TaskResponse] = [TaskResponse.model_validate(t) for t in tasks]
        result: Page[TaskResponse] = Page[TaskResponse].build(items, total, page, per_page)

        await self.cache.set(key, result.model_dump(mode="json"))
        return result

    async def get_task(
        self,
        db: AsyncSession,
        actor: AccessClaims,
        task_id: UUID,
    ) -> TaskResponse:
        """작업 상세를 조회합니다 (Retrieve one task).

        Raises:
            NotFoundError: 작업이 없거나 다른 사용자 소유 (Missing or owned by someone else)
        """
        cached: Any | None = await self.cache.get(item_key(task_id))
        if cached is not None:
            task_data: TaskResponse = TaskResponse.model_validate(cached)
        else:
            task: Task | None = await task_repository.get_by_id(db, task_id)
            if task is None:
                raise self._not_found()
            task_data = TaskResponse.model_validate(task)
            await self.cache.set(item_key(task_id), task_data.model_dump(mode="json"))

        if not self._visible(actor, task_data.user_id):
            raise self._not_found()
        return task_data

    async def create_task(
        self,
        db: AsyncSession,
        actor: AccessClaims,
        data: TaskCreate,
        ip: str | None = None,
    ) -> TaskResponse:
        """작업을 생성합니다.

        Create a task owned by the caller. Admins may name another owner.

        Raises:
            NotFoundError: 지정한 소유자가 없을 때 (Named owner does not exist)
        """
        owner_id: UUID = actor.id
        if actor.role == ROLE_ADMIN and data.user_id is not None:
            if await user_repository.get_by_id(db, data.user_id) is None:
                raise NotFoundError("User not found", code=ErrorCode.USER_NOT_FOUND)
            owner_id = data.user_id

        task: Task = await task_repository.create(
            db,
            {
                "title": data.title,
                "description": data.description,
                "status": data.status,
                "user_id": owner_id,
            },
        )
        await audit_service.record(
            db,
            action="task.create",
            actor_id=actor.id,
            actor_email=actor.email,
            resource="task",
            resource_id=str(task.id),
            ip=ip,
        )
        return TaskResponse.model_validate(task)

    async def update_task(
        self,
        db: AsyncSession,
        actor: AccessClaims,
        task_id: UUID,
        data: TaskUpdate,
        ip: str | None = None,
    ) -> TaskResponse:
        """작업을 수정합니다 (Partially update a task).

        Raises:
            NotFoundError: 작업이 없거나 다른 사용자 소유 (Missing or owned by someone else)
        """
        task: Task | None = await task_repository.get_by_id(db, task_id)
        if task is None or not self._visible(actor, task.user_id):
            raise self._not_found()

        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        # title/status는 null 불가, description만 null 허용 (Only description may be cleared)
        update_data = {k: v for k, v in update_data.items() if v is not None or k == "description"}

        updated: Task | None = await task_repository.update(db, task_id, update_data)
        await audit_service.record(
            db,
            action="task.update",
            actor_id=actor.id,
            actor_email=actor.email,
            resource="task",
            resource_id=str(task_id),
            details={"fields": sorted(update_data)},
            ip=ip,
        )
        return TaskResponse.model_validate(updated)

    async def delete_task(
        self,
        db: AsyncSession,
        actor: AccessClaims,
        task_id: UUID,
        ip: str | None = None,
    ) -> None:
        """작업을 삭제합니다 (Delete a task).

        Raises:
            NotFoundError: 작업이 없거나 다른 사용자 소유 (Missing or owned by someone else)
        """
        task: Task | None = await task_repository.get_by_id(db, task_id)
        if task is None or not self._visible(actor, task.user_id):
            raise self._not_found()

        await task_repository.delete(db, task_id)
        await audit_service.record(
            db,
            action="task.delete",
            actor_id=actor.id,
            actor_email=actor.email,
            resource="task",
            resource_id=str(task_id),
            ip=ip,
        )

    async def invalidate(self, task_id: UUID | None = None) -> None:
        """작업 캐시 무효화 - 커밋 이후 호출 (Drop cached entries; call after commit).

        Drops the item key of ``task_id`` (if given) and every list key.
        """
        if task_id is not None:
            await self.cache.delete(item_key(task_id))
        await self.cache.delete_pattern(f"{CACHE_PREFIX}:list:*")

    async def invalidate_all(self) -> None:
        """모든 작업 캐시 삭제 (Drop every task key, e.g. after a user's tasks cascade away)."""
        await self.cache.delete_pattern(f"{CACHE_PREFIX}:*")


# 싱글턴 인스턴스 - Singleton instance
task_service: TaskService = TaskService(cache)
