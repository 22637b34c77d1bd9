"""작업 레포지토리 - 작업 관련 DB 쿼리 담당.

Task Repository. Extends BaseRepository with owner/status filtering.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.task import Task
from cloudarc.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """작업 레포지토리.

    Task repository with owner and status filtering.

    Extends:
        BaseRepository[Task]
    """

    def __init__(self) -> None:
        super().__init__(Task)

    async def get_filtered(
        self,
        db: AsyncSession,
        user_id: UUID | None = None,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Task], int]:
        """작업을 필터링하여 페이지네이션 조회합니다.

        Retrieve paginated tasks, newest first, with optional filters.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 소유자 필터 (Owner filter)
            status: 상태 필터 (Status filter)
            page: 페이지 번호, 1부터 시작 (Page number, 1-based)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[Task], int]: (작업 목록, 전체 개수) (Tasks, total count)
        """
        query: Select = select(Task)
        if user_id is not None:
            query = query.where(Task.user_id == user_id)
        if status is not None:
            query = query.where(Task.status == status)

        query = query.order_by(Task.created_at.desc(), Task.id)
        return await self.get_paginated(db, query, page, per_page)


# 싱글턴 인스턴스 - Singleton instance
task_repository: TaskRepository = TaskRepository()
