"""사용자 레포지토리 - 사용자 CRUD 쿼리.

User Repository. Extends BaseRepository with listing and
uniqueness lookups used by the admin user endpoints.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.user import User
from cloudarc.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the users table.
    """

    def __init__(self) -> None:
        super().__init__(User)

    async def get_list(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[User], int]:
        """사용자 목록을 생성일 순으로 페이지네이션 조회합니다.

        Retrieve users ordered by creation time, paginated.

        Returns:
            tuple[Sequence[User], int]: (사용자 목록, 전체 개수) (Users, total count)
        """
        query: Select = select(User).order_by(User.created_at, User.id)
        return await self.get_paginated(db, query, page, per_page)

    async def find_conflict(
        self,
        db: AsyncSession,
        user_id: UUID,
        username: str | None,
        email: str | None,
    ) -> str | None:
        """다른 사용자가 같은 값을 쓰고 있는지 확인합니다.

        Check whether another user already owns the given username or email.

        Returns:
            str | None: 충돌 필드명 ("email" 또는 "username") 또는 None
        """
        if email is not None:
            result = await db.execute(select(User.id).where(User.email == email, User.id != user_id))
            if result.first() is not None:
                return "email"
        if username is not None:
            result = await db.execute(select(User.id).where(User.username == username, User.id != user_id))
            if result.first() is not None:
                return "username"
        return None


# 싱글턴 인스턴스 - Singleton instance
user_repository: UserRepository = UserRepository()
