"""사용자 서비스 - 사용자 조회, 수정, 삭제 비즈니스 로직.

User Service. Business logic for the users CRUD endpoints.
Registration lives in the auth service; this service never touches
password hashes.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.user import ROLE_ADMIN, User
from cloudarc.repositories.user_repository import user_repository
from cloudarc.schemas.user import UserResponse, UserUpdate
from cloudarc.services.audit_service import audit_service
from cloudarc.utils.exceptions import (
    EmailTakenError,
    ErrorCode,
    ForbiddenError,
    NotFoundError,
    UsernameTakenError,
)
from cloudarc.utils.jwt import AccessClaims
from cloudarc.utils.pagination import Page


class UserService:
    """사용자 관련 비즈니스 로직을 처리하는 서비스.

    Service handling user business logic.
    """

    async def _get_or_404(self, db: AsyncSession, user_id: UUID) -> User:
        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found", code=ErrorCode.USER_NOT_FOUND)
        return user

    async def list_users(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
    ) -> Page[UserResponse]:
        """사용자 목록을 조회합니다.

        List users, paginated.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            page: 페이지 번호 (Page number, 1-based)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            Page[UserResponse]: 사용자 목록 페이지 (Page of users)
        """
        users, total = await user_repository.get_list(db, page, per_page)
        items: list[UserResponse] = [UserResponse.model_validate(u) for u in users]
        return Page[UserResponse].build(items, total, page, per_page)

    async def get_user(self, db: AsyncSession, user_id: UUID) -> UserResponse:
        """사용자 상세를 조회합니다 (Retrieve one user).

        Raises:
            NotFoundError: 사용자가 없을 때 (User not found)
        """
        return UserResponse.model_validate(await self._get_or_404(db, user_id))

    async def update_user(
        self,
        db: AsyncSession,
        actor: AccessClaims,
        user_id: UUID,
        data: UserUpdate,
    ) -> UserResponse:
        """사용자 정보를 수정합니다.

        Update a user. Users may update themselves; admins may update anyone
        and are the only ones allowed to change roles.

        Raises:
            ForbiddenError: 권한 부족 (Not self and not admin, or role change by non-admin)
            NotFoundError: 사용자가 없을 때 (User not found)
            EmailTakenError: 다른 사용자가 이메일 사용 중 (Email owned by someone else)
            UsernameTakenError: 다른 사용자가 사용자명 사용 중 (Username owned by someone else)
        """
        is_admin: bool = actor.role == ROLE_ADMIN
        if actor.id != user_id and not is_admin:
            raise ForbiddenError()
        if data.role is not None and not is_admin:
            raise ForbiddenError("Only administrators can change roles")

        await self._get_or_404(db, user_id)

        update_data: dict = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        conflict: str | None = await user_repository.find_conflict(
            db, user_id, update_data.get("username"), update_data.get("email")
        )
        if conflict == "email":
            raise EmailTakenError()
        if conflict == "username":
            raise UsernameTakenError()

        user: User | None = await user_repository.update(db, user_id, update_data)
        return UserResponse.model_validate(user)

    async def delete_user(
        self,
        db: AsyncSession,
        actor: AccessClaims,
        user_id: UUID,
        ip: str | None = None,
    ) -> None:
        """사용자를 삭제합니다.

        Delete a user; their tasks and tokens go with them (ON DELETE CASCADE).

        Raises:
            NotFoundError: 사용자가 없을 때 (User not found)
        """
        if not await user_repository.delete(db, user_id):
            raise NotFoundError("User not found", code=ErrorCode.USER_NOT_FOUND)

        await audit_service.record(
            db,
            action="user.delete",
            actor_id=actor.id,
            actor_email=actor.email,
            resource="user",
            resource_id=str(user_id),
            ip=ip,
        )


# 싱글턴 인스턴스 - Singleton instance
user_service: UserService = UserService()
