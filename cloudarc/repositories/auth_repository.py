"""인증 레포지토리 - 자격 증명 조회 및 리프레시 토큰 저장소.

Auth Repository. Handles credential lookups and the refresh token store.
Every revocation is a single UPDATE statement; rotation uses a conditional
update whose affected-row count tells the caller whether it won.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.models.token import RefreshToken
from cloudarc.models.user import User


class AuthRepository:
    """인증 관련 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling authentication-related database queries.
    Manages user credentials and the refresh token lifecycle.
    """

    async def get_user_by_email(
        self,
        db: AsyncSession,
        email: str,
    ) -> User | None:
        """이메일로 사용자를 조회합니다.

        Retrieve a user by email. Callers pass an already lower-cased email.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            email: 조회할 이메일 (Email to look up)

        Returns:
            User | None: 조회된 사용자 또는 None (Found user or None)
        """
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_user_by_username(
        self,
        db: AsyncSession,
        username: str,
    ) -> User | None:
        """사용자명으로 사용자를 조회합니다 (Retrieve a user by username)."""
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, db: AsyncSession, user_id: UUID) -> User | None:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(
        self,
        db: AsyncSession,
        username: str,
        email: str,
        password_hash: str,
    ) -> User:
        """새 사용자를 생성합니다.

        Insert a new user. Unique constraints on username and email raise
        ``IntegrityError`` on flush when a concurrent insert won.

        Returns:
            User: 생성된 사용자 (Created user)
        """
        user: User = User(username=username, email=email, password_hash=password_hash)
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    async def update_password(
        self,
        db: AsyncSession,
        user_id: UUID,
        password_hash: str,
    ) -> int:
        """사용자 비밀번호 해시를 교체합니다 (Overwrite the stored password hash)."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(password_hash=password_hash)
        )
        result = await db.execute(stmt)
        return result.rowcount

    async def create_refresh_token(
        self,
        db: AsyncSession,
        user_id: UUID,
        token: str,
        family: UUID,
        expires_at: datetime,
    ) -> RefreshToken:
        """새 리프레시 토큰을 저장합니다.

        Persist a new refresh token in the given family.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 토큰 소유자 사용자 ID (Token owner user UUID)
            token: JWT 리프레시 토큰 문자열 (JWT refresh token string)
            family: 세션 계열 ID (Family UUID; new at login, inherited on refresh)
            expires_at: 토큰 만료 일시 (Token expiration timestamp)

        Returns:
            RefreshToken: 생성된 리프레시 토큰 레코드 (Created refresh token record)
        """
        db_token: RefreshToken = RefreshToken(
            user_id=user_id,
            token=token,
            family=family,
            expires_at=expires_at,
        )
        db.add(db_token)
        await db.flush()
        return db_token

    async def get_refresh_token(
        self,
        db: AsyncSession,
        token: str,
    ) -> RefreshToken | None:
        """리프레시 토큰 문자열로 토큰 레코드를 조회합니다.

        Retrieve a refresh token record by its literal token string.

        Returns:
            RefreshToken | None: 조회된 토큰 레코드 또는 None (Found token record or None)
        """
        query: Select = select(RefreshToken).where(RefreshToken.token == token)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def revoke_if_active(
        self,
        db: AsyncSession,
        token: str,
    ) -> bool:
        """아직 폐기되지 않은 토큰만 폐기합니다.

        Conditionally revoke a token: ``UPDATE ... WHERE token = :t AND
        revoked = false``. Of several concurrent callers presenting the same
        token, exactly one sees an affected row.

        Returns:
            bool: 이 호출이 토큰을 폐기했으면 True (True if this call revoked it)
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token == token, RefreshToken.revoked.is_(False))
            .values(revoked=True)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    async def revoke_family(
        self,
        db: AsyncSession,
        family: UUID,
    ) -> int:
        """계열 전체를 폐기합니다.

        Revoke every token in a family in one statement.

        Returns:
            int: 새로 폐기된 토큰 수 (Number of tokens newly revoked)
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.family == family, RefreshToken.revoked.is_(False))
            .values(revoked=True)
        )
        result = await db.execute(stmt)
        return result.rowcount

    async def revoke_user_refresh_tokens(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """특정 사용자의 모든 리프레시 토큰을 폐기합니다.

        Revoke all refresh tokens of a user across every family
        (logout from all devices).

        Returns:
            int: 새로 폐기된 토큰 수 (Number of tokens newly revoked)
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
        )
        result = await db.execute(stmt)
        return result.rowcount

    async def delete_expired_refresh_tokens(
        self,
        db: AsyncSession,
        now: datetime,
    ) -> int:
        """만료된 리프레시 토큰을 삭제합니다.

        Delete tokens past their expiry. Revoked but unexpired rows are kept
        because reuse detection needs them.
        """
        result = await db.execute(delete(RefreshToken).where(RefreshToken.expires_at < now))
        return result.rowcount


# 싱글턴 인스턴스 - Singleton instance
auth_repository: AuthRepository = AuthRepository()
