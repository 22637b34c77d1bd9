"""테스트 인프라 - 임시 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure. Temporary SQLite database (aiosqlite), session,
recording notifier and httpx client fixtures.
Environment variables are set before ``cloudarc`` is imported so the
settings singleton picks them up. The schema is created per engine and
every row is deleted after each test.
"""

import os
import re
import tempfile
from collections.abc import AsyncGenerator
from datetime import timedelta
from pathlib import Path

_TEST_DB_PATH: Path = Path(tempfile.gettempdir()) / f"cloudarc-test-{os.getpid()}.db"
TEST_DATABASE_URL: str = f"sqlite+aiosqlite:///{_TEST_DB_PATH}"

os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-0123456789abcdef"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-fedcba9876543210"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REDIS_URL"] = ""
os.environ["AXIOM_API_TOKEN"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import delete  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cloudarc.api.deps import get_auth_service  # noqa: E402
from cloudarc.database import Base, configure_sqlite, get_db  # noqa: E402
from cloudarc.main import app  # noqa: E402
from cloudarc.models import *  # noqa: E402,F401,F403 - register all models with metadata
from cloudarc.models.user import ROLE_ADMIN, User  # noqa: E402
from cloudarc.services.auth_service import AuthService  # noqa: E402
from cloudarc.utils.jwt import token_codec  # noqa: E402
from cloudarc.utils.password import hash_password  # noqa: E402

_RESET_TOKEN_PATTERN = re.compile(r"token=([0-9a-f]{64})")


class RecordingNotifier:
    """SMTP 대신 발송 내역을 기록하는 알리미 (Records messages instead of sending them)."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str | None]] = []

    async def send(self, to: str, subject: str, body: str, html: str | None = None) -> None:
        self.sent.append({"to": to, "subject": subject, "body": body, "html": html})

    def last_reset_token(self) -> str:
        match = _RESET_TOKEN_PATTERN.search(self.sent[-1]["body"] or "")
        assert match is not None, "no reset link in the last message"
        return match.group(1)


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 스키마가 없으면 생성합니다."""
    eng = create_async_engine(TEST_DATABASE_URL, echo=False)
    configure_sqlite(eng)

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        yield session
        await session.rollback()

    # 테스트 후 모든 데이터 정리 - 자식 테이블부터 (children first)
    async with factory() as cleanup:
        for table in reversed(Base.metadata.sorted_tables):
            await cleanup.execute(delete(table))
        await cleanup.commit()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def auth_service(notifier: RecordingNotifier) -> AuthService:
    """기록용 알리미가 주입된 AuthService (AuthService wired to the recording notifier)."""
    return AuthService(
        codec=token_codec,
        notifier=notifier,
        reset_ttl=timedelta(minutes=30),
        app_base_url="http://frontend.test",
    )


@pytest_asyncio.fixture
async def client(db: AsyncSession, auth_service: AuthService) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 - DB 세션과 AuthService를 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_auth_service] = lambda: auth_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
async def make_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str = "Secret123",
    role: str = "user",
) -> User:
    """사용자를 직접 생성합니다 (Insert a user without going through the API)."""
    user = User(username=username, email=email, password_hash=hash_password(password), role=role)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def alice(db: AsyncSession) -> User:
    return await make_user(db, "alice", "alice@x.com")


@pytest_asyncio.fixture
async def bob(db: AsyncSession) -> User:
    return await make_user(db, "bob", "bob@x.com")


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    """관리자 사용자를 생성합니다."""
    return await make_user(db, "admin", "admin@cloudarc.io", password="Admin1234", role=ROLE_ADMIN)


@pytest.fixture
def alice_token(alice: User) -> str:
    return token_codec.sign_access(alice)


@pytest.fixture
def bob_token(bob: User) -> str:
    return token_codec.sign_access(bob)


@pytest.fixture
def admin_token(admin_user: User) -> str:
    return token_codec.sign_access(admin_user)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
