"""개발용 초기 데이터 시드 스크립트 - 관리자 계정 및 샘플 작업 생성.

Seed script for local development. Creates an admin account, two regular
users and a handful of sample tasks.

Usage:
    python -m cloudarc.seed

Creates:
    - admin / admin@cloudarc.io / Admin1234 (role: admin)
    - alice, bob (role: user, password: Secret123)
    - 6개 샘플 작업 (6 sample tasks)
"""

import asyncio
import logging

from sqlalchemy import select

from cloudarc.config import settings
from cloudarc.database import Base, async_session, engine
from cloudarc.models import Task, User
from cloudarc.models.user import ROLE_ADMIN
from cloudarc.utils.log import setup_logging
from cloudarc.utils.password import hash_password

logger = logging.getLogger("cloudarc.seed")

_SAMPLE_TASKS: list[tuple[str, str, str, str]] = [
    ("alice", "Set up CI/CD pipeline", "Configure automated builds", "pending"),
    ("alice", "Write unit tests", "Cover user and task services with tests", "in_progress"),
    ("bob", "Design database schema", "Normalize tables and add indexes", "completed"),
    ("bob", "Implement Redis caching", "Cache the task list endpoint", "in_progress"),
    ("admin", "Create API documentation", "Review the OpenAPI output", "pending"),
    ("admin", "Containerize the application", "Write the Dockerfile", "pending"),
]


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Idempotent: 이미 시드된 경우 건너뜁니다 (Skips if any user exists).
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        result = await db.execute(select(User).limit(1))
        if result.scalar_one_or_none() is not None:
            logger.info("already seeded, skipping")
            return

        users: dict[str, User] = {
            "admin": User(
                username="admin",
                email="admin@cloudarc.io",
                password_hash=hash_password("Admin1234"),
                role=ROLE_ADMIN,
            ),
            "alice": User(username="alice", email="alice@cloudarc.io", password_hash=hash_password("Secret123")),
            "bob": User(username="bob", email="bob@cloudarc.io", password_hash=hash_password("Secret123")),
        }
        db.add_all(users.values())
        await db.flush()

        for owner, title, description, status in _SAMPLE_TASKS:
            db.add(Task(title=title, description=description, status=status, user_id=users[owner].id))

        await db.commit()
        logger.info("seeded %d users and %d tasks", len(users), len(_SAMPLE_TASKS))


async def main() -> None:
    try:
        await seed()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(main())
