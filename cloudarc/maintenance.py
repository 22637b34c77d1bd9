"""만료 토큰 정리 스크립트.

Maintenance script. Deletes expired refresh tokens and password reset
tokens. Safe to run repeatedly, e.g. from cron.

Usage:
    python -m cloudarc.maintenance
"""

import asyncio
import logging

from cloudarc.api.deps import auth_service
from cloudarc.config import settings
from cloudarc.database import async_session, engine
from cloudarc.utils.log import setup_logging

logger = logging.getLogger("cloudarc.maintenance")


async def purge() -> tuple[int, int]:
    """만료 토큰을 삭제하고 커밋합니다.

    Delete expired tokens in one transaction.

    Returns:
        tuple[int, int]: (삭제된 리프레시 토큰 수, 삭제된 재설정 토큰 수)
    """
    async with async_session() as db:
        refresh_deleted, reset_deleted = await auth_service.purge_expired(db)
        await db.commit()

    logger.info(
        "expired tokens purged: %d refresh, %d reset",
        refresh_deleted,
        reset_deleted,
    )
    return refresh_deleted, reset_deleted


async def main() -> None:
    try:
        await purge()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(main())
