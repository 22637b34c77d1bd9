"""Redis 캐시 테스트 - 메모리 내 가짜 클라이언트 사용.

Cache tests with an in-memory stand-in for the Redis client, so no Redis
server is needed. Covers read-through caching of tasks, ownership checks
on cache hits, invalidation and tolerance of Redis failures.
"""

import fnmatch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession

from cloudarc.schemas.task import TaskCreate, TaskUpdate
from cloudarc.services.task_service import TaskService, item_key, task_service
from cloudarc.utils.cache import JsonCache
from cloudarc.utils.exceptions import NotFoundError
from cloudarc.utils.jwt import AccessClaims
from tests.conftest import auth_header

TASKS = "/api/v1/tasks"


class InMemoryRedis:
    """테스트용 Redis 대역 (Minimal async stand-in for redis.asyncio.Redis)."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.store[key] = value

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self.store.pop(key, None)

    async def scan_iter(self, match: str = "*"):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key

    async def aclose(self) -> None:
        pass


class BrokenRedis(InMemoryRedis):
    async def get(self, key: str) -> str | None:
        raise RedisConnectionError("down")

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        raise RedisConnectionError("down")


def _claims(user) -> AccessClaims:
    return AccessClaims(id=user.id, username=user.username, email=user.email, role=user.role)


@pytest.fixture
def memory_cache() -> JsonCache:
    cache = JsonCache("")
    cache._client = InMemoryRedis()
    return cache


class TestJsonCache:
    """JsonCache 동작 테스트."""

    async def test_disabled_without_url(self):
        cache = JsonCache("")
        assert cache.enabled is False
        await cache.set("k", {"a": 1})
        assert await cache.get("k") is None

    async def test_roundtrip_and_pattern_delete(self, memory_cache: JsonCache):
        await memory_cache.set("tasks:list:a", {"a": 1})
        await memory_cache.set("tasks:list:b", {"b": 2})
        await memory_cache.set("tasks:1", {"id": 1})
        assert await memory_cache.get("tasks:list:a") == {"a": 1}

        await memory_cache.delete_pattern("tasks:list:*")
        assert await memory_cache.get("tasks:list:a") is None
        assert await memory_cache.get("tasks:1") == {"id": 1}

    async def test_redis_errors_are_not_raised(self):
        """Redis 장애 시 캐시 미스로 처리."""
        cache = JsonCache("")
        cache._client = BrokenRedis()
        await cache.set("k", {"a": 1})
        assert await cache.get("k") is None


class TestTaskCaching:
    """작업 캐싱 테스트."""

    async def test_get_task_is_cached(self, db: AsyncSession, memory_cache: JsonCache, alice):
        service = TaskService(memory_cache)
        created = await service.create_task(db, _claims(alice), TaskCreate(title="cached"))
        await db.commit()

        await service.get_task(db, _claims(alice), created.id)
        assert await memory_cache.get(item_key(created.id)) is not None

    async def test_cache_hit_still_checks_owner(self, db: AsyncSession, memory_cache: JsonCache, alice, bob):
        """캐시 적중 시에도 소유권 검사."""
        service = TaskService(memory_cache)
        created = await service.create_task(db, _claims(alice), TaskCreate(title="private"))
        await db.commit()
        await service.get_task(db, _claims(alice), created.id)

        with pytest.raises(NotFoundError):
            await service.get_task(db, _claims(bob), created.id)

    async def test_mutation_invalidates(self, db: AsyncSession, memory_cache: JsonCache, alice):
        """커밋 후 invalidate 호출 시 상세/목록 캐시 삭제."""
        service = TaskService(memory_cache)
        actor = _claims(alice)
        created = await service.create_task(db, actor, TaskCreate(title="before"))
        await db.commit()

        await service.get_task(db, actor, created.id)
        await service.list_tasks(db, actor)
        assert len(memory_cache._client.store) == 2

        await service.update_task(db, actor, created.id, TaskUpdate(title="after"))
        await db.commit()
        await service.invalidate(created.id)
        assert memory_cache._client.store == {}

        assert (await service.get_task(db, actor, created.id)).title == "after"


class TestRouteInvalidation:
    """라우트 커밋 이후 캐시 무효화 테스트."""

    @pytest.fixture(autouse=True)
    def _shared_cache(self, monkeypatch, memory_cache: JsonCache) -> None:
        monkeypatch.setattr(task_service, "cache", memory_cache)

    async def test_update_route_drops_stale_entries(self, client, memory_cache: JsonCache, alice_token):
        """수정 API 이후 상세/목록 캐시가 비워지고 새 값이 조회됨."""
        headers = auth_header(alice_token)
        created = (await client.post(TASKS, json={"title": "before"}, headers=headers)).json()
        await client.get(f"{TASKS}/{created['id']}", headers=headers)
        await client.get(TASKS, headers=headers)
        assert len(memory_cache._client.store) == 2

        res = await client.put(f"{TASKS}/{created['id']}", json={"title": "after"}, headers=headers)
        assert res.status_code == 200
        assert memory_cache._client.store == {}

        res = await client.get(f"{TASKS}/{created['id']}", headers=headers)
        assert res.json()["title"] == "after"

    async def test_create_route_drops_list_entries(self, client, memory_cache: JsonCache, alice_token):
        headers = auth_header(alice_token)
        await client.get(TASKS, headers=headers)
        assert len(memory_cache._client.store) == 1

        await client.post(TASKS, json={"title": "new"}, headers=headers)
        assert memory_cache._client.store == {}
        assert (await client.get(TASKS, headers=headers)).json()["total"] == 1

    async def test_delete_user_drops_cascaded_tasks(
        self, client, memory_cache: JsonCache, alice, alice_token, admin_token
    ):
        """사용자 삭제 시 CASCADE로 사라진 작업의 캐시도 삭제."""
        created = (await client.post(TASKS, json={"title": "owned"}, headers=auth_header(alice_token))).json()
        res = await client.get(f"{TASKS}/{created['id']}", headers=auth_header(admin_token))
        assert res.status_code == 200
        await client.get(TASKS, headers=auth_header(admin_token))
        assert any(key.startswith("tasks:") for key in memory_cache._client.store)

        res = await client.delete(f"/api/v1/users/{alice.id}", headers=auth_header(admin_token))
        assert res.status_code == 204
        assert not any(key.startswith("tasks:") for key in memory_cache._client.store)

        res = await client.get(f"{TASKS}/{created['id']}", headers=auth_header(admin_token))
        assert res.status_code == 404
