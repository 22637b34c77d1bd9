"""사용자 API 및 관리자 감사 로그 테스트.

Users API tests: admin-only listing and deletion, self-or-admin read and
update, role changes reserved to admins. Also covers the audit log
listing and the shared error envelope.
"""

from httpx import AsyncClient

from tests.conftest import auth_header

USERS = "/api/v1/users"
AUDIT = "/api/v1/admin/audit-logs"


class TestUserList:
    """사용자 목록 테스트."""

    async def test_admin_lists_users(self, client: AsyncClient, alice, bob, admin_token):
        res = await client.get(USERS, headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()
        assert data["total"] == 3
        assert all("password_hash" not in user for user in data["items"])

    async def test_regular_user_forbidden(self, client: AsyncClient, alice_token):
        """일반 사용자는 목록 조회 불가."""
        res = await client.get(USERS, headers=auth_header(alice_token))
        assert res.status_code == 403
        assert res.json()["code"] == "FORBIDDEN_001"


class TestUserDetail:
    """사용자 조회 테스트."""

    async def test_get_self(self, client: AsyncClient, alice, alice_token):
        res = await client.get(f"{USERS}/{alice.id}", headers=auth_header(alice_token))
        assert res.status_code == 200
        assert res.json()["email"] == "alice@x.com"
        assert "password_hash" not in res.json()

    async def test_get_other_forbidden(self, client: AsyncClient, bob, alice_token):
        res = await client.get(f"{USERS}/{bob.id}", headers=auth_header(alice_token))
        assert res.status_code == 403

    async def test_admin_gets_anyone(self, client: AsyncClient, bob, admin_token):
        res = await client.get(f"{USERS}/{bob.id}", headers=auth_header(admin_token))
        assert res.status_code == 200

    async def test_unknown_user(self, client: AsyncClient, admin_token):
        res = await client.get(f"{USERS}/00000000-0000-0000-0000-000000000000", headers=auth_header(admin_token))
        assert res.status_code == 404
        assert res.json()["code"] == "NOT_FOUND_002"


class TestUserUpdate:
    """사용자 수정 테스트."""

    async def test_update_self(self, client: AsyncClient, alice, alice_token):
        res = await client.put(
            f"{USERS}/{alice.id}",
            json={"email": "Alice.New@x.com"},
            headers=auth_header(alice_token),
        )
        assert res.status_code == 200
        assert res.json()["email"] == "alice.new@x.com"

    async def test_update_other_forbidden(self, client: AsyncClient, bob, alice_token):
        res = await client.put(f"{USERS}/{bob.id}", json={"username": "bobby"}, headers=auth_header(alice_token))
        assert res.status_code == 403

    async def test_role_change_requires_admin(self, client: AsyncClient, alice, alice_token):
        """일반 사용자는 본인 역할도 변경 불가."""
        res = await client.put(f"{USERS}/{alice.id}", json={"role": "admin"}, headers=auth_header(alice_token))
        assert res.status_code == 403

    async def test_admin_changes_role(self, client: AsyncClient, alice, admin_token):
        res = await client.put(f"{USERS}/{alice.id}", json={"role": "admin"}, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["role"] == "admin"

    async def test_update_conflicts(self, client: AsyncClient, alice, bob, alice_token):
        """다른 사용자의 이메일/사용자명으로 변경 시 409."""
        res = await client.put(f"{USERS}/{alice.id}", json={"email": "bob@x.com"}, headers=auth_header(alice_token))
        assert res.status_code == 409
        assert res.json()["code"] == "AUTH_002"

        res = await client.put(f"{USERS}/{alice.id}", json={"username": "bob"}, headers=auth_header(alice_token))
        assert res.status_code == 409
        assert res.json()["code"] == "AUTH_003"

    async def test_update_empty_body(self, client: AsyncClient, alice, alice_token):
        res = await client.put(f"{USERS}/{alice.id}", json={}, headers=auth_header(alice_token))
        assert res.status_code == 422


class TestUserDelete:
    """사용자 삭제 테스트."""

    async def test_admin_deletes_user_and_tasks(self, client: AsyncClient, alice, alice_token, admin_token):
        """사용자 삭제 시 작업과 세션도 함께 삭제."""
        task = await client.post("/api/v1/tasks", json={"title": "mine"}, headers=auth_header(alice_token))
        login = await client.post("/api/v1/auth/login", json={"email": "alice@x.com", "password": "Secret123"})

        res = await client.delete(f"{USERS}/{alice.id}", headers=auth_header(admin_token))
        assert res.status_code == 204

        res = await client.get(f"/api/v1/tasks/{task.json()['id']}", headers=auth_header(admin_token))
        assert res.status_code == 404

        res = await client.post("/api/v1/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})
        assert res.status_code == 401

    async def test_regular_user_cannot_delete(self, client: AsyncClient, bob, alice_token):
        res = await client.delete(f"{USERS}/{bob.id}", headers=auth_header(alice_token))
        assert res.status_code == 403

    async def test_delete_unknown_user(self, client: AsyncClient, admin_token):
        res = await client.delete(f"{USERS}/00000000-0000-0000-0000-000000000000", headers=auth_header(admin_token))
        assert res.status_code == 404


class TestAuditLog:
    """감사 로그 조회 테스트."""

    async def test_task_mutations_are_audited(self, client: AsyncClient, alice, alice_token, admin_token):
        await client.post("/api/v1/tasks", json={"title": "audited"}, headers=auth_header(alice_token))

        res = await client.get(AUDIT, params={"action": "task.create"}, headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()
        assert data["total"] == 1
        entry = data["items"][0]
        assert entry["actor_id"] == str(alice.id)
        assert entry["actor_email"] == "alice@x.com"
        assert entry["resource"] == "task"

    async def test_user_deletion_is_audited(self, client: AsyncClient, bob, admin_user, admin_token):
        await client.delete(f"{USERS}/{bob.id}", headers=auth_header(admin_token))
        res = await client.get(AUDIT, params={"actor_id": str(admin_user.id)}, headers=auth_header(admin_token))
        actions = [entry["action"] for entry in res.json()["items"]]
        assert actions == ["user.delete"]

    async def test_regular_user_forbidden(self, client: AsyncClient, alice_token):
        res = await client.get(AUDIT, headers=auth_header(alice_token))
        assert res.status_code == 403


class TestErrorEnvelope:
    """공통 오류 응답 형식 테스트."""

    async def test_unknown_route(self, client: AsyncClient):
        res = await client.get("/api/v1/does-not-exist")
        assert res.status_code == 404
        assert res.json() == {"detail": "Route not found", "code": "NOT_FOUND_004"}

    async def test_request_id_header(self, client: AsyncClient):
        """요청 ID가 응답 헤더로 전달됨."""
        res = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert res.status_code == 200
        assert res.headers["X-Request-ID"] == "req-123"

        res = await client.get("/api/v1/does-not-exist")
        assert res.headers["X-Request-ID"]

    async def test_validation_error_goes_through_domain_handler(self, client: AsyncClient, monkeypatch):
        """검증 실패는 ValidationFailedError로 변환되어 렌더링됨."""
        from cloudarc import main

        rendered: list[type] = []
        original = main.app_error_handler

        async def _spy(request, exc):
            rendered.append(type(exc))
            return await original(request, exc)

        monkeypatch.setattr(main, "app_error_handler", _spy)
        res = await client.post("/api/v1/auth/login", json={"email": "not-an-email", "password": "x"})
        assert res.status_code == 422
        assert res.json()["code"] == "VALIDATION_001"
        assert res.json()["detail"].startswith("email: ")
        assert rendered == [main.ValidationFailedError]
