"""API 라우터 패키지 - 모든 엔드포인트 통합.

API Router package. Aggregates every endpoint into ``api_router``, which
``cloudarc.main`` mounts under both ``/api/v1`` and ``/api``.

Included routers:
    - auth: 인증 (Registration, login, refresh, logout, password reset)
    - users: 사용자 (User CRUD)
    - tasks: 작업 (Task CRUD)
    - admin: 관리자 (Audit log)
"""

from fastapi import APIRouter

from cloudarc.api.admin import router as admin_router
from cloudarc.api.auth import router as auth_router
from cloudarc.api.tasks import router as tasks_router
from cloudarc.api.users import router as users_router

api_router: APIRouter = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(tasks_router, prefix="/tasks", tags=["Tasks"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
