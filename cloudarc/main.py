"""FastAPI 애플리케이션 엔트리포인트 - 미들웨어, 예외 처리기, 라우터 등록.

FastAPI application entry point.
Configures logging, request logging, CORS, error rendering and routers.
Every API route is served under ``/api/v1`` and mirrored under ``/api``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cloudarc import __version__
from cloudarc.api import api_router
from cloudarc.config import settings
from cloudarc.database import engine
from cloudarc.middleware.axiom_logging import AxiomLoggingMiddleware
from cloudarc.utils.cache import cache
from cloudarc.utils.exceptions import AppError, ErrorCode, ValidationFailedError
from cloudarc.utils.log import setup_logging

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# 일반 HTTPException 상태 코드 -> 오류 코드 (Codes for framework-raised HTTP errors)
_CODE_BY_STATUS: dict[int, ErrorCode] = {
    401: ErrorCode.UNAUTHENTICATED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.ROUTE_NOT_FOUND,
    422: ErrorCode.VALIDATION_FAILED,
}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """종료 시 외부 연결 정리 (Close external connections on shutdown)."""
    yield
    await cache.close()
    await engine.dispose()


app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# 요청 로깅 미들웨어 - CORS보다 먼저 등록하여 모든 요청을 캡처
# Request logging, registered before CORS to capture all requests
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 - Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    """도메인 예외를 {"detail", "code"} 형태로 렌더링합니다.

    Render every domain error as ``{"detail": ..., "code": ...}``. The
    public code hides which kind of token failure happened.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.public_code.value},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 실패 - 422 VALIDATION_001 (Request validation failure).

    Flattens pydantic errors into one message and renders them as a
    ``ValidationFailedError`` through the domain error handler.
    """
    messages: list[str] = []
    for error in exc.errors():
        location: str = ".".join(str(part) for part in error.get("loc", ())[1:])
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return await app_error_handler(request, ValidationFailedError("; ".join(messages) or None))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """프레임워크 HTTP 예외 렌더링 (Framework-raised HTTP errors such as unknown routes)."""
    code: ErrorCode = _CODE_BY_STATUS.get(exc.status_code, ErrorCode.SERVER_ERROR)
    detail: str = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail, "code": code.value},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """예상치 못한 예외 - 500 SERVER_001 (Unexpected failures)."""
    logger.exception("unhandled error: %s", type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": ErrorCode.SERVER_ERROR.value},
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# 라우터 등록 - /api/v1 정식 경로, /api 호환 경로 (Canonical and compatibility prefixes)
app.include_router(api_router, prefix="/api/v1")
app.include_router(api_router, prefix="/api", include_in_schema=False)
