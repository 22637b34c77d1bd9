"""요청 로깅 미들웨어 - stdlib 로그 + Axiom 전송.

Request logging middleware.
Assigns a request id (echoed in ``X-Request-ID``), writes one log line per
request through stdlib logging and, when configured, ships a structured
event to Axiom. Sensitive fields (password, token, secret) are masked.
"""

import json
import logging
import re
import time
import uuid
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from cloudarc.config import settings
from cloudarc.utils.log import set_request_id

logger = logging.getLogger("cloudarc.request")

# 마스킹 대상 필드 패턴 - Fields to mask in request bodies and query strings
_SENSITIVE_KEYS = re.compile(
    r"(password|passwd|secret|token|authorization|api_key|apikey|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 - Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

REQUEST_ID_HEADER: str = "X-Request-ID"


def _mask_dict(data: Any, depth: int = 0) -> Any:
    """민감 필드 자동 마스킹 (Recursively mask sensitive fields in dicts/lists)."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(k) else _mask_dict(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask_dict(item, depth + 1) for item in data[:20]]
    return data


def _truncate(value: Any, max_len: int = 2000) -> Any:
    """로그 크기 제한 (Truncate large string values)."""
    if isinstance(value, str) and len(value) > max_len:
        return value[:max_len] + "...(truncated)"
    return value


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 로깅하는 미들웨어.

    Logs every API request. Captures method, path, masked query and body,
    status code, duration and the error detail of failed responses.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id: str = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_id(request_id)

        if request.url.path in _SKIP_PATHS:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        query_params = dict(request.query_params) if request.query_params else None

        # Axiom 전송 시에만 body를 읽음 (Body is only captured when shipping to Axiom)
        request_body: Any = None
        if self._client is not None and method in ("POST", "PUT", "PATCH"):
            try:
                body_bytes = await request.body()
                if body_bytes:
                    request_body = _truncate(_mask_dict(json.loads(body_bytes)))
            except (json.JSONDecodeError, UnicodeDecodeError):
                request_body = "(non-json body)"

        error_detail: str | None = None
        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            # 에러 응답시 body에서 사유 추출 - Extract error detail from error responses
            if status_code >= 400:
                resp_body = b""
                async for chunk in response.body_iterator:
                    resp_body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")

                try:
                    error_data = json.loads(resp_body)
                    error_detail = str(error_data.get("detail", error_data))[:500]
                except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
                    error_detail = resp_body.decode("utf-8", errors="replace")[:500]

                # 소비한 body를 다시 응답으로 반환 - Re-wrap consumed body
                response = Response(
                    content=resp_body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            error_detail = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.info(
                "%s %s %s",
                method,
                path,
                status_code,
                extra={
                    "method": method,
                    "path": path,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                },
            )

            if self._client is not None:
                log_event: dict[str, Any] = {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                }
                if query_params:
                    log_event["query_params"] = _mask_dict(query_params)
                if request_body is not None:
                    log_event["request_body"] = request_body
                if error_detail:
                    log_event["error"] = error_detail
                await self._ship(log_event)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    async def _ship(self, event: dict[str, Any]) -> None:
        # axiom-py 클라이언트는 동기식 (The axiom-py client is blocking)
        try:
            await run_in_threadpool(self._client.ingest_events, self._dataset, [event])
        except Exception as exc:  # 로깅 실패가 요청 처리에 영향주지 않도록
            logger.warning("axiom ingest failed: %s", type(exc).__name__)
