"""구조화 JSON 로깅 설정.

Structured JSON logging with a request-id context variable.
``setup_logging`` is called once from ``cloudarc.main`` at import time.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# 요청 단위 상관관계 ID (Request-scoped correlation id)
REQUEST_ID_CTX: ContextVar[str] = ContextVar("request_id", default="")

# extra= 로 전달되면 JSON에 포함되는 필드 (Fields copied from ``extra=`` into the line)
_EXTRA_FIELDS: tuple[str, ...] = (
    "user_id",
    "family",
    "revoked",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "subject",
)


class JsonLogFormatter(logging.Formatter):
    """로그 레코드를 한 줄 JSON으로 직렬화 (Serialize log records into JSON lines)."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id: str = REQUEST_ID_CTX.get()
        if request_id:
            payload["request_id"] = request_id

        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """루트 로거를 JSON 출력으로 설정합니다 (Configure the root logger for JSON output)."""
    normalized_level = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(normalized_level)
    root_logger.addHandler(handler)


def set_request_id(request_id: str) -> None:
    """현재 요청 컨텍스트에 요청 ID 저장 (Store the request id in the current context)."""
    REQUEST_ID_CTX.set(request_id)
