from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in (
            "request_id",
            "user_id",
            "session_id",
            "path",
            "method",
            "status_code",
            "latency_ms",
            "event",
        ):
            if hasattr(record, key):
                payload[key] = getattr(record, key)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )


def log_security_event(event: str, *, request: Optional[Request] = None, **extra: Any) -> None:
    """Emit a structured line on the ``security`` logger."""
    payload: dict[str, Any] = {"event": event}
    if request is not None:
        payload.update(
            {
                "request_id": getattr(request.state, "request_id", None) or request.headers.get("x-request-id"),
                "path": request.url.path,
                "method": request.method,
                "client": request.client.host if request.client else None,
            }
        )
    payload.update(extra)
    logging.getLogger("security").info(json.dumps(payload, default=str))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, logger_name: str = "request") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            latency_ms = (time.perf_counter() - start) * 1000
            self.logger.exception(
                "unhandled_exception",
                extra={
                    "request_id": request_id,
                    "path": request.url.path,
                    "method": request.method,
                    "latency_ms": round(latency_ms, 2),
                    "user_id": getattr(request.state, "user_id", None),
                },
            )
            raise

        latency_ms = (time.perf_counter() - start) * 1000
        # Populated by the auth dependency once the bearer token has been resolved.
        user_id = getattr(request.state, "user_id", None)
        self.logger.info(
            "request",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "latency_ms": round(latency_ms, 2),
                "user_id": user_id,
            },
        )

        if response.status_code == 403 and user_id:
            log_security_event(
                "forbidden",
                request=request,
                user_id=user_id,
                status_code=response.status_code,
            )

        response.headers["X-Request-Id"] = request_id
        return response
