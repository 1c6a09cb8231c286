"""Request ID middleware — tags every health request with an ID and its auth shape."""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

log = structlog.get_logger("depsentinel.api")


def _is_valid_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError):
        return False


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind request_id, path and secret presence to structlog contextvars.

    Only whether *secret_header* was sent is logged, never its value, so a
    monitor that stopped sending the secret shows up in the request log.
    """

    def __init__(self, app: ASGIApp, secret_header: str | None = None) -> None:
        super().__init__(app)
        self._secret_header = secret_header

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        raw_id = request.headers.get("x-request-id", "")
        request_id = raw_id if _is_valid_uuid(raw_id) else str(uuid.uuid4())

        context = {"request_id": request_id, "path": request.url.path}
        if self._secret_header:
            context["secret_present"] = bool(request.headers.get(self._secret_header))
        tokens = structlog.contextvars.bind_contextvars(**context)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            log.info("request.completed", status_code=response.status_code, duration_ms=duration_ms)
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            log.exception("request.failed", duration_ms=duration_ms)
            raise
        finally:
            structlog.contextvars.reset_contextvars(**tokens)
