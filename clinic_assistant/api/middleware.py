"""Request timing/logging and the optional shared-key guard."""

import hmac
import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({"/health", "/health/ready", "/health/live", "/docs", "/openapi.json"})


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request and stamps ``X-Request-ID`` / ``X-Process-Time``.

    The patient id is never logged, only whether the call was identified.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        identified = bool((request.headers.get("X-Patient-Id") or "").strip())
        started = time.perf_counter()

        response = await call_next(request)

        elapsed = time.perf_counter() - started
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} "
            f"in {elapsed * 1000:.1f}ms patient={'yes' if identified else 'anonymous'} "
            f"client={_client(request)}"
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        return response


def _presented_key(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.removeprefix("Bearer ").strip()
    return request.headers.get("X-API-Key")


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Requires ``X-API-Key`` or ``Authorization: Bearer`` to match the configured key."""

    def __init__(self, app, api_key: str):
        super().__init__(app)
        self.api_key = api_key

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        key = _presented_key(request)
        if key and hmac.compare_digest(key.encode(), self.api_key.encode()):
            return await call_next(request)

        logger.warning(f"Rejected {request.method} {request.url.path}: bad API key, client={_client(request)}")
        return JSONResponse(
            status_code=401,
            content={"error": "Unauthorized", "detail": "Invalid or missing API key"},
        )
