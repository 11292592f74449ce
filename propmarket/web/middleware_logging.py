# propmarket/web/middleware_logging.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

log = logging.getLogger("propmarket.http")

# logged at DEBUG only
QUIET_PATHS = {"/health"}


def _client_addr(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return f"{request.client.host}:{request.client.port}"
    return "?"


class LoggingMiddleware(BaseHTTPMiddleware):
    """One line in, one line out per request, tied together by ``rid``.

    The id comes from ``x-request-id`` when the proxy sets one and is echoed
    back; error handlers pick it up from ``request.state.request_id``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = rid

        path = request.url.path
        level = logging.DEBUG if path in QUIET_PATHS else logging.INFO
        started = time.perf_counter()

        log.log(level, "http_request", extra={
            "rid": rid,
            "method": request.method,
            "path": path,
            "client": _client_addr(request),
            "authed": request.headers.get("authorization", "").startswith("Bearer "),
            "clen": request.headers.get("content-length", "0"),
        })

        try:
            response: Response = await call_next(request)
        except Exception:
            log.exception("http_error", extra={
                "rid": rid, "path": path, "ms": round((time.perf_counter() - started) * 1000, 2),
            })
            raise

        log.log(level, "http_response", extra={
            "rid": rid,
            "path": path,
            "status": response.status_code,
            "ms": round((time.perf_counter() - started) * 1000, 2),
        })
        response.headers["x-request-id"] = rid
        return response
