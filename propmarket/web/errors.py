# propmarket/web/errors.py
from __future__ import annotations
import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from propmarket.errors import MarketError

log = logging.getLogger("propmarket.errors")


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


async def market_error_handler(request: Request, exc: MarketError):
    rid = _rid(request)
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    log.log(level, "market_error code=%s status=%s detail=%s", exc.code, exc.status_code, exc.detail,
            extra={"rid": rid})
    return JSONResponse(
        {"ok": False, "error": exc.code, "detail": exc.detail, "rid": rid},
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = _rid(request)
    log.warning("validation_error detail=%s", exc.errors(), extra={"rid": rid})
    return JSONResponse(
        {"ok": False, "error": "validation_error", "detail": jsonable_encoder(exc.errors()), "rid": rid},
        status_code=422,
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _rid(request)
    log.error(
        "unhandled_exception path=%s error=%r", request.url.path, exc,
        extra={"rid": rid}, exc_info=exc,
    )
    # no internals leak to the client
    return JSONResponse({"ok": False, "error": "internal_error", "rid": rid}, status_code=500)
