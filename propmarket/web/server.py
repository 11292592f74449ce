# propmarket/web/server.py
from __future__ import annotations

import logging
import platform
import socket

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from propmarket.config import settings
from propmarket.container import init_db
from propmarket.core.logging import setup_logging
from propmarket.db import SessionLocal, engine
from propmarket.errors import MarketError
from propmarket.pay.razorpay import RazorpayGateway
from propmarket.scheduler.jobs import setup_scheduler
from propmarket.services.mailer import Mailer
from propmarket.services.storage import build_storage
from propmarket.web.booking_routes import router as booking_router
from propmarket.web.errors import (
    market_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from propmarket.web.group_offer_routes import router as offer_router
from propmarket.web.middleware_logging import LoggingMiddleware
from propmarket.web.property_routes import router as property_router
from propmarket.web.routes import router as api_router
from propmarket.web.subscription_routes import router as subscription_router

log = logging.getLogger("propmarket.startup")

app = FastAPI(title="Bada Builder API")

# Middleware
app.add_middleware(LoggingMiddleware)

# Routers
app.include_router(api_router)
app.include_router(subscription_router)
app.include_router(booking_router)
app.include_router(property_router)
app.include_router(offer_router)

# Errors
app.add_exception_handler(MarketError, market_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.on_event("startup")
async def on_startup():
    setup_logging()

    # fail here, not on the first payment, when PAYMENTS_REQUIRED and keys are missing
    app.state.gateway = RazorpayGateway.from_settings(settings)
    app.state.storage = build_storage(settings)
    app.state.mailer = Mailer.from_settings(settings)

    if settings.INIT_DB_ON_START:
        await init_db(engine)
        log.info("DB init done (create_all enabled by INIT_DB_ON_START)")
    else:
        log.info("DB init skipped (use alembic upgrade head)")

    scheduler = AsyncIOScheduler(timezone="UTC")
    setup_scheduler(scheduler, SessionLocal, app.state.mailer)
    scheduler.start()
    app.state.scheduler = scheduler

    host = socket.gethostname()
    log.info(
        "app_startup | platform=%s python=%s hostname=%s env=%s",
        platform.platform(),
        platform.python_version(),
        host,
        {
            "RAZORPAY_KEY_ID_tail": (settings.RAZORPAY_KEY_ID or "")[-4:],
            "RAZORPAY_SECRET_len": len(settings.RAZORPAY_KEY_SECRET or ""),
            "PAYMENTS_REQUIRED": settings.PAYMENTS_REQUIRED,
            "SMTP_HOST": settings.SMTP_HOST or "",
            "CURRENCY": settings.BASE_CURRENCY,
        },
    )


@app.on_event("shutdown")
async def on_shutdown():
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        try:
            scheduler.shutdown(wait=False)
        except Exception:
            log.exception("scheduler shutdown failed")
    await engine.dispose()


if __name__ == "__main__":
    uvicorn.run(
        "propmarket.web.server:app",
        host=settings.WEBAPP_HOST,
        port=settings.WEBAPP_PORT,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
