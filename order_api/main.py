"""
order_api/main.py — FastAPI application entry point
Includes: lifespan management (schema bootstrap, reminder scheduler),
          owned rate limiters on app.state, security headers, startup validation.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, Response
from loguru import logger
from sqlalchemy.orm import sessionmaker

from order_api.clients.smtp_client import SmtpNotifier
from order_api.config import (
    PLACEHOLDER_ADMIN_TOKEN,
    PLACEHOLDER_CUSTOMER_TOKEN,
    Settings,
    get_settings,
)
from order_api.core.logging import setup_logging
from order_api.core.rate_limiter import RateLimiter
from order_api.db.session import build_engine, build_session_factory, init_db
from order_api.routers import admin, orders
from order_api.services.reminder_scheduler import Notifier, ReminderScheduler
from order_api.utils.timezone import get_timezone


# ──────────────────────────────────────────────────────────────────────────────
# Application Lifespan
# ──────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup: logging, env validation, schema bootstrap, reminder thread.
    Shutdown: stop the reminder thread.
    A store that cannot be reached or bootstrapped aborts startup.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    logger.info("Order API starting up...")

    _validate_env(settings)

    if app.state.session_factory is None:
        engine = build_engine(settings)
        init_db(engine)
        app.state.session_factory = build_session_factory(engine)

    scheduler: Optional[ReminderScheduler] = None
    if settings.reminder_enabled:
        scheduler = ReminderScheduler(
            session_factory=app.state.session_factory,
            notifier=app.state.notifier or SmtpNotifier(settings),
            limiter=app.state.reminder_limiter,
            tz=get_timezone(settings.timezone),
            retry_seconds=settings.reminder_retry_seconds,
        )
        scheduler.start()
    app.state.reminder_scheduler = scheduler

    logger.info("Startup complete.")
    yield

    if scheduler is not None:
        scheduler.stop(timeout=5)
    logger.info("Shutting down Order API.")


def _validate_env(settings: Settings) -> None:
    """Warn loudly about placeholder secrets and missing SMTP settings."""
    placeholders = []
    if settings.customer_token == PLACEHOLDER_CUSTOMER_TOKEN:
        placeholders.append("CUSTOMER_TOKEN")
    if settings.admin_token == PLACEHOLDER_ADMIN_TOKEN:
        placeholders.append("ADMIN_TOKEN")
    if placeholders:
        msg = f"Placeholder secrets in use: {', '.join(placeholders)}"
        if settings.is_production:
            logger.critical(msg)
        else:
            logger.warning(msg)

    if settings.reminder_enabled and not settings.smtp_server:
        logger.warning("SMTP_SERVER not set. Pending-order reminders will not be delivered.")


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI App
# ──────────────────────────────────────────────────────────────────────────────

def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Order API",
        description="Place orders, list a customer's orders, list all orders for admins.",
        version="1.0.0",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.notifier = notifier
    app.state.reminder_scheduler = None
    # One limiter per concern; neither is module-global
    app.state.request_limiter = RateLimiter.from_string(settings.request_rate_limit)
    app.state.reminder_limiter = RateLimiter.from_string(settings.reminder_rate_limit)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    app.include_router(orders.router, tags=["orders"])
    app.include_router(admin.router, tags=["admin"])

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": "1.0.0"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.server_port)


if __name__ == "__main__":
    run()
