import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from apps.attachments.router import router as attachments_router
from apps.budgets.router import router as budgets_router
from apps.lifecycle.router import router as lifecycle_router
from apps.notifications.broker import NotificationBroker
from apps.notifications.router import router as notifications_router
from apps.products.router import router as products_router
from apps.receipts.router import router as receipts_router
from apps.reports.router import router as reports_router
from apps.requests.router import router as requests_router
from apps.sectors.router import router as sectors_router
from apps.suppliers.router import router as suppliers_router
from apps.users.router import router as auth_router, users_router
from apps.users.service import seed_admin
from models.base import Base, engine, SessionLocal
from settings.config import get_settings
from utils.logging import log_requests, setup_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Application factory to build a FastAPI app with all middlewares and routers.
    """
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version="1.0.0",
    )
    app.state.notifier = NotificationBroker(queue_size=settings.SSE_QUEUE_SIZE)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Authorization", "Content-Disposition"],
    )

    # Security headers middleware (helmet-like)
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        return response

    app.middleware("http")(log_requests)

    if settings.ENABLE_RATE_LIMITER:
        # Build a default limit string from settings, using common time units
        req = settings.RATE_LIMIT_REQUESTS
        win = settings.RATE_LIMIT_WINDOW_SECONDS
        if win == 1:
            default_limit = f"{req}/second"
        elif win == 60:
            default_limit = f"{req}/minute"
        elif win == 3600:
            default_limit = f"{req}/hour"
        else:
            default_limit = f"{req} per {win} seconds"

        limiter = Limiter(
            key_func=get_remote_address,
            default_limits=[default_limit],
            storage_uri=settings.RATE_LIMIT_STORAGE_URI or "memory://",
        )
        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
        app.add_middleware(SlowAPIMiddleware)

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # Routers
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(sectors_router)
    app.include_router(suppliers_router)
    app.include_router(products_router)
    app.include_router(requests_router)
    app.include_router(lifecycle_router)
    app.include_router(receipts_router)
    app.include_router(budgets_router)
    app.include_router(attachments_router)
    app.include_router(notifications_router)
    app.include_router(reports_router)

    # Ensure tables exist (for local/dev). In prod, use Alembic migrations.
    @app.on_event("startup")
    async def on_startup():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        if settings.SEED_ADMIN:
            async with SessionLocal() as db:
                await seed_admin(db)

    @app.get("/health")
    @app.get(f"{settings.API_PREFIX}/health")
    async def health():
        return {"status": "ok", "subscribers": app.state.notifier.subscriber_count}

    return app


app = create_app()
