"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from subplatform import __version__
from subplatform.auth.admin import require_admin
from subplatform.config import settings
from subplatform.db.engine import async_session, engine, get_db
from subplatform.db.models import Base

# Routers
from subplatform.api.admins import router as admins_router
from subplatform.api.dashboard import router as dashboard_router
from subplatform.api.payment_methods import router as payment_methods_router
from subplatform.api.plans import router as plans_router
from subplatform.api.products import router as products_router
from subplatform.api.public import router as public_router
from subplatform.api.subscriptions import router as subscriptions_router
from subplatform.api.users import router as users_router

from subplatform.utils.logger import setup_logger
setup_logger(log_format=settings.LOG_FORMAT, log_level="DEBUG" if settings.DEBUG else "INFO")
logger = logging.getLogger("subplatform")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    # Auto-seed the default super admin when the table is empty
    if settings.SEED_DEFAULT_ADMIN:
        from subplatform.services.admin_user_service import ensure_default_admin
        try:
            async with async_session() as db:
                await ensure_default_admin(db)
        except SQLAlchemyError:
            logger.exception("Auto-seed of the default admin failed")

    logger.info("Application startup complete")
    try:
        yield
    finally:
        await engine.dispose()


app = FastAPI(
    title="Subscription Platform API",
    description="Products, plans and subscriptions behind product API keys and admin Basic auth",
    version=__version__,
    lifespan=lifespan,
    docs_url="/ui",
    openapi_url="/doc",
    redoc_url=None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error responses: always {"error": ...} ─────────────────────────────────


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": details},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error"},
    )


# Mount routers
app.include_router(public_router)
_manage = [Depends(require_admin)]
app.include_router(admins_router, prefix="/manage", dependencies=_manage)
app.include_router(dashboard_router, prefix="/manage", dependencies=_manage)
app.include_router(products_router, prefix="/manage", dependencies=_manage)
app.include_router(plans_router, prefix="/manage", dependencies=_manage)
app.include_router(users_router, prefix="/manage", dependencies=_manage)
app.include_router(subscriptions_router, prefix="/manage", dependencies=_manage)
app.include_router(payment_methods_router, prefix="/manage", dependencies=_manage)


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root():
    return "Subscription Platform API"


@app.get("/health", tags=["observability"])
async def health(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        await db.rollback()
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "error": "Database unavailable"},
        )
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.SERVICE_NAME,
    }


@app.get("/metrics", response_class=PlainTextResponse, tags=["observability"])
async def prometheus_metrics():
    """Prometheus-compatible text exposition of in-process metrics.

    Example line: ``subplatform_auth_failure_total{gate="admin",reason="invalid"} 3``
    """
    from subplatform.utils.metrics import to_prometheus_text
    return to_prometheus_text()
