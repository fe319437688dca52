"""
FastAPI application factory.

Startup sequence:
  1. Validate settings
  2. Check DB connectivity (warn on failure, do not crash; the load
     balancer health check will notice)
  3. Mount all API routers
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from opmc_ops.core.config import get_settings
from opmc_ops.core.db import check_db_connection
from opmc_ops.api.v1.health import router as health_router
from opmc_ops.api.v1.opmcs import router as opmcs_router
from opmc_ops.api.v1.reports import router as reports_router

settings = get_settings()
logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting opmc-ops backend (env=%s, report tz=%s)",
        settings.environment,
        settings.report_timezone,
    )
    db_ok = await check_db_connection()
    if db_ok:
        logger.info("Database connection: OK")
    else:
        logger.warning("Database connection: FAILED, check DB_HOST / credentials")

    yield

    logger.info("Shutting down opmc-ops backend")


def create_app() -> FastAPI:
    app = FastAPI(
        title="OPMC Operations API",
        version="0.1.0",
        description="Service-order operations reporting backend",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # ------------------------------------------------------------------ #
    # CORS: open in development, explicit origins elsewhere
    # ------------------------------------------------------------------ #
    origins = ["*"] if settings.is_development else settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Global exception handler
    # ------------------------------------------------------------------ #
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # ------------------------------------------------------------------ #
    # Routers
    # ------------------------------------------------------------------ #
    app.include_router(health_router)
    app.include_router(opmcs_router, prefix="/api/v1")
    app.include_router(reports_router, prefix="/api")

    return app


app = create_app()
