import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from rbac_console.domain.exceptions import RbacException
from rbac_console.infrastructure.cache.coordinator import CacheCoordinator
from rbac_console.infrastructure.config.settings import get_settings
from rbac_console.infrastructure.persistence.database import engine, get_db
from rbac_console.presentation.api.dependencies import (
    ERROR_STATUS,
    get_cache_coordinator,
    set_cache_coordinator,
)
from rbac_console.presentation.api.v1.routes import activity, permissions, roles, user_roles
from rbac_console.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging()

    # Database schema is managed outside the app (migrations / seeding)

    cache = CacheCoordinator.from_settings(settings)
    try:
        await cache.connect()
        logger.info(f"Cache initialized: backend={settings.cache_backend}")
    except Exception as e:
        logger.warning(f"Cache initialization failed: {e}. Continuing with degraded cache.")
    set_cache_coordinator(cache)

    yield

    try:
        await cache.disconnect()
    except Exception as e:
        logger.warning(f"Error during cache shutdown: {e}")
    set_cache_coordinator(None)

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Security: Using allow_credentials=True requires specific origins (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RbacException)
async def rbac_exception_handler(request: Request, exc: RbacException):
    """Domain errors that escape a route without an OperationResult"""
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.error_code, status.HTTP_400_BAD_REQUEST),
        content={"detail": exc.to_dict()},
    )


# Routers
app.include_router(roles.router, prefix=f"{settings.api_prefix}/roles", tags=["roles"])
app.include_router(permissions.router, prefix=settings.api_prefix, tags=["permissions"])
app.include_router(user_roles.router, prefix=settings.api_prefix, tags=["user-roles"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get(f"{settings.api_prefix}/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    cache: CacheCoordinator = Depends(get_cache_coordinator),
):
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
    - 200 OK if the database answers
    - 503 Service Unavailable otherwise
    """
    checks: dict[str, Any] = {
        "api": True,  # If we got here, API is responding
        "database": False,
        "cache": cache.backend.is_available(),
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error(f"Health check database failure: {e}")

    healthy = checks["database"]
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "healthy" if healthy else "unhealthy", "checks": checks},
    )
