"""Client Portal Backend - Main FastAPI Application

Multi-tenant client portal API: projects, milestones, files, approvals,
tasks, tickets, invoices, the knowledge base and organization users.

This module creates and configures the main FastAPI application, including:
- All API routers under /api/v1
- Middleware (request ID correlation, CORS)
- Exception handlers, including the tenancy error mapping
- Health and metrics endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings

# Observability
from .observability.logging_config import configure_logging
from .observability.metrics import tenancy_errors_total
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router

# Tenancy
from .tenancy.errors import TenancyError

# Routers
from .auth.router import router as auth_router
from .users.router import router as users_router
from .projects.router import router as projects_router
from .milestones.router import router as milestones_router
from .files.router import router as files_router
from .approvals.router import router as approvals_router
from .tasks.router import router as tasks_router
from .tickets.router import router as tickets_router
from .invoices.router import router as invoices_router
from .dashboard.router import router as dashboard_router
from .knowledge_base.router import router as knowledge_base_router

settings = get_settings()

# Configure logging
configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Client Portal API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    yield

    logger.info("Client Portal API shutting down...")


def _docs_enabled() -> bool:
    return settings.ENVIRONMENT != "production"


# Create FastAPI application
app = FastAPI(
    title="Client Portal API",
    description="Multi-tenant client portal with tenant-scoped data access",
    version="0.1.0",
    docs_url="/docs" if _docs_enabled() else None,
    redoc_url="/redoc" if _docs_enabled() else None,
    openapi_url="/openapi.json" if _docs_enabled() else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

# Request ID Middleware (must be first for proper correlation)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(TenancyError)
async def tenancy_exception_handler(
    request: Request,
    exc: TenancyError
) -> JSONResponse:
    """Map tenancy errors to their HTTP status.

    Scope misses surface as 404 exactly like absent rows.
    """
    tenancy_errors_total.labels(error=type(exc).__name__).inc()
    logger.info(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}",
        extra={"status_code": exc.status_code, "error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle uncaught exceptions without exposing details to the client."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (health, metrics)
app.include_router(observability_router)

# Authentication & organization users
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)

# Project delivery
app.include_router(projects_router, prefix=API_PREFIX)
app.include_router(milestones_router, prefix=API_PREFIX)
app.include_router(files_router, prefix=API_PREFIX)
app.include_router(approvals_router, prefix=API_PREFIX)
app.include_router(tasks_router, prefix=API_PREFIX)

# Support & billing
app.include_router(tickets_router, prefix=API_PREFIX)
app.include_router(invoices_router, prefix=API_PREFIX)
app.include_router(knowledge_base_router, prefix=API_PREFIX)

# Dashboard
app.include_router(dashboard_router, prefix=API_PREFIX)


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "Client Portal API",
        "version": "0.1.0",
        "status": "running",
        "docs": "/docs" if _docs_enabled() else None,
    }


@app.get(API_PREFIX, include_in_schema=False)
async def api_root() -> dict[str, Any]:
    """API v1 root endpoint."""
    return {
        "version": "v1",
        "status": "active",
        "endpoints": {
            "auth": f"{API_PREFIX}/auth",
            "users": f"{API_PREFIX}/users",
            "projects": f"{API_PREFIX}/projects",
            "milestones": f"{API_PREFIX}/milestones",
            "files": f"{API_PREFIX}/files",
            "approvals": f"{API_PREFIX}/approvals",
            "tasks": f"{API_PREFIX}/tasks",
            "tickets": f"{API_PREFIX}/tickets",
            "invoices": f"{API_PREFIX}/invoices",
            "knowledge_base": f"{API_PREFIX}/knowledge-base",
            "dashboard": f"{API_PREFIX}/dashboard",
        }
    }


# =============================================================================
# APPLICATION FACTORY (for testing)
# =============================================================================

def create_app() -> FastAPI:
    """Return the configured FastAPI application instance."""
    return app


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "clientportal.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
