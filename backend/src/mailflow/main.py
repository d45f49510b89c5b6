"""MailFlow Backend - Main FastAPI Application

Multi-Tenant Mailroom and Package Tracking

This module creates and configures the main FastAPI application, including:
- All API routers (context, organization, mailrooms, users, mail items, ...)
- Middleware (request correlation, CORS)
- Exception handlers mapping domain errors to HTTP responses
- Health and observability endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import get_settings
from .domain.errors import (
    InvalidTransitionError,
    MailflowError,
    NotFoundError,
    RecordValidationError,
    TenantMismatchError,
)

# Observability
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router

# Tenancy
from .tenancy.router import router as tenancy_router

# Domain Routers
from .audit.router import router as audit_router
from .dashboard.router import router as dashboard_router
from .external_people.router import router as external_people_router
from .integrations.router import router as integrations_router
from .mail_items.router import router as mail_items_router
from .mailrooms.router import router as mailrooms_router
from .recipients.router import router as recipients_router
from .users.router import router as users_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

# Domain error -> HTTP status
ERROR_STATUS_CODES: Dict[Type[MailflowError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    RecordValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    TenantMismatchError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("MailFlow API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    yield

    logger.info("MailFlow API shutting down...")


app = FastAPI(
    title="MailFlow API",
    description="Multi-Tenant Mailroom and Package Tracking",
    version="0.1.0",
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Request correlation (added last so it wraps everything else)
app.add_middleware(RequestIDMiddleware)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(MailflowError)
async def domain_exception_handler(request: Request, exc: MailflowError) -> JSONResponse:
    """Translate domain errors raised by services into JSON error bodies."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_cls, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_cls):
            status_code = code
            break

    logger.info(
        f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}",
        extra={"status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry exception instances that are not JSON serializable
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log the full error but return a generic message to prevent information leakage."""
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
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

# Observability (health, metrics, ready)
app.include_router(observability_router)

# Context & Organization
app.include_router(tenancy_router, prefix="/api/v1")

# Directory
app.include_router(mailrooms_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(external_people_router, prefix="/api/v1")
app.include_router(recipients_router, prefix="/api/v1")
app.include_router(integrations_router, prefix="/api/v1")

# Mail Processing
app.include_router(mail_items_router, prefix="/api/v1")
app.include_router(dashboard_router, prefix="/api/v1")

# Audit
app.include_router(audit_router, prefix="/api/v1")


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    return {
        "name": "MailFlow API",
        "version": "0.1.0",
        "status": "running",
        "docs": None if settings.is_production else "/docs",
    }


@app.get("/api/v1", include_in_schema=False)
async def api_root() -> dict[str, Any]:
    return {
        "version": "v1",
        "status": "active",
        "endpoints": {
            "context": "/api/v1/context",
            "organization": "/api/v1/organization",
            "mail_rooms": "/api/v1/mail-rooms",
            "users": "/api/v1/users",
            "external_people": "/api/v1/external-people",
            "recipients": "/api/v1/recipients",
            "mail_items": "/api/v1/mail-items",
            "dashboard": "/api/v1/dashboard",
            "audit": "/api/v1/audit",
        },
    }


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mailflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
