"""Main application module.

This module initializes the FastAPI application, includes routes,
and configures middleware and exception handlers.
"""

import asyncio
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError

from shortlink.api import api_router
from shortlink.core.alembic import run_migrations
from shortlink.core.config import settings
from shortlink.core.logging import setup_logging
from shortlink.core.telemetry import instrument_app, setup_telemetry
from shortlink.db.base import engine
from shortlink.middleware.logging import RequestLoggingMiddleware
from shortlink.middleware.tracing import TracingMiddleware

# Setup logging
logger = setup_logging()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

if settings.OTEL_ENABLED:
    setup_telemetry()
    app.add_middleware(TracingMiddleware)
    instrument_app(app=app, db_engine=engine)

if settings.REQUEST_LOGGING_ENABLED:
    app.add_middleware(RequestLoggingMiddleware)

# Include API router
app.include_router(api_router)


# Add exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors like any invalid URL."""
    logger.info(f"Request validation error on {request.method} {request.url.path}")
    errors = jsonable_encoder(
        exc.errors(),
        # Non-JSON bodies are validated as raw bytes
        custom_encoder={bytes: lambda raw: raw.decode("utf-8", "replace")},
    )
    return JSONResponse(
        status_code=400,
        content={"detail": "Malformed request", "errors": errors}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to catch and log all unhandled exceptions."""
    error_id = f"error-{time.time()}"
    error_location = f"{request.method} {request.url.path}"

    logger.bind(
        error_id=error_id,
        url=str(request.url),
        method=request.method,
        client_host=request.client.host if request.client else None,
    ).opt(exception=exc).error(f"Unhandled exception in {error_location}")

    # Internal error text stays in the logs
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
        }
    )


# Add startup and shutdown event handlers
@app.on_event("startup")
async def startup_event():
    """Run startup tasks."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT.value}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    if settings.MIGRATE_ON_STARTUP:
        logger.info("Applying database migrations")
        await asyncio.to_thread(run_migrations)


@app.on_event("shutdown")
async def shutdown_event():
    """Run cleanup tasks."""
    logger.info(f"Shutting down {settings.APP_NAME}")
    await engine.dispose()
