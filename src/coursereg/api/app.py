"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursereg import __version__
from coursereg.api.models import ErrorResponse
from coursereg.api.routes import courses, enrollments, students
from coursereg.config import Settings, get_settings
from coursereg.registry import (
    BlockedByRelationshipError,
    CapacityExceededError,
    ConflictError,
    DuplicateKeyError,
    MissingFieldError,
    NotFoundError,
    Registry,
    RegistryError,
    create_storage,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

# Registry error -> HTTP status; first matching class wins
ERROR_STATUS_CODES: tuple[tuple[type[RegistryError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (MissingFieldError, status.HTTP_400_BAD_REQUEST),
    (DuplicateKeyError, status.HTTP_400_BAD_REQUEST),
    (BlockedByRelationshipError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_400_BAD_REQUEST),
    (CapacityExceededError, status.HTTP_400_BAD_REQUEST),
)


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build an ``{"error": message}`` JSON response."""
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def status_for(exc: RegistryError) -> int:
    """HTTP status code for a Registry error."""
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def build_registry(settings: Settings) -> Registry:
    """Create a Registry on the configured storage, seeded if requested."""
    registry = Registry(create_storage(settings.storage))
    if settings.seed:
        registry.seed()
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    if app.state.settings is None:
        app.state.settings = get_settings()
    owned = app.state.registry is None
    if owned:
        app.state.registry = build_registry(app.state.settings)
    logger.info("coursereg API started (storage=%s)", app.state.settings.storage)

    yield
    # Shutdown
    if owned:
        app.state.registry.close()
        app.state.registry = None
    logger.info("coursereg API stopped")


def create_app(settings: Settings | None = None, registry: Registry | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Service settings. Defaults to config file plus environment,
                  resolved when the app starts rather than here.
        registry: Registry to serve. Defaults to one built from the settings
                  when the app starts.
    """
    app = FastAPI(
        title="coursereg API",
        description="REST API for students, courses and enrollments",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api-docs",
    )

    # Store config for lifespan manager
    app.state.settings = settings
    app.state.registry = registry

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(RegistryError)
    async def registry_error_handler(_request: Request, exc: RegistryError) -> JSONResponse:
        return error_response(status_for(exc), exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()))
            message = f"Invalid request: {location}: {errors[0].get('msg', 'invalid value')}"
        return error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")

    # Include routers
    app.include_router(students.router)
    app.include_router(courses.router)
    app.include_router(enrollments.router)

    return app


# Default app instance
app = create_app()
