"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because
tests build apps with their own Settings, and the settings object is
then handed to every handler by reference instead of read globally.

For local development:
    uvicorn s3_proxy.main:app --reload

For production:
    NODE_ENV=production uvicorn s3_proxy.main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.dependencies import verify_api_key
from .api.routes import health, s3
from .config.settings import Settings, get_settings
from .core.browser.errors import ProxyError, StorageError
from .middleware import RequestLoggingMiddleware

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An internal error occurred"

HTTP_ERROR_NAMES = {
    404: "NotFound",
    405: "MethodNotAllowed",
}


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.effective_log_level,
    )


def error_response(
    settings: Settings,
    status_code: int,
    error: str,
    message: str,
) -> JSONResponse:
    """
    Build the ``{error, message}`` envelope.

    In production, 500 messages and every provider (S3Error) message are
    replaced with a generic one. Provider 4xx messages can carry account
    ids and IAM ARNs.
    """
    if settings.is_production and (
        status_code >= 500 or error == StorageError.error_name
    ):
        message = GENERIC_ERROR_MESSAGE

    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Missing configuration is logged but not fatal: requests report it
    as a ConfigurationError and the health endpoint stays reachable.
    """
    settings: Settings = app.state.settings

    logger.info(
        "S3 proxy starting",
        extra={
            "version": settings.api_version,
            "environment": settings.environment,
            "mock_mode": settings.s3_mock_mode,
            "bucket": settings.s3_bucket_name,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("S3 proxy shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to serve with. Defaults to the cached
            environment settings; when given, every dependency that
            asks for settings receives this instance.
    """
    if settings is None:
        settings = get_settings()

    configure_logging(settings)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Read-only proxy in front of an S3 bucket for a content asset picker.

        ## Authentication

        All `/api/s3` endpoints require the shared API key in the `X-API-Key` header.
        `/health` and `/health/ready` are open.

        ## Endpoints

        - `GET /api/s3/prefixes?prefix=` - folders directly under a path
        - `GET /api/s3/objects?prefix=&pageSize=&continuationToken=` - one page of objects
        - `GET /api/s3/search?q=&prefix=&pageSize=` - file name search
        """,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_origin_regex=settings.cors_origin_regex or None,
        allow_methods=["GET"],
        allow_headers=["X-API-Key", "Content-Type"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        s3.router,
        prefix="/api/s3",
        tags=["S3"],
        dependencies=[Depends(verify_api_key)],
    )

    # Exception handlers

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError):
        """Shape every known failure into the error envelope."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Request failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": exc.error_name,
                "status_code": exc.status_code,
                "detail": exc.message,
            },
            exc_info=exc if exc.status_code >= 500 else None,
        )

        return error_response(settings, exc.status_code, exc.error_name, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"

        logger.warning(
            "Request validation failed",
            extra={"path": request.url.path, "errors": errors},
        )

        return error_response(settings, 400, "ValidationError", message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        error = HTTP_ERROR_NAMES.get(exc.status_code, "HTTPError")
        if exc.status_code == 404:
            message = f"Route {request.method} {request.url.path} not found"
        elif exc.status_code == 405:
            message = f"Method {request.method} not allowed on {request.url.path}"
        else:
            message = str(exc.detail)

        return error_response(settings, exc.status_code, error, message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Logs the full error server-side; the client only ever sees the
        envelope, never a stack trace.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return error_response(settings, 500, "InternalError", str(exc))

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn imports
app = create_app()
