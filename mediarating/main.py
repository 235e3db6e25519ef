"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mediarating.api.v1.api import api_router
from mediarating.api.v1 import metrics as metrics_endpoint
from mediarating.core.config import settings
from mediarating.core.error_responses import build_error_response
from mediarating.core.errors import RatingCoreError
from mediarating.core.logging_config import setup_logging
from mediarating.middleware import RequestLoggingMiddleware
from mediarating.observability import capture_error, init_sentry, metrics

setup_logging()
logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "health",
        "description": "Liveness and connectivity checks.",
    },
    {
        "name": "respondent",
        "description": "Token-addressed endpoints used by invited respondents. "
        "No authentication: the one-time link is the credential.",
    },
    {
        "name": "admin",
        "description": "Test management, results and the activity trail. "
        "Requires an admin bearer token.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    - On startup: initializes Sentry when a DSN is configured
    - On shutdown: logs the shutdown
    """
    init_sentry()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} starting ({settings.ENV})")
    yield
    logger.info(f"{settings.APP_NAME} shutting down")


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**Media Rating API** - collects star ratings on media files from "
            "respondents invited through one-time links.\n\n"
            "* Admins create tests from media categories and invite respondents\n"
            "* Respondents rate each item (0-5 stars in half steps) and may revise "
            "until they complete the test\n"
            "* Admins review per-item averages, individual ratings and an audit trail"
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    app.include_router(metrics_endpoint.router, tags=["metrics"])

    @app.exception_handler(RatingCoreError)
    async def rating_core_exception_handler(request: Request, exc: RatingCoreError):
        """
        Render typed domain errors with their own status and error code.
        """
        metrics.record_error(error_type=exc.__class__.__name__)
        return build_error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handle HTTP exceptions (authentication failures, unknown routes).
        """
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            for error in exc.errors()
        ]
        metrics.record_error(error_type="RequestValidationError")

        return JSONResponse(
            status_code=422,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Generates a unique error_id (UUID) for each exception so a report can
        be matched to the full traceback in the logs.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )
        metrics.record_error(error_type=exc.__class__.__name__)

        capture_error(
            exc,
            context={
                "method": request.method,
                "error_id": error_id,
            },
            tags={"error_type": exc.__class__.__name__},
        )

        # Return error response with tracking ID (don't leak internal details)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
            },
        )

    return app


app = create_application()


@app.get("/")
async def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }
