"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from letternest.api.routes import jobs_router, newsletters_router, tweets_router
from letternest.infrastructure.config import ApplicationConfig, load_config
from letternest.infrastructure.error_handling import GENERIC_FAILURE_MESSAGE
from letternest.infrastructure.logging import get_logger
from letternest.services.container import ServiceContainer, build_services

logger = get_logger(__name__)

API_PREFIX = "/api/v1"
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
CORS_ALLOW_METHODS = ["POST", "GET", "OPTIONS"]
CORS_MAX_AGE = 86400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the service container from configuration unless one was
    injected when the app was created.
    """
    owns_services = app.state.services is None
    if owns_services:
        app.state.services = await build_services(app.state.config)
    logger.info("Starting LetterNest API", environment=app.state.config.environment)

    yield

    logger.info("Shutting down LetterNest API")
    if owns_services:
        await app.state.services.close()
        app.state.services = None


def create_app(
    config: Optional[ApplicationConfig] = None,
    services: Optional[ServiceContainer] = None,
) -> FastAPI:
    """Create the API application.

    Args:
        config: Settings; loaded from the environment when omitted
        services: Pre-built service container (tests pass fakes here)
    """
    config = config or (services.config if services else load_config())

    app = FastAPI(
        title="LetterNest API",
        description="Turns bookmarked posts into email newsletters",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
        max_age=CORS_MAX_AGE,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled error",
            method=request.method,
            path=request.url.path,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"error": GENERIC_FAILURE_MESSAGE})

    app.include_router(newsletters_router, prefix=API_PREFIX)
    app.include_router(jobs_router, prefix=API_PREFIX)
    app.include_router(tweets_router, prefix=API_PREFIX)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "environment": config.environment}

    return app
