"""Main FastAPI application entry point."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Receive, Scope, Send

from sitepub import __version__
from sitepub.api.v1 import (
    builds_router,
    deployments_router,
    health_router,
    preview_router,
    publish_router,
)
from sitepub.config import settings
from sitepub.core.exceptions import PipelineError
from sitepub.database import init_db
from sitepub.utils.logging import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting build & publish API", version=__version__)

    # Initialize database tables (for development)
    if settings.debug:
        await init_db()
        logger.info("Database initialized")

    yield

    logger.info("Shutting down build & publish API")


app = FastAPI(
    title="Build & Publish API",
    description="Stores, recovers, packages and publishes generated project builds",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)


class SessionCORSMiddleware(CORSMiddleware):
    """CORS for the platform frontend, skipped for token-gated public paths.

    Public paths answer their own preflight with permissive headers.
    """

    def __init__(self, app: ASGIApp, public_path_suffixes: tuple = (), **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.public_path_suffixes = public_path_suffixes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].endswith(self.public_path_suffixes):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


app.add_middleware(
    SessionCORSMiddleware,
    public_path_suffixes=("/preview/status",),
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Convert pipeline errors into ``{"error": message}`` responses."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error=exc.message,
        provider_status=exc.provider_status,
        detail=exc.detail,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Invalid request body", path=request.url.path, errors=exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Something went wrong. Please try again."},
    )


# Include routers
app.include_router(health_router)
app.include_router(builds_router, prefix="/api/v1")
app.include_router(deployments_router, prefix="/api/v1")
app.include_router(publish_router, prefix="/api/v1")
app.include_router(preview_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Build & Publish API",
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
    }


# Development server
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sitepub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
