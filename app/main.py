"""
On-Demand Courses Backend - FastAPI Application

Main entry point for the application.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import close_db
from app.core.exceptions import ProgressionError
from app.core.logging import setup_logging
from app.api.v1 import router as api_v1_router


APP_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    logger.info(f"Starting on-demand courses backend ({settings.ENVIRONMENT})")
    yield
    logger.info("Shutting down on-demand courses backend")
    await close_db()


# Create FastAPI application
app = FastAPI(
    title="On-Demand Courses Backend",
    description="Sequential video courses with quiz-gated progression.",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_body(code: str, message: str, status_code: int) -> dict:
    """JSON body shared by every error response."""
    return {
        "error": True,
        "code": code,
        "message": message,
        "status_code": status_code,
    }


@app.exception_handler(ProgressionError)
async def progression_error_handler(request: Request, exc: ProgressionError) -> JSONResponse:
    """Map domain errors to their HTTP status and a learner-facing message."""
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        f"{exc.code}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.status_code),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the traceback, never expose it."""
    logger.exception(
        f"Unhandled {type(exc).__name__}",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content=error_body("internal_error", "Something went wrong. Please try again.", 500),
    )


# Include API routers
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Health status and environment info.
    """
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": APP_VERSION,
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Welcome message and documentation links."""
    return {
        "message": "Welcome to the On-Demand Courses API",
        "docs": "/docs",
        "health": "/health",
    }
