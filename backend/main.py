"""
Main FastAPI application entry point for the BetterNotes LaTeX API.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi.errors import RateLimitExceeded
import uvicorn

from betternotes import __version__
from betternotes.api.routes import api_router
from betternotes.core.config import settings, build_config_report
from betternotes.core.exceptions import (
    betternotes_exception_handler,
    validation_exception_handler,
    rate_limit_exception_handler,
    generic_exception_handler,
)
from betternotes.core.middleware import LoggingMiddleware, SecurityHeadersMiddleware
from betternotes.core.rate_limit import limiter
from betternotes.services.latex.toolchain import command_exists
from betternotes.utils.exceptions import BetterNotesException


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting BetterNotes LaTeX API")

    # Single configuration check instead of scattered startup warnings
    for warning in build_config_report(settings, exists=command_exists):
        logger.warning(f"[config] {warning}")

    logger.info(
        f"LaTeX limits: timeout={settings.LATEX_TIMEOUT_MS} ms, "
        f"max_buffer={settings.LATEX_MAX_BUFFER_BYTES} bytes, "
        f"max_log={settings.LATEX_MAX_LOG_CHARS} chars"
    )
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title="BetterNotes LaTeX API",
    description="Compiles LaTeX documents to PDF with bounded, isolated toolchain runs",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.state.limiter = limiter

app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# An empty ALLOWED_ORIGINS allows every origin (development)
origins = settings.allowed_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=bool(origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(BetterNotesException, betternotes_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "BetterNotes LaTeX API",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
