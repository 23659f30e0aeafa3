"""
Global exception handlers for FastAPI application.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from loguru import logger
from slowapi.errors import RateLimitExceeded

from betternotes.core.logging import log_error
from betternotes.utils.exceptions import BetterNotesException, ErrorCode, LatexCompileError
from betternotes.utils.formatters import format_error_response


async def betternotes_exception_handler(request: Request, exc: BetterNotesException) -> JSONResponse:
    """Handle custom BetterNotes exceptions."""
    status_code = int(getattr(exc, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR))
    log = exc.log if isinstance(exc, LatexCompileError) else None

    error_response = format_error_response(exc.message, code=exc.code, log=log)

    if status_code >= 500:
        logger.error(f"BetterNotes exception on {request.url.path}: [{exc.code}] {exc.message}")
    else:
        logger.warning(f"Request to {request.url.path} failed: [{exc.code}] {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content=error_response
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        errors.append({
            "field": field,
            "message": error.get("msg"),
            "type": error.get("type")
        })

    error_response = format_error_response(
        "Request validation failed",
        code=ErrorCode.INVALID_INPUT,
        errors=errors,
    )

    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle slowapi rate limit rejections."""
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=format_error_response(f"Rate limit exceeded: {exc.detail}", code=ErrorCode.RATE_LIMITED),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions."""
    log_error(exc, {"path": request.url.path})

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=format_error_response(str(exc) or "Server error", code=ErrorCode.INTERNAL)
    )
