"""
HTTP middleware: correlation IDs, access logging and response headers.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from betternotes.core.logging import (
    CORRELATION_HEADER,
    get_correlation_id,
    log_request,
    log_response,
    set_correlation_id,
)

PDF_MEDIA_TYPE = "application/pdf"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation ID and logs each request with its timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse an upstream correlation ID (e.g. from a proxying route) when present
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        log_request(request, correlation_id)

        started = time.monotonic()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            elapsed_ms = (time.monotonic() - started) * 1000
            if response is None:
                log_response(request, 500, elapsed_ms, correlation_id=correlation_id)
            else:
                log_response(
                    request,
                    response.status_code,
                    elapsed_ms,
                    content_type=response.headers.get("content-type"),
                    correlation_id=correlation_id,
                )
                response.headers[CORRELATION_HEADER] = correlation_id
                response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.0f}"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds hardening headers; compiled PDFs are never cached by intermediaries."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if response.headers.get("content-type", "").startswith(PDF_MEDIA_TYPE):
            response.headers["Cache-Control"] = "no-store"
            response.headers.setdefault("Content-Disposition", 'inline; filename="document.pdf"')

        correlation_id = get_correlation_id()
        if correlation_id and CORRELATION_HEADER not in response.headers:
            response.headers[CORRELATION_HEADER] = correlation_id

        return response
