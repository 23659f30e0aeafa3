"""
Request-scoped logging helpers.

Each request carries a correlation ID in a context variable so log lines from
the endpoint, the compiler service and the worker thread running the
toolchain can be tied back to one compile.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

from fastapi import Request
from loguru import logger

CORRELATION_HEADER = "X-Correlation-ID"
_CORRELATION_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_correlation_id(cid: Optional[str] = None) -> str:
    """
    Store the correlation ID for the current context.

    An upstream ID is reused only when it looks like an identifier; anything
    else (too long, spaces, control characters) is replaced by a fresh UUID
    so it cannot forge log lines.
    """
    if not cid or not _CORRELATION_ID_RE.match(cid):
        cid = uuid.uuid4().hex
    correlation_id_var.set(cid)
    return cid


def log_request(request: Request, correlation_id: Optional[str] = None) -> None:
    correlation_id = correlation_id or get_correlation_id()
    logger.bind(
        correlation_id=correlation_id,
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else None,
        content_length=request.headers.get("content-length"),
    ).info(f"{request.method} {request.url.path} started")


def log_response(
    request: Request,
    status_code: int,
    response_time_ms: float,
    content_type: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Log the outcome of a request.

    Compile failures (4xx) are expected traffic and logged as warnings; only
    5xx responses are errors.
    """
    correlation_id = correlation_id or get_correlation_id()
    level = "error" if status_code >= 500 else "warning" if status_code >= 400 else "info"

    getattr(logger.bind(
        correlation_id=correlation_id,
        status_code=status_code,
        response_time_ms=round(response_time_ms, 2),
        content_type=content_type,
    ), level)(
        f"{request.method} {request.url.path} -> {status_code} "
        f"[{content_type or 'no body'}] ({response_time_ms:.1f} ms)"
    )


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None
) -> None:
    """Log an unexpected exception with its traceback and any extra context."""
    extra: Dict[str, Any] = {
        "correlation_id": correlation_id or get_correlation_id(),
        "error_type": error.__class__.__name__,
    }
    if context:
        extra.update(context)

    logger.bind(**extra).opt(exception=error).error(f"Unhandled {error.__class__.__name__}: {error}")


def log_service_call(
    service_name: str,
    method_name: str,
    duration_ms: float,
    success: bool = True,
    **context
) -> None:
    """
    Log one service-level operation (e.g. a compile) with its duration.

    Args:
        service_name: Name of the service
        method_name: Name of the method
        duration_ms: Wall-clock duration in milliseconds
        success: Whether a result was produced
        **context: Extra fields such as the invocation plan or error code
    """
    details = " ".join(f"{key}={value}" for key, value in context.items())
    getattr(logger.bind(
        correlation_id=get_correlation_id(),
        service=service_name,
        method=method_name,
        duration_ms=round(duration_ms, 2),
        success=success,
        **context,
    ), "info" if success else "warning")(
        f"{service_name}.{method_name} {'ok' if success else 'failed'} in {duration_ms:.1f} ms {details}".rstrip()
    )
