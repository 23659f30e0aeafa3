"""
Data formatting utilities.
"""

from typing import Any, Dict, Optional


def format_error_response(
    message: str,
    code: Optional[str] = None,
    log: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """
    Format an error response body for the API.

    Args:
        message: Human-readable error message
        code: Machine-readable error code
        log: Compiler log excerpt, when one exists

    Returns:
        ``{"ok": False, "error": ..., "code"?: ..., "log"?: ...}``; optional keys
        are omitted rather than sent as null.
    """
    response: Dict[str, Any] = {"ok": False, "error": message}

    if code:
        response["code"] = code

    if log:
        response["log"] = log

    for key, value in extra.items():
        if value is not None:
            response[key] = value

    return response

