"""
Custom exception classes for the BetterNotes LaTeX API.
"""

from typing import Optional


class ErrorCode:
    """Machine-readable error codes returned in failure responses."""

    TOOLING_MISSING = "TOOLING_MISSING"
    COMPILE_TIMEOUT = "COMPILE_TIMEOUT"
    COMPILE_FAILED = "COMPILE_FAILED"
    INVALID_INPUT = "INVALID_INPUT"
    INTERNAL = "INTERNAL"
    NO_FILES = "NO_FILES"
    MAIN_FILE_NOT_FOUND = "MAIN_FILE_NOT_FOUND"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"


class BetterNotesException(Exception):
    """Base exception for all BetterNotes errors."""

    status_code: int = 500
    code: Optional[str] = ErrorCode.INTERNAL

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class InvalidInputError(BetterNotesException):
    """Raised when request input is missing or malformed."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: str = ErrorCode.INVALID_INPUT,
        detail: Optional[str] = None,
    ):
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, detail)
        self.field = field
        self.code = code


class TemplateNotFoundError(BetterNotesException):
    """Raised when a requested LaTeX template does not exist."""

    status_code = 400
    code = ErrorCode.TEMPLATE_NOT_FOUND

    def __init__(self, template_id: str, template_dir: str, available: list[str]):
        listing = ", ".join(available) if available else "(none)"
        message = (
            f"[TEMPLATE_NOT_FOUND] templateId=\"{template_id}\" not found.\n"
            f"TEMPLATE_DIR={template_dir}\n"
            f"Available: {listing}"
        )
        super().__init__(message)
        self.template_id = template_id
        self.available = available


class LatexCompileError(BetterNotesException):
    """
    Raised when a LaTeX compilation cannot produce a PDF.

    Carries the HTTP status, the machine-readable code and the (already
    truncated) compiler log so the HTTP layer never has to inspect raw
    process errors.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        code: str,
        log: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.log = log
