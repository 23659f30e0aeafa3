"""
Utility modules for the BetterNotes LaTeX API.
"""

from .exceptions import (
    BetterNotesException,
    InvalidInputError,
    LatexCompileError,
    TemplateNotFoundError,
)

__all__ = [
    "BetterNotesException",
    "InvalidInputError",
    "LatexCompileError",
    "TemplateNotFoundError",
]
