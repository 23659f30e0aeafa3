"""
BetterNotes LaTeX API: compiles LaTeX sources into PDF documents.
"""

__version__ = "1.0.0"
