"""
Service layer for the BetterNotes LaTeX API.
"""
