"""
Main API router configuration.
"""

from fastapi import APIRouter
from betternotes.api.endpoints import latex, system

api_router = APIRouter()

# Compile endpoints are served both at the root (legacy clients) and under /latex
api_router.include_router(system.router, tags=["system"])
api_router.include_router(latex.router, tags=["latex"])
api_router.include_router(latex.router, prefix="/latex", tags=["latex"])
