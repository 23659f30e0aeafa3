"""
Pydantic schemas for the LaTeX endpoints.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class LatexCompileRequest(BaseModel):
    # Emptiness is checked by the service so it maps to INVALID_INPUT
    latex: str = Field(default="", description="LaTeX source (single-file) to compile")


class ProjectFileIn(BaseModel):
    path: str = Field(..., description="Path relative to the project root, e.g. chapters/ch1.tex")
    content: str = Field(default="", description="Text content, or base64 when is_binary is true")
    is_binary: bool = Field(default=False, alias="isBinary")

    model_config = {"populate_by_name": True}


class LatexProjectCompileRequest(BaseModel):
    files: List[ProjectFileIn] = Field(default_factory=list)
    main_file: str = Field(default="main.tex", alias="mainFile")

    model_config = {"populate_by_name": True}


class LatexStatusResponse(BaseModel):
    timeout_ms: int
    max_buffer_bytes: int
    max_log_chars: int
    stop_after_first_failure: bool
    apply_fallbacks: bool
    plan: str
    available_tools: Dict[str, bool]


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    code: Optional[str] = None
    log: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool = True
    service: str
    version: str
    template_dir: str
    toolchain: Dict[str, bool]
    plan: str


class TemplateListResponse(BaseModel):
    ok: bool = True
    template_dir: str
    templates: List[str]


class TemplateDetailResponse(BaseModel):
    ok: bool = True
    id: str
    placeholder: Optional[str] = None
    source: str
