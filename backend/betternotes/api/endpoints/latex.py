"""
LaTeX compile endpoints.

Successful compiles return raw ``application/pdf`` bytes; failures return the
JSON error envelope produced by the exception handlers, so clients branch on
status code / content type rather than body shape.
"""

import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from betternotes.core.rate_limit import limiter, COMPILE_LIMIT
from betternotes.schemas.latex import (
    ErrorResponse,
    LatexCompileRequest,
    LatexProjectCompileRequest,
    LatexStatusResponse,
)
from betternotes.services.latex import LatexCompilerService, ProjectFile, latex_compiler_service

router = APIRouter()

PDF_MEDIA_TYPE = "application/pdf"

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid input"},
    408: {"model": ErrorResponse, "description": "Compilation timed out"},
    422: {"model": ErrorResponse, "description": "Compilation failed; see log"},
    500: {"model": ErrorResponse, "description": "Toolchain missing or server error"},
}


def get_compiler_service() -> LatexCompilerService:
    return latex_compiler_service


@router.get("/status", response_model=LatexStatusResponse)
async def get_latex_status(
    service: LatexCompilerService = Depends(get_compiler_service),
):
    tools = await asyncio.to_thread(service.available_tools)
    plan = await asyncio.to_thread(service.plan)
    return LatexStatusResponse(
        timeout_ms=int(service.invoker.timeout_seconds * 1000),
        max_buffer_bytes=service.invoker.max_buffer_bytes,
        max_log_chars=service.diagnostics.max_log_chars,
        stop_after_first_failure=service.invoker.stop_after_first_failure,
        apply_fallbacks=service.apply_fallbacks,
        plan=plan.value,
        available_tools=tools,
    )


@router.post(
    "/compile",
    response_class=Response,
    responses={200: {"content": {PDF_MEDIA_TYPE: {}}}, **_ERROR_RESPONSES},
)
@limiter.limit(COMPILE_LIMIT)
async def compile_latex(
    request: Request,
    payload: LatexCompileRequest,
    service: LatexCompilerService = Depends(get_compiler_service),
):
    """Compile a single LaTeX document to PDF."""
    result = await asyncio.to_thread(service.compile_to_pdf, payload.latex)
    return Response(content=result.pdf_bytes, media_type=PDF_MEDIA_TYPE)


@router.post(
    "/compile-project",
    response_class=Response,
    responses={200: {"content": {PDF_MEDIA_TYPE: {}}}, **_ERROR_RESPONSES},
)
@limiter.limit(COMPILE_LIMIT)
async def compile_latex_project(
    request: Request,
    payload: LatexProjectCompileRequest,
    service: LatexCompilerService = Depends(get_compiler_service),
):
    """Compile a multi-file LaTeX project to PDF."""
    files = [ProjectFile(path=f.path, content=f.content, is_binary=f.is_binary) for f in payload.files]
    result = await asyncio.to_thread(service.compile_project, files, payload.main_file)
    return Response(content=result.pdf_bytes, media_type=PDF_MEDIA_TYPE)

