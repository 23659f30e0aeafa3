"""
Health and template listing endpoints.
"""

import asyncio

from fastapi import APIRouter, Depends

from betternotes import __version__
from betternotes.api.endpoints.latex import get_compiler_service
from betternotes.core.config import settings
from betternotes.schemas.latex import HealthResponse, TemplateDetailResponse, TemplateListResponse
from betternotes.services.latex import LatexCompilerService
from betternotes.services.template_service import build_template_index, find_placeholder, load_template

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    service: LatexCompilerService = Depends(get_compiler_service),
):
    """Health check endpoint."""
    tools = await asyncio.to_thread(service.available_tools)
    plan = await asyncio.to_thread(service.plan)
    return HealthResponse(
        service=settings.SERVICE_NAME,
        version=__version__,
        template_dir=str(settings.template_dir_path),
        toolchain=tools,
        plan=plan.value,
    )


@router.get("/templates", response_model=TemplateListResponse)
async def list_templates():
    template_dir = settings.template_dir_path
    index = build_template_index(template_dir)
    return TemplateListResponse(template_dir=str(template_dir), templates=sorted(index))


@router.get("/templates/{template_id}", response_model=TemplateDetailResponse)
async def get_template(template_id: str):
    """Return a template's source and the content placeholder it uses."""
    template = load_template(settings.template_dir_path, template_id)
    return TemplateDetailResponse(
        id=template.id,
        placeholder=find_placeholder(template.source),
        source=template.source,
    )
