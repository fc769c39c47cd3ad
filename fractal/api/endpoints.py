from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from fractal import __version__
from fractal.api.error_handling import ErrorResponseBuilder
from fractal.api.models import GenerationRequestBody
from fractal.api.streaming import chunks_to_sse, streaming_response
from fractal.core.constants import APP_NAME
from fractal.services.navigation import normalize_url
from fractal.services.orchestrator import GenerationOrchestrator
from fractal.services.prompt import PromptBuilder

router = APIRouter()


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator


@router.post("/v1/generate")
async def generate(
    body: GenerationRequestBody,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Blocking generation of one page."""
    request = body.to_request(normalize_url(body.url))
    response = await orchestrator.generate(request)
    return response.to_dict()


@router.post("/v1/stream")
async def stream(
    body: GenerationRequestBody,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    """Streamed generation as server-sent events.

    Provider validation happens before the response starts, so configuration
    errors still come back as JSON with a proper status code.
    """
    request = body.to_request(normalize_url(body.url))
    chunks = orchestrator.stream(request)
    return streaming_response(stream=chunks_to_sse(chunks))


@router.get("/v1/providers")
async def list_providers(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> list[dict[str, Any]]:
    return orchestrator.list_providers()


@router.get("/v1/providers/default")
async def default_provider(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, str]:
    return {"provider": orchestrator.default_provider()}


@router.get("/v1/providers/status")
async def provider_status(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, dict[str, bool]]:
    return orchestrator.provider_status()


@router.get("/v1/cache/stats")
async def cache_stats(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, int]:
    return orchestrator.cache_stats()


@router.delete("/v1/cache")
async def clear_cache(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    orchestrator.clear_cache()
    return {"status": "cleared", **orchestrator.cache_stats()}


@router.get("/v1/templates")
async def list_templates() -> list[dict[str, str]]:
    return [
        {"type": t.type, "name": t.name, "description": t.description}
        for t in PromptBuilder.available_templates()
    ]


@router.get("/v1/templates/{template_type}", response_model=None)
async def get_template(template_type: str) -> dict[str, str] | JSONResponse:
    template = PromptBuilder.template_by_type(template_type)
    if template is None:
        return ErrorResponseBuilder.not_found("Template", template_type)
    return {"type": template.type, "name": template.name, "description": template.description}


@router.get("/health")
async def health_check(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": APP_NAME,
        "version": __version__,
        "timestamp": datetime.now().isoformat(),
        "providers_configured": orchestrator.has_providers(),
    }
