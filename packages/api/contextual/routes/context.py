# This project was developed with assistance from AI tools.
"""Context routes: generate an AI answer, fetch or list resolved context, discovery."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from ..middleware.caller import CurrentCaller
from ..schemas.context import (
    ContextFormat,
    ContextList,
    ContextRequest,
    EndpointInfo,
    GenerateResponse,
    Manifest,
    ResolvedContext,
)
from ..services.dispatch import ContextPipeline, get_pipeline

logger = logging.getLogger(__name__)

router = APIRouter()

Pipeline = Annotated[ContextPipeline, Depends(get_pipeline)]

# (route name, method, description) advertised by the manifest
MANIFEST_ENDPOINTS = (
    ("list_contexts", "GET", "List available contexts"),
    ("get_context", "GET", "Get specific context content"),
    ("generate_context", "POST", "Answer a prompt against a context"),
)


@router.post("/generate_context", response_model=GenerateResponse)
async def generate_context(
    body: ContextRequest,
    caller: CurrentCaller,
    pipeline: Pipeline,
) -> GenerateResponse:
    """Answer ``prompt`` against a document, the recent-content digest, or the site schema.

    Provider failures still return 200 with an explanatory ``message``.
    """
    return await pipeline.generate(body, caller)


@router.get("/get_context", response_model=ResolvedContext)
async def get_context(
    caller: CurrentCaller,
    pipeline: Pipeline,
    id: str = Query(..., min_length=1, description="'<type>-<id>' or 'multi'."),
    format: ContextFormat = Query(default=ContextFormat.MARKDOWN),
) -> ResolvedContext:
    """Resolve and format context without calling an AI provider."""
    return await pipeline.get_context(id.strip(), format, caller)


@router.get("/list_contexts", response_model=ContextList)
async def list_contexts(
    caller: CurrentCaller,
    pipeline: Pipeline,
    post_type: str = Query(default="post", min_length=1),
    limit: int = Query(default=10, ge=1, le=100),
    page: int = Query(default=1, ge=1),
    search: str = Query(default=""),
) -> ContextList:
    """Public documents of one allowed type, most recently modified first."""
    return await pipeline.list_contexts(
        post_type, limit=limit, page=page, search=search, caller=caller
    )


@router.get("/manifest", response_model=Manifest)
async def manifest(request: Request, pipeline: Pipeline) -> Manifest:
    """Discovery document: endpoints, formats and context types."""
    return Manifest(
        name=request.app.title,
        description=request.app.description,
        version=request.app.version,
        endpoints={
            name: EndpointInfo(url=str(request.url_for(name)), method=method, description=text)
            for name, method, text in MANIFEST_ENDPOINTS
        },
        context_types=list(pipeline.aggregator.context_types),
        capabilities={
            "authentication_required": False,
            "rate_limited": True,
            "caching_enabled": True,
        },
    )
