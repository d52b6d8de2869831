# This project was developed with assistance from AI tools.
"""Site schema snapshot route."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ..schemas.schema import SchemaSnapshot
from ..services.dispatch import ContextPipeline, get_pipeline

router = APIRouter()


@router.get("/schema", response_model=SchemaSnapshot)
async def get_schema(pipeline: Annotated[ContextPipeline, Depends(get_pipeline)]) -> SchemaSnapshot:
    """Return the cached schema snapshot. An unavailable schema is returned empty."""
    snapshot, _ = await pipeline.load_schema()
    return snapshot
