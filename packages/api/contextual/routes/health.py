# This project was developed with assistance from AI tools.
"""Liveness route."""

from fastapi import APIRouter
from pydantic import BaseModel

from ..core.config import AIConfig, settings

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    app: str
    provider_configured: bool


@router.get("/", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        app=settings.APP_NAME,
        provider_configured=not AIConfig.from_settings().missing_fields(),
    )
