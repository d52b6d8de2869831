# This project was developed with assistance from AI tools.
"""Context request and response envelope schemas."""

import enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MULTI_IDENTIFIER = "multi"


class ContextFormat(str, enum.Enum):
    MARKDOWN = "markdown"
    PLAIN = "plain"
    HTML = "html"


class ContextRequest(BaseModel):
    """Inbound generate call. ``context_id`` is accepted as an alias of ``identifier``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identifier: str = Field(
        validation_alias=AliasChoices("identifier", "context_id"),
        min_length=1,
        description="'<type>-<id>' or the 'multi' sentinel.",
    )
    prompt: str = ""
    format: ContextFormat = ContextFormat.MARKDOWN
    source: str | None = Field(
        default=None,
        description="Calling surface, e.g. 'acf_field_helper'.",
    )

    @field_validator("identifier")
    @classmethod
    def _strip_identifier(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("identifier must not be blank")
        return value

    @property
    def is_multi(self) -> bool:
        return self.identifier.lower() == MULTI_IDENTIFIER


class ResolvedContext(BaseModel):
    """Rendered text placed into the AI prompt, plus freshness metadata."""

    identifier: str
    content: str = Field(min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class AIResult(BaseModel):
    output: str
    raw: Any = None


class SchemaSources(BaseModel):
    used_schema: bool = True
    schema_generated_at: str = ""


class GenerateResponse(BaseModel):
    """Envelope returned by the generate endpoint for every outcome."""

    message: str
    provider: str = ""
    model: str = ""
    max_tokens: int = 0
    temperature: float = 0
    identifier: str
    prompt: str = ""
    format: ContextFormat = ContextFormat.MARKDOWN
    context: ResolvedContext
    ai: AIResult | None = None
    cached: bool = False
    sources: SchemaSources | None = None


class ContextSummary(BaseModel):
    """One entry of the context listing."""

    id: str
    title: str
    description: str = ""
    last_updated: str = ""


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    per_page: int


class ContextList(BaseModel):
    contexts: list[ContextSummary] = Field(default_factory=list)
    pagination: Pagination


class EndpointInfo(BaseModel):
    url: str
    method: str
    description: str = ""


class Manifest(BaseModel):
    """Discovery document for agents: what can be fetched and how."""

    name: str
    description: str
    version: str
    endpoints: dict[str, EndpointInfo]
    formats: list[ContextFormat] = Field(default_factory=lambda: list(ContextFormat))
    context_types: list[str] = Field(default_factory=list)
    capabilities: dict[str, bool] = Field(default_factory=dict)
