# This project was developed with assistance from AI tools.
"""Shared fixtures: schema snapshot, documents, and a pipeline with a mocked SDK client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from contextual.core.config import AIConfig
from contextual.inference.providers import ClaudeAdapter, MistralAdapter, OpenAIAdapter
from contextual.schemas.schema import SchemaSnapshot
from contextual.services.cache import MemoryCache
from contextual.main import app as real_app
from contextual.services.dispatch import ContextPipeline, get_pipeline
from contextual.services.sources import Document, InMemoryDocumentSource, StaticSchemaSource

from .factories import GENERATED_AT, MODELS_CONFIG, chat_completion, claude_message, responses_output


@pytest.fixture
def snapshot() -> SchemaSnapshot:
    """Two custom post types, one taxonomy, groups bound to each type plus a block group."""
    return SchemaSnapshot.model_validate(
        {
            "post_types": [
                {"slug": "plots", "label": "Plots"},
                {"slug": "developments", "label": "Developments"},
            ],
            "taxonomies": [
                {"slug": "plot_status", "label": "Plot Status", "object_types": ["plots"]},
            ],
            "acf_field_groups": [
                {
                    "title": "Plot Fields",
                    "key": "group_plot",
                    "location": [[{"param": "post_type", "operator": "==", "value": "plots"}]],
                    "fields": [
                        {"label": "Plot Name", "name": "plot_name", "type": "text", "key": "field_plot_name"},
                    ],
                },
                {
                    "title": "Development Hero",
                    "key": "group_dev",
                    "location": [[{"param": "post_type", "operator": "==", "value": "developments"}]],
                    "fields": [],
                },
                {
                    "title": "Block: Plot Hero",
                    "key": "group_plot_hero",
                    "location": [[{"param": "block", "operator": "==", "value": "acf/plot-hero"}]],
                    "fields": [{"label": "Heading", "name": "heading", "type": "text"}],
                },
            ],
            "generated_at": GENERATED_AT,
        }
    )


@pytest.fixture
def documents() -> InMemoryDocumentSource:
    return InMemoryDocumentSource(
        [
            Document(
                id=11,
                type="post",
                title="Alpha",
                content="<!-- wp:paragraph --><p>Alpha body copy.</p><!-- /wp:paragraph -->",
                modified_gmt="2026-01-10 09:00:00",
            ),
            Document(
                id=12,
                type="page",
                title="Beta",
                content="<p>Beta body copy.</p>",
                modified_gmt="2026-01-11 09:00:00",
            ),
            Document(
                id=13,
                type="post",
                title="Draft",
                content="<p>Private draft.</p>",
                status="draft",
                modified_gmt="2026-01-12 09:00:00",
            ),
            Document(id=14, type="page", title="Empty", content="", modified_gmt="2026-01-09 09:00:00"),
        ]
    )


@pytest.fixture
def ai_config() -> AIConfig:
    return AIConfig(provider="openai", api_key="sk-test-secret", model="gpt-4o", cache_ttl=300)


@pytest.fixture
def sdk_client() -> MagicMock:
    """Stands in for AsyncOpenAI / AsyncAnthropic."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=chat_completion("Generated answer."))
    client.responses.create = AsyncMock(return_value=responses_output("Generated answer."))
    client.messages.create = AsyncMock(return_value=claude_message("Generated answer."))
    return client


@pytest.fixture
def make_pipeline(documents, snapshot, ai_config, sdk_client):
    """Factory fixture: pipeline over the fixture documents/schema with the mocked SDK client."""
    adapters = {"openai": OpenAIAdapter, "claude": ClaudeAdapter, "mistral": MistralAdapter}

    def _factory(provider, api_key, *, timeout=30.0):
        return adapters[provider](api_key, timeout=timeout, client=sdk_client)

    def _make(**overrides) -> ContextPipeline:
        kwargs = {
            "documents": documents,
            "schema": StaticSchemaSource(snapshot),
            "cache": MemoryCache(),
            "ai_config": ai_config,
            "adapter_factory": _factory,
            "models_config": MODELS_CONFIG,
        }
        kwargs.update(overrides)
        return ContextPipeline(**kwargs)

    return _make


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clear app dependency overrides after each test."""
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture
def make_client(make_pipeline):
    """Factory fixture: wire a pipeline into the app, return (TestClient, pipeline)."""

    def _make(**overrides) -> tuple[TestClient, ContextPipeline]:
        pipeline = make_pipeline(**overrides)
        real_app.dependency_overrides[get_pipeline] = lambda: pipeline
        return TestClient(real_app), pipeline

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()[0]
