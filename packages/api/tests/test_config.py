# This project was developed with assistance from AI tools.
"""Tests for settings and per-site AI options."""

import pytest

from contextual.core.config import AIConfig, Settings, normalize_provider


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("OpenAI", "openai"),
        ("Claude", "claude"),
        ("Mistral", "mistral"),
        (" CLAUDE ", "claude"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_provider(value, expected):
    """Should accept provider labels or slugs."""
    assert normalize_provider(value) == expected


def test_from_settings_applies_defaults():
    """Should normalise the provider and keep at least one attempt."""
    config = AIConfig.from_settings(
        Settings(AI_PROVIDER="Claude", AI_API_KEY="k", AI_MODEL=" claude-3-haiku ", EMPTY_OUTPUT_ATTEMPTS=0)
    )
    assert config.provider == "claude"
    assert config.model == "claude-3-haiku"
    assert config.provider_label == "Claude"
    assert config.empty_output_attempts == 1
    assert config.max_tokens == 1024
    assert config.smart_model_selection is True


def test_from_options_overrides_and_nulls():
    """Should read host option keys, treating nulls as unset."""
    config = AIConfig.from_options(
        {
            "ai_provider": "Mistral",
            "api_key": "key",
            "model": "mistral-large-latest",
            "max_tokens": "2048",
            "temperature": None,
            "smart_model_selection": False,
        }
    )
    assert config.provider == "mistral"
    assert config.max_tokens == 2048
    assert config.temperature == 1.0
    assert config.smart_model_selection is False


def test_missing_fields():
    """Should list every unset required option."""
    assert AIConfig().missing_fields() == ["provider", "api_key", "model"]
    assert AIConfig(provider="openai", api_key="k", model="gpt-4o").missing_fields() == []
