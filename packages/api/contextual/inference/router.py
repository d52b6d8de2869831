# This project was developed with assistance from AI tools.
"""Rule-based model tier selection.

Maps (estimated tokens, prompt complexity, provider) to a concrete model:

  1. Smart selection disabled -> configured model, verbatim
  2. Complexity tightens (complex) or loosens (simple) the nano/mini thresholds
  3. Smallest tier whose threshold covers the token estimate wins
  4. Tier -> model name via the provider table (unknown provider -> openai table,
     unknown tier -> configured model)

Selection is deterministic for identical inputs, which keeps cache keys stable.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..core.config import AIConfig
from .config import get_config
from .estimator import Complexity, analyze_complexity, estimate_tokens

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS: dict[str, float] = {"nano": 200, "mini": 1000, "large": 2000}

DEFAULT_ADJUSTMENTS: dict[str, dict[str, float]] = {
    Complexity.COMPLEX.value: {"nano": 0.5, "mini": 0.7},
    Complexity.SIMPLE.value: {"nano": 1.5, "mini": 1.3},
}


@dataclass(frozen=True)
class ModelSelection:
    """Outcome of a selection pass. Derived per call, never persisted."""

    provider: str
    tier: str | None
    model_name: str
    tokens: int = 0
    complexity: Complexity | None = None


def determine_tier(
    tokens: int,
    complexity: Complexity,
    thresholds: Mapping[str, float] | None = None,
    adjustments: Mapping[str, Mapping[str, float]] | None = None,
) -> str:
    """Return 'nano', 'mini' or 'large' for a token estimate and complexity."""
    adjusted = dict(thresholds or DEFAULT_THRESHOLDS)
    factors = (adjustments or DEFAULT_ADJUSTMENTS).get(complexity.value, {})
    for tier, factor in factors.items():
        if tier in adjusted:
            adjusted[tier] = adjusted[tier] * factor

    if tokens <= adjusted["nano"]:
        return "nano"
    if tokens <= adjusted["mini"]:
        return "mini"
    return "large"


def _model_tables(config: Mapping[str, Any]) -> dict[str, dict[str, str]]:
    return {name: dict(p.get("models") or {}) for name, p in config["providers"].items()}


def select_tier(
    prompt: str,
    context: str,
    provider: str,
    configured_model: str,
    settings: AIConfig,
    config: Mapping[str, Any] | None = None,
) -> ModelSelection:
    """Full selection pass. See ``select_model`` for the model name only.

    Args:
        prompt: The user's question.
        context: Resolved context text ('' before aggregation).
        provider: Normalised provider slug.
        configured_model: The site's configured model.
        settings: AI options; only ``smart_model_selection`` is read.
        config: Parsed models.yaml. Defaults to the hot-reloaded file.
    """
    if not settings.smart_model_selection:
        return ModelSelection(provider=provider, tier=None, model_name=configured_model)

    cfg = config if config is not None else get_config()
    selection = cfg.get("selection", {})

    tokens = estimate_tokens(prompt, context, selection.get("token_weights"))
    complexity = analyze_complexity(prompt, context, selection.get("complexity"))
    tier = determine_tier(
        tokens,
        complexity,
        selection.get("thresholds"),
        selection.get("complexity_adjustments"),
    )

    tables = _model_tables(cfg)
    table = tables.get(provider) or tables.get("openai", {})
    model_name = table.get(tier) or configured_model

    logger.info(
        "Model selection: provider=%s tokens=%d complexity=%s tier=%s model=%s (configured=%s)",
        provider,
        tokens,
        complexity.value,
        tier,
        model_name,
        configured_model,
    )
    return ModelSelection(
        provider=provider,
        tier=tier,
        model_name=model_name,
        tokens=tokens,
        complexity=complexity,
    )


def select_model(
    prompt: str,
    context: str,
    provider: str,
    configured_model: str,
    settings: AIConfig,
    config: Mapping[str, Any] | None = None,
) -> str:
    """Return the model name to use for this prompt/context."""
    return select_tier(prompt, context, provider, configured_model, settings, config).model_name
