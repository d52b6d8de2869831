# This project was developed with assistance from AI tools.
"""Provider model tables and tier thresholds.

The tables live in config/models.yaml (override the location with
CONTEXTUAL_MODELS_CONFIG). String values may reference the environment as
``${NAME}`` or ``${NAME:-fallback}``. The file is re-read whenever its mtime
moves forward, so edits apply to the next request; an edit that does not
parse or validate is logged and the previous tables stay in use.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

# Settings only sees .env through pydantic-settings; placeholders need os.environ.
load_dotenv()

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(
    os.environ.get("CONTEXTUAL_MODELS_CONFIG")
    or Path(__file__).resolve().parents[4] / "config" / "models.yaml"
)
_cached_config: dict[str, Any] | None = None
_cached_mtime: float = 0.0

_PLACEHOLDER = re.compile(r"\$\{(?P<name>\w+)(?::-(?P<fallback>.*?))?\}")

TIERS = ("nano", "mini", "large")
REQUIRED_PROVIDER_FIELDS = {"endpoint", "models"}


def _expand(match: re.Match) -> str:
    return os.environ.get(match["name"], match["fallback"] or "")


def _resolve_env_vars(node: Any) -> Any:
    """Expand placeholders in every string of a parsed YAML tree."""
    if isinstance(node, dict):
        return {key: _resolve_env_vars(value) for key, value in node.items()}
    if isinstance(node, list):
        return list(map(_resolve_env_vars, node))
    return _PLACEHOLDER.sub(_expand, node) if isinstance(node, str) else node


def _validate_config(config: Any) -> None:
    """Validate the providers and selection sections."""
    if not isinstance(config, dict):
        raise ValueError("models.yaml must be a mapping")

    providers = config.get("providers")
    if not providers or not isinstance(providers, dict):
        raise ValueError(
            "models.yaml must contain a 'providers' section with at least one provider"
        )

    if "openai" not in providers:
        raise ValueError(
            "models.yaml 'providers' must define 'openai' (used as the fallback table)"
        )

    for name, provider in providers.items():
        if not isinstance(provider, dict):
            raise ValueError(f"Provider '{name}' must be a mapping")
        missing = REQUIRED_PROVIDER_FIELDS - set(provider.keys())
        if missing:
            raise ValueError(f"Provider '{name}' is missing required fields: {missing}")
        models = provider["models"]
        if not isinstance(models, dict):
            raise ValueError(f"Provider '{name}' models must be a mapping of tier -> model name")
        unknown = set(models) - set(TIERS)
        if unknown:
            raise ValueError(f"Provider '{name}' has unknown tiers: {unknown}")

    selection = config.get("selection")
    if not selection or not isinstance(selection, dict):
        raise ValueError("models.yaml must contain a 'selection' section")

    thresholds = selection.get("thresholds")
    if not isinstance(thresholds, dict) or set(thresholds) != set(TIERS):
        raise ValueError(f"selection.thresholds must define exactly {list(TIERS)}")
    if not thresholds["nano"] <= thresholds["mini"] <= thresholds["large"]:
        raise ValueError("selection.thresholds must be ordered nano <= mini <= large")


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Parse, expand and validate a models file. No caching."""
    source = path or _CONFIG_PATH
    if not source.is_file():
        raise FileNotFoundError(f"Model config not found: {source}")
    config = _resolve_env_vars(yaml.safe_load(source.read_text()))
    _validate_config(config)
    return config


def _is_stale(mtime: float) -> bool:
    return _cached_config is None or mtime > _cached_mtime


def get_config(path: Path | None = None) -> dict[str, Any]:
    """Current model tables, re-read when the file changes on disk.

    Only the very first load raises; afterwards a missing or broken file
    leaves the last good tables in place.
    """
    global _cached_config, _cached_mtime  # noqa: PLW0603
    source = path or _CONFIG_PATH

    try:
        mtime = source.stat().st_mtime
    except FileNotFoundError:
        if _cached_config is None:
            raise
        logger.warning("Model config %s is gone, serving cached tables", source)
        return _cached_config

    if not _is_stale(mtime):
        return _cached_config

    try:
        fresh = load_config(source)
    except (yaml.YAMLError, ValueError):
        if _cached_config is None:
            raise
        logger.error("Rejected edit to %s, serving cached tables", source, exc_info=True)
        _cached_mtime = mtime
        return _cached_config

    logger.info("Loaded model config from %s", source)
    _cached_config, _cached_mtime = fresh, mtime

    # Endpoints may have changed
    from .client import clear_client_cache

    clear_client_cache()
    return _cached_config


def get_provider_config(provider: str, path: Path | None = None) -> dict[str, Any]:
    """Return config for a provider, falling back to the openai table."""
    providers = get_config(path)["providers"]
    if provider not in providers:
        logger.debug("Unknown provider '%s', using openai table", provider)
        return providers["openai"]
    return providers[provider]


def get_provider_names(path: Path | None = None) -> list[str]:
    """Return the slugs of all configured providers."""
    return list(get_config(path)["providers"].keys())


def get_selection_config(path: Path | None = None) -> dict[str, Any]:
    """Return the selection section of config."""
    return get_config(path)["selection"]
