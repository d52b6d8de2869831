# This project was developed with assistance from AI tools.
"""SDK client factory for the supported AI providers.

OpenAI and Mistral share the openai SDK (Mistral's API is OpenAI-compatible,
so only ``base_url`` differs); Claude uses the anthropic SDK. Clients are
cached per provider/key/timeout to reuse HTTP connections. SDK-level retries
are disabled: retry policy belongs to the dispatch orchestrator.
"""

import hashlib
import logging

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from .config import get_provider_config

logger = logging.getLogger(__name__)

# Per-provider client cache (avoids re-creating HTTP connections)
_clients: dict[tuple[str, str, float], AsyncOpenAI | AsyncAnthropic] = {}


def _cache_key(provider: str, api_key: str, timeout: float) -> tuple[str, str, float]:
    # Keys are fingerprinted so the raw secret never sits in a dict key.
    digest = hashlib.sha256(api_key.encode()).hexdigest()[:16]
    return (provider, digest, timeout)


def get_client(provider: str, api_key: str, timeout: float = 30.0) -> AsyncOpenAI | AsyncAnthropic:
    """Return a cached async SDK client for the provider."""
    key = _cache_key(provider, api_key, timeout)
    if key not in _clients:
        endpoint = get_provider_config(provider).get("endpoint") or None
        if provider == "claude":
            _clients[key] = AsyncAnthropic(
                api_key=api_key,
                base_url=endpoint,
                timeout=timeout,
                max_retries=0,
            )
        else:
            _clients[key] = AsyncOpenAI(
                api_key=api_key,
                base_url=endpoint,
                timeout=timeout,
                max_retries=0,
            )
        logger.debug("Created %s client (endpoint=%s, timeout=%.1fs)", provider, endpoint, timeout)
    return _clients[key]


def clear_client_cache() -> None:
    """Clear cached clients (useful after config reload)."""
    _clients.clear()
