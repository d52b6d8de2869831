# This project was developed with assistance from AI tools.
"""Provider adapters: build request payloads, call the SDK, normalise responses.

Each adapter follows the same build -> call -> parse contract so the dispatch
orchestrator never branches on provider. Responses are normalised into
``ProviderResult``; an empty visible answer is reported as
``is_incomplete=True`` rather than as a successful empty string.

OpenAI has two incompatible shapes: GPT-5 family models use the Responses API
(``instructions`` + ``input``), every other model uses Chat Completions.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import anthropic
import openai

from ..core.config import PROVIDER_LABELS, SUPPORTED_PROVIDERS, AIConfig
from ..core.errors import ConfigurationError, ProviderResponseError, ProviderTransportError
from .client import get_client

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant. Use the following context to answer."

MIN_OUTPUT_TOKENS = 256
MAX_OUTPUT_TOKENS = 4096

_RESPONSES_MODEL_RE = re.compile(r"^gpt-5(?:$|[.\-])", re.IGNORECASE)

FIELD_HELPER_SOURCE = "acf_field_helper"


@dataclass(frozen=True)
class ProviderResult:
    """Normalised provider response. ``raw`` is for diagnostics only."""

    output: str
    is_incomplete: bool = False
    raw: Any = None
    finish_reason: str | None = None


def build_user_message(prompt: str, content: str) -> str:
    return f"{prompt}\n\nContext:\n{content}"


def uses_responses_api(model: str) -> bool:
    """True for models that must be called through the OpenAI Responses API."""
    return bool(model) and bool(_RESPONSES_MODEL_RE.match(model.strip()))


def clamp_max_output_tokens(value: int | None) -> int:
    """Clamp a max token setting into the Responses API's accepted window."""
    try:
        tokens = int(value or 0)
    except (TypeError, ValueError):
        tokens = 0
    return max(MIN_OUTPUT_TOKENS, min(MAX_OUTPUT_TOKENS, tokens))


def _as_dict(response: Any) -> dict[str, Any]:
    if isinstance(response, dict):
        return response
    if hasattr(response, "model_dump"):
        return response.model_dump()
    raise ProviderResponseError("Provider returned an unreadable response.")


def _text_of(content: Any) -> str:
    """Chat message content may be a string or a list of typed text chunks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
    return ""


class ProviderAdapter(ABC):
    """Uniform build -> call -> parse contract over one provider."""

    name: str = ""
    _transport_errors: tuple[type[Exception], ...] = ()
    _status_errors: tuple[type[Exception], ...] = ()
    _timeout_errors: tuple[type[Exception], ...] = ()

    def __init__(self, api_key: str, *, timeout: float = 30.0, client: Any = None) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    @property
    def label(self) -> str:
        return PROVIDER_LABELS.get(self.name, self.name)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_client(self.name, self._api_key, self._timeout)
        return self._client

    @abstractmethod
    def build_payload(
        self,
        *,
        model: str,
        prompt: str,
        content: str,
        max_tokens: int,
        temperature: float,
        source: str | None = None,
    ) -> dict[str, Any]:
        """Build the provider-specific request body."""
        ...

    def follow_up_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Payload for a second attempt after a response with no visible output."""
        return dict(payload)

    @abstractmethod
    async def _send(self, payload: dict[str, Any]) -> Any:
        """Issue the SDK call. Returns the SDK response object."""
        ...

    @abstractmethod
    def parse(self, raw: dict[str, Any]) -> ProviderResult:
        """Normalise a decoded response body."""
        ...

    async def call(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Send the payload and return the decoded response body.

        Raises:
            ProviderTransportError: timeout, connection failure or non-2xx status.
        """
        try:
            response = await self._send(payload)
        except self._timeout_errors as exc:
            logger.error("%s request timed out after %.1fs", self.label, self._timeout)
            raise ProviderTransportError(
                f"{self.label} request timed out.", provider=self.name
            ) from exc
        except self._status_errors as exc:
            status = getattr(exc, "status_code", None)
            logger.error(
                "%s returned HTTP %s: %s", self.label, status, getattr(exc, "message", exc)
            )
            raise ProviderTransportError(
                f"{self.label} request failed (HTTP {status}).",
                provider=self.name,
                status=status,
            ) from exc
        except self._transport_errors as exc:
            logger.error("%s request failed: %s", self.label, exc)
            raise ProviderTransportError(
                f"{self.label} could not be reached.", provider=self.name
            ) from exc
        return _as_dict(response)

    async def generate(self, payload: dict[str, Any]) -> ProviderResult:
        raw = await self.call(payload)
        return self.parse(raw)


class ChatCompletionsAdapter(ProviderAdapter):
    """Providers speaking the OpenAI Chat Completions shape."""

    _transport_errors = (openai.APIError,)
    _status_errors = (openai.APIStatusError,)
    _timeout_errors = (openai.APITimeoutError,)

    def build_payload(
        self,
        *,
        model: str,
        prompt: str,
        content: str,
        max_tokens: int,
        temperature: float,
        source: str | None = None,
    ) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_message(prompt, content)},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

    async def _send(self, payload: dict[str, Any]) -> Any:
        return await self.client.chat.completions.create(**payload)

    def parse(self, raw: dict[str, Any]) -> ProviderResult:
        return self.parse_chat_completion(raw)

    def parse_chat_completion(self, raw: dict[str, Any]) -> ProviderResult:
        choices = raw.get("choices") if isinstance(raw, dict) else None
        if not choices or not isinstance(choices[0], dict):
            raise ProviderResponseError(
                f"{self.label} returned a response without choices.", provider=self.name
            )
        choice = choices[0]
        message = choice.get("message") or {}
        text = _text_of(message.get("content"))
        finish_reason = choice.get("finish_reason")

        # Truncated with nothing visible (e.g. finish_reason == "length") is
        # no output, not a successful empty answer.
        if not text.strip():
            return ProviderResult(
                output="", is_incomplete=True, raw=raw, finish_reason=finish_reason
            )
        return ProviderResult(output=text, raw=raw, finish_reason=finish_reason)


class OpenAIAdapter(ChatCompletionsAdapter):
    name = "openai"

    def build_payload(
        self,
        *,
        model: str,
        prompt: str,
        content: str,
        max_tokens: int,
        temperature: float,
        source: str | None = None,
    ) -> dict[str, Any]:
        if not uses_responses_api(model):
            return super().build_payload(
                model=model,
                prompt=prompt,
                content=content,
                max_tokens=max_tokens,
                temperature=temperature,
                source=source,
            )
        payload: dict[str, Any] = {
            "model": model,
            "instructions": SYSTEM_PROMPT,
            "input": build_user_message(prompt, content),
            "max_output_tokens": clamp_max_output_tokens(max_tokens),
        }
        if source == FIELD_HELPER_SOURCE:
            payload["reasoning"] = {"effort": "low"}
        return payload

    def follow_up_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        if "input" not in payload:
            return dict(payload)
        # Leave more room for visible text and spend less on hidden reasoning.
        retry = dict(payload)
        retry["reasoning"] = {"effort": "low"}
        doubled = payload.get("max_output_tokens", 0) * 2
        retry["max_output_tokens"] = clamp_max_output_tokens(doubled)
        return retry

    async def _send(self, payload: dict[str, Any]) -> Any:
        if "input" in payload:
            return await self.client.responses.create(**payload)
        return await self.client.chat.completions.create(**payload)

    def parse(self, raw: dict[str, Any]) -> ProviderResult:
        if isinstance(raw, dict) and "choices" not in raw and "output" in raw:
            return self.parse_responses_output(raw)
        return self.parse_chat_completion(raw)

    def parse_responses_output(self, raw: dict[str, Any]) -> ProviderResult:
        """Concatenate text parts of all ``message`` output items."""
        output = raw.get("output")
        if output is not None and not isinstance(output, list):
            raise ProviderResponseError(
                f"{self.label} returned a malformed output list.", provider=self.name
            )

        parts: list[str] = []
        for item in output or []:
            if not isinstance(item, dict) or item.get("type") != "message":
                continue
            for part in item.get("content") or []:
                if not isinstance(part, dict):
                    continue
                if part.get("type", "output_text") not in ("output_text", "text"):
                    continue
                if isinstance(part.get("text"), str):
                    parts.append(part["text"])

        text = "".join(parts)
        status = raw.get("status")
        if status == "incomplete" or not text.strip():
            details = raw.get("incomplete_details") or {}
            reason = details.get("reason") if isinstance(details, dict) else None
            return ProviderResult(
                output="", is_incomplete=True, raw=raw, finish_reason=reason or status
            )
        return ProviderResult(output=text, raw=raw, finish_reason=status)


class MistralAdapter(ChatCompletionsAdapter):
    name = "mistral"


class ClaudeAdapter(ProviderAdapter):
    name = "claude"
    _transport_errors = (anthropic.APIError,)
    _status_errors = (anthropic.APIStatusError,)
    _timeout_errors = (anthropic.APITimeoutError,)

    def build_payload(
        self,
        *,
        model: str,
        prompt: str,
        content: str,
        max_tokens: int,
        temperature: float,
        source: str | None = None,
    ) -> dict[str, Any]:
        return {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [
                {"role": "user", "content": build_user_message(prompt, content)},
            ],
        }

    async def _send(self, payload: dict[str, Any]) -> Any:
        return await self.client.messages.create(**payload)

    def parse(self, raw: dict[str, Any]) -> ProviderResult:
        blocks = raw.get("content") if isinstance(raw, dict) else None
        if not isinstance(blocks, list):
            raise ProviderResponseError(
                f"{self.label} returned a response without content.", provider=self.name
            )
        stop_reason = raw.get("stop_reason")
        text = next(
            (
                block["text"]
                for block in blocks
                if isinstance(block, dict)
                and block.get("type", "text") == "text"
                and isinstance(block.get("text"), str)
            ),
            "",
        )
        if not text.strip():
            return ProviderResult(output="", is_incomplete=True, raw=raw, finish_reason=stop_reason)
        return ProviderResult(output=text, raw=raw, finish_reason=stop_reason)


ADAPTERS: dict[str, type[ProviderAdapter]] = {
    "openai": OpenAIAdapter,
    "claude": ClaudeAdapter,
    "mistral": MistralAdapter,
}


def get_adapter(provider: str, api_key: str, *, timeout: float = 30.0) -> ProviderAdapter:
    """Instantiate the adapter for a provider slug.

    Raises:
        ConfigurationError: the provider is not supported.
    """
    adapter_cls = ADAPTERS.get(provider)
    if adapter_cls is None:
        raise ConfigurationError(
            f"Unsupported AI provider: {provider}. Supported: {', '.join(SUPPORTED_PROVIDERS)}"
        )
    return adapter_cls(api_key, timeout=timeout)


def log_provider_status() -> None:
    """Log whether an AI provider is configured. Call at startup."""
    config = AIConfig.from_settings()
    missing = config.missing_fields()
    if missing:
        logger.warning("AI provider: NOT CONFIGURED (missing %s)", ", ".join(missing))
    elif config.provider not in ADAPTERS:
        logger.warning("AI provider: UNSUPPORTED (%s)", config.provider)
    else:
        logger.info(
            "AI provider: %s (model=%s, smart_selection=%s, timeout=%.1fs)",
            config.provider_label,
            config.model,
            config.smart_model_selection,
            config.timeout,
        )
