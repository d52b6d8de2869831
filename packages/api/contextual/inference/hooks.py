# This project was developed with assistance from AI tools.
"""Extension points for altering context, provider payloads and results.

Plugins subclass ``Plugin`` and override only the transforms they need; the
base implementations return their input unchanged. ``PluginChain`` invokes
registered plugins in registration order at three fixed points:

  - ``transform_context``  after content resolution, before model selection
  - ``transform_payload``  after the adapter builds the request body
  - ``transform_result``   after the adapter normalises the response

A plugin that raises is logged and skipped; the value from the previous
plugin carries on through the chain.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookContext:
    """Read-only request facts passed to every transform."""

    provider: str
    model: str
    identifier: str
    prompt: str
    format: str
    source: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class Plugin:
    """Base plugin. Override any subset of the transforms."""

    name: str = "plugin"

    def transform_context(self, context: Any, ctx: HookContext) -> Any:
        return context

    def transform_payload(self, payload: dict[str, Any], ctx: HookContext) -> dict[str, Any]:
        return payload

    def transform_result(self, result: Any, ctx: HookContext) -> Any:
        return result


class PluginChain:
    """Ordered collection of plugins applied at the named extension points."""

    def __init__(self, plugins: list[Plugin] | None = None) -> None:
        self._plugins: list[Plugin] = list(plugins or [])

    def register(self, plugin: Plugin) -> None:
        self._plugins.append(plugin)

    @property
    def plugins(self) -> tuple[Plugin, ...]:
        return tuple(self._plugins)

    def _run(self, method: str, value: Any, ctx: HookContext) -> Any:
        for plugin in self._plugins:
            try:
                value = getattr(plugin, method)(value, ctx)
            except Exception:
                logger.error(
                    "Plugin %s failed in %s, skipping", plugin.name, method, exc_info=True
                )
        return value

    def apply_context(self, context: Any, ctx: HookContext) -> Any:
        return self._run("transform_context", context, ctx)

    def apply_payload(self, payload: dict[str, Any], ctx: HookContext) -> dict[str, Any]:
        return self._run("transform_payload", payload, ctx)

    def apply_result(self, result: Any, ctx: HookContext) -> Any:
        return self._run("transform_result", result, ctx)
