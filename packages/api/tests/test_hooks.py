# This project was developed with assistance from AI tools.
"""Tests for the plugin chain extension points."""

from contextual.inference.hooks import HookContext, Plugin, PluginChain

CTX = HookContext(provider="openai", model="gpt-4o", identifier="post-1", prompt="hi", format="markdown")


class AddTemperature(Plugin):
    name = "add-temperature"

    def transform_payload(self, payload, ctx):
        return {**payload, "temperature": 0.2}


class TagModel(Plugin):
    name = "tag-model"

    def transform_payload(self, payload, ctx):
        return {**payload, "tag": ctx.model}


class Broken(Plugin):
    name = "broken"

    def transform_payload(self, payload, ctx):
        raise RuntimeError("boom")


def test_empty_chain_is_identity():
    """Should return values unchanged when no plugins are registered."""
    chain = PluginChain()
    payload = {"model": "gpt-4o"}
    assert chain.apply_payload(payload, CTX) is payload
    assert chain.apply_context("ctx", CTX) == "ctx"
    assert chain.apply_result("res", CTX) == "res"


def test_plugins_run_in_registration_order():
    """Should feed each plugin the previous plugin's output."""
    chain = PluginChain([AddTemperature()])
    chain.register(TagModel())

    result = chain.apply_payload({"model": "gpt-4o"}, CTX)

    assert result == {"model": "gpt-4o", "temperature": 0.2, "tag": "gpt-4o"}
    assert [p.name for p in chain.plugins] == ["add-temperature", "tag-model"]


def test_failing_plugin_is_skipped():
    """Should log and skip a plugin that raises, keeping the chain going."""
    chain = PluginChain([AddTemperature(), Broken(), TagModel()])
    result = chain.apply_payload({"model": "gpt-4o"}, CTX)
    assert result == {"model": "gpt-4o", "temperature": 0.2, "tag": "gpt-4o"}


def test_base_plugin_transforms_are_noops():
    """Should leave every value unchanged in the base plugin."""
    plugin = Plugin()
    assert plugin.transform_context("c", CTX) == "c"
    assert plugin.transform_payload({"a": 1}, CTX) == {"a": 1}
    assert plugin.transform_result("r", CTX) == "r"
