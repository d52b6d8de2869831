# This project was developed with assistance from AI tools.
"""Dispatch orchestrator: context resolution -> model selection -> provider -> cache.

One linear pass per request:

  throttle check -> validate config -> classify intent
    -> schema answer (multi + structure question, no provider call)
    -> resolve content -> select model (before and after aggregation)
    -> cache lookup -> build payload -> hooks -> send -> normalise -> hooks
    -> bounded retry on no visible output -> cache on success -> respond

Provider failures do not raise out of ``generate``: they come back as a
normal envelope with an explanatory ``message`` and are never cached.
"""

import dataclasses
import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..core.config import SUPPORTED_PROVIDERS, AIConfig, Settings
from ..core.errors import (
    ConfigurationError,
    ProviderEmptyOutputError,
    ProviderError,
    SchemaUnavailableError,
    ThrottledError,
)
from ..inference.hooks import HookContext, PluginChain
from ..inference.providers import ProviderAdapter, ProviderResult, get_adapter
from ..inference.router import select_tier
from ..schemas.caller import Caller
from ..schemas.context import (
    MULTI_IDENTIFIER,
    AIResult,
    ContextFormat,
    ContextList,
    ContextRequest,
    GenerateResponse,
    ResolvedContext,
    SchemaSources,
)
from ..schemas.schema import SchemaSnapshot
from .cache import CachePort, MemoryCache, make_cache_key
from .content import ContentAggregator, is_multi, parse_identifier
from .intent import Intent, classify_intent, is_structure_question
from .schema_answer import build_schema_answer
from .sources import (
    CachedSchemaSource,
    DocumentSource,
    InMemoryDocumentSource,
    SchemaSource,
    StaticSchemaSource,
    ThrottleCheck,
    never_throttled,
)

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = (
    "Couldn't generate a response with the current model. Please try again or switch model."
)
SUCCESS_MESSAGE = "AI response generated."
STRUCTURE_MESSAGE = "Structure answer from schema."
SCHEMA_DEGRADED_NOTE = "Site schema is currently unavailable; showing an empty schema."
STRUCTURE_CONTEXT = "Site schema snapshot (generated at {generated_at})."
THROTTLED_MESSAGE = "Too many requests. Please wait a moment and try again."

GENERATE_CACHE_PREFIX = "contextual_generate"
CONTEXT_CACHE_PREFIX = "contextual_context"

AdapterFactory = Callable[..., ProviderAdapter]


class ContextPipeline:
    """Top-level entry point for generate and get-context requests.

    Collaborators are injected; nothing here reads globals except the
    hot-reloaded models.yaml when ``models_config`` is not given.
    """

    def __init__(
        self,
        *,
        documents: DocumentSource,
        schema: SchemaSource,
        cache: CachePort,
        ai_config: AIConfig,
        hooks: PluginChain | None = None,
        is_throttled: ThrottleCheck = never_throttled,
        adapter_factory: AdapterFactory = get_adapter,
        models_config: Mapping[str, Any] | None = None,
        multi_limit: int = 5,
        multi_types: tuple[str, ...] | list[str] = ("post", "page"),
        context_cache_ttl: int = 3600,
    ) -> None:
        self._schema = schema
        self._cache = cache
        self._ai_config = ai_config
        self._hooks = hooks or PluginChain()
        self._is_throttled = is_throttled
        self._adapter_factory = adapter_factory
        self._models_config = models_config
        self._context_cache_ttl = context_cache_ttl
        self.aggregator = ContentAggregator(
            documents, multi_limit=multi_limit, multi_types=multi_types
        )

    # -- validation --------------------------------------------------------

    def _check_throttle(self, caller: Caller) -> None:
        if self._is_throttled(caller.identity):
            logger.warning("Caller %s is throttled", caller.identity)
            raise ThrottledError(THROTTLED_MESSAGE)

    def validate_config(self) -> AIConfig:
        """Return the AI options or raise before any network call.

        Raises:
            ConfigurationError: provider, API key or model unset, or provider unsupported.
        """
        config = self._ai_config
        missing = config.missing_fields()
        if missing:
            logger.warning("AI configuration incomplete: missing %s", ", ".join(missing))
            raise ConfigurationError(
                "AI provider, API key, and model must be configured before generating responses."
            )
        if config.provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported AI provider: {config.provider}. "
                f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
            )
        return config

    # -- schema path -------------------------------------------------------

    async def load_schema(self) -> tuple[SchemaSnapshot, bool]:
        """Return (snapshot, degraded). A failing schema source yields an empty snapshot."""
        try:
            return await self._schema.get_schema_snapshot(), False
        except SchemaUnavailableError as exc:
            logger.warning("Schema unavailable, using empty snapshot: %s", exc.detail)
            return SchemaSnapshot.empty(), True

    def _structure_response(
        self,
        request: ContextRequest,
        intent: Intent,
        snapshot: SchemaSnapshot,
        degraded: bool,
    ) -> GenerateResponse:
        output = build_schema_answer(intent, snapshot)
        logger.info("Schema answer: intent=%s slug=%s", intent.kind.value, intent.slug)
        message = f"{STRUCTURE_MESSAGE} {SCHEMA_DEGRADED_NOTE}" if degraded else STRUCTURE_MESSAGE
        return GenerateResponse(
            message=message,
            identifier=MULTI_IDENTIFIER,
            prompt=request.prompt,
            format=request.format,
            context=ResolvedContext(
                identifier=MULTI_IDENTIFIER,
                content=STRUCTURE_CONTEXT.format(
                    generated_at=snapshot.generated_at or "unknown"
                ),
                metadata={"type": MULTI_IDENTIFIER, "structure": True},
            ),
            ai=AIResult(output=output, raw=None),
            sources=SchemaSources(used_schema=True, schema_generated_at=snapshot.generated_at),
        )

    # -- provider path -----------------------------------------------------

    async def _generate_with_retry(
        self,
        adapter: ProviderAdapter,
        payload: dict[str, Any],
        config: AIConfig,
        ctx: HookContext,
    ) -> ProviderResult:
        attempts = max(1, config.empty_output_attempts)
        current = payload
        for attempt in range(1, attempts + 1):
            result = await adapter.generate(current)
            result = self._hooks.apply_result(result, ctx)
            if not result.is_incomplete and result.output.strip():
                return result
            logger.warning(
                "%s returned no visible output (model=%s, attempt %d/%d, finish_reason=%s)",
                adapter.label,
                ctx.model,
                attempt,
                attempts,
                result.finish_reason,
            )
            if attempt < attempts:
                current = self._hooks.apply_payload(adapter.follow_up_payload(current), ctx)
        raise ProviderEmptyOutputError(GENERIC_FAILURE_MESSAGE, provider=adapter.name)

    async def generate(
        self, request: ContextRequest, caller: Caller | None = None
    ) -> GenerateResponse:
        """Answer a prompt against a document, the recent-content digest, or the schema.

        Raises:
            ThrottledError, ConfigurationError, InvalidIdentifierError, NotFoundError,
            TypeMismatchError, AccessDeniedError: before any provider call.
        """
        caller = caller or Caller()
        self._check_throttle(caller)
        config = self.validate_config()

        if request.is_multi and is_structure_question(request.prompt):
            snapshot, degraded = await self.load_schema()
            intent = classify_intent(request.prompt, snapshot)
            if intent.is_schema:
                return self._structure_response(request, intent, snapshot, degraded)

        provider = config.provider
        identifier = MULTI_IDENTIFIER if request.is_multi else request.identifier
        ctx = HookContext(
            provider=provider,
            model=config.model,
            identifier=identifier,
            prompt=request.prompt,
            format=request.format.value,
            source=request.source,
        )

        # Pre-aggregation estimate: prompt only.
        preliminary = select_tier(
            request.prompt, "", provider, config.model, config, self._models_config
        )

        context = await self.aggregator.resolve(identifier, request.format, caller)
        context = self._hooks.apply_context(context, ctx)

        selection = select_tier(
            request.prompt, context.content, provider, config.model, config, self._models_config
        )
        if selection.model_name != preliminary.model_name:
            logger.info(
                "Model re-selected after content resolution: %s -> %s",
                preliminary.model_name,
                selection.model_name,
            )
        model = selection.model_name
        ctx = dataclasses.replace(ctx, model=model)

        cache_key = make_cache_key(
            GENERATE_CACHE_PREFIX,
            {
                "provider": provider,
                "model": model,
                "identifier": identifier,
                "prompt": request.prompt,
                "format": request.format.value,
                "modified": ContentAggregator.freshness_signature(context),
            },
        )
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.info("Cache hit for %s (model=%s)", identifier, model)
            return cached.model_copy(update={"cached": True})

        adapter = self._adapter_factory(provider, config.api_key, timeout=config.timeout)
        payload = adapter.build_payload(
            model=model,
            prompt=request.prompt,
            content=context.content,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            source=request.source,
        )
        payload = self._hooks.apply_payload(payload, ctx)

        envelope = {
            "provider": provider,
            "model": model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "identifier": identifier,
            "prompt": request.prompt,
            "format": request.format,
            "context": context,
        }

        try:
            result = await self._generate_with_retry(adapter, payload, config, ctx)
        except ProviderEmptyOutputError:
            return GenerateResponse(
                message=GENERIC_FAILURE_MESSAGE,
                ai=AIResult(output=GENERIC_FAILURE_MESSAGE, raw=None),
                **envelope,
            )
        except ProviderError as exc:
            logger.error("AI provider error for %s: %s", identifier, exc.detail)
            return GenerateResponse(message=f"AI provider error: {exc.detail}", ai=None, **envelope)

        response = GenerateResponse(
            message=SUCCESS_MESSAGE,
            ai=AIResult(output=result.output, raw=result.raw),
            **envelope,
        )
        self._cache.set(cache_key, response, config.cache_ttl)
        return response

    # -- get_context -------------------------------------------------------

    async def get_context(
        self, identifier: str, fmt: ContextFormat, caller: Caller | None = None
    ) -> ResolvedContext:
        """Resolve context without calling a provider.

        Single documents are cached per modification time.
        """
        caller = caller or Caller()
        self._check_throttle(caller)
        if is_multi(identifier):
            return await self.aggregator.aggregate_recent(fmt)

        doc_type, doc_id = parse_identifier(identifier)
        document = await self.aggregator.lookup(doc_type, doc_id, caller)
        cache_key = make_cache_key(
            CONTEXT_CACHE_PREFIX,
            {
                "identifier": document.identifier,
                "format": fmt.value,
                "modified": document.modified_gmt,
            },
        )
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached
        context = await self.aggregator.render(document, fmt)
        self._cache.set(cache_key, context, self._context_cache_ttl)
        return context

    # -- list_contexts -----------------------------------------------------

    async def list_contexts(
        self,
        post_type: str = "post",
        *,
        limit: int = 10,
        page: int = 1,
        search: str = "",
        caller: Caller | None = None,
    ) -> ContextList:
        """Page through the public documents of one allowed type."""
        self._check_throttle(caller or Caller())
        return await self.aggregator.list_contexts(
            post_type, limit=limit, page=page, search=search
        )


_pipeline: ContextPipeline | None = None


def init_pipeline(cfg: Settings) -> ContextPipeline:
    """Initialise the singleton (called once from app lifespan)."""
    global _pipeline  # noqa: PLW0603
    cache = MemoryCache(max_entries=cfg.CACHE_MAX_ENTRIES)
    if cfg.CONTENT_FILE:
        documents = InMemoryDocumentSource.from_yaml(cfg.CONTENT_FILE)
    else:
        documents = InMemoryDocumentSource()
    schema = CachedSchemaSource(
        StaticSchemaSource(path=cfg.SCHEMA_FILE or None),
        cache,
        ttl=cfg.SCHEMA_CACHE_TTL,
    )
    _pipeline = ContextPipeline(
        documents=documents,
        schema=schema,
        cache=cache,
        ai_config=AIConfig.from_settings(cfg),
        multi_limit=cfg.MULTI_CONTEXT_LIMIT,
        multi_types=cfg.MULTI_CONTEXT_TYPES,
        context_cache_ttl=cfg.CONTEXT_CACHE_TTL,
    )
    logger.info("ContextPipeline initialised (multi_limit=%d)", cfg.MULTI_CONTEXT_LIMIT)
    return _pipeline


def get_pipeline() -> ContextPipeline:
    """Return the initialised ContextPipeline singleton."""
    if _pipeline is None:
        raise RuntimeError("ContextPipeline not initialised -- call init_pipeline() first")
    return _pipeline
