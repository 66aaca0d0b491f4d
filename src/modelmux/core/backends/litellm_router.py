"""LiteLLM proxy backend.

A LiteLLM proxy serves many model families behind one base URL and key.
Each model names the API shape it should be spoken to with in
``properties["litellm_api_type"]``; every hook is delegated to the
matching inner strategy, all sharing this provider's configuration.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

from modelmux.core.backends.anthropic import AnthropicStrategy
from modelmux.core.backends.google import GoogleStrategy
from modelmux.core.backends.openai import OpenAIStrategy
from modelmux.core.backends.openai_compatible import OpenAICompatibleStrategy
from modelmux.core.backends.strategy import BackendStrategy
from modelmux.core.errors import ConfigurationError
from modelmux.core.interface.models import ReasoningDelta, TokenUsage, ToolCallEvent  # noqa: TC001
from modelmux.core.interface.provider_models import ProviderMessage, ProviderOptions, ProviderTool  # noqa: TC001
from modelmux.core.streaming.context import ModelHandle, RequestContext  # noqa: TC001

if TYPE_CHECKING:
    from modelmux.core.cache.metadata import CacheRegistry
    from modelmux.core.interface.config import ProviderConfig

logger = logging.getLogger(__name__)

API_TYPE_PROPERTY = "litellm_api_type"
LITELLM_API_TYPES = ("google", "openai", "anthropic", "openai-compatible")


class LiteLLMRouterStrategy(BackendStrategy):
    kind: ClassVar[str] = "litellm"

    def __init__(self, provider: ProviderConfig, caches: CacheRegistry) -> None:
        super().__init__(provider, caches)
        logger.info("Initializing LiteLLM router with base URL: %s", provider.base_url or "default")
        self._inner: dict[str, BackendStrategy] = {
            "google": GoogleStrategy(provider, caches),
            "openai": OpenAIStrategy(provider, caches),
            "anthropic": AnthropicStrategy(provider, caches),
            "openai-compatible": OpenAICompatibleStrategy(provider, caches),
        }

    def route(self, ctx: RequestContext) -> BackendStrategy:
        """Pick the inner strategy for this exchange's model."""
        api_type = ctx.model.properties.get(API_TYPE_PROPERTY)
        valid = ", ".join(f'"{t}"' for t in LITELLM_API_TYPES)
        if not api_type:
            raise ConfigurationError(
                f"LiteLLM provider requires {API_TYPE_PROPERTY!r} in model properties. "
                f"Valid values are: {valid}. Model: {ctx.model.id}"
            )
        inner = self._inner.get(str(api_type))
        if inner is None:
            raise ConfigurationError(
                f"Invalid {API_TYPE_PROPERTY}: {api_type!r}. Valid values are: {valid}. Model: {ctx.model.id}"
            )
        return inner

    def resolve_handle(self, ctx: RequestContext) -> ModelHandle:
        inner = self.route(ctx)
        logger.debug("LiteLLM: routing to %s strategy for model %r", inner.kind, ctx.model.id)
        return inner.resolve_handle(ctx)

    def convert_messages(self, ctx: RequestContext) -> list[ProviderMessage]:
        return self.route(ctx).convert_messages(ctx)

    def convert_tools(self, ctx: RequestContext) -> dict[str, ProviderTool] | None:
        return self.route(ctx).convert_tools(ctx)

    def get_provider_options(self, ctx: RequestContext) -> ProviderOptions:
        return self.route(ctx).get_provider_options(ctx)

    def process_tool_call_metadata(self, ctx: RequestContext, event: ToolCallEvent) -> None:
        self.route(ctx).process_tool_call_metadata(ctx, event)

    def process_reasoning_delta(self, ctx: RequestContext, delta: ReasoningDelta) -> None:
        self.route(ctx).process_reasoning_delta(ctx, delta)

    def process_response_metadata(self, ctx: RequestContext) -> None:
        self.route(ctx).process_response_metadata(ctx)

    def process_result_data(self, ctx: RequestContext) -> TokenUsage:
        return self.route(ctx).process_result_data(ctx)
