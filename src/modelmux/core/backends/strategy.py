"""Backend strategy: the hook points every backend variant may override.

A strategy is bound to one provider configuration and the shared cache
registry. It never keeps per-exchange state on itself: anything a hook
needs to remember during an exchange goes into ``ctx.scratch``.

Hooks, in the order the orchestrator calls them:

setup
    :meth:`resolve_handle`, :meth:`convert_messages`,
    :meth:`convert_tools`, :meth:`get_provider_options`
execute
    :meth:`process_tool_call_metadata` for each tool call,
    :meth:`process_reasoning_delta` for each reasoning delta
finalize
    :meth:`process_response_metadata`, :meth:`process_result_data`
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

from modelmux.core.errors import ConfigurationError
from modelmux.core.interface.models import ReasoningDelta, TokenUsage, ToolCallEvent  # noqa: TC001
from modelmux.core.interface.provider_models import ProviderMessage, ProviderOptions, ProviderTool  # noqa: TC001
from modelmux.core.streaming.context import ModelHandle, RequestContext, WireDialect
from modelmux.core.translation.transforms import SystemMode, apply_system_mode
from modelmux.core.translation.translator import TOOL_CALL_METADATA, to_provider, tools_to_provider

if TYPE_CHECKING:
    from modelmux.core.cache.metadata import CacheRegistry
    from modelmux.core.interface.config import ProviderConfig

logger = logging.getLogger(__name__)


class BackendStrategy:
    """Default behaviour shared by all backend variants.

    Subclasses set the class attributes and override only the hooks
    whose backend diverges from the defaults.
    """

    kind: ClassVar[str] = "openai-compatible"
    model_prefix: ClassVar[str] = "openai"
    dialect: ClassVar[WireDialect] = "openai"
    options_family: ClassVar[str | None] = None
    default_base_url: ClassVar[str | None] = None
    system_mode: ClassVar[SystemMode] = "message"
    requires_api_key: ClassVar[bool] = True

    def __init__(self, provider: ProviderConfig, caches: CacheRegistry) -> None:
        self.provider = provider
        self.caches = caches

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider.key!r})"

    # -- setup -------------------------------------------------------------

    def model_string(self, ctx: RequestContext) -> str:
        return f"{self.model_prefix}/{ctx.model.backend_slug}"

    def extra_headers(self, ctx: RequestContext) -> dict[str, str]:
        return {}

    def resolve_handle(self, ctx: RequestContext) -> ModelHandle:
        """Build the litellm model handle for this exchange's model."""
        if self.requires_api_key and not ctx.api_key:
            raise ConfigurationError(f"No API key configured for provider {self.provider.key!r}")
        headers = {**self.provider.resolved_headers(), **self.extra_headers(ctx)}
        return ModelHandle(
            model=self.model_string(ctx),
            dialect=self.dialect,
            api_key=ctx.api_key,
            api_base=self.provider.base_url or self.default_base_url,
            headers=headers,
            options_family=self.options_family,
        )

    def convert_messages(self, ctx: RequestContext) -> list[ProviderMessage]:
        messages = to_provider(ctx.host_messages, tool_metadata=self.caches.get_cache(TOOL_CALL_METADATA))
        return apply_system_mode(messages, self.system_mode)

    def convert_tools(self, ctx: RequestContext) -> dict[str, ProviderTool] | None:
        return tools_to_provider(ctx.host_tools)

    def get_provider_options(self, ctx: RequestContext) -> ProviderOptions:
        return {}

    # -- execute -----------------------------------------------------------

    def process_tool_call_metadata(self, ctx: RequestContext, event: ToolCallEvent) -> None:
        return None

    def process_reasoning_delta(self, ctx: RequestContext, delta: ReasoningDelta) -> None:
        return None

    # -- finalize ----------------------------------------------------------

    def process_response_metadata(self, ctx: RequestContext) -> None:
        return None

    def process_result_data(self, ctx: RequestContext) -> TokenUsage:
        """Normalize the usage block reported at the end of the stream."""
        return usage_from_openai(ctx.raw_usage)


def coerce_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def usage_from_openai(raw: dict[str, Any] | None) -> TokenUsage:
    """Read an OpenAI-shaped usage dict as reported by litellm."""
    if not raw:
        return TokenUsage()
    details: Any = raw.get("prompt_tokens_details") or {}
    cached = coerce_int(details.get("cached_tokens") if isinstance(details, dict) else None)  # pyright: ignore[reportUnknownMemberType]
    cached = cached or coerce_int(raw.get("cache_read_input_tokens"))
    input_tokens = coerce_int(raw.get("prompt_tokens"))
    output_tokens = coerce_int(raw.get("completion_tokens"))
    total = coerce_int(raw.get("total_tokens")) or input_tokens + output_tokens
    return TokenUsage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        cached_input_tokens=cached,
        total_tokens=total,
    )
