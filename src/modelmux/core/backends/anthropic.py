"""Anthropic backend with prompt-cache breakpoints.

Anthropic allows at most four cache breakpoints per request. They are
spent as: the last system message, the last tool definition, and the
two most recent user/tool messages (a rolling window so each turn reads
the previous turn's cache and pre-caches its own).
"""

from __future__ import annotations

from typing import Any, ClassVar

from modelmux.core.backends.strategy import BackendStrategy
from modelmux.core.interface.provider_models import ProviderMessage, ProviderOptions, ProviderTool  # noqa: TC001
from modelmux.core.streaming.context import RequestContext, WireDialect  # noqa: TC001
from modelmux.core.translation.transforms import (
    add_cache_control_to_last_system_message,
    add_cache_control_to_last_tool,
    add_cache_control_to_recent_user_messages,
)

# Model ``extra`` keys forwarded to the backend as-is.
KNOWN_ANTHROPIC_OPTIONS = (
    "thinking",
    "effort",
    "disable_parallel_tool_use",
    "send_reasoning",
    "structured_output_mode",
    "container",
)


class AnthropicStrategy(BackendStrategy):
    kind: ClassVar[str] = "anthropic"
    model_prefix: ClassVar[str] = "anthropic"
    dialect: ClassVar[WireDialect] = "anthropic"
    options_family: ClassVar[str | None] = "anthropic"

    def convert_messages(self, ctx: RequestContext) -> list[ProviderMessage]:
        messages = super().convert_messages(ctx)
        messages = add_cache_control_to_last_system_message(messages)
        return add_cache_control_to_recent_user_messages(messages)

    def convert_tools(self, ctx: RequestContext) -> dict[str, ProviderTool] | None:
        return add_cache_control_to_last_tool(super().convert_tools(ctx))

    def get_provider_options(self, ctx: RequestContext) -> ProviderOptions:
        extra = ctx.model.extra
        options: dict[str, Any] = {key: extra[key] for key in KNOWN_ANTHROPIC_OPTIONS if key in extra}
        return {"anthropic": options} if options else {}
