"""Z.ai backend: Anthropic-compatible endpoint with its own usage block."""

from __future__ import annotations

from typing import Any, ClassVar

from modelmux.core.backends.anthropic import AnthropicStrategy
from modelmux.core.backends.strategy import coerce_int
from modelmux.core.interface.models import TokenUsage
from modelmux.core.streaming.context import RequestContext  # noqa: TC001


def _first(raw: dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = coerce_int(raw.get(key))
        if value:
            return value
    return 0


class ZaiStrategy(AnthropicStrategy):
    kind: ClassVar[str] = "zai"
    default_base_url: ClassVar[str | None] = "https://api.z.ai/api/anthropic"

    def process_result_data(self, ctx: RequestContext) -> TokenUsage:
        """Z.ai counts cached reads outside ``input_tokens``, so the total adds all three."""
        raw = ctx.raw_usage
        if not raw:
            return TokenUsage()
        input_tokens = _first(raw, "input_tokens", "inputTokens", "prompt_tokens")
        output_tokens = _first(raw, "output_tokens", "outputTokens", "completion_tokens")
        cached = _first(raw, "cache_read_input_tokens", "cachedInputTokens")
        return TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cached_input_tokens=cached,
            total_tokens=input_tokens + output_tokens + cached,
        )
