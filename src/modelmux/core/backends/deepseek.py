"""DeepSeek backend.

In thinking mode with tool calls DeepSeek expects the previous turn's
``reasoning_content`` to be sent back. Hosts do not always keep thinking
parts in history, so the streamed reasoning is stored as a single pending
value and injected into the most recent assistant message on the next
request.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from modelmux.core.backends.strategy import BackendStrategy
from modelmux.core.cache.metadata import MetadataCache  # noqa: TC001
from modelmux.core.interface.models import ReasoningDelta  # noqa: TC001
from modelmux.core.interface.provider_models import (
    ProviderMessage,
    ProviderPart,
    ProviderReasoningPart,
    ProviderTextPart,
)
from modelmux.core.streaming.context import RequestContext, WireDialect  # noqa: TC001

logger = logging.getLogger(__name__)

PENDING_REASONING_CACHE = "deepseekPendingReasoning"
PENDING_KEY = "pending"
PENDING_CACHE_SIZE = 10


class DeepSeekStrategy(BackendStrategy):
    kind: ClassVar[str] = "deepseek"
    model_prefix: ClassVar[str] = "deepseek"
    dialect: ClassVar[WireDialect] = "deepseek"
    options_family: ClassVar[str | None] = "deepseek"

    @property
    def pending(self) -> MetadataCache:
        return self.caches.get_cache(PENDING_REASONING_CACHE, PENDING_CACHE_SIZE)

    def convert_messages(self, ctx: RequestContext) -> list[ProviderMessage]:
        messages = super().convert_messages(ctx)
        reasoning = self.pending.get(PENDING_KEY)
        if not reasoning:
            return messages

        for index in range(len(messages) - 1, -1, -1):
            message = messages[index]
            if message.role != "assistant":
                continue
            parts = message.parts if message.content else []
            if not any(isinstance(p, ProviderReasoningPart) for p in parts):
                content: list[ProviderPart] = [ProviderReasoningPart(text=reasoning)]
                content.extend(p for p in parts if not (isinstance(p, ProviderTextPart) and not p.text))
                messages[index] = message.model_copy(update={"content": content})
                logger.debug("Injected pending reasoning (%d chars) into message %d", len(reasoning), index)
            self.pending.delete(PENDING_KEY)
            break

        return messages

    def process_reasoning_delta(self, ctx: RequestContext, delta: ReasoningDelta) -> None:
        if delta.text:
            ctx.scratch["reasoning"] = ctx.scratch.get("reasoning", "") + delta.text

    def process_response_metadata(self, ctx: RequestContext) -> None:
        reasoning = ctx.scratch.get("reasoning", "")
        if reasoning:
            self.pending.set(PENDING_KEY, reasoning)
            logger.debug("Cached pending reasoning_content (%d chars)", len(reasoning))
