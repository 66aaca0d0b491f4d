"""Gemini backend.

Gemini attaches a ``thought_signature`` to each tool call while thinking
is enabled and rejects the follow-up request unless the signature is sent
back with that call. Signatures are cached in ``toolCallMetadata`` keyed
by tool call id; the translator reattaches them on the next turn.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from modelmux.core.backends.strategy import BackendStrategy
from modelmux.core.interface.models import ToolCallEvent  # noqa: TC001
from modelmux.core.interface.provider_models import ProviderOptions  # noqa: TC001
from modelmux.core.streaming.context import RequestContext, WireDialect  # noqa: TC001
from modelmux.core.translation.translator import TOOL_CALL_METADATA

logger = logging.getLogger(__name__)


class GoogleStrategy(BackendStrategy):
    kind: ClassVar[str] = "google"
    model_prefix: ClassVar[str] = "gemini"
    dialect: ClassVar[WireDialect] = "google"
    options_family: ClassVar[str | None] = "google"

    def get_provider_options(self, ctx: RequestContext) -> ProviderOptions:
        return {"google": {"thinking_config": {"include_thoughts": True}}}

    def process_tool_call_metadata(self, ctx: RequestContext, event: ToolCallEvent) -> None:
        if not event.provider_metadata:
            return
        self.caches.get_cache(TOOL_CALL_METADATA).set(
            event.tool_call_id, {"provider_metadata": event.provider_metadata}
        )
        logger.debug("Cached provider metadata for tool call %s", event.tool_call_id)
