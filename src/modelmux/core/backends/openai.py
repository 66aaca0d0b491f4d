"""OpenAI backend, through litellm's Responses API bridge.

The response id of each exchange is kept as a single-use continuation
token: the next request sends it as ``previous_response_id`` and the
cache entry is deleted on read.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from modelmux.core.backends.strategy import BackendStrategy
from modelmux.core.interface.provider_models import ProviderOptions  # noqa: TC001
from modelmux.core.streaming.context import RequestContext, WireDialect  # noqa: TC001

logger = logging.getLogger(__name__)

RESPONSE_ID_CACHE = "openaiResponseId"
RESPONSE_ID_KEY = "lastResponseId"
PROMPT_CACHE_KEY = "modelmux-cache-v1"


class OpenAIStrategy(BackendStrategy):
    kind: ClassVar[str] = "openai"
    model_prefix: ClassVar[str] = "openai"
    dialect: ClassVar[WireDialect] = "openai"
    options_family: ClassVar[str | None] = "openai"

    @property
    def uses_responses_api(self) -> bool:
        return bool(self.provider.options.get("responses_api", True))

    def model_string(self, ctx: RequestContext) -> str:
        if self.uses_responses_api:
            return f"openai/responses/{ctx.model.backend_slug}"
        return super().model_string(ctx)

    def get_provider_options(self, ctx: RequestContext) -> ProviderOptions:
        options: dict[str, object] = {
            "parallel_tool_calls": True,
            "prompt_cache_key": self.provider.options.get("prompt_cache_key", PROMPT_CACHE_KEY),
        }
        if self.uses_responses_api:
            previous = self.caches.get_cache(RESPONSE_ID_CACHE).pop(RESPONSE_ID_KEY)
            if previous:
                logger.debug("Using cached previous_response_id %s", previous)
                options["previous_response_id"] = previous
        return {"openai": options}

    def process_response_metadata(self, ctx: RequestContext) -> None:
        if self.uses_responses_api and ctx.response_id:
            logger.debug("Caching OpenAI response id %s", ctx.response_id)
            self.caches.get_cache(RESPONSE_ID_CACHE).set(RESPONSE_ID_KEY, ctx.response_id)
