"""Generic OpenAI-compatible endpoints (vLLM, Ollama, LM Studio, ...)."""

from __future__ import annotations

from typing import ClassVar

from modelmux.core.backends.strategy import BackendStrategy
from modelmux.core.interface.provider_models import ProviderMessage  # noqa: TC001
from modelmux.core.streaming.context import RequestContext  # noqa: TC001
from modelmux.core.translation.transforms import merge_consecutive_user_messages


class OpenAICompatibleStrategy(BackendStrategy):
    """Many compatible servers reject back-to-back user turns, so they are merged."""

    kind: ClassVar[str] = "openai-compatible"
    requires_api_key: ClassVar[bool] = False

    def convert_messages(self, ctx: RequestContext) -> list[ProviderMessage]:
        return merge_consecutive_user_messages(super().convert_messages(ctx))
