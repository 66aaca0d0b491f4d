"""Backend strategy lookup and per-provider memoization."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from modelmux.core.backends.anthropic import AnthropicStrategy
from modelmux.core.backends.ccv2 import CCV2Strategy
from modelmux.core.backends.deepseek import DeepSeekStrategy
from modelmux.core.backends.google import GoogleStrategy
from modelmux.core.backends.litellm_router import LiteLLMRouterStrategy
from modelmux.core.backends.openai import OpenAIStrategy
from modelmux.core.backends.openai_compatible import OpenAICompatibleStrategy
from modelmux.core.backends.openrouter import OpenRouterStrategy
from modelmux.core.backends.strategy import BackendStrategy
from modelmux.core.backends.zai import ZaiStrategy
from modelmux.core.errors import ConfigurationError

if TYPE_CHECKING:
    from modelmux.core.cache.metadata import CacheRegistry
    from modelmux.core.interface.config import ProviderConfig

logger = logging.getLogger(__name__)

STRATEGIES: dict[str, type[BackendStrategy]] = {
    cls.kind: cls
    for cls in (
        OpenAIStrategy,
        OpenAICompatibleStrategy,
        OpenRouterStrategy,
        AnthropicStrategy,
        GoogleStrategy,
        DeepSeekStrategy,
        ZaiStrategy,
        CCV2Strategy,
        LiteLLMRouterStrategy,
    )
}


def strategy_class(kind: str) -> type[BackendStrategy]:
    try:
        return STRATEGIES[kind]
    except KeyError:
        supported = ", ".join(sorted(STRATEGIES))
        raise ConfigurationError(f"Unsupported provider kind {kind!r} (supported: {supported})") from None


class BackendFactory:
    """Creates strategies on demand and reuses them per ``(kind, provider key)``."""

    def __init__(self, caches: CacheRegistry) -> None:
        self.caches = caches
        self._instances: dict[tuple[str, str], BackendStrategy] = {}

    def get(self, provider: ProviderConfig) -> BackendStrategy:
        key = (provider.kind, provider.key)
        strategy = self._instances.get(key)
        if strategy is None:
            strategy = strategy_class(provider.kind)(provider, self.caches)
            self._instances[key] = strategy
            logger.debug("Created %r", strategy)
        return strategy

    def clear(self) -> None:
        self._instances.clear()
