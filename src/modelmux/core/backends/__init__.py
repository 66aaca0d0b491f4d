"""Backend variants: one strategy per provider kind."""

from modelmux.core.backends.anthropic import AnthropicStrategy
from modelmux.core.backends.ccv2 import CCV2Strategy
from modelmux.core.backends.deepseek import DeepSeekStrategy
from modelmux.core.backends.google import GoogleStrategy
from modelmux.core.backends.litellm_router import LiteLLMRouterStrategy
from modelmux.core.backends.openai import OpenAIStrategy
from modelmux.core.backends.openai_compatible import OpenAICompatibleStrategy
from modelmux.core.backends.openrouter import OpenRouterStrategy
from modelmux.core.backends.registry import STRATEGIES, BackendFactory, strategy_class
from modelmux.core.backends.strategy import BackendStrategy, usage_from_openai
from modelmux.core.backends.zai import ZaiStrategy

__all__ = [
    "STRATEGIES",
    "AnthropicStrategy",
    "BackendFactory",
    "BackendStrategy",
    "CCV2Strategy",
    "DeepSeekStrategy",
    "GoogleStrategy",
    "LiteLLMRouterStrategy",
    "OpenAICompatibleStrategy",
    "OpenAIStrategy",
    "OpenRouterStrategy",
    "ZaiStrategy",
    "strategy_class",
    "usage_from_openai",
]
