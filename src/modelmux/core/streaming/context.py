"""Per-exchange request context and lifecycle states."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from modelmux.core.audit.models import LoggedResponse
from modelmux.core.interface.config import ModelConfig, ProviderConfig  # noqa: TC001
from modelmux.core.interface.models import HostMessage, TokenUsage, ToolDefinition  # noqa: TC001
from modelmux.core.interface.provider_models import ProviderMessage, ProviderOptions, ProviderTool  # noqa: TC001

# How provider-format messages are rendered for litellm.
WireDialect = Literal["openai", "anthropic", "google", "deepseek"]


class ExchangeState(str, Enum):
    IDLE = "idle"
    SETTING_UP = "setting_up"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ModelHandle:
    """Everything litellm needs to reach one model."""

    model: str
    dialect: WireDialect = "openai"
    api_key: str | None = None
    api_base: str | None = None
    headers: dict[str, str] = field(default_factory=lambda: dict[str, str]())
    options_family: str | None = None


@dataclass
class RequestContext:
    """Ephemeral state for one exchange.

    Created by setup, mutated while streaming, discarded after finalize.
    Backend variants keep their per-exchange accumulators in ``scratch``
    rather than on themselves, so one strategy can serve overlapping
    exchanges.
    """

    model: ModelConfig
    provider: ProviderConfig
    host_messages: list[HostMessage]
    host_tools: list[ToolDefinition] = field(default_factory=lambda: list[ToolDefinition]())
    api_key: str | None = None
    handle: ModelHandle | None = None
    messages: list[ProviderMessage] = field(default_factory=lambda: list[ProviderMessage]())
    tools: dict[str, ProviderTool] | None = None
    provider_options: ProviderOptions = field(default_factory=lambda: ProviderOptions())
    interaction_id: str = ""
    response: LoggedResponse = field(default_factory=LoggedResponse)
    started_at: float = field(default_factory=time.monotonic)
    state: ExchangeState = ExchangeState.IDLE
    response_id: str | None = None
    raw_usage: dict[str, Any] | None = None
    usage: TokenUsage | None = None
    scratch: dict[str, Any] = field(default_factory=lambda: dict[str, Any]())

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000
