"""Audit record shapes exposed to console/inspection collaborators."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from modelmux.core.interface.config import ModelConfig  # noqa: TC001
from modelmux.core.interface.models import (  # noqa: TC001
    HostMessage,
    TextPart,
    ThinkingPart,
    TokenUsage,
    ToolCallPart,
    ToolDefinition,
)
from modelmux.core.interface.provider_models import ProviderMessage, ProviderTool  # noqa: TC001


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoggedRequest(BaseModel):
    """What the host asked for and what was actually sent."""

    messages: list[HostMessage] = Field(default_factory=lambda: list[HostMessage]())
    tools: list[ToolDefinition] = Field(default_factory=lambda: list[ToolDefinition]())
    model: ModelConfig | None = Field(default=None, serialization_alias="model_config")
    provider_messages: list[ProviderMessage] = Field(default_factory=lambda: list[ProviderMessage]())
    provider_tools: dict[str, ProviderTool] | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class LoggedResponse(BaseModel):
    """Accumulated response parts plus usage and throughput."""

    text_parts: list[TextPart] = Field(default_factory=lambda: list[TextPart]())
    thinking_parts: list[ThinkingPart] = Field(default_factory=lambda: list[ThinkingPart]())
    tool_call_parts: list[ToolCallPart] = Field(default_factory=lambda: list[ToolCallPart]())
    usage: TokenUsage | None = None
    duration_ms: float | None = None
    tokens_per_second: float | None = None
    response_id: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def text_content(self) -> str:
        return "".join(p.value for p in self.text_parts)

    @property
    def thinking_content(self) -> str:
        return "".join(p.text for p in self.thinking_parts)


class LoggedInteraction(BaseModel):
    id: str
    request: LoggedRequest | None = None
    response: LoggedResponse | None = None

    def summary(self) -> dict[str, Any]:
        """Compact view for tables and logs."""
        model = self.request.model if self.request else None
        return {
            "id": self.id,
            "model": model.host_id if model else None,
            "messages": len(self.request.messages) if self.request else 0,
            "text": self.response.text_content if self.response else "",
            "tool_calls": len(self.response.tool_call_parts) if self.response else 0,
        }
