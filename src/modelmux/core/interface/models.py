"""Host message vocabulary - the fixed conversation format the host speaks.

The host never sees backend-specific shapes. Every backend response is
reduced to the streaming parts at the bottom of this module, and every
request starts from :class:`HostMessage` instances.
"""

from __future__ import annotations

from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# Thinking parts whose id starts with this prefix only exist to show a local
# error banner in the host transcript. They are never replayed to a backend.
ERROR_MARKER_PREFIX = "modelmux-error"

# ---------------------------------------------------------------------------
# Content Parts
# ---------------------------------------------------------------------------


class TextPart(BaseModel):
    """Plain text content part."""

    type: Literal["text"] = "text"
    value: str


class ThinkingPart(BaseModel):
    """Opaque reasoning trace emitted by a backend."""

    type: Literal["thinking"] = "thinking"
    value: str | list[str]
    id: str | None = None

    @property
    def text(self) -> str:
        if isinstance(self.value, list):
            return "".join(self.value)
        return self.value

    @property
    def is_error_marker(self) -> bool:
        return bool(self.id) and str(self.id).startswith(ERROR_MARKER_PREFIX)

    @classmethod
    def error(cls, message: str) -> ThinkingPart:
        """Create a transient error banner that the translator will drop."""
        return cls(value=message, id=f"{ERROR_MARKER_PREFIX}:{uuid4().hex[:12]}")


class ToolCallPart(BaseModel):
    """A tool invocation requested by the assistant."""

    type: Literal["tool-call"] = "tool-call"
    call_id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultPart(BaseModel):
    """The host's answer to an earlier :class:`ToolCallPart`."""

    type: Literal["tool-result"] = "tool-result"
    call_id: str
    name: str | None = None
    content: list[Any] = Field(default_factory=list)


class DataPart(BaseModel):
    """Binary payload; only image input is forwarded to backends."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    type: Literal["data"] = "data"
    mime_type: str
    data: bytes


class UnknownPart(BaseModel):
    """Fallback arm for part kinds this bridge does not understand."""

    type: Literal["unknown"] = "unknown"
    kind: str = "unknown"
    payload: Any = None


HostPart = TextPart | ThinkingPart | ToolCallPart | ToolResultPart | DataPart | UnknownPart


# ---------------------------------------------------------------------------
# Host Message
# ---------------------------------------------------------------------------


class HostMessage(BaseModel):
    """A single message in the host's conversation history."""

    role: Literal["system", "user", "assistant", "tool"]
    content: list[HostPart] = []
    name: str | None = None

    @property
    def text(self) -> str:
        """Concatenated text of every :class:`TextPart`."""
        return "".join(part.value for part in self.content if isinstance(part, TextPart))

    @property
    def tool_calls(self) -> list[ToolCallPart]:
        return [part for part in self.content if isinstance(part, ToolCallPart)]

    @property
    def tool_results(self) -> list[ToolResultPart]:
        return [part for part in self.content if isinstance(part, ToolResultPart)]

    @classmethod
    def system(cls, text: str) -> HostMessage:
        parts: list[HostPart] = [TextPart(value=text)]
        return cls(role="system", content=parts)

    @classmethod
    def user(cls, text: str) -> HostMessage:
        parts: list[HostPart] = [TextPart(value=text)]
        return cls(role="user", content=parts)

    @classmethod
    def assistant(
        cls,
        text: str = "",
        tool_calls: list[ToolCallPart] | None = None,
    ) -> HostMessage:
        parts: list[HostPart] = [TextPart(value=text)] if text else []
        parts.extend(tool_calls or [])
        return cls(role="assistant", content=parts)

    @classmethod
    def tool_result(cls, call_id: str, text: str, name: str | None = None) -> HostMessage:
        """A user turn answering a single tool call with text output."""
        parts: list[HostPart] = [
            ToolResultPart(call_id=call_id, name=name, content=[TextPart(value=text)])
        ]
        return cls(role="user", content=parts)


# ---------------------------------------------------------------------------
# Tool Definitions
# ---------------------------------------------------------------------------


class ToolDefinition(BaseModel):
    """A tool the host offers to the model."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] | None = None

    @property
    def schema_or_default(self) -> dict[str, Any]:
        if self.input_schema is None:
            return {"type": "object", "properties": {}}
        return self.input_schema


# ---------------------------------------------------------------------------
# Streaming Parts (backend -> core, in receipt order)
# ---------------------------------------------------------------------------


class ReasoningDelta(BaseModel):
    type: Literal["reasoning-delta"] = "reasoning-delta"
    id: str = ""
    text: str


class TextDelta(BaseModel):
    type: Literal["text-delta"] = "text-delta"
    text: str


class ToolCallEvent(BaseModel):
    """A complete tool call assembled from the backend stream."""

    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    input: dict[str, Any] = Field(default_factory=dict)
    provider_metadata: dict[str, dict[str, Any]] | None = None


StreamingPart = ReasoningDelta | TextDelta | ToolCallEvent


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------


class TokenUsage(BaseModel):
    """Normalized token usage for one exchange."""

    input_tokens: int = 0
    output_tokens: int = 0
    cached_input_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(cls, input_tokens: int, output_tokens: int, cached_input_tokens: int = 0) -> TokenUsage:
        return cls(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cached_input_tokens=cached_input_tokens,
            total_tokens=input_tokens + output_tokens,
        )
