"""Provider-format messages - the intermediate shape handed to a backend SDK.

Host messages are translated into these by the content translator; backend
variants then adjust them (caching breakpoints, turn merging, system
handling) before the wire adapter renders them for litellm.

``provider_options`` is the side channel for backend-specific input data
keyed by backend family, e.g. ``{"anthropic": {"cache_control": {...}}}``
or ``{"google": {"thought_signature": "..."}}``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ProviderOptions = dict[str, dict[str, Any]]


class ProviderTextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str
    provider_options: ProviderOptions | None = None


class ProviderReasoningPart(BaseModel):
    type: Literal["reasoning"] = "reasoning"
    text: str
    provider_options: ProviderOptions | None = None


class ProviderImagePart(BaseModel):
    """Inline image, base64-encoded."""

    type: Literal["image"] = "image"
    image: str
    media_type: str = "image/png"
    provider_options: ProviderOptions | None = None


class ProviderToolCallPart(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    input: dict[str, Any] = Field(default_factory=dict)
    provider_options: ProviderOptions | None = None


ProviderPart = ProviderTextPart | ProviderReasoningPart | ProviderImagePart | ProviderToolCallPart


class ProviderMessage(BaseModel):
    """One message in provider format.

    Roles:
    - system: ``content`` is a string
    - user: string or a list of text/image parts
    - assistant: string or a list of text/reasoning/tool-call parts
    - tool: string content answering ``tool_call_id``
    """

    role: Literal["system", "user", "assistant", "tool"]
    content: str | list[ProviderPart] = ""
    tool_call_id: str | None = None
    tool_name: str | None = None
    provider_options: ProviderOptions | None = None

    @property
    def parts(self) -> list[ProviderPart]:
        """Content as a list, wrapping scalar string content in a text part."""
        if isinstance(self.content, str):
            return [ProviderTextPart(text=self.content)]
        return list(self.content)

    @property
    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "".join(p.text for p in self.content if isinstance(p, ProviderTextPart))


class ProviderTool(BaseModel):
    """A tool definition in provider format, keyed by name in a mapping."""

    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})
    provider_options: ProviderOptions | None = None
