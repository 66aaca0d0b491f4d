"""Content translator - host messages to provider format and back.

Stateless functions. The only cross-turn state they touch is the
``toolCallMetadata`` cache, which is read (never deleted) so continuation
tokens survive repeated replay of the same history.

Key rules:
- A user turn's tool results become separate ``tool`` messages placed
  before any remaining user content.
- Thinking parts tagged with the error marker are dropped.
- Content collapses to a bare string only when it is a single text part.
- Unknown parts fall back to a JSON text rendering instead of vanishing.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from typing import TYPE_CHECKING, Any

from modelmux.core.errors import PairingError, ToolValidationError
from modelmux.core.interface.models import (
    DataPart,
    HostMessage,
    HostPart,
    ReasoningDelta,
    StreamingPart,
    TextDelta,
    TextPart,
    ThinkingPart,
    ToolCallEvent,
    ToolCallPart,
    ToolDefinition,
    ToolResultPart,
    UnknownPart,
)
from modelmux.core.interface.provider_models import (
    ProviderImagePart,
    ProviderMessage,
    ProviderOptions,
    ProviderPart,
    ProviderReasoningPart,
    ProviderTextPart,
    ProviderTool,
    ProviderToolCallPart,
)
from modelmux.core.translation.normalizer import normalize_input, stringify_result

if TYPE_CHECKING:
    from modelmux.core.cache.metadata import MetadataCache

logger = logging.getLogger(__name__)

TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

TOOL_CALL_METADATA = "toolCallMetadata"


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


def validate_tool(tool: ToolDefinition) -> dict[str, Any]:
    """Check a tool's name and sanitize its schema, returning the schema to send.

    A schema without ``type`` is treated as an object schema. Any other
    malformed schema is replaced by an empty object schema with a warning.

    Raises:
        ToolValidationError: On an invalid name.
    """
    if not TOOL_NAME_PATTERN.match(tool.name):
        raise ToolValidationError(tool.name, "name must match [a-zA-Z0-9_-]{1,64}")

    schema: Any = tool.input_schema
    if schema is None:
        return tool.schema_or_default
    if not isinstance(schema, dict):
        logger.warning("Tool %r: input schema is not a JSON object, sending an empty object schema", tool.name)
        return {"type": "object", "properties": {}}
    schema_type = schema.get("type", "object")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
    if schema_type != "object":
        logger.warning(
            "Tool %r: input schema type must be 'object', got %r; sending an empty object schema",
            tool.name,
            schema_type,
        )
        return {"type": "object", "properties": {}}
    if "type" not in schema:
        return {"type": "object", "properties": {}, **schema}
    return schema  # pyright: ignore[reportUnknownVariableType]


def tools_to_provider(tools: list[ToolDefinition] | None) -> dict[str, ProviderTool] | None:
    """Validate host tool definitions and key them by name.

    Returns ``None`` when there are no tools, matching backends that
    reject an empty tool list.
    """
    if not tools:
        return None
    result: dict[str, ProviderTool] = {}
    for tool in tools:
        schema = validate_tool(tool)
        if tool.name in result:
            raise ToolValidationError(tool.name, "duplicate tool name")
        result[tool.name] = ProviderTool(description=tool.description, input_schema=schema)
    logger.debug("Converted %d tool definition(s)", len(result))
    return result


# ---------------------------------------------------------------------------
# Host -> provider
# ---------------------------------------------------------------------------


def to_provider(
    messages: list[HostMessage],
    *,
    tool_metadata: MetadataCache | None = None,
) -> list[ProviderMessage]:
    """Translate a host conversation into provider-format messages.

    Raises:
        PairingError: If a tool result answers an unknown or already
            answered call id.
    """
    result: list[ProviderMessage] = []
    called: set[str] = set()
    answered: set[str] = set()

    for message in messages:
        if message.role == "system":
            system = _system_to_provider(message)
            if system is not None:
                result.append(system)
        elif message.role == "assistant":
            result.append(_assistant_to_provider(message, called, tool_metadata))
        else:
            result.extend(_user_to_provider(message, called, answered))

    logger.debug("Translated %d host message(s) into %d provider message(s)", len(messages), len(result))
    return result


def _system_to_provider(message: HostMessage) -> ProviderMessage | None:
    for part in message.content:
        if isinstance(part, TextPart):
            return ProviderMessage(role="system", content=part.value)
    logger.debug("Skipping system message without text content")
    return None


def _user_to_provider(
    message: HostMessage,
    called: set[str],
    answered: set[str],
) -> list[ProviderMessage]:
    out: list[ProviderMessage] = []
    parts: list[ProviderPart] = []

    for part in message.content:
        if isinstance(part, ToolResultPart):
            _check_pairing(part.call_id, called, answered)
            answered.add(part.call_id)
            out.append(
                ProviderMessage(
                    role="tool",
                    content=stringify_result(part.content),
                    tool_call_id=part.call_id,
                    tool_name=part.name or "unknown",
                )
            )
        elif isinstance(part, TextPart):
            parts.append(ProviderTextPart(text=part.value))
        elif isinstance(part, DataPart):
            parts.append(_data_to_provider(part))
        else:
            parts.append(ProviderTextPart(text=_fallback_text(part)))

    if parts or not out:
        out.append(ProviderMessage(role="user", content=_collapse(parts)))
    return out


def _assistant_to_provider(
    message: HostMessage,
    called: set[str],
    tool_metadata: MetadataCache | None,
) -> ProviderMessage:
    parts: list[ProviderPart] = []

    for part in message.content:
        if isinstance(part, TextPart):
            parts.append(ProviderTextPart(text=part.value))
        elif isinstance(part, ThinkingPart):
            if part.is_error_marker:
                continue
            parts.append(ProviderReasoningPart(text=part.text))
        elif isinstance(part, ToolCallPart):
            called.add(part.call_id)
            parts.append(
                ProviderToolCallPart(
                    tool_call_id=part.call_id,
                    tool_name=part.name,
                    input=part.input,
                    provider_options=_lookup_tool_metadata(tool_metadata, part.call_id),
                )
            )
        else:
            parts.append(ProviderTextPart(text=_fallback_text(part)))

    return ProviderMessage(role="assistant", content=_collapse(parts))


def _check_pairing(call_id: str, called: set[str], answered: set[str]) -> None:
    if call_id in answered:
        raise PairingError(call_id, "tool call already has a result")
    if call_id not in called:
        raise PairingError(call_id, "no preceding tool call with this id")


def _lookup_tool_metadata(cache: MetadataCache | None, call_id: str) -> ProviderOptions | None:
    if cache is None:
        return None
    entry = cache.get(call_id)
    if not isinstance(entry, dict):
        return None
    metadata = entry.get("provider_metadata")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
    if metadata:
        logger.debug("Attaching cached provider metadata to tool call %s", call_id)
        return metadata  # pyright: ignore[reportUnknownVariableType]
    return None


def _collapse(parts: list[ProviderPart]) -> str | list[ProviderPart]:
    if not parts:
        return ""
    if len(parts) == 1 and isinstance(parts[0], ProviderTextPart) and parts[0].provider_options is None:
        return parts[0].text
    return parts


def _data_to_provider(part: DataPart) -> ProviderPart:
    if part.mime_type.startswith("image/"):
        return ProviderImagePart(
            image=base64.b64encode(part.data).decode("ascii"),
            media_type=part.mime_type,
        )
    logger.debug("Sending non-image data part (%s) as a text placeholder", part.mime_type)
    return ProviderTextPart(text=stringify_result(part))


def _fallback_text(part: HostPart) -> str:
    if isinstance(part, UnknownPart):
        logger.warning("Unknown content part kind %r, sending as text", part.kind)
        return json.dumps({"type": part.kind, "payload": part.payload}, default=str)
    return stringify_result(part)


# ---------------------------------------------------------------------------
# Provider -> host
# ---------------------------------------------------------------------------


def to_host(part: StreamingPart) -> HostPart | None:
    """Convert one streamed backend part into a host part.

    Empty text and reasoning deltas yield ``None``.
    """
    if isinstance(part, TextDelta):
        return TextPart(value=part.text) if part.text else None
    if isinstance(part, ReasoningDelta):
        return ThinkingPart(value=part.text, id=part.id or None) if part.text else None
    if isinstance(part, ToolCallEvent):
        return ToolCallPart(
            call_id=part.tool_call_id,
            name=part.tool_name,
            input=normalize_input(part.tool_name, part.input),
        )
    return None


def messages_to_host(messages: list[ProviderMessage]) -> list[HostMessage]:
    """Translate provider-format history back into host messages.

    ``tool`` messages become user turns carrying a single tool result.
    """
    result: list[HostMessage] = []
    for message in messages:
        if message.role == "tool":
            result.append(
                HostMessage(
                    role="user",
                    content=[
                        ToolResultPart(
                            call_id=message.tool_call_id or "",
                            name=message.tool_name,
                            content=[TextPart(value=message.text)],
                        )
                    ],
                )
            )
            continue

        content: list[HostPart] = []
        for part in message.parts:
            if isinstance(part, ProviderTextPart):
                content.append(TextPart(value=part.text))
            elif isinstance(part, ProviderReasoningPart):
                content.append(ThinkingPart(value=part.text))
            elif isinstance(part, ProviderToolCallPart):
                content.append(ToolCallPart(call_id=part.tool_call_id, name=part.tool_name, input=part.input))
            else:
                content.append(DataPart(mime_type=part.media_type, data=base64.b64decode(part.image)))
        result.append(HostMessage(role=message.role, content=content))
    return result
