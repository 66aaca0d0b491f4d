"""Tool-call normalization.

Backend SDKs sometimes deep-parse JSON-looking string arguments, and hosts
hand back tool results in a handful of shapes. These helpers repair the
former and reduce the latter to plain text, which is all backends accept
as tool output.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from modelmux.core.interface.models import DataPart, TextPart, ThinkingPart, ToolCallPart, UnknownPart

logger = logging.getLogger(__name__)

# Tool name -> argument fields the host expects as raw strings.
DEFAULT_STRING_FIELDS: dict[str, tuple[str, ...]] = {
    "create_file": ("content",),
}


def normalize_input(
    tool_name: str,
    tool_input: Any,
    *,
    string_fields: Mapping[str, tuple[str, ...]] | None = None,
) -> Any:
    """Re-serialize structured values found in raw-string argument fields.

    Returns the input unchanged when the tool has no string fields or
    the input is not a mapping. Never mutates the caller's dict.
    """
    if not isinstance(tool_input, Mapping):
        return tool_input

    table = DEFAULT_STRING_FIELDS if string_fields is None else string_fields
    fields = table.get(tool_name, ())
    if not fields:
        return tool_input

    result: dict[str, Any] = dict(tool_input)  # pyright: ignore[reportUnknownArgumentType]
    for field in fields:
        value = result.get(field)
        if isinstance(value, (dict, list)):
            logger.debug("Re-serializing %s.%s to a string", tool_name, field)
            result[field] = json.dumps(value, indent=2)
    return result


def parse_arguments(raw: str | Mapping[str, Any] | None) -> dict[str, Any]:
    """Parse accumulated tool-call arguments into a dict.

    Raises:
        ValueError: If the arguments are not valid JSON or not an object.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    parsed: Any = json.loads(raw)
    if not isinstance(parsed, dict):
        msg = f"tool arguments must be a JSON object, got {type(parsed).__name__}"
        raise ValueError(msg)
    return parsed  # pyright: ignore[reportUnknownVariableType]


# ---------------------------------------------------------------------------
# Result stringification
# ---------------------------------------------------------------------------


def stringify_result(content: Any) -> str:
    """Reduce a tool result payload to text. Never raises.

    Precedence: string passthrough, then a ``value`` field, then a
    ``text`` field, then a JSON dump. Sequences are stringified
    element-wise and joined with newlines; a sequence that contains itself
    is rendered with its repr at the point of the cycle.
    """
    return _stringify(content, frozenset())


def _stringify(content: Any, seen: frozenset[int]) -> str:
    if isinstance(content, str):
        return content
    if content is None or isinstance(content, (bool, int, float)):
        return str(content)
    if isinstance(content, (list, tuple)):
        if id(content) in seen:
            return repr(content)
        inner = seen | {id(content)}
        return "\n".join(_stringify(item, inner) for item in content)  # pyright: ignore[reportUnknownVariableType]

    # Known host parts first
    if isinstance(content, TextPart):
        return content.value
    if isinstance(content, ThinkingPart):
        return content.text
    if isinstance(content, DataPart):
        return f"[{content.mime_type} data, {len(content.data)} bytes]"
    if isinstance(content, (ToolCallPart, UnknownPart)):
        return _dump(content)

    fields = _as_mapping(content)
    if fields is None:
        return _dump(content)
    if "value" in fields:
        return _scalar(fields["value"])
    if "text" in fields:
        text = fields["text"]
        return text if isinstance(text, str) else _dump(text)
    return _dump(fields)


def _as_mapping(obj: Any) -> Mapping[str, Any] | None:
    if isinstance(obj, Mapping):
        return obj  # pyright: ignore[reportUnknownVariableType]
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    try:
        attrs = vars(obj)
    except TypeError:
        return None
    return {k: v for k, v in attrs.items() if not k.startswith("_")}


def _scalar(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple)) or isinstance(value, BaseModel):
        return _dump(value)
    return str(value)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, (bytes, bytearray)):
        return f"<{len(obj)} bytes>"
    msg = f"Object of type {type(obj).__name__} is not JSON serializable"
    raise TypeError(msg)


def _dump(obj: Any) -> str:
    try:
        return json.dumps(obj, indent=2, default=_json_default)
    except (TypeError, ValueError):
        return repr(obj)
