"""Provider-format message transforms shared by backend variants.

All functions return new lists and leave their inputs untouched.
"""

from __future__ import annotations

import copy
from typing import Any, Literal

from modelmux.core.interface.provider_models import (
    ProviderMessage,
    ProviderOptions,
    ProviderPart,
    ProviderTextPart,
    ProviderTool,
)

SystemMode = Literal["message", "fold", "drop"]

EPHEMERAL_CACHE: dict[str, Any] = {"cache_control": {"type": "ephemeral"}}


def with_options(existing: ProviderOptions | None, family: str, values: dict[str, Any]) -> ProviderOptions:
    """Merge ``values`` into ``existing[family]`` without mutating either."""
    merged: ProviderOptions = {k: dict(v) for k, v in (existing or {}).items()}
    merged.setdefault(family, {}).update(copy.deepcopy(values))
    return merged


# ---------------------------------------------------------------------------
# System handling
# ---------------------------------------------------------------------------


def drop_system_messages(messages: list[ProviderMessage]) -> list[ProviderMessage]:
    return [m for m in messages if m.role != "system"]


def fold_system_messages(messages: list[ProviderMessage]) -> list[ProviderMessage]:
    """Prepend all system text to the first user turn.

    A user turn is inserted at the front when none exists.
    """
    instructions = "\n\n".join(m.text for m in messages if m.role == "system" and m.text)
    rest = drop_system_messages(messages)
    if not instructions:
        return rest

    for index, message in enumerate(rest):
        if message.role != "user":
            continue
        if isinstance(message.content, str):
            content: str | list[ProviderPart] = f"{instructions}\n\n{message.content}" if message.content else instructions
        else:
            content = [ProviderTextPart(text=instructions), *message.content]
        rest[index] = message.model_copy(update={"content": content})
        return rest

    return [ProviderMessage(role="user", content=instructions), *rest]


def apply_system_mode(messages: list[ProviderMessage], mode: SystemMode) -> list[ProviderMessage]:
    if mode == "fold":
        return fold_system_messages(messages)
    if mode == "drop":
        return drop_system_messages(messages)
    return list(messages)


# ---------------------------------------------------------------------------
# Turn merging
# ---------------------------------------------------------------------------


def merge_consecutive_user_messages(messages: list[ProviderMessage]) -> list[ProviderMessage]:
    """Collapse runs of ``user`` messages into one.

    String contents are joined with a newline; structured contents are
    concatenated part by part.
    """
    merged: list[ProviderMessage] = []
    for message in messages:
        if message.role == "user" and merged and merged[-1].role == "user":
            prev = merged[-1]
            if isinstance(prev.content, str) and isinstance(message.content, str):
                content: str | list[ProviderPart] = f"{prev.content}\n{message.content}"
            else:
                content = [*prev.parts, *message.parts]
            merged[-1] = prev.model_copy(update={"content": content})
        else:
            merged.append(message)
    return merged


# ---------------------------------------------------------------------------
# Anthropic prompt-cache breakpoints (at most 4 per request)
# ---------------------------------------------------------------------------


def add_cache_control_to_last_system_message(messages: list[ProviderMessage]) -> list[ProviderMessage]:
    result = list(messages)
    for index in range(len(result) - 1, -1, -1):
        message = result[index]
        if message.role == "system":
            options = with_options(message.provider_options, "anthropic", EPHEMERAL_CACHE)
            result[index] = message.model_copy(update={"provider_options": options})
            break
    return result


def add_cache_control_to_recent_user_messages(messages: list[ProviderMessage]) -> list[ProviderMessage]:
    """Mark the two most recent user/tool messages as cache breakpoints.

    The last one pre-caches for the next turn and the one before marks the
    boundary for this turn. Inside structured content the last text part
    and the last part overall carry the marker.
    """
    result = list(messages)
    targets = [i for i, m in enumerate(result) if m.role in ("user", "tool")][-2:]

    for index in targets:
        message = result[index]
        if message.role == "tool":
            options = with_options(message.provider_options, "anthropic", EPHEMERAL_CACHE)
            result[index] = message.model_copy(update={"provider_options": options})
            continue

        if isinstance(message.content, str):
            part = ProviderTextPart(
                text=message.content,
                provider_options=with_options(None, "anthropic", EPHEMERAL_CACHE),
            )
            result[index] = message.model_copy(update={"content": [part]})
            continue

        parts = list(message.content)
        if not parts:
            continue
        last_text = max((i for i, p in enumerate(parts) if isinstance(p, ProviderTextPart)), default=-1)
        for i in {last_text, len(parts) - 1}:
            if i < 0:
                continue
            options = with_options(parts[i].provider_options, "anthropic", EPHEMERAL_CACHE)
            parts[i] = parts[i].model_copy(update={"provider_options": options})
        result[index] = message.model_copy(update={"content": parts})

    return result


def add_cache_control_to_last_tool(tools: dict[str, ProviderTool] | None) -> dict[str, ProviderTool] | None:
    if not tools:
        return tools
    result = dict(tools)
    last = list(result)[-1]
    options = with_options(result[last].provider_options, "anthropic", EPHEMERAL_CACHE)
    result[last] = result[last].model_copy(update={"provider_options": options})
    return result
