"""litellm adapter: renders provider-format requests and adapts stream chunks.

litellm speaks the OpenAI chat format for every backend and translates
per provider internally. This module covers the gap between our
provider-format messages and that shape:

- Anthropic cache breakpoints become ``cache_control`` on content blocks
  and tools.
- Gemini continuation tokens ride on tool calls as
  ``provider_specific_fields.thought_signature``.
- DeepSeek reasoning is replayed as ``reasoning_content`` on assistant
  messages.

On the way back, :class:`StreamAdapter` turns litellm chunks into
:class:`ReasoningDelta`, :class:`TextDelta` and :class:`ToolCallEvent`,
assembling tool-call arguments across deltas.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass, field
from typing import Any

import litellm

from modelmux.core.interface.models import ReasoningDelta, StreamingPart, TextDelta, ToolCallEvent
from modelmux.core.interface.provider_models import (
    ProviderImagePart,
    ProviderMessage,
    ProviderOptions,
    ProviderReasoningPart,
    ProviderTextPart,
    ProviderTool,
    ProviderToolCallPart,
)
from modelmux.core.streaming.context import ModelHandle, WireDialect
from modelmux.core.translation.normalizer import parse_arguments

logger = logging.getLogger(__name__)

SDK_NUM_RETRIES = 3


# ---------------------------------------------------------------------------
# Request rendering
# ---------------------------------------------------------------------------


def _cache_control(options: ProviderOptions | None) -> dict[str, Any] | None:
    if not options:
        return None
    value = options.get("anthropic", {}).get("cache_control")
    return dict(value) if isinstance(value, dict) else None


def _text_block(text: str, options: ProviderOptions | None) -> dict[str, Any]:
    block: dict[str, Any] = {"type": "text", "text": text}
    cache = _cache_control(options)
    if cache:
        block["cache_control"] = cache
    return block


def render_messages(messages: list[ProviderMessage], dialect: WireDialect = "openai") -> list[dict[str, Any]]:
    """Render provider-format messages as litellm (OpenAI-style) dicts."""
    return [_render_message(m, dialect) for m in messages]


def _render_message(message: ProviderMessage, dialect: WireDialect) -> dict[str, Any]:
    if message.role == "system":
        if _cache_control(message.provider_options):
            return {"role": "system", "content": [_text_block(message.text, message.provider_options)]}
        return {"role": "system", "content": message.text}

    if message.role == "tool":
        rendered: dict[str, Any] = {"role": "tool", "tool_call_id": message.tool_call_id}
        if _cache_control(message.provider_options):
            rendered["content"] = [_text_block(message.text, message.provider_options)]
        else:
            rendered["content"] = message.text
        return rendered

    if message.role == "user":
        if isinstance(message.content, str):
            return {"role": "user", "content": message.content}
        blocks: list[dict[str, Any]] = []
        for part in message.content:
            if isinstance(part, ProviderTextPart):
                blocks.append(_text_block(part.text, part.provider_options))
            elif isinstance(part, ProviderImagePart):
                blocks.append(
                    {"type": "image_url", "image_url": {"url": f"data:{part.media_type};base64,{part.image}"}}
                )
            else:
                logger.debug("Dropping %s part from user message", part.type)
        return {"role": "user", "content": blocks}

    return _render_assistant(message, dialect)


def _render_assistant(message: ProviderMessage, dialect: WireDialect) -> dict[str, Any]:
    text_parts: list[str] = []
    reasoning_parts: list[str] = []
    tool_calls: list[dict[str, Any]] = []

    for part in message.parts:
        if isinstance(part, ProviderTextPart):
            text_parts.append(part.text)
        elif isinstance(part, ProviderReasoningPart):
            reasoning_parts.append(part.text)
        elif isinstance(part, ProviderToolCallPart):
            tool_calls.append(_render_tool_call(part, dialect))

    rendered: dict[str, Any] = {"role": "assistant", "content": "".join(text_parts)}
    if tool_calls:
        rendered["tool_calls"] = tool_calls
        if not rendered["content"]:
            rendered["content"] = None
    if reasoning_parts and dialect == "deepseek":
        rendered["reasoning_content"] = "".join(reasoning_parts)
    return rendered


def _render_tool_call(part: ProviderToolCallPart, dialect: WireDialect) -> dict[str, Any]:
    call: dict[str, Any] = {
        "id": part.tool_call_id,
        "type": "function",
        "function": {"name": part.tool_name, "arguments": json.dumps(part.input)},
    }
    if dialect == "google" and part.provider_options:
        signature = part.provider_options.get("google", {}).get("thought_signature")
        if signature:
            call["provider_specific_fields"] = {"thought_signature": signature}
    return call


def render_tools(tools: dict[str, ProviderTool] | None) -> list[dict[str, Any]] | None:
    if not tools:
        return None
    rendered: list[dict[str, Any]] = []
    for name, tool in tools.items():
        entry: dict[str, Any] = {
            "type": "function",
            "function": {
                "name": name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }
        cache = _cache_control(tool.provider_options)
        if cache:
            entry["cache_control"] = cache
        rendered.append(entry)
    return rendered


def build_completion_kwargs(
    handle: ModelHandle,
    messages: list[dict[str, Any]],
    tools: list[dict[str, Any]] | None,
    *,
    temperature: float | None = None,
    top_p: float | None = None,
    max_tokens: int | None = None,
    provider_options: ProviderOptions | None = None,
) -> dict[str, Any]:
    """Assemble ``litellm.acompletion`` keyword arguments.

    Sampling parameters left as ``None`` are omitted so the backend
    applies its own default. Options under the handle's family are
    passed through as top-level keyword arguments.
    """
    kwargs: dict[str, Any] = {
        "model": handle.model,
        "messages": messages,
        "stream": True,
        "stream_options": {"include_usage": True},
        "num_retries": SDK_NUM_RETRIES,
    }
    if handle.api_key:
        kwargs["api_key"] = handle.api_key
    if handle.api_base:
        kwargs["api_base"] = handle.api_base
    if handle.headers:
        kwargs["extra_headers"] = dict(handle.headers)
    if tools:
        kwargs["tools"] = tools
    if temperature is not None:
        kwargs["temperature"] = temperature
    if top_p is not None:
        kwargs["top_p"] = top_p
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens
    if provider_options and handle.options_family:
        for key, value in provider_options.get(handle.options_family, {}).items():
            kwargs.setdefault(key, value)
    return kwargs


async def open_stream(**kwargs: Any) -> AsyncIterator[Any]:
    """Start a streaming completion and return the chunk iterator."""
    logger.debug("litellm.acompletion model=%s messages=%d", kwargs.get("model"), len(kwargs.get("messages", [])))
    stream: Any = await litellm.acompletion(**kwargs)  # pyright: ignore[reportUnknownMemberType]
    return stream


# ---------------------------------------------------------------------------
# Chunk adaptation
# ---------------------------------------------------------------------------


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
    return getattr(obj, name, None)


def _as_dict(obj: Any) -> dict[str, Any] | None:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return dict(obj)  # pyright: ignore[reportUnknownArgumentType]
    dump = getattr(obj, "model_dump", None)
    if callable(dump):
        data: Any = dump()
        return data if isinstance(data, dict) else None  # pyright: ignore[reportUnknownVariableType]
    return None


@dataclass
class _PendingToolCall:
    id: str | None = None
    name: str | None = None
    arguments: list[str] = field(default_factory=lambda: list[str]())
    signature: str | None = None


class StreamAdapter:
    """Turns litellm stream chunks into streaming parts, in order.

    Tool calls are buffered per index until the choice finishes (or the
    stream ends), since their arguments arrive in fragments.
    """

    def __init__(self) -> None:
        self.response_id: str | None = None
        self.usage: dict[str, Any] | None = None
        self.finish_reason: str | None = None
        self._tool_calls: dict[int, _PendingToolCall] = {}

    def feed(self, chunk: Any) -> Iterator[StreamingPart]:
        chunk_id = _get(chunk, "id")
        if chunk_id and self.response_id is None:
            self.response_id = str(chunk_id)

        usage = _as_dict(_get(chunk, "usage"))
        if usage:
            self.usage = usage

        choices: Any = _get(chunk, "choices") or []
        for choice in choices:
            delta = _get(choice, "delta")
            if delta is not None:
                yield from self._feed_delta(delta)
            finish_reason = _get(choice, "finish_reason")
            if finish_reason:
                self.finish_reason = str(finish_reason)
                yield from self.flush()

    def _feed_delta(self, delta: Any) -> Iterator[StreamingPart]:
        reasoning = _get(delta, "reasoning_content")
        if isinstance(reasoning, str) and reasoning:
            yield ReasoningDelta(id=self.response_id or "", text=reasoning)

        content = _get(delta, "content")
        if isinstance(content, str) and content:
            yield TextDelta(text=content)

        for raw in _get(delta, "tool_calls") or []:
            index = _get(raw, "index")
            pending = self._tool_calls.setdefault(int(index or 0), _PendingToolCall())
            if _get(raw, "id"):
                pending.id = str(_get(raw, "id"))
            function = _get(raw, "function")
            if _get(function, "name"):
                pending.name = str(_get(function, "name"))
            arguments = _get(function, "arguments")
            if isinstance(arguments, str) and arguments:
                pending.arguments.append(arguments)
            extra = _get(raw, "provider_specific_fields")
            signature = _get(extra, "thought_signature")
            if signature:
                pending.signature = str(signature)

    def flush(self) -> Iterator[StreamingPart]:
        """Emit every buffered tool call, dropping malformed ones."""
        pending = [self._tool_calls[i] for i in sorted(self._tool_calls)]
        self._tool_calls.clear()
        for call in pending:
            event = self._to_event(call)
            if event is not None:
                yield event

    def _to_event(self, call: _PendingToolCall) -> ToolCallEvent | None:
        if not call.name:
            logger.error("Dropping tool call %s without a name", call.id)
            return None
        raw = "".join(call.arguments)
        try:
            arguments = parse_arguments(raw)
        except ValueError as exc:
            logger.error("Dropping tool call %s (%s): malformed arguments %r: %s", call.id, call.name, raw, exc)
            return None
        metadata = {"google": {"thought_signature": call.signature}} if call.signature else None
        return ToolCallEvent(
            tool_call_id=call.id or f"call_{uuid.uuid4().hex[:24]}",
            tool_name=call.name,
            input=arguments,
            provider_metadata=metadata,
        )

