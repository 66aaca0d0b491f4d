"""Tests for litellm request rendering and stream chunk adaptation."""

from __future__ import annotations

import json
import logging
from typing import Any

import pytest

from modelmux.core.interface.models import ReasoningDelta, TextDelta, ToolCallEvent
from modelmux.core.interface.provider_models import (
    ProviderImagePart,
    ProviderMessage,
    ProviderReasoningPart,
    ProviderTextPart,
    ProviderTool,
    ProviderToolCallPart,
)
from modelmux.core.streaming.context import ModelHandle
from modelmux.core.streaming.wire import (
    SDK_NUM_RETRIES,
    StreamAdapter,
    build_completion_kwargs,
    render_messages,
    render_tools,
)

CACHED = {"anthropic": {"cache_control": {"type": "ephemeral"}}}


class TestRenderMessages:
    def test_plain_roles(self) -> None:
        rendered = render_messages(
            [
                ProviderMessage(role="system", content="be brief"),
                ProviderMessage(role="user", content="hi"),
                ProviderMessage(role="tool", content="42", tool_call_id="call_1", tool_name="calc"),
            ]
        )
        assert rendered == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
            {"role": "tool", "tool_call_id": "call_1", "content": "42"},
        ]

    def test_cache_control_on_system_and_tool(self) -> None:
        rendered = render_messages(
            [
                ProviderMessage(role="system", content="rules", provider_options=CACHED),
                ProviderMessage(role="tool", content="out", tool_call_id="c", provider_options=CACHED),
            ],
            "anthropic",
        )
        assert rendered[0]["content"] == [
            {"type": "text", "text": "rules", "cache_control": {"type": "ephemeral"}}
        ]
        assert rendered[1]["content"][0]["cache_control"] == {"type": "ephemeral"}

    def test_structured_user_with_image(self) -> None:
        message = ProviderMessage(
            role="user",
            content=[
                ProviderTextPart(text="what is this?", provider_options=CACHED),
                ProviderImagePart(image="aGVsbG8=", media_type="image/jpeg"),
            ],
        )
        rendered = render_messages([message])[0]
        assert rendered["content"] == [
            {"type": "text", "text": "what is this?", "cache_control": {"type": "ephemeral"}},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,aGVsbG8="}},
        ]

    def test_assistant_tool_calls_without_text(self) -> None:
        message = ProviderMessage(
            role="assistant",
            content=[ProviderToolCallPart(tool_call_id="call_1", tool_name="search", input={"q": "x"})],
        )
        rendered = render_messages([message])[0]
        assert rendered["content"] is None
        assert rendered["tool_calls"] == [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "search", "arguments": json.dumps({"q": "x"})},
            }
        ]

    def test_assistant_text_and_tool_calls(self) -> None:
        message = ProviderMessage(
            role="assistant",
            content=[
                ProviderTextPart(text="Let me look."),
                ProviderToolCallPart(tool_call_id="call_1", tool_name="search"),
            ],
        )
        rendered = render_messages([message])[0]
        assert rendered["content"] == "Let me look."
        assert len(rendered["tool_calls"]) == 1

    def test_google_thought_signature(self) -> None:
        part = ProviderToolCallPart(
            tool_call_id="call_1",
            tool_name="search",
            provider_options={"google": {"thought_signature": "sig-abc"}},
        )
        message = ProviderMessage(role="assistant", content=[part])

        google = render_messages([message], "google")[0]
        assert google["tool_calls"][0]["provider_specific_fields"] == {"thought_signature": "sig-abc"}

        openai = render_messages([message], "openai")[0]
        assert "provider_specific_fields" not in openai["tool_calls"][0]

    def test_deepseek_reasoning_content(self) -> None:
        message = ProviderMessage(
            role="assistant",
            content=[ProviderReasoningPart(text="thinking..."), ProviderTextPart(text="answer")],
        )
        assert render_messages([message], "deepseek")[0]["reasoning_content"] == "thinking..."
        assert "reasoning_content" not in render_messages([message], "openai")[0]


class TestRenderTools:
    def test_none_and_empty(self) -> None:
        assert render_tools(None) is None
        assert render_tools({}) is None

    def test_function_shape(self) -> None:
        schema = {"type": "object", "properties": {"q": {"type": "string"}}}
        rendered = render_tools(
            {
                "search": ProviderTool(description="Search", input_schema=schema),
                "fetch": ProviderTool(provider_options=CACHED),
            }
        )
        assert rendered is not None
        assert rendered[0] == {
            "type": "function",
            "function": {"name": "search", "description": "Search", "parameters": schema},
        }
        assert rendered[1]["cache_control"] == {"type": "ephemeral"}


class TestBuildCompletionKwargs:
    def test_minimal(self) -> None:
        kwargs = build_completion_kwargs(ModelHandle(model="openai/gpt-4o"), [{"role": "user", "content": "hi"}], None)
        assert kwargs == {
            "model": "openai/gpt-4o",
            "messages": [{"role": "user", "content": "hi"}],
            "stream": True,
            "stream_options": {"include_usage": True},
            "num_retries": SDK_NUM_RETRIES,
        }

    def test_full(self) -> None:
        handle = ModelHandle(
            model="anthropic/claude",
            api_key="k",
            api_base="https://proxy.example",
            headers={"X-Trace": "1"},
            options_family="anthropic",
        )
        kwargs = build_completion_kwargs(
            handle,
            [],
            [{"type": "function"}],
            temperature=0.2,
            top_p=0.9,
            max_tokens=100,
            provider_options={"anthropic": {"thinking": {"type": "enabled"}}, "openai": {"ignored": True}},
        )
        assert kwargs["api_key"] == "k"
        assert kwargs["api_base"] == "https://proxy.example"
        assert kwargs["extra_headers"] == {"X-Trace": "1"}
        assert kwargs["tools"] == [{"type": "function"}]
        assert (kwargs["temperature"], kwargs["top_p"], kwargs["max_tokens"]) == (0.2, 0.9, 100)
        assert kwargs["thinking"] == {"type": "enabled"}
        assert "ignored" not in kwargs

    def test_family_options_do_not_override(self) -> None:
        handle = ModelHandle(model="m", options_family="openai")
        kwargs = build_completion_kwargs(handle, [], None, provider_options={"openai": {"model": "other"}})
        assert kwargs["model"] == "m"


def _feed_all(adapter: StreamAdapter, items: list[dict[str, Any]]) -> list[Any]:
    parts: list[Any] = []
    for item in items:
        parts.extend(adapter.feed(item))
    parts.extend(adapter.flush())
    return parts


class TestStreamAdapter:
    def test_text_and_reasoning(self, chunks: Any) -> None:
        adapter = StreamAdapter()
        parts = _feed_all(adapter, [chunks.reasoning("hmm"), chunks.text("Hello"), chunks.text(" world")])
        assert parts == [
            ReasoningDelta(id="chatcmpl-test", text="hmm"),
            TextDelta(text="Hello"),
            TextDelta(text=" world"),
        ]
        assert adapter.response_id == "chatcmpl-test"

    def test_tool_arguments_across_chunks(self, chunks: Any) -> None:
        adapter = StreamAdapter()
        parts = _feed_all(
            adapter,
            [
                chunks.tool_call(0, call_id="call_1", name="search", arguments='{"q": '),
                chunks.tool_call(0, arguments='"cats"}'),
                chunks.finish("tool_calls"),
            ],
        )
        assert parts == [ToolCallEvent(tool_call_id="call_1", tool_name="search", input={"q": "cats"})]
        assert adapter.finish_reason == "tool_calls"

    def test_parallel_calls_in_index_order(self, chunks: Any) -> None:
        adapter = StreamAdapter()
        parts = _feed_all(
            adapter,
            [
                chunks.tool_call(1, call_id="b", name="second", arguments="{}"),
                chunks.tool_call(0, call_id="a", name="first", arguments="{}"),
            ],
        )
        assert [p.tool_call_id for p in parts] == ["a", "b"]

    def test_malformed_call_dropped(self, chunks: Any, caplog: pytest.LogCaptureFixture) -> None:
        adapter = StreamAdapter()
        with caplog.at_level(logging.ERROR):
            parts = _feed_all(
                adapter,
                [
                    chunks.tool_call(0, call_id="bad", name="search", arguments="{not json"),
                    chunks.tool_call(1, call_id="good", name="fetch", arguments='{"url": "x"}'),
                    chunks.finish("tool_calls"),
                ],
            )
        assert [p.tool_call_id for p in parts] == ["good"]
        assert "malformed arguments" in caplog.text

    def test_nameless_call_dropped(self, chunks: Any) -> None:
        adapter = StreamAdapter()
        assert _feed_all(adapter, [chunks.tool_call(0, call_id="x", arguments="{}")]) == []

    def test_missing_id_generated(self, chunks: Any) -> None:
        adapter = StreamAdapter()
        parts = _feed_all(adapter, [chunks.tool_call(0, name="search")])
        assert parts[0].tool_call_id.startswith("call_")
        assert parts[0].input == {}

    def test_signature_becomes_metadata(self, chunks: Any) -> None:
        adapter = StreamAdapter()
        parts = _feed_all(adapter, [chunks.tool_call(0, call_id="c", name="s", arguments="{}", signature="sig")])
        assert parts[0].provider_metadata == {"google": {"thought_signature": "sig"}}

    def test_usage_captured(self, chunks: Any) -> None:
        adapter = StreamAdapter()
        _feed_all(adapter, [chunks.text("x"), chunks.finish(), chunks.usage(5, 7)])
        assert adapter.usage == {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12}

    def test_object_chunks(self) -> None:
        class Obj:
            def __init__(self, **kw: Any) -> None:
                self.__dict__.update(kw)

        chunk = Obj(id="resp_1", usage=None, choices=[Obj(delta=Obj(content="hi"), finish_reason=None)])
        adapter = StreamAdapter()
        assert list(adapter.feed(chunk)) == [TextDelta(text="hi")]
        assert adapter.response_id == "resp_1"
