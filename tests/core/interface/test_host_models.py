"""Tests for the host message vocabulary."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from modelmux.core.interface.models import (
    ERROR_MARKER_PREFIX,
    DataPart,
    HostMessage,
    HostPart,
    TextPart,
    ThinkingPart,
    TokenUsage,
    ToolCallPart,
    ToolDefinition,
    ToolResultPart,
)


class TestHostMessage:
    def test_user_helper(self) -> None:
        msg = HostMessage.user("hi")
        assert msg.role == "user"
        assert msg.text == "hi"

    def test_assistant_with_tool_calls(self) -> None:
        call = ToolCallPart(call_id="c1", name="search", input={"q": "x"})
        msg = HostMessage.assistant("Looking", tool_calls=[call])
        assert msg.text == "Looking"
        assert msg.tool_calls == [call]

    def test_assistant_without_text_has_no_text_part(self) -> None:
        msg = HostMessage.assistant(tool_calls=[ToolCallPart(call_id="c1", name="t")])
        assert not any(isinstance(p, TextPart) for p in msg.content)

    def test_tool_result_helper(self) -> None:
        msg = HostMessage.tool_result("c1", "42", name="calc")
        assert msg.role == "user"
        assert msg.tool_results[0].call_id == "c1"
        assert msg.tool_results[0].name == "calc"

    def test_invalid_role(self) -> None:
        with pytest.raises(ValidationError):
            HostMessage(role="robot", content=[])  # type: ignore[arg-type]

    def test_parts_discriminated_from_dicts(self) -> None:
        parts = TypeAdapter(list[HostPart]).validate_python(
            [
                {"type": "text", "value": "a"},
                {"type": "tool-result", "call_id": "c1", "content": ["ok"]},
            ]
        )
        assert isinstance(parts[0], TextPart)
        assert isinstance(parts[1], ToolResultPart)


class TestThinkingPart:
    def test_text_joins_list_value(self) -> None:
        assert ThinkingPart(value=["a", "b"]).text == "ab"

    def test_error_marker(self) -> None:
        part = ThinkingPart.error("boom")
        assert part.is_error_marker
        assert part.id is not None and part.id.startswith(ERROR_MARKER_PREFIX)
        assert part.text == "boom"

    def test_plain_thinking_is_not_marker(self) -> None:
        assert not ThinkingPart(value="x", id="r1").is_error_marker
        assert not ThinkingPart(value="x").is_error_marker


class TestDataPart:
    def test_json_round_trip_uses_base64(self) -> None:
        part = DataPart(mime_type="image/png", data=b"\x89PNG")
        restored = DataPart.model_validate_json(part.model_dump_json())
        assert restored.data == b"\x89PNG"


class TestToolDefinition:
    def test_default_schema(self) -> None:
        tool = ToolDefinition(name="noop")
        assert tool.schema_or_default == {"type": "object", "properties": {}}

    def test_explicit_schema(self) -> None:
        schema = {"type": "object", "properties": {"q": {"type": "string"}}}
        assert ToolDefinition(name="s", input_schema=schema).schema_or_default is schema


class TestTokenUsage:
    def test_from_counts(self) -> None:
        usage = TokenUsage.from_counts(10, 5, cached_input_tokens=3)
        assert usage.total_tokens == 15
        assert usage.cached_input_tokens == 3
