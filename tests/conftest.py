"""Shared fixtures: fake litellm streams and common configuration."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from modelmux.core.audit.log import AuditLog
from modelmux.core.cache.metadata import CacheRegistry
from modelmux.core.interface.config import ModelConfig, ProviderConfig


class ChunkBuilder:
    """Builds dict chunks shaped like litellm's streaming ``ModelResponse``."""

    def __init__(self, response_id: str = "chatcmpl-test") -> None:
        self.response_id = response_id

    def _chunk(self, delta: dict[str, Any], finish_reason: str | None = None) -> dict[str, Any]:
        return {
            "id": self.response_id,
            "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
        }

    def text(self, text: str) -> dict[str, Any]:
        return self._chunk({"content": text})

    def reasoning(self, text: str) -> dict[str, Any]:
        return self._chunk({"reasoning_content": text})

    def tool_call(
        self,
        index: int = 0,
        *,
        call_id: str | None = None,
        name: str | None = None,
        arguments: str = "",
        signature: str | None = None,
    ) -> dict[str, Any]:
        call: dict[str, Any] = {"index": index, "function": {"arguments": arguments}}
        if call_id:
            call["id"] = call_id
        if name:
            call["function"]["name"] = name
        if signature:
            call["provider_specific_fields"] = {"thought_signature": signature}
        return self._chunk({"tool_calls": [call]})

    def finish(self, reason: str = "stop") -> dict[str, Any]:
        return self._chunk({}, finish_reason=reason)

    def usage(self, prompt: int = 10, completion: int = 20, **extra: Any) -> dict[str, Any]:
        return {
            "id": self.response_id,
            "choices": [],
            "usage": {
                "prompt_tokens": prompt,
                "completion_tokens": completion,
                "total_tokens": prompt + completion,
                **extra,
            },
        }


@pytest.fixture
def chunks() -> ChunkBuilder:
    return ChunkBuilder()


@pytest.fixture
def make_stream() -> Callable[..., AsyncIterator[Any]]:
    """Return a factory for async chunk iterators.

    An exception instance among the chunks is raised at that point.
    """

    def _factory(*items: Any) -> AsyncIterator[Any]:
        async def _gen() -> AsyncIterator[Any]:
            for item in items:
                if isinstance(item, BaseException):
                    raise item
                yield item

        return _gen()

    return _factory


@pytest.fixture
def caches() -> CacheRegistry:
    return CacheRegistry()


@pytest.fixture
def audit() -> AuditLog:
    return AuditLog()


@pytest.fixture
def openai_provider() -> ProviderConfig:
    return ProviderConfig(key="openai", kind="openai", api_key="sk-test")


@pytest.fixture
def gpt_model() -> ModelConfig:
    return ModelConfig(id="gpt-4o", provider="openai", context_length=128_000)


@pytest.fixture
def acompletion() -> Iterator[AsyncMock]:
    """Patch ``litellm.acompletion`` as seen by the wire adapter."""
    with patch("modelmux.core.streaming.wire.litellm") as mocked:
        mocked.acompletion = AsyncMock()
        yield mocked.acompletion


GATEWAY_YAML = """\
version: "1"
providers:
  - key: openai
    kind: openai
    api_key: sk-test
  - key: local
    kind: openai-compatible
    base_url: http://localhost:11434/v1
models:
  - id: gpt-4o
    provider: openai
    display_name: GPT-4o
    context_length: 128000
  - id: llama3
    provider: local
    config_id: fast
    temperature: 0.1
retry:
  max_attempts: 2
"""


@pytest.fixture
def gateway_yaml(tmp_path: Path) -> Path:
    """A gateway config with one OpenAI and one local model."""
    path = tmp_path / "gateway.yaml"
    path.write_text(GATEWAY_YAML)
    return path
