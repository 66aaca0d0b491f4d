"""Tests for the Gateway entry point."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import pytest

from modelmux.core.errors import ConfigurationError, ExchangeFailedError
from modelmux.core.interface.host import CollectingProgress, InMemorySecretStore, api_key_secret_name
from modelmux.core.interface.models import HostMessage, TextPart, ThinkingPart
from modelmux.core.translation.translator import TOOL_CALL_METADATA
from modelmux.sdk.gateway import Gateway
from modelmux.sdk.models import GatewaySettings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path
    from unittest.mock import AsyncMock


class RecordingNotifier:
    def __init__(self) -> None:
        self.errors: list[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def info(self, message: str) -> None:
        pass


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def gateway(gateway_yaml: Path, notifier: RecordingNotifier) -> Gateway:
    return Gateway.from_yaml(gateway_yaml, notifier=notifier)


class TestResolveModel:
    @pytest.mark.parametrize(
        ("model_id", "expected"),
        [
            ("openai/gpt-4o", "openai/gpt-4o"),
            ("gpt-4o", "openai/gpt-4o"),
            ("OpenAI/gpt-4o", "openai/gpt-4o"),
            ("local/llama3::fast", "local/llama3::fast"),
            ("llama3::fast", "local/llama3::fast"),
        ],
    )
    def test_resolves(self, gateway: Gateway, model_id: str, expected: str) -> None:
        assert gateway.resolve_model(model_id).host_id == expected

    @pytest.mark.parametrize("model_id", ["missing", "llama3", "local/gpt-4o", "gpt-4o::other"])
    def test_unknown(self, gateway: Gateway, model_id: str) -> None:
        with pytest.raises(ConfigurationError, match="Unknown model"):
            gateway.resolve_model(model_id)

    def test_list_models(self, gateway: Gateway) -> None:
        assert [m.id for m in gateway.list_models()] == ["gpt-4o", "llama3"]


class TestResolveApiKey:
    async def test_secret_store_first(self, gateway_yaml: Path) -> None:
        secrets = InMemorySecretStore({api_key_secret_name("openai"): "sk-stored"})
        gateway = Gateway.from_yaml(gateway_yaml, secrets=secrets)
        provider = gateway.resolve_provider(gateway.resolve_model("gpt-4o"))
        assert await gateway.resolve_api_key(provider) == "sk-stored"

    async def test_config_fallback(self, gateway: Gateway) -> None:
        provider = gateway.resolve_provider(gateway.resolve_model("gpt-4o"))
        assert await gateway.resolve_api_key(provider) == "sk-test"

    async def test_keyless_provider(self, gateway: Gateway) -> None:
        provider = gateway.resolve_provider(gateway.resolve_model("llama3::fast"))
        assert await gateway.resolve_api_key(provider) is None

    async def test_missing_required_key(self) -> None:
        settings = GatewaySettings.model_validate(
            {"providers": [{"key": "or", "kind": "openrouter"}], "models": [{"id": "m", "provider": "or"}]}
        )
        gateway = Gateway(settings)
        with pytest.raises(ConfigurationError, match="modelmux.apiKey.or"):
            await gateway.resolve_api_key(settings.providers[0])


class TestProvideChatResponse:
    async def test_success(
        self, gateway: Gateway, acompletion: AsyncMock, chunks: Any, make_stream: Any
    ) -> None:
        acompletion.return_value = make_stream(chunks.text("Hi there"), chunks.finish(), chunks.usage(3, 2))
        progress = CollectingProgress()

        async with gateway:
            response = await gateway.provide_chat_response(
                "openai/gpt-4o", [HostMessage.user("Hello")], progress=progress
            )

        assert response.text_content == "Hi there"
        assert gateway.audit.count() == 1
        assert acompletion.call_args.kwargs["api_key"] == "sk-test"

    async def test_model_settings_reach_backend(
        self, gateway: Gateway, acompletion: AsyncMock, chunks: Any, make_stream: Any
    ) -> None:
        acompletion.return_value = make_stream(chunks.text("ok"))
        await gateway.provide_chat_response("llama3::fast", [HostMessage.user("Hello")])

        kwargs = acompletion.call_args.kwargs
        assert kwargs["model"] == "openai/llama3"
        assert kwargs["api_base"] == "http://localhost:11434/v1"
        assert kwargs["temperature"] == 0.1
        assert "api_key" not in kwargs

    async def test_unknown_model_notifies(
        self, gateway: Gateway, notifier: RecordingNotifier, acompletion: AsyncMock
    ) -> None:
        with pytest.raises(ConfigurationError):
            await gateway.provide_chat_response("nope", [HostMessage.user("Hello")])
        assert len(notifier.errors) == 1
        acompletion.assert_not_called()

    async def test_retries_then_succeeds(
        self, gateway: Gateway, acompletion: AsyncMock, chunks: Any, make_stream: Any
    ) -> None:
        acompletion.side_effect = [RuntimeError("503"), make_stream(chunks.text("second try"))]
        progress = CollectingProgress()

        response = await gateway.provide_chat_response("gpt-4o", [HostMessage.user("Hello")], progress=progress)

        assert response.text_content == "second try"
        assert acompletion.call_count == 2
        marker = progress.parts[0]
        assert isinstance(marker, ThinkingPart)
        assert marker.is_error_marker
        assert gateway.audit.count() == 2

    async def test_exhausted(
        self, gateway: Gateway, notifier: RecordingNotifier, acompletion: AsyncMock
    ) -> None:
        acompletion.side_effect = RuntimeError("still down")
        with pytest.raises(ExchangeFailedError, match="after 2 attempt"):
            await gateway.provide_chat_response("gpt-4o", [HostMessage.user("Hello")])
        assert acompletion.call_count == 2
        assert len(notifier.errors) == 1
        assert "still down" in notifier.errors[0]

    async def test_three_attempts_bound(
        self, gateway_yaml: Path, notifier: RecordingNotifier, acompletion: AsyncMock
    ) -> None:
        gateway_yaml.write_text(gateway_yaml.read_text().replace("max_attempts: 2", "max_attempts: 3"))
        gateway = Gateway.from_yaml(gateway_yaml, notifier=notifier)
        acompletion.side_effect = RuntimeError("503 overloaded")
        progress = CollectingProgress()

        with pytest.raises(ExchangeFailedError, match="after 3 attempt"):
            await gateway.provide_chat_response("gpt-4o", [HostMessage.user("Hello")], progress=progress)

        assert acompletion.call_count == 3
        assert len(notifier.errors) == 1
        assert len(progress.parts) == 2

    async def test_concurrent_exchanges_do_not_interleave(
        self, gateway: Gateway, acompletion: AsyncMock, chunks: Any
    ) -> None:
        async def interleaving(label: str) -> AsyncIterator[Any]:
            for i in range(5):
                await asyncio.sleep(0)
                yield chunks.text(f"{label}{i}")

        async def by_prompt(**kwargs: Any) -> AsyncIterator[Any]:
            label = "alpha" if "alpha" in json.dumps(kwargs["messages"]) else "beta"
            return interleaving(label)

        acompletion.side_effect = by_prompt
        alpha_sink, beta_sink = CollectingProgress(), CollectingProgress()

        alpha, beta = await asyncio.gather(
            gateway.provide_chat_response("gpt-4o", [HostMessage.user("alpha")], progress=alpha_sink),
            gateway.provide_chat_response("gpt-4o", [HostMessage.user("beta")], progress=beta_sink),
        )

        assert [p.value for p in alpha_sink.parts if isinstance(p, TextPart)] == [f"alpha{i}" for i in range(5)]
        assert [p.value for p in beta_sink.parts if isinstance(p, TextPart)] == [f"beta{i}" for i in range(5)]
        assert len(alpha_sink.parts) == len(beta_sink.parts) == 5
        assert alpha.text_content == "alpha0alpha1alpha2alpha3alpha4"
        assert beta.text_content == "beta0beta1beta2beta3beta4"
        assert gateway.audit.count() == 2


class TestLifecycle:
    async def test_persists_on_shutdown(self, tmp_path: Path) -> None:
        cache_path = tmp_path / "state" / "cache.json"
        settings = GatewaySettings.model_validate({"cache": {"path": str(cache_path)}})

        gateway = Gateway(settings)
        await gateway.start()
        assert gateway.caches.is_persistence_enabled()
        gateway.caches.get_cache(TOOL_CALL_METADATA).set("call_1", {"provider_metadata": {"google": {}}})
        await gateway.shutdown()

        document = json.loads(cache_path.read_text())
        assert "call_1" in json.dumps(document)

        restored = Gateway(settings)
        await restored.start()
        assert restored.caches.get_cache(TOOL_CALL_METADATA).has("call_1")

    async def test_memory_only_without_path(self, gateway: Gateway) -> None:
        await gateway.start()
        assert not gateway.caches.is_persistence_enabled()
        await gateway.shutdown()

    async def test_persist_disabled(self, tmp_path: Path) -> None:
        settings = GatewaySettings.model_validate({"cache": {"path": str(tmp_path / "c.json"), "persist": False}})
        async with Gateway(settings) as gateway:
            assert not gateway.caches.is_persistence_enabled()
        assert not (tmp_path / "c.json").exists()
