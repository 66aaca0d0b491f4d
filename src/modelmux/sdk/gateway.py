"""Gateway: the host-facing entry point.

One :class:`Gateway` owns the shared cache registry, audit log and backend
factory for a set of configured providers and models. Hosts call
:meth:`Gateway.provide_chat_response` once per exchange.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from modelmux.core.audit.log import AuditLog
from modelmux.core.backends.registry import BackendFactory, strategy_class
from modelmux.core.cache.metadata import CacheRegistry
from modelmux.core.cache.storage import JsonFileStorage
from modelmux.core.errors import ConfigurationError
from modelmux.core.interface.config import ModelConfig, ProviderConfig, parse_model_id
from modelmux.core.interface.host import (
    CollectingProgress,
    LoggingNotifier,
    NullStatusDisplay,
    api_key_secret_name,
)
from modelmux.core.streaming.orchestrator import StreamingOrchestrator
from modelmux.core.streaming.retry import RetryEnvelope
from modelmux.sdk.loader import GatewayLoader
from modelmux.utils.telemetry import configure_telemetry

if TYPE_CHECKING:
    from modelmux.core.audit.models import LoggedResponse
    from modelmux.core.cache.storage import CacheStorage
    from modelmux.core.interface.host import (
        CancellationToken,
        Notifier,
        ProgressSink,
        SecretStore,
        StatusDisplay,
    )
    from modelmux.core.interface.models import HostMessage, ToolDefinition
    from modelmux.sdk.models import GatewaySettings

logger = logging.getLogger(__name__)


class Gateway:
    """Route host chat requests to configured backends.

    Usage::

        async with Gateway.from_yaml("gateway.yaml") as gateway:
            response = await gateway.provide_chat_response(
                "openai/gpt-4o", [HostMessage.user("Hello")], progress=sink
            )
    """

    def __init__(
        self,
        settings: GatewaySettings,
        *,
        secrets: SecretStore | None = None,
        notifier: Notifier | None = None,
        status: StatusDisplay | None = None,
        storage: CacheStorage | None = None,
    ) -> None:
        self.settings = settings
        self.secrets = secrets
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.status: StatusDisplay = status or NullStatusDisplay()
        self.caches = CacheRegistry()
        self.audit = AuditLog(settings.audit.max_entries)
        self.backends = BackendFactory(self.caches)
        self._storage = storage
        self._started = False

    @classmethod
    def from_yaml(cls, path: str | Path, **kwargs: Any) -> Gateway:
        """Load a gateway YAML and return an unstarted gateway."""
        return cls(GatewayLoader(Path(path)).load(), **kwargs)

    # -- lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Configure telemetry and restore persisted caches."""
        if self._started:
            return
        telemetry = self.settings.telemetry
        if telemetry and telemetry.enabled:
            configure_telemetry(otlp_endpoint=telemetry.otlp_endpoint)

        storage = self._storage
        if storage is None and self.settings.cache.persist and self.settings.cache.path:
            storage = JsonFileStorage(self.settings.cache.path)
        if storage is not None:
            await self.caches.initialize(storage)
        self._started = True
        logger.info(
            "Gateway started: %d provider(s), %d model(s)",
            len(self.settings.providers),
            len(self.settings.models),
        )

    async def shutdown(self) -> None:
        """Flush persistent caches."""
        if self.caches.is_persistence_enabled():
            await self.caches.persist_all()
        self.backends.clear()
        self._started = False
        logger.info("Gateway shut down")

    async def __aenter__(self) -> Gateway:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    # -- lookups ---------------------------------------------------------------

    def list_models(self) -> list[ModelConfig]:
        return list(self.settings.models)

    def resolve_model(self, model_id: str) -> ModelConfig:
        """Find a model by host id (``provider/id::configId``) or bare id."""
        parsed = parse_model_id(model_id)
        for model in self.settings.models:
            if model.host_id == model_id:
                return model
            if parsed.provider_hint and model.provider != parsed.provider_hint:
                continue
            if model.id == parsed.base_id and model.config_id == parsed.config_id:
                return model
        raise ConfigurationError(f"Unknown model {model_id!r}")

    def resolve_provider(self, model: ModelConfig) -> ProviderConfig:
        provider = self.settings.provider(model.provider)
        if provider is None:
            raise ConfigurationError(f"Unknown provider {model.provider!r} for model {model.id!r}")
        return provider

    async def resolve_api_key(self, provider: ProviderConfig) -> str | None:
        """Secret store first, then the configured key.

        Raises:
            ConfigurationError: No key found and the provider kind needs one.
        """
        key: str | None = None
        if self.secrets is not None:
            key = await self.secrets.get(api_key_secret_name(provider.key))
        key = key or provider.api_key
        if not key and strategy_class(provider.kind).requires_api_key:
            raise ConfigurationError(
                f"No API key for provider {provider.key!r}; "
                f"store one as {api_key_secret_name(provider.key)!r} or set api_key"
            )
        return key

    # -- exchanges -------------------------------------------------------------

    async def provide_chat_response(
        self,
        model_id: str,
        messages: list[HostMessage],
        tools: list[ToolDefinition] | None = None,
        *,
        progress: ProgressSink | None = None,
        token: CancellationToken | None = None,
    ) -> LoggedResponse:
        """Run one exchange with retries and return the logged response.

        Raises:
            ConfigurationError: The model, provider or credentials could not
                be resolved.
            ExchangeFailedError: Every attempt failed.
            ExchangeCancelled: The host cancelled.
        """
        try:
            model = self.resolve_model(model_id)
            provider = self.resolve_provider(model)
            api_key = await self.resolve_api_key(provider)
            strategy = self.backends.get(provider)
        except ConfigurationError as exc:
            self.notifier.error(str(exc))
            raise

        sink = progress if progress is not None else CollectingProgress()
        orchestrator = StreamingOrchestrator(strategy, audit=self.audit, status=self.status)
        envelope = RetryEnvelope(self.settings.retry.for_model(model), self.notifier)

        async def attempt() -> LoggedResponse:
            return await orchestrator.run(
                model,
                provider,
                messages,
                tools,
                api_key=api_key,
                progress=sink,
                token=token,
            )

        return await envelope.run(attempt, sink, token)
