"""Host collaborator interfaces.

The core only talks to the outside world through these protocols: a
progress sink for streamed parts, a cancellation signal, a status
display, user notifications and secret storage. Simple in-process
implementations are provided for tests and the CLI.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

from modelmux.core.interface.models import HostPart

logger = logging.getLogger(__name__)

SECRET_NAMESPACE = "modelmux"


def api_key_secret_name(provider_key: str) -> str:
    """Secret storage key for a provider's API key."""
    return f"{SECRET_NAMESPACE}.apiKey.{provider_key}"


@runtime_checkable
class ProgressSink(Protocol):
    """Receives host parts incrementally, in order."""

    def report(self, part: HostPart) -> None: ...


@runtime_checkable
class StatusDisplay(Protocol):
    def update(self, current_tokens: int, max_tokens: int) -> None: ...


@runtime_checkable
class Notifier(Protocol):
    """User-facing notifications (error toasts, banners)."""

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


@runtime_checkable
class SecretStore(Protocol):
    """Async get/store/delete of secrets keyed by name."""

    async def get(self, key: str) -> str | None: ...

    async def store(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class CancellationToken:
    """Cooperative cancellation signal shared between host and core.

    Backed by an :class:`asyncio.Event` so waiters can be woken when the
    host cancels.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class CollectingProgress:
    """:class:`ProgressSink` that keeps every reported part in a list."""

    def __init__(self) -> None:
        self.parts: list[HostPart] = []

    def report(self, part: HostPart) -> None:
        self.parts.append(part)


class NullStatusDisplay:
    def update(self, current_tokens: int, max_tokens: int) -> None:
        logger.debug("Status: %d/%d tokens", current_tokens, max_tokens)


class LoggingNotifier:
    """:class:`Notifier` that routes notifications to the logger."""

    def error(self, message: str) -> None:
        logger.error(message)

    def info(self, message: str) -> None:
        logger.info(message)


class InMemorySecretStore:
    """Dict-backed :class:`SecretStore`."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._store: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def store(self, key: str, value: str) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)
