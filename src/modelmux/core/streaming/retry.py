"""Retry envelope around a whole exchange.

Each attempt re-runs the full orchestration (fresh setup, fresh stream).
Between attempts the host sees a transient thinking part tagged with the
error marker; the translator drops it from later history.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from modelmux.core.errors import (
    ConfigurationError,
    ExchangeCancelled,
    ExchangeFailedError,
    PairingError,
    ToolValidationError,
)
from modelmux.core.interface.host import LoggingNotifier
from modelmux.core.interface.models import ThinkingPart
from modelmux.utils.telemetry import ATTR_RETRY_ATTEMPT, ATTR_RETRY_MAX_ATTEMPTS, get_tracer

if TYPE_CHECKING:
    from modelmux.core.interface.config import RetryConfig
    from modelmux.core.interface.host import CancellationToken, Notifier, ProgressSink

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)

T = TypeVar("T")

# Deterministic failures: another attempt would fail the same way.
NON_RETRYABLE: tuple[type[BaseException], ...] = (
    ConfigurationError,
    ToolValidationError,
    PairingError,
    ExchangeCancelled,
)


class RetryEnvelope:
    def __init__(
        self,
        config: RetryConfig,
        notifier: Notifier | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts if self.config.enabled else 1

    async def run(
        self,
        attempt_fn: Callable[[], Awaitable[T]],
        progress: ProgressSink,
        token: CancellationToken | None = None,
    ) -> T:
        """Call *attempt_fn* until it succeeds or attempts run out.

        Raises:
            ExchangeFailedError: Every attempt failed; chains the last error.
        """
        max_attempts = self.max_attempts
        last_error: Exception | None = None

        with _tracer.start_as_current_span("exchange.retry") as span:
            span.set_attribute(ATTR_RETRY_MAX_ATTEMPTS, max_attempts)
            for attempt in range(1, max_attempts + 1):
                span.set_attribute(ATTR_RETRY_ATTEMPT, attempt)
                try:
                    return await attempt_fn()
                except NON_RETRYABLE:
                    raise
                except Exception as exc:
                    if token is not None and token.is_cancellation_requested:
                        raise ExchangeCancelled("Cancelled during attempt") from exc
                    last_error = exc
                    logger.warning("Attempt %d/%d failed: %s", attempt, max_attempts, exc)

                if attempt < max_attempts:
                    progress.report(
                        ThinkingPart.error(
                            f"Request failed ({last_error}). Retrying ({attempt + 1}/{max_attempts})..."
                        )
                    )
                    await self._wait(token)

        assert last_error is not None
        error = ExchangeFailedError(max_attempts, last_error)
        self.notifier.error(str(error))
        raise error from last_error

    async def _wait(self, token: CancellationToken | None) -> None:
        if token is not None and token.is_cancellation_requested:
            raise ExchangeCancelled("Cancelled while waiting to retry")
        if self.config.interval_ms <= 0:
            return
        delay = self.config.interval_ms / 1000
        if token is None:
            await self._sleep(delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                task.cancel()
        if token.is_cancellation_requested:
            raise ExchangeCancelled("Cancelled while waiting to retry")
