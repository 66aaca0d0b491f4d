"""Bounded, newest-first log of request/response pairs."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable

from modelmux.core.audit.models import LoggedInteraction, LoggedRequest, LoggedResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100

AuditListener = Callable[[list[LoggedInteraction]], None]


class AuditLog:
    """Keeps the most recent interactions, oldest dropped first.

    Recording a request opens an interaction id; the response is later
    committed under the same id. Listeners are called with a snapshot
    after every change.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self.max_entries = max_entries
        self._entries: list[LoggedInteraction] = []
        self._listeners: list[AuditListener] = []

    @staticmethod
    def generate_id() -> str:
        return f"interaction_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"

    def record_request(self, request: LoggedRequest, interaction_id: str | None = None) -> str:
        """Store a request and return its interaction id."""
        entry = self._take(interaction_id or self.generate_id())
        entry.request = request
        self._push(entry)
        return entry.id

    def record_response(self, response: LoggedResponse, interaction_id: str) -> str:
        entry = self._take(interaction_id)
        entry.response = response
        self._push(entry)
        return entry.id

    def get(self) -> list[LoggedInteraction]:
        return list(self._entries)

    def get_by_id(self, interaction_id: str) -> LoggedInteraction | None:
        for entry in self._entries:
            if entry.id == interaction_id:
                return entry
        return None

    def count(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._notify()

    def on_change(self, listener: AuditListener) -> Callable[[], None]:
        """Register a listener; the returned callable unregisters it."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    def _take(self, interaction_id: str) -> LoggedInteraction:
        for index, entry in enumerate(self._entries):
            if entry.id == interaction_id:
                return self._entries.pop(index)
        return LoggedInteraction(id=interaction_id)

    def _push(self, entry: LoggedInteraction) -> None:
        self._entries.insert(0, entry)
        del self._entries[self.max_entries :]
        self._notify()

    def _notify(self) -> None:
        snapshot = self.get()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Audit listener %r failed", listener)
