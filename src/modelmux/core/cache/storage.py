"""Durable storage backends for the metadata cache registry.

:class:`CacheStorage` defines the async key/value protocol.
:class:`InMemoryStorage` is a dict-based implementation for tests and
single-process use; :class:`JsonFileStorage` keeps everything in one
JSON document on disk.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class CacheStorage(Protocol):
    """Async persistence protocol for serialized caches."""

    async def load(self, key: str) -> Any | None:
        """Return the stored value, or ``None`` if absent."""
        ...

    async def save(self, key: str, value: Any) -> None:
        """Persist ``value`` under ``key`` (upsert semantics)."""
        ...

    async def delete(self, key: str) -> None:
        """Remove ``key`` (no-op if absent)."""
        ...


class InMemoryStorage:
    """Dict-backed :class:`CacheStorage`.

    Values are stored as JSON text so every :meth:`load` returns a fresh
    copy and unserializable values fail the same way they would on disk.
    """

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def load(self, key: str) -> Any | None:
        data = self._store.get(key)
        if data is None:
            return None
        return json.loads(data)

    async def save(self, key: str, value: Any) -> None:
        self._store[key] = json.dumps(value)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._store)


class JsonFileStorage:
    """:class:`CacheStorage` backed by a single JSON file.

    Writes go to a temporary file in the same directory which then
    replaces the target, so a crash never leaves a half-written document.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def load(self, key: str) -> Any | None:
        document = await asyncio.to_thread(self._read)
        return document.get(key)

    async def save(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._update, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._update, key, None, True)

    def read_all(self) -> dict[str, Any]:
        """Return the whole document (empty if the file does not exist)."""
        return self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        data: Any = json.loads(raw)
        if not isinstance(data, dict):
            msg = f"{self.path} does not contain a JSON object"
            raise ValueError(msg)
        return data  # pyright: ignore[reportUnknownVariableType]

    def _update(self, key: str, value: Any, remove: bool = False) -> None:
        document = self._read()
        if remove:
            document.pop(key, None)
        else:
            document[key] = value
        self._write(document)

    def _write(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Wrote cache document %s (%d key(s))", self.path, len(document))
