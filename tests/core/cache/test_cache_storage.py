"""Tests for cache storage backends."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from modelmux.core.cache.metadata import CacheRegistry
from modelmux.core.cache.storage import InMemoryStorage, JsonFileStorage

if TYPE_CHECKING:
    from pathlib import Path


class TestInMemoryStorage:
    async def test_round_trip_returns_copy(self) -> None:
        storage = InMemoryStorage()
        value = {"a": [1]}
        await storage.save("k", value)
        loaded = await storage.load("k")
        assert loaded == value
        assert loaded is not value

    async def test_missing_and_delete(self) -> None:
        storage = InMemoryStorage()
        assert await storage.load("nope") is None
        await storage.save("k", 1)
        await storage.delete("k")
        await storage.delete("k")
        assert storage.keys() == []

    async def test_unserializable_rejected(self) -> None:
        with pytest.raises(TypeError):
            await InMemoryStorage().save("k", object())


class TestJsonFileStorage:
    async def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "cache.json")
        assert await storage.load("k") is None
        assert storage.read_all() == {}

    async def test_save_load_delete(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "cache.json"
        storage = JsonFileStorage(path)
        await storage.save("a", {"x": 1})
        await storage.save("b", [1, 2])
        assert await storage.load("a") == {"x": 1}
        assert json.loads(path.read_text()) == {"a": {"x": 1}, "b": [1, 2]}

        await storage.delete("a")
        assert storage.read_all() == {"b": [1, 2]}

    async def test_no_temp_files_left(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "cache.json")
        await storage.save("a", 1)
        assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]

    async def test_non_object_document(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            await JsonFileStorage(path).load("k")

    async def test_registry_survives_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        path.write_text("{not json")
        registry = CacheRegistry()
        await registry.initialize(JsonFileStorage(path))
        assert not registry.is_persistence_enabled()

    async def test_registry_round_trip_on_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        registry = CacheRegistry()
        await registry.initialize(JsonFileStorage(path))
        registry.get_cache("toolCallMetadata").set("call_9", {"provider_metadata": {"google": {"thought_signature": "s"}}})
        await registry.persist_all()

        again = CacheRegistry()
        await again.initialize(JsonFileStorage(path))
        assert again.get_cache("toolCallMetadata").has("call_9")
