"""Bounded, optionally persisted metadata caches."""

from modelmux.core.cache.metadata import (
    CACHE_INDEX_KEY,
    CACHE_STORAGE_PREFIX,
    DEFAULT_MAX_SIZE,
    CacheRegistry,
    MetadataCache,
)
from modelmux.core.cache.storage import CacheStorage, InMemoryStorage, JsonFileStorage

__all__ = [
    "CACHE_INDEX_KEY",
    "CACHE_STORAGE_PREFIX",
    "DEFAULT_MAX_SIZE",
    "CacheRegistry",
    "CacheStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "MetadataCache",
]
