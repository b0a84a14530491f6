"""
Storage adapters for jsongraph.

Provides pluggable persistence backends:
- SQLiteStorage: Durable local persistence
- JsonFileStorage: Single JSON array file
- MemoryStorage: Fast ephemeral storage for testing
"""

from pathlib import Path
from typing import Optional

from .base import StorageAdapter
from .debounce import DebouncedWriter
from .json_file import JsonFileStorage
from .memory import MemoryStorage
from .sqlite import SQLiteStorage


def create_storage(backend: str, path: Optional[Path] = None) -> StorageAdapter:
    """Build a storage adapter by backend name."""
    if backend == "memory":
        return MemoryStorage()
    if path is None:
        raise ValueError(f"Storage backend {backend!r} requires a path")
    if backend == "sqlite":
        return SQLiteStorage(Path(path))
    if backend == "json":
        return JsonFileStorage(Path(path))
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "StorageAdapter",
    "SQLiteStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "DebouncedWriter",
    "create_storage",
]
