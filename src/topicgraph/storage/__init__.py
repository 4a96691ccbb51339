from .base import GraphStore
from .memory import InMemoryGraphStore
from .json_file import JsonFileGraphStore
from .sqlite import SQLiteGraphStore


def create_store(config) -> GraphStore:
    """
    Build a GraphStore from a GraphConfig.

    Raises:
        ValueError: Unknown storage backend
    """
    backend = config.storage_backend.lower()
    if backend == "memory":
        return InMemoryGraphStore()
    if backend == "json":
        return JsonFileGraphStore(config.resolved_storage_path)
    if backend == "sqlite":
        return SQLiteGraphStore(config.resolved_storage_path)
    raise ValueError(f"Invalid storage backend: {backend}. Must be one of: memory, json, sqlite")


__all__ = [
    "GraphStore",
    "InMemoryGraphStore",
    "JsonFileGraphStore",
    "SQLiteGraphStore",
    "create_store",
]
