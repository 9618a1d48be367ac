"""
Pluggable project storage.

- base: the ProjectStore contract and store errors
- sql: SQLAlchemy backend (SQLite / PostgreSQL)
- memory: in-process backend
"""

from rwalens.config import Settings
from rwalens.storage.base import NotFoundError, ProjectNotFoundError, ProjectStore, StoreError
from rwalens.storage.memory import InMemoryProjectStore
from rwalens.storage.sql import SqlProjectStore


def build_store(settings: Settings) -> ProjectStore:
    """Construct the backend selected by ``settings.storage_backend``."""
    backend = settings.storage_backend.lower()
    if backend == "memory":
        return InMemoryProjectStore()
    if backend == "sql":
        return SqlProjectStore.from_settings(settings)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")


__all__ = [
    "InMemoryProjectStore",
    "NotFoundError",
    "ProjectNotFoundError",
    "ProjectStore",
    "SqlProjectStore",
    "StoreError",
    "build_store",
]
