"""Backend selection for request handlers.

``NEST_BACKEND=postgres`` (default) talks to ``DATABASE_URL``;
``NEST_BACKEND=memory`` keeps one process-wide in-memory registry and store.
"""

from __future__ import annotations

import os
from functools import lru_cache

try:
    from .registry import MemoryMemberRegistry, PostgresMemberRegistry
    from .store import MemoryRelationshipStore, PostgresRelationshipStore
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from registry import MemoryMemberRegistry, PostgresMemberRegistry
    from store import MemoryRelationshipStore, PostgresRelationshipStore

_BACKENDS = ("postgres", "memory")


def get_backend_name() -> str:
    name = (os.environ.get("NEST_BACKEND") or "postgres").strip().lower()
    if name not in _BACKENDS:
        raise RuntimeError(f"NEST_BACKEND must be one of {_BACKENDS}, got {name!r}")
    return name


@lru_cache(maxsize=1)
def _memory_backend() -> tuple[MemoryMemberRegistry, MemoryRelationshipStore]:
    registry = MemoryMemberRegistry()
    return registry, MemoryRelationshipStore(registry)


def get_registry() -> MemoryMemberRegistry | PostgresMemberRegistry:
    if get_backend_name() == "memory":
        return _memory_backend()[0]
    return PostgresMemberRegistry()


def get_store() -> MemoryRelationshipStore | PostgresRelationshipStore:
    if get_backend_name() == "memory":
        return _memory_backend()[1]
    return PostgresRelationshipStore()
