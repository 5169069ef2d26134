from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from nest.deps import get_registry, get_store
from nest.main import app
from nest.registry import MemoryMemberRegistry
from nest.store import MemoryRelationshipStore
from tests.factories import FAMILY


@pytest.fixture()
def registry() -> MemoryMemberRegistry:
    # Five unrelated members A..E in one family.
    reg = MemoryMemberRegistry()
    for mid in ("A", "B", "C", "D", "E"):
        reg.add_member(FAMILY, name=f"Member {mid}", member_id=mid)
    return reg


@pytest.fixture()
def store(registry: MemoryMemberRegistry) -> MemoryRelationshipStore:
    return MemoryRelationshipStore(registry)


@pytest.fixture()
def client(registry: MemoryMemberRegistry, store: MemoryRelationshipStore) -> Iterator[TestClient]:
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
