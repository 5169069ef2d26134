from __future__ import annotations

from nest.editor import set_member_relationships
from nest.errors import InvalidSelfReference, NotFound, SpouseConflict
from nest.store import MemoryRelationshipStore
from tests.factories import FAMILY, child, spouses


def test_sets_spouse_parents_and_children(store: MemoryRelationshipStore) -> None:
    result = set_member_relationships(store, FAMILY, "A", spouse_id="B", parent_ids=["C"], child_ids=["D", "E"])

    assert result.ok is True
    assert result.to_dict() == {"ok": True}
    assert set(store.edges(FAMILY)) == {
        *spouses("A", "B"),
        child("A", "C"),
        child("D", "A"),
        child("E", "A"),
    }


def test_clearing_children_leaves_other_members_untouched(store: MemoryRelationshipStore) -> None:
    store.add_edge(FAMILY, "D", "B", "child")

    assert set_member_relationships(store, FAMILY, "A", spouse_id=None, parent_ids=[], child_ids=["C"]).ok
    assert set_member_relationships(store, FAMILY, "A", spouse_id=None, parent_ids=[], child_ids=[]).ok

    assert store.edges(FAMILY) == [child("D", "B")]


def test_is_idempotent(store: MemoryRelationshipStore) -> None:
    kwargs = {"spouse_id": "B", "parent_ids": ["C"], "child_ids": ["D"]}
    set_member_relationships(store, FAMILY, "A", **kwargs)
    first = set(store.edges(FAMILY))
    set_member_relationships(store, FAMILY, "A", **kwargs)

    assert set(store.edges(FAMILY)) == first
    assert len(store.edges(FAMILY)) == len(first)


def test_repeated_ids_in_a_list_produce_one_edge(store: MemoryRelationshipStore) -> None:
    assert set_member_relationships(store, FAMILY, "A", child_ids=["C", "C", ""]).ok
    assert store.edges(FAMILY) == [child("C", "A")]


def test_contradictory_roles_are_accepted(store: MemoryRelationshipStore) -> None:
    result = set_member_relationships(store, FAMILY, "A", parent_ids=["B"], child_ids=["B"])

    assert result.ok
    assert set(store.edges(FAMILY)) == {child("A", "B"), child("B", "A")}


def test_self_reference_is_returned_as_a_value(store: MemoryRelationshipStore) -> None:
    result = set_member_relationships(store, FAMILY, "A", child_ids=["C", "A"])

    assert result.ok is False
    assert isinstance(result.error, InvalidSelfReference)
    assert result.to_dict()["role"] == "child"
    assert store.edges(FAMILY) == []


def test_unknown_subject_names_member_role(store: MemoryRelationshipStore) -> None:
    result = set_member_relationships(store, FAMILY, "ghost", child_ids=["A"])

    assert isinstance(result.error, NotFound)
    assert result.to_dict() == {
        "ok": False,
        "error": "not_found",
        "member_id": "ghost",
        "role": "member",
        "detail": "member not found: ghost",
    }


def test_unknown_related_id_keeps_previous_configuration(store: MemoryRelationshipStore) -> None:
    set_member_relationships(store, FAMILY, "A", spouse_id="B", child_ids=["C"])
    before = set(store.edges(FAMILY))

    result = set_member_relationships(store, FAMILY, "A", parent_ids=["nobody"])

    assert isinstance(result.error, NotFound)
    assert result.error.member_id == "nobody"
    assert result.error.role == "parent"
    assert set(store.edges(FAMILY)) == before


def test_spouse_conflict_is_returned_as_a_value(store: MemoryRelationshipStore) -> None:
    set_member_relationships(store, FAMILY, "B", spouse_id="C")

    result = set_member_relationships(store, FAMILY, "A", spouse_id="B")

    assert isinstance(result.error, SpouseConflict)
    assert result.error.member_id == "B"
