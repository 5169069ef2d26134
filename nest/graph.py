from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Container, Iterable

try:
    from .models import Member, RelationshipEdge, RelationshipSet, RelationshipType
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from models import Member, RelationshipEdge, RelationshipSet, RelationshipType

log = logging.getLogger(__name__)


def _append_unique(out: dict[str, list[str]], key: str, value: str) -> None:
    bucket = out.setdefault(key, [])
    if value not in bucket:
        bucket.append(value)


@dataclass
class EdgeIndex:
    """Adjacency lists over one family's edge set.

    - ``parents``:  child_id -> parent ids
    - ``children``: parent_id -> child ids
    - ``spouses``:  member_id -> spouse ids (read in both directions)

    Lists keep first-seen edge order, so lookups are deterministic for a given input.
    """

    parents: dict[str, list[str]] = field(default_factory=dict)
    children: dict[str, list[str]] = field(default_factory=dict)
    spouses: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        edges: Iterable[RelationshipEdge],
        *,
        known: Container[str] | None = None,
    ) -> EdgeIndex:
        """Index *edges*, dropping self edges and (when *known* is given) dangling ones."""

        idx = cls()
        dropped = 0
        for e in edges:
            if e.member_id == e.related_id:
                dropped += 1
                continue
            if known is not None and (e.member_id not in known or e.related_id not in known):
                dropped += 1
                continue

            if e.type is RelationshipType.CHILD:
                _append_unique(idx.parents, e.member_id, e.related_id)
                _append_unique(idx.children, e.related_id, e.member_id)
            elif e.type is RelationshipType.SPOUSE:
                _append_unique(idx.spouses, e.member_id, e.related_id)
                _append_unique(idx.spouses, e.related_id, e.member_id)

        if dropped:
            log.debug("ignored %d self-referencing or dangling edges", dropped)
        return idx

    def parents_of(self, member_id: str) -> list[str]:
        return self.parents.get(member_id, [])

    def children_of(self, member_id: str) -> list[str]:
        return self.children.get(member_id, [])

    def spouse_of(self, member_id: str) -> str | None:
        """First recorded spouse; later ones are ignored."""
        spouses = self.spouses.get(member_id)
        if not spouses:
            return None
        if len(spouses) > 1:
            log.debug("member %s has %d spouse edges; using %s", member_id, len(spouses), spouses[0])
        return spouses[0]

    def has_parent(self, member_id: str) -> bool:
        return bool(self.parents.get(member_id))

    def has_grandchildren(self, member_id: str) -> bool:
        return any(self.children_of(cid) for cid in self.children_of(member_id))


def related_members(
    member_id: str,
    members: Iterable[Member],
    edges: Iterable[RelationshipEdge],
) -> list[tuple[Member, str]]:
    """Return (member, label) for everyone directly linked to *member_id*.

    Labels are read from *member_id*'s point of view: ``spouse``, ``parent`` or ``child``.
    """

    by_id = {m.id: m for m in members}
    out: list[tuple[Member, str]] = []
    seen: set[tuple[str, str]] = set()

    def _add(other_id: str, label: str) -> None:
        other = by_id.get(other_id)
        if other is None or other_id == member_id or (other_id, label) in seen:
            return
        seen.add((other_id, label))
        out.append((other, label))

    for e in edges:
        if e.member_id == member_id:
            _add(e.related_id, "parent" if e.type is RelationshipType.CHILD else e.type.value)
        elif e.related_id == member_id:
            _add(e.member_id, "child" if e.type is RelationshipType.CHILD else e.type.value)
    return out


def current_relationships(member_id: str, edges: Iterable[RelationshipEdge]) -> RelationshipSet:
    """Read back the spouse/parents/children of *member_id* in editor form."""

    spouse_id: str | None = None
    parent_ids: list[str] = []
    child_ids: list[str] = []
    for e in edges:
        if e.member_id == e.related_id:
            continue
        if e.type is RelationshipType.SPOUSE:
            if spouse_id is None and e.touches(member_id):
                spouse_id = e.related_id if e.member_id == member_id else e.member_id
        elif e.member_id == member_id:
            parent_ids.append(e.related_id)
        elif e.related_id == member_id:
            child_ids.append(e.member_id)
    return RelationshipSet.of(spouse_id=spouse_id, parent_ids=parent_ids, child_ids=child_ids)
