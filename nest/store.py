"""Relationship store: the edge set of each family group.

Spouse edges are written and deleted in both directions inside one critical
section (in memory) or one transaction (Postgres), so a reader never sees a
one-sided spouse link. ``replace_all_for`` is the only bulk mutation: it drops
every edge touching a member and inserts the edges implied by a
``RelationshipSet``, all or nothing.

A member has at most one recorded spouse; adding a second raises
``SpouseConflict``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, ContextManager, Iterable, Protocol

import psycopg

try:
    from .db import db_conn
    from .errors import InvalidSelfReference, NotFound, SpouseConflict
    from .models import RelationshipEdge, RelationshipSet, RelationshipType
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from db import db_conn
    from errors import InvalidSelfReference, NotFound, SpouseConflict
    from models import RelationshipEdge, RelationshipSet, RelationshipType

log = logging.getLogger(__name__)

_EDGE_TYPES = {t.value for t in RelationshipType}


class RelationshipStore(Protocol):
    def edges(self, family_id: str) -> list[RelationshipEdge]: ...

    def add_edge(
        self, family_id: str, member_id: str, related_id: str, rel_type: RelationshipType
    ) -> None: ...

    def remove_edge(
        self, family_id: str, member_id: str, related_id: str, rel_type: RelationshipType
    ) -> bool: ...

    def replace_all_for(self, family_id: str, member_id: str, rels: RelationshipSet) -> None: ...


class _MemberLookup(Protocol):
    def existing_ids(self, family_id: str, member_ids: Iterable[str]) -> set[str]: ...


def check_self_references(member_id: str, rels: RelationshipSet) -> None:
    for role, rid in rels.related_ids():
        if rid == member_id:
            raise InvalidSelfReference(member_id, role)


def _require_found(found: set[str], refs: Iterable[tuple[str, str]]) -> None:
    for role, rid in refs:
        if rid not in found:
            raise NotFound(rid, role)


def _partners(edges: Iterable[RelationshipEdge], member_id: str) -> set[str]:
    out: set[str] = set()
    for e in edges:
        if e.type is not RelationshipType.SPOUSE:
            continue
        if e.member_id == member_id:
            out.add(e.related_id)
        elif e.related_id == member_id:
            out.add(e.member_id)
    return out


def _check_spouse_free(edges: list[RelationshipEdge], member_id: str, partner_id: str) -> None:
    """Raise SpouseConflict if either side already has a different spouse."""
    if _partners(edges, member_id) - {partner_id}:
        raise SpouseConflict(member_id, "member")
    if _partners(edges, partner_id) - {member_id}:
        raise SpouseConflict(partner_id, "spouse")


def _edges_for_pair(member_id: str, related_id: str, rel_type: RelationshipType) -> list[RelationshipEdge]:
    edge = RelationshipEdge(member_id, related_id, rel_type)
    if rel_type is RelationshipType.SPOUSE:
        return [edge, edge.reversed()]
    return [edge]


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class MemoryRelationshipStore:
    def __init__(self, members: _MemberLookup) -> None:
        self._members = members
        self._edges: dict[str, list[RelationshipEdge]] = {}
        self._lock = threading.Lock()

    def _prune(self, family_id: str) -> list[RelationshipEdge]:
        """Drop edges to members the registry no longer holds; caller holds the lock.

        Matches the cascade the database applies when a member row is deleted.
        """
        current = self._edges.get(family_id, [])
        if not current:
            return current
        ids = {mid for e in current for mid in (e.member_id, e.related_id)}
        alive = self._members.existing_ids(family_id, ids)
        kept = [e for e in current if e.member_id in alive and e.related_id in alive]
        if len(kept) != len(current):
            log.debug("dropped %d edges of removed members in family %s", len(current) - len(kept), family_id)
            self._edges[family_id] = kept
        return kept

    def edges(self, family_id: str) -> list[RelationshipEdge]:
        with self._lock:
            return list(self._prune(family_id))

    def add_edge(
        self, family_id: str, member_id: str, related_id: str, rel_type: RelationshipType
    ) -> None:
        rel_type = RelationshipType(rel_type)
        if member_id == related_id:
            raise InvalidSelfReference(member_id, rel_type.value)

        with self._lock:
            found = self._members.existing_ids(family_id, [member_id, related_id])
            _require_found(found, [("member", member_id), ("related", related_id)])

            current = self._prune(family_id)
            if rel_type is RelationshipType.SPOUSE:
                _check_spouse_free(current, member_id, related_id)
            for e in _edges_for_pair(member_id, related_id, rel_type):
                if e not in current:
                    current.append(e)
            self._edges[family_id] = current
        log.info("added %s edge %s -> %s in family %s", rel_type.value, member_id, related_id, family_id)

    def remove_edge(
        self, family_id: str, member_id: str, related_id: str, rel_type: RelationshipType
    ) -> bool:
        doomed = set(_edges_for_pair(member_id, related_id, RelationshipType(rel_type)))
        with self._lock:
            current = self._prune(family_id)
            kept = [e for e in current if e not in doomed]
            removed = len(current) - len(kept)
            self._edges[family_id] = kept
        return removed > 0

    def replace_all_for(self, family_id: str, member_id: str, rels: RelationshipSet) -> None:
        check_self_references(member_id, rels)
        refs = [("member", member_id), *rels.related_ids()]

        with self._lock:
            found = self._members.existing_ids(family_id, [rid for _role, rid in refs])
            _require_found(found, refs)

            untouched = [e for e in self._prune(family_id) if not e.touches(member_id)]
            if rels.spouse_id:
                _check_spouse_free(untouched, member_id, rels.spouse_id)

            # Build the new list completely before swapping it in.
            new_edges = untouched + [e for e in rels.edges_for(member_id) if e not in untouched]
            self._edges[family_id] = new_edges
        log.info("replaced relationships of member %s in family %s", member_id, family_id)


# ---------------------------------------------------------------------------
# Postgres backend
# ---------------------------------------------------------------------------


def _edge_from_row(r: tuple[Any, ...]) -> RelationshipEdge | None:
    if r[2] not in _EDGE_TYPES:
        log.debug("skipping relationship row with unknown type %r", r[2])
        return None
    return RelationshipEdge.from_row(r)


class PostgresRelationshipStore:
    def __init__(self, connect: Callable[[], ContextManager[psycopg.Connection]] = db_conn) -> None:
        self._connect = connect

    def edges(self, family_id: str) -> list[RelationshipEdge]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT member_id, related_id, relationship_type
                FROM family_relationships
                WHERE family_id = %s
                ORDER BY created_at, member_id, related_id
                """.strip(),
                (family_id,),
            ).fetchall()
        return [e for e in (_edge_from_row(tuple(r)) for r in rows) if e is not None]

    @staticmethod
    def _lock_members(conn: psycopg.Connection, family_id: str, refs: list[tuple[str, str]]) -> None:
        """Row-lock the members involved so edits to the same member serialize."""
        ids = sorted({rid for _role, rid in refs})
        rows = conn.execute(
            """
            SELECT id
            FROM family_members
            WHERE family_id = %s AND id = ANY(%s)
            ORDER BY id
            FOR UPDATE
            """.strip(),
            (family_id, ids),
        ).fetchall()
        _require_found({str(r[0]) for r in rows}, refs)

    @staticmethod
    def _spouse_edges(conn: psycopg.Connection, family_id: str, ids: list[str]) -> list[RelationshipEdge]:
        rows = conn.execute(
            """
            SELECT member_id, related_id, relationship_type
            FROM family_relationships
            WHERE family_id = %s
              AND relationship_type = 'spouse'
              AND (member_id = ANY(%s) OR related_id = ANY(%s))
            """.strip(),
            (family_id, ids, ids),
        ).fetchall()
        return [RelationshipEdge.from_row(tuple(r)) for r in rows]

    @staticmethod
    def _insert(conn: psycopg.Connection, family_id: str, edges: list[RelationshipEdge]) -> None:
        for e in edges:
            conn.execute(
                """
                INSERT INTO family_relationships (family_id, member_id, related_id, relationship_type)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT DO NOTHING
                """.strip(),
                (family_id, e.member_id, e.related_id, e.type.value),
            )

    def add_edge(
        self, family_id: str, member_id: str, related_id: str, rel_type: RelationshipType
    ) -> None:
        rel_type = RelationshipType(rel_type)
        if member_id == related_id:
            raise InvalidSelfReference(member_id, rel_type.value)

        with self._connect() as conn:
            with conn.transaction():
                self._lock_members(conn, family_id, [("member", member_id), ("related", related_id)])
                if rel_type is RelationshipType.SPOUSE:
                    existing = self._spouse_edges(conn, family_id, [member_id, related_id])
                    _check_spouse_free(existing, member_id, related_id)
                self._insert(conn, family_id, _edges_for_pair(member_id, related_id, rel_type))
        log.info("added %s edge %s -> %s in family %s", rel_type.value, member_id, related_id, family_id)

    def remove_edge(
        self, family_id: str, member_id: str, related_id: str, rel_type: RelationshipType
    ) -> bool:
        rel_type = RelationshipType(rel_type)
        if rel_type is RelationshipType.SPOUSE:
            sql = """
                DELETE FROM family_relationships
                WHERE family_id = %s
                  AND relationship_type = %s
                  AND ((member_id = %s AND related_id = %s) OR (member_id = %s AND related_id = %s))
            """
            params: tuple[Any, ...] = (family_id, rel_type.value, member_id, related_id, related_id, member_id)
        else:
            sql = """
                DELETE FROM family_relationships
                WHERE family_id = %s
                  AND relationship_type = %s
                  AND member_id = %s AND related_id = %s
            """
            params = (family_id, rel_type.value, member_id, related_id)

        with self._connect() as conn:
            with conn.transaction():
                cur = conn.execute(sql.strip(), params)
                removed = (cur.rowcount or 0) > 0
        return removed

    def replace_all_for(self, family_id: str, member_id: str, rels: RelationshipSet) -> None:
        check_self_references(member_id, rels)
        refs = [("member", member_id), *rels.related_ids()]

        with self._connect() as conn:
            with conn.transaction():
                self._lock_members(conn, family_id, refs)
                if rels.spouse_id:
                    existing = [
                        e
                        for e in self._spouse_edges(conn, family_id, [rels.spouse_id])
                        if not e.touches(member_id)
                    ]
                    _check_spouse_free(existing, member_id, rels.spouse_id)

                conn.execute(
                    """
                    DELETE FROM family_relationships
                    WHERE family_id = %s AND (member_id = %s OR related_id = %s)
                    """.strip(),
                    (family_id, member_id, member_id),
                )
                self._insert(conn, family_id, rels.edges_for(member_id))
        log.info("replaced relationships of member %s in family %s", member_id, family_id)
