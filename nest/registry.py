"""Member registry: the per-family directory of people.

Two interchangeable backends share the same method names:
``MemoryMemberRegistry`` for tests and local runs, ``PostgresMemberRegistry``
for the hosted database.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable, ContextManager, Iterable

import psycopg

try:
    from .db import db_conn
    from .errors import NotFound
    from .models import Member
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from db import db_conn
    from errors import NotFound
    from models import Member

log = logging.getLogger(__name__)

_MEMBER_COLUMNS = "id, name, nickname, relationship, contact_email, user_id"


def _clean(value: str | None) -> str | None:
    s = (value or "").strip()
    return s or None


def _require_name(name: str | None) -> str:
    s = _clean(name)
    if s is None:
        raise ValueError("member name is required")
    return s


def _member_from_row(r: tuple[Any, ...]) -> Member:
    # r = (id, name, nickname, relationship, contact_email, user_id)
    mid, name, nickname, relationship, contact_email, user_id = r
    return Member(
        id=str(mid),
        name=name or "",
        nickname=nickname,
        relationship=relationship,
        contact_email=contact_email,
        user_id=str(user_id) if user_id is not None else None,
    )


def _sort_key(m: Member) -> tuple[str, str]:
    return ((m.name or "").casefold(), m.id)


class MemoryMemberRegistry:
    def __init__(self) -> None:
        self._families: dict[str, dict[str, Member]] = {}
        self._lock = threading.Lock()

    def list_members(self, family_id: str) -> list[Member]:
        with self._lock:
            members = list(self._families.get(family_id, {}).values())
        return sorted(members, key=_sort_key)

    def get_member(self, family_id: str, member_id: str) -> Member | None:
        with self._lock:
            return self._families.get(family_id, {}).get(member_id)

    def existing_ids(self, family_id: str, member_ids: Iterable[str]) -> set[str]:
        with self._lock:
            family = self._families.get(family_id, {})
            return {mid for mid in member_ids if mid in family}

    def add_member(
        self,
        family_id: str,
        *,
        name: str,
        nickname: str | None = None,
        relationship: str | None = None,
        contact_email: str | None = None,
        user_id: str | None = None,
        member_id: str | None = None,
    ) -> Member:
        member = Member(
            id=member_id or uuid.uuid4().hex,
            name=_require_name(name),
            nickname=_clean(nickname),
            relationship=_clean(relationship),
            contact_email=_clean(contact_email),
            user_id=_clean(user_id),
        )
        with self._lock:
            family = self._families.setdefault(family_id, {})
            if member.id in family:
                raise ValueError(f"member id already in use: {member.id}")
            family[member.id] = member
        log.info("added member %s to family %s", member.id, family_id)
        return member

    def update_member(
        self,
        family_id: str,
        member_id: str,
        *,
        name: str,
        nickname: str | None = None,
        relationship: str | None = None,
        contact_email: str | None = None,
    ) -> Member:
        with self._lock:
            family = self._families.get(family_id, {})
            current = family.get(member_id)
            if current is None:
                raise NotFound(member_id, "member")
            updated = Member(
                id=member_id,
                name=_require_name(name),
                nickname=_clean(nickname),
                relationship=_clean(relationship),
                contact_email=_clean(contact_email),
                user_id=current.user_id,
            )
            family[member_id] = updated
        return updated

    def remove_member(self, family_id: str, member_id: str) -> bool:
        """Remove a member. The relationship store drops its edges on next access."""
        with self._lock:
            removed = self._families.get(family_id, {}).pop(member_id, None)
        if removed is not None:
            log.info("removed member %s from family %s", member_id, family_id)
        return removed is not None


class PostgresMemberRegistry:
    def __init__(self, connect: Callable[[], ContextManager[psycopg.Connection]] = db_conn) -> None:
        self._connect = connect

    def list_members(self, family_id: str) -> list[Member]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_MEMBER_COLUMNS}
                FROM family_members
                WHERE family_id = %s
                ORDER BY name, id
                """.strip(),
                (family_id,),
            ).fetchall()
        return [_member_from_row(tuple(r)) for r in rows]

    def get_member(self, family_id: str, member_id: str) -> Member | None:
        with self._connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_MEMBER_COLUMNS}
                FROM family_members
                WHERE family_id = %s AND id = %s
                """.strip(),
                (family_id, member_id),
            ).fetchone()
        return _member_from_row(tuple(row)) if row else None

    def existing_ids(self, family_id: str, member_ids: Iterable[str]) -> set[str]:
        ids = list(dict.fromkeys(member_ids))
        if not ids:
            return set()
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id FROM family_members WHERE family_id = %s AND id = ANY(%s)",
                (family_id, ids),
            ).fetchall()
        return {str(r[0]) for r in rows}

    def add_member(
        self,
        family_id: str,
        *,
        name: str,
        nickname: str | None = None,
        relationship: str | None = None,
        contact_email: str | None = None,
        user_id: str | None = None,
        member_id: str | None = None,
    ) -> Member:
        with self._connect() as conn:
            row = conn.execute(
                f"""
                INSERT INTO family_members
                  (id, family_id, name, nickname, relationship, contact_email, user_id)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING {_MEMBER_COLUMNS}
                """.strip(),
                (
                    member_id or uuid.uuid4().hex,
                    family_id,
                    _require_name(name),
                    _clean(nickname),
                    _clean(relationship),
                    _clean(contact_email),
                    _clean(user_id),
                ),
            ).fetchone()
        member = _member_from_row(tuple(row))
        log.info("added member %s to family %s", member.id, family_id)
        return member

    def update_member(
        self,
        family_id: str,
        member_id: str,
        *,
        name: str,
        nickname: str | None = None,
        relationship: str | None = None,
        contact_email: str | None = None,
    ) -> Member:
        with self._connect() as conn:
            row = conn.execute(
                f"""
                UPDATE family_members
                SET name = %s, nickname = %s, relationship = %s, contact_email = %s
                WHERE family_id = %s AND id = %s
                RETURNING {_MEMBER_COLUMNS}
                """.strip(),
                (
                    _require_name(name),
                    _clean(nickname),
                    _clean(relationship),
                    _clean(contact_email),
                    family_id,
                    member_id,
                ),
            ).fetchone()
        if not row:
            raise NotFound(member_id, "member")
        return _member_from_row(tuple(row))

    def remove_member(self, family_id: str, member_id: str) -> bool:
        """Remove a member; its edges go with it (ON DELETE CASCADE)."""
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM family_members WHERE family_id = %s AND id = %s",
                (family_id, member_id),
            )
            removed = (cur.rowcount or 0) > 0
        if removed:
            log.info("removed member %s from family %s", member_id, family_id)
        return removed
