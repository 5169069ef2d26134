"""Plain data types shared by the registry, the relationship store and the tree builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class RelationshipType(str, Enum):
    SPOUSE = "spouse"
    CHILD = "child"


class MembershipStatus(str, Enum):
    SIGNED_IN = "signed_in"
    PENDING_INVITATION = "pending_invitation"
    NO_ACCOUNT = "no_account"


@dataclass(frozen=True)
class Member:
    """One person in a family group's directory.

    Members never reference relationships; all structure lives in the edge set.
    """

    id: str
    name: str
    nickname: str | None = None
    relationship: str | None = None
    contact_email: str | None = None
    user_id: str | None = None

    @property
    def display_name(self) -> str:
        return (self.nickname or "").strip() or (self.name or "").strip() or "Someone"

    @property
    def has_account_link(self) -> bool:
        return bool(self.user_id)

    @property
    def has_contact_email(self) -> bool:
        return bool((self.contact_email or "").strip())


@dataclass(frozen=True)
class RelationshipEdge:
    """One directed fact.

    For ``child`` edges ``member_id`` is the child and ``related_id`` the parent.
    Spouse edges are stored in both directions.
    """

    member_id: str
    related_id: str
    type: RelationshipType

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> RelationshipEdge:
        # row = (member_id, related_id, relationship_type)
        member_id, related_id, rel_type = row
        return cls(str(member_id), str(related_id), RelationshipType(rel_type))

    def reversed(self) -> RelationshipEdge:
        return RelationshipEdge(self.related_id, self.member_id, self.type)

    def touches(self, member_id: str) -> bool:
        return self.member_id == member_id or self.related_id == member_id


@dataclass(frozen=True)
class RelationshipSet:
    """The full relationship configuration of one member, as submitted by an editor."""

    spouse_id: str | None = None
    parent_ids: tuple[str, ...] = ()
    child_ids: tuple[str, ...] = ()

    @classmethod
    def of(
        cls,
        *,
        spouse_id: str | None = None,
        parent_ids: list[str] | tuple[str, ...] | None = None,
        child_ids: list[str] | tuple[str, ...] | None = None,
    ) -> RelationshipSet:
        # Drop blanks and repeats but keep submission order.
        return cls(
            spouse_id=spouse_id or None,
            parent_ids=tuple(dict.fromkeys(p for p in (parent_ids or ()) if p)),
            child_ids=tuple(dict.fromkeys(c for c in (child_ids or ()) if c)),
        )

    def related_ids(self) -> Iterator[tuple[str, str]]:
        """Yield (role, id) for every referenced member."""
        if self.spouse_id:
            yield "spouse", self.spouse_id
        for pid in self.parent_ids:
            yield "parent", pid
        for cid in self.child_ids:
            yield "child", cid

    def edges_for(self, member_id: str) -> list[RelationshipEdge]:
        edges: list[RelationshipEdge] = []
        if self.spouse_id:
            edges.append(RelationshipEdge(member_id, self.spouse_id, RelationshipType.SPOUSE))
            edges.append(RelationshipEdge(self.spouse_id, member_id, RelationshipType.SPOUSE))
        for pid in self.parent_ids:
            edges.append(RelationshipEdge(member_id, pid, RelationshipType.CHILD))
        for cid in self.child_ids:
            edges.append(RelationshipEdge(cid, member_id, RelationshipType.CHILD))
        return edges


@dataclass
class TreeNode:
    member: Member
    spouse: Member | None = None
    # True when ``spouse`` is an unmarried co-parent rather than a recorded spouse.
    is_co_parent: bool = False
    # Co-parent shown beside a member that already has a recorded spouse.
    co_parent: Member | None = None
    children: list[TreeNode] = field(default_factory=list)

    def placed_members(self) -> Iterator[Member]:
        """Yield every member placed in this subtree, depth first."""
        stack = [self]
        while stack:
            n = stack.pop()
            yield n.member
            if n.spouse is not None:
                yield n.spouse
            if n.co_parent is not None:
                yield n.co_parent
            stack.extend(reversed(n.children))
