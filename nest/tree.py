"""Rebuild a displayable family forest from a flat edge set.

The builder is a pure function: it never raises on malformed input (dangling
ids, cycles, a member recorded as their own ancestor) and never keeps state
between calls. Each member is placed at most once; a placed-set is checked and
updated when a member is opened, before its children are expanded. Expansion
uses an explicit stack, so a long line of generations never hits the
interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

try:
    from .graph import EdgeIndex
    from .models import Member, RelationshipEdge, TreeNode
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from graph import EdgeIndex
    from models import Member, RelationshipEdge, TreeNode

log = logging.getLogger(__name__)


class _ForestBuilder:
    def __init__(self, members: list[Member], index: EdgeIndex) -> None:
        self.members = members
        self.by_id: dict[str, Member] = {}
        for m in members:
            self.by_id.setdefault(m.id, m)
        self.index = index
        self.placed: set[str] = set()

    def _take(self, member_id: str | None) -> Member | None:
        """Claim *member_id* for the current position, or None if unknown or already placed."""
        if member_id is None or member_id in self.placed:
            return None
        member = self.by_id.get(member_id)
        if member is None:
            return None
        self.placed.add(member_id)
        return member

    def _root_order_key(self, m: Member) -> tuple[int, int, str, str]:
        # Real ancestors first, so a child's spouse who is also a root cannot
        # claim the child before its own parents do.
        return (
            0 if self.index.has_grandchildren(m.id) else 1,
            -len(self.index.children_of(m.id)),
            (m.name or "").casefold(),
            m.id,
        )

    def roots(self) -> list[Member]:
        candidates = [m for m in self.by_id.values() if not self.index.has_parent(m.id)]
        return sorted(candidates, key=self._root_order_key)

    def _find_co_parent(self, root_id: str, roots: list[Member]) -> str | None:
        """Another unplaced root without a recorded spouse that shares a child with *root_id*."""
        mine = set(self.index.children_of(root_id))
        if not mine:
            return None
        for other in roots:
            if other.id == root_id or other.id in self.placed:
                continue
            if self.index.spouse_of(other.id) is not None:
                continue
            if any(c in mine for c in self.index.children_of(other.id)):
                return other.id
        return None

    def _open(self, member_id: str, co_parent_id: str | None = None) -> TreeNode | None:
        """Claim *member_id* and its partner(s); children are filled in by ``node``."""
        member = self._take(member_id)
        if member is None:
            return None

        spouse_id = self.index.spouse_of(member_id)
        spouse: Member | None = None
        co_parent: Member | None = None
        is_co_parent = False

        if spouse_id is not None:
            spouse = self._take(spouse_id)
            if spouse is not None:
                co_parent = self._take(co_parent_id)
        else:
            spouse = self._take(co_parent_id)
            is_co_parent = spouse is not None

        return TreeNode(member=member, spouse=spouse, is_co_parent=is_co_parent, co_parent=co_parent)

    def _child_ids(self, n: TreeNode) -> list[str]:
        pair = [p.id for p in (n.member, n.spouse, n.co_parent) if p is not None]
        child_ids: list[str] = []
        for pid in pair:
            for cid in self.index.children_of(pid):
                if cid not in child_ids and cid not in pair:
                    child_ids.append(cid)
        return child_ids

    def node(self, member_id: str, co_parent_id: str | None = None) -> TreeNode | None:
        """Build the subtree under *member_id* depth first, with an explicit stack."""
        top = self._open(member_id, co_parent_id)
        if top is None:
            return None

        stack: list[tuple[TreeNode, Iterator[str]]] = [(top, iter(self._child_ids(top)))]
        while stack:
            parent, pending = stack[-1]
            for cid in pending:
                child = self._open(cid)
                if child is not None:
                    parent.children.append(child)
                    stack.append((child, iter(self._child_ids(child))))
                    break
            else:
                stack.pop()
        return top

    def build(self) -> list[TreeNode]:
        forest: list[TreeNode] = []
        roots = self.roots()
        for r in roots:
            if r.id in self.placed:
                continue
            n = self.node(r.id, self._find_co_parent(r.id, roots))
            if n is not None:
                forest.append(n)

        # No roots at all (every member has a parent) or components only
        # reachable through a cycle: place leftovers flat, in input order.
        leftovers = [m for m in self.members if m.id not in self.placed]
        if leftovers:
            log.debug("placing %d members with no path from a root", len(leftovers))
        for m in leftovers:
            n = self.node(m.id)
            if n is not None:
                forest.append(n)
        return forest


def build_forest(
    members: Iterable[Member],
    edges: Iterable[RelationshipEdge],
) -> list[TreeNode]:
    """Return the ordered forest for one family group.

    Spouses are paired on one node, children of either partner are merged under
    the pair, and every known member appears exactly once.
    """

    member_list = list(members)
    index = EdgeIndex.build(edges, known={m.id for m in member_list})
    return _ForestBuilder(member_list, index).build()


def find_node(forest: Iterable[TreeNode], member_id: str) -> TreeNode | None:
    """Locate the node holding *member_id* as member, spouse or co-parent."""

    stack = list(forest)
    while stack:
        n = stack.pop()
        if member_id in {p.id for p in (n.member, n.spouse, n.co_parent) if p is not None}:
            return n
        stack.extend(n.children)
    return None
