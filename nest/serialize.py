from __future__ import annotations

from typing import Any, Iterable

try:
    from .models import Member, TreeNode
    from .names import display_label, initials
    from .status import classify, member_actions, status_label
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from models import Member, TreeNode
    from names import display_label, initials
    from status import classify, member_actions, status_label


_OPTIONAL_MEMBER_FIELDS = ("nickname", "relationship", "contact_email")


def _member_fields(m: Member) -> dict[str, Any]:
    """Id and name, plus the optional text fields that hold something.

    Blank or whitespace-only nicknames, labels and emails are left out rather
    than sent as empty strings.
    """

    out: dict[str, Any] = {"id": m.id, "name": (m.name or "").strip()}
    for field in _OPTIONAL_MEMBER_FIELDS:
        value = (getattr(m, field) or "").strip()
        if value:
            out[field] = value
    return out


def _member_to_public(m: Member, *, include_actions: bool = False) -> dict[str, Any]:
    status = classify(m)
    out = _member_fields(m)
    out.update(
        {
            "display_name": m.display_name,
            "label": display_label(m),
            "initials": initials(m.display_name),
            "status": status.value,
            "status_label": status_label(status),
        }
    )
    if include_actions:
        out["actions"] = member_actions(status)
    return out


def _node_row(n: TreeNode, selected_node: TreeNode | None) -> dict[str, Any]:
    return {
        "member": _member_to_public(n.member),
        "spouse": _member_to_public(n.spouse) if n.spouse is not None else None,
        "is_co_parent": n.is_co_parent,
        "co_parent": _member_to_public(n.co_parent) if n.co_parent is not None else None,
        "selected": n is selected_node,
        "children": [],
    }


def _forest_to_public(
    forest: Iterable[TreeNode], *, selected_node: TreeNode | None = None
) -> list[dict[str, Any]]:
    """Nested JSON rows for the forest; only ``selected_node`` is flagged selected."""

    roots: list[dict[str, Any]] = []
    stack: list[tuple[TreeNode, list[dict[str, Any]]]] = [(n, roots) for n in reversed(list(forest))]
    while stack:
        n, siblings = stack.pop()
        row = _node_row(n, selected_node)
        siblings.append(row)
        stack.extend((c, row["children"]) for c in reversed(n.children))
    return roots
