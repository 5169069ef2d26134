"""CLI admin tool for a family's directory and relationship graph.

Usage:
    python -m nest.admin init-db
    python -m nest.admin add-member --family=hofland --name="Jan Hofland" --email=jan@example.com
    python -m nest.admin list-members --family=hofland
    python -m nest.admin set-relationships --family=hofland --member=<id> --spouse=<id> --child=<id>
    python -m nest.admin show-tree --family=hofland
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TextIO

# Ensure the repo root is on sys.path so package imports work.
_repo_root = Path(__file__).resolve().parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

from nest.db import db_conn  # noqa: E402
from nest.editor import set_member_relationships  # noqa: E402
from nest.models import TreeNode  # noqa: E402
from nest.registry import PostgresMemberRegistry  # noqa: E402
from nest.status import classify, status_label  # noqa: E402
from nest.store import PostgresRelationshipStore  # noqa: E402
from nest.tree import build_forest  # noqa: E402


def _schema_sql() -> Path:
    return _repo_root / "sql" / "schema.sql"


def cmd_init_db(args: argparse.Namespace) -> None:
    schema_sql = _schema_sql()
    if not schema_sql.exists():
        raise SystemExit(f"schema.sql not found at {schema_sql}")
    with db_conn() as conn:
        conn.execute(schema_sql.read_text(encoding="utf-8"))
    print("Family tables created.")


def cmd_add_member(args: argparse.Namespace) -> None:
    registry = PostgresMemberRegistry()
    try:
        member = registry.add_member(
            args.family,
            name=args.name,
            nickname=args.nickname,
            relationship=args.relationship,
            contact_email=args.email,
            user_id=args.user_id,
        )
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    print(f"Member '{member.display_name}' added with id {member.id}.")


def cmd_list_members(args: argparse.Namespace) -> None:
    members = PostgresMemberRegistry().list_members(args.family)
    if not members:
        print("No members.")
        return
    print(f"{'ID':<34} {'Name':<25} {'Relationship':<15} {'Status':<20}")
    print("-" * 96)
    for m in members:
        print(f"{m.id:<34} {m.display_name:<25} {(m.relationship or '-'):<15} {status_label(classify(m)):<20}")


def cmd_set_relationships(args: argparse.Namespace) -> None:
    result = set_member_relationships(
        PostgresRelationshipStore(),
        args.family,
        args.member,
        spouse_id=args.spouse,
        parent_ids=args.parent,
        child_ids=args.child,
    )
    if not result.ok and result.error is not None:
        raise SystemExit(f"Rejected ({result.error.role}): {result.error.detail}")
    print(f"Relationships of {args.member} updated.")


def _node_line(n: TreeNode, depth: int) -> str:
    line = f"{'    ' * depth}{n.member.display_name} [{status_label(classify(n.member))}]"
    if n.spouse is not None:
        joiner = "&" if n.is_co_parent else "♥"
        line += f" {joiner} {n.spouse.display_name} [{status_label(classify(n.spouse))}]"
    if n.co_parent is not None:
        line += f" (co-parent: {n.co_parent.display_name})"
    return line


def _print_node(root: TreeNode, out: TextIO) -> None:
    stack = [(root, 0)]
    while stack:
        n, depth = stack.pop()
        print(_node_line(n, depth), file=out)
        stack.extend((c, depth + 1) for c in reversed(n.children))


def print_forest(forest: list[TreeNode], out: TextIO = sys.stdout) -> None:
    if not forest:
        print("No members.", file=out)
        return
    for root in forest:
        _print_node(root, out)


def cmd_show_tree(args: argparse.Namespace) -> None:
    members = PostgresMemberRegistry().list_members(args.family)
    edges = PostgresRelationshipStore().edges(args.family)
    print_forest(build_forest(members, edges))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Family Nest admin CLI")
    sub = parser.add_subparsers(dest="command")

    # init-db
    sub.add_parser("init-db", help="Create the family tables")

    # add-member
    p = sub.add_parser("add-member", help="Add a member to a family")
    p.add_argument("--family", required=True)
    p.add_argument("--name", required=True)
    p.add_argument("--nickname", default=None)
    p.add_argument("--relationship", default=None, help="Free-text label, e.g. 'Grandma'")
    p.add_argument("--email", default=None)
    p.add_argument("--user-id", default=None, help="Linked login identity, if any")

    # list-members
    p = sub.add_parser("list-members", help="List a family's members with their status")
    p.add_argument("--family", required=True)

    # set-relationships
    p = sub.add_parser("set-relationships", help="Replace a member's spouse, parents and children")
    p.add_argument("--family", required=True)
    p.add_argument("--member", required=True)
    p.add_argument("--spouse", default=None)
    p.add_argument("--parent", action="append", default=[])
    p.add_argument("--child", action="append", default=[])

    # show-tree
    p = sub.add_parser("show-tree", help="Print the family tree")
    p.add_argument("--family", required=True)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    dispatch = {
        "init-db": cmd_init_db,
        "add-member": cmd_add_member,
        "list-members": cmd_list_members,
        "set-relationships": cmd_set_relationships,
        "show-tree": cmd_show_tree,
    }
    dispatch[args.command](args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
