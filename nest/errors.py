from __future__ import annotations

from typing import Any


class RelationshipError(Exception):
    """Base class for rejected relationship operations.

    ``role`` names the slot the offending id was supplied in:
    member, spouse, parent, child or related.
    """

    kind = "relationship_error"
    http_status = 400

    def __init__(self, member_id: str, role: str, detail: str | None = None) -> None:
        self.member_id = member_id
        self.role = role
        self.detail = detail or self.default_detail()
        super().__init__(self.detail)

    def default_detail(self) -> str:
        return f"invalid {self.role}: {self.member_id}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "member_id": self.member_id,
            "role": self.role,
            "detail": self.detail,
        }


class NotFound(RelationshipError):
    kind = "not_found"
    http_status = 404

    def default_detail(self) -> str:
        return f"{self.role} not found: {self.member_id}"


class InvalidSelfReference(RelationshipError):
    kind = "invalid_self_reference"

    def default_detail(self) -> str:
        return f"a member cannot be their own {self.role}: {self.member_id}"


class SpouseConflict(RelationshipError):
    kind = "spouse_conflict"
    http_status = 409

    def default_detail(self) -> str:
        return f"member already has a different spouse: {self.member_id}"
