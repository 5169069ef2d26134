from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

try:
    from .errors import RelationshipError
    from .models import RelationshipSet
    from .store import RelationshipStore, check_self_references
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from errors import RelationshipError
    from models import RelationshipSet
    from store import RelationshipStore, check_self_references

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditResult:
    ok: bool
    error: RelationshipError | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok or self.error is None:
            return {"ok": self.ok}
        return {"ok": False, **self.error.to_dict()}


def set_member_relationships(
    store: RelationshipStore,
    family_id: str,
    member_id: str,
    *,
    spouse_id: str | None = None,
    parent_ids: list[str] | None = None,
    child_ids: list[str] | None = None,
) -> EditResult:
    """Replace every spouse/parent/child link of *member_id* in one step.

    Omitted fields clear those links. Contradictory input (the same id as both
    parent and child, say) is accepted; the resulting edges are deterministic
    from the three lists, so repeating a call leaves the edge set unchanged.

    Validation failures come back as an ``EditResult`` rather than an
    exception, naming the offending id and the role it was supplied in. On any
    failure the previous configuration is left intact.
    """

    rels = RelationshipSet.of(spouse_id=spouse_id, parent_ids=parent_ids, child_ids=child_ids)
    try:
        check_self_references(member_id, rels)
        store.replace_all_for(family_id, member_id, rels)
    except RelationshipError as exc:
        log.info("rejected relationship edit for %s: %s", member_id, exc.detail)
        return EditResult(ok=False, error=exc)
    return EditResult(ok=True)
