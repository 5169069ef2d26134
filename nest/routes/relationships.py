"""Relationship editing routes.

The bulk ``PUT`` is what the member editor uses; single-edge add/remove is kept
for quick links from the tree view.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

try:
    from ..deps import get_registry, get_store
    from ..editor import set_member_relationships
    from ..errors import RelationshipError
    from ..graph import current_relationships
    from ..models import RelationshipType
except ImportError:  # pragma: no cover
    from deps import get_registry, get_store
    from editor import set_member_relationships
    from errors import RelationshipError
    from graph import current_relationships
    from models import RelationshipType

router = APIRouter(tags=["relationships"])


class EdgeRequest(BaseModel):
    member_id: str = Field(min_length=1, max_length=64)
    related_id: str = Field(min_length=1, max_length=64)
    relationship_type: Literal["spouse", "child"]


class RelationshipSetRequest(BaseModel):
    spouse_id: Optional[str] = None
    parent_ids: list[str] = Field(default_factory=list)
    child_ids: list[str] = Field(default_factory=list)


def _http_error(exc: RelationshipError) -> HTTPException:
    return HTTPException(status_code=exc.http_status, detail=exc.to_dict())


@router.post("/families/{family_id}/relationships", status_code=201)
def add_relationship(family_id: str, body: EdgeRequest, store: Any = Depends(get_store)) -> dict[str, Any]:
    """Add one edge. For ``child``, ``member_id`` is the child and ``related_id`` the parent."""

    try:
        store.add_edge(family_id, body.member_id, body.related_id, RelationshipType(body.relationship_type))
    except RelationshipError as exc:
        raise _http_error(exc) from exc
    return {"ok": True}


@router.delete("/families/{family_id}/relationships")
def remove_relationship(
    family_id: str,
    member_id: str = Query(min_length=1, max_length=64),
    related_id: str = Query(min_length=1, max_length=64),
    relationship_type: Literal["spouse", "child"] = Query(),
    store: Any = Depends(get_store),
) -> dict[str, Any]:
    removed = store.remove_edge(family_id, member_id, related_id, RelationshipType(relationship_type))
    return {"ok": True, "removed": removed}


@router.get("/families/{family_id}/members/{member_id}/relationships")
def get_member_relationships(
    family_id: str,
    member_id: str,
    registry: Any = Depends(get_registry),
    store: Any = Depends(get_store),
) -> dict[str, Any]:
    if registry.get_member(family_id, member_id) is None:
        raise HTTPException(status_code=404, detail=f"member not found: {member_id}")
    rels = current_relationships(member_id, store.edges(family_id))
    return {
        "member_id": member_id,
        "spouse_id": rels.spouse_id,
        "parent_ids": list(rels.parent_ids),
        "child_ids": list(rels.child_ids),
    }


@router.put("/families/{family_id}/members/{member_id}/relationships")
def put_member_relationships(
    family_id: str,
    member_id: str,
    body: RelationshipSetRequest,
    store: Any = Depends(get_store),
) -> dict[str, Any]:
    """Replace all spouse/parent/child links of a member. Omitted lists clear those links."""

    result = set_member_relationships(
        store,
        family_id,
        member_id,
        spouse_id=body.spouse_id,
        parent_ids=body.parent_ids,
        child_ids=body.child_ids,
    )
    if not result.ok and result.error is not None:
        raise _http_error(result.error)
    return result.to_dict()
