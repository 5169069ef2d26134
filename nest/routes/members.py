"""Family directory routes: list, create, update and remove members."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

try:
    from ..deps import get_registry, get_store
    from ..errors import NotFound
    from ..graph import related_members
    from ..serialize import _member_to_public
except ImportError:  # pragma: no cover
    from deps import get_registry, get_store
    from errors import NotFound
    from graph import related_members
    from serialize import _member_to_public

router = APIRouter(tags=["members"])


class MemberRequest(BaseModel):
    name: str
    nickname: Optional[str] = None
    relationship: Optional[str] = None
    contact_email: Optional[str] = None


@router.get("/families/{family_id}/members")
def list_members(family_id: str, registry: Any = Depends(get_registry)) -> dict[str, Any]:
    """List a family's members ordered by name, each with status and available actions."""

    members = registry.list_members(family_id)
    return {
        "family_id": family_id,
        "total": len(members),
        "results": [_member_to_public(m, include_actions=True) for m in members],
    }


@router.post("/families/{family_id}/members", status_code=201)
def create_member(family_id: str, body: MemberRequest, registry: Any = Depends(get_registry)) -> dict[str, Any]:
    try:
        member = registry.add_member(
            family_id,
            name=body.name,
            nickname=body.nickname,
            relationship=body.relationship,
            contact_email=body.contact_email,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _member_to_public(member, include_actions=True)


@router.get("/families/{family_id}/members/{member_id}")
def get_member(
    family_id: str,
    member_id: str,
    registry: Any = Depends(get_registry),
    store: Any = Depends(get_store),
) -> dict[str, Any]:
    member = registry.get_member(family_id, member_id)
    if member is None:
        raise HTTPException(status_code=404, detail=f"member not found: {member_id}")

    related = related_members(member_id, registry.list_members(family_id), store.edges(family_id))
    out = _member_to_public(member, include_actions=True)
    out["related"] = [
        {"id": m.id, "display_name": m.display_name, "label": label} for m, label in related
    ]
    return out


@router.put("/families/{family_id}/members/{member_id}")
def update_member(
    family_id: str,
    member_id: str,
    body: MemberRequest,
    registry: Any = Depends(get_registry),
) -> dict[str, Any]:
    try:
        member = registry.update_member(
            family_id,
            member_id,
            name=body.name,
            nickname=body.nickname,
            relationship=body.relationship,
            contact_email=body.contact_email,
        )
    except NotFound as exc:
        raise HTTPException(status_code=exc.http_status, detail=exc.to_dict()) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _member_to_public(member, include_actions=True)


@router.delete("/families/{family_id}/members/{member_id}")
def delete_member(family_id: str, member_id: str, registry: Any = Depends(get_registry)) -> dict[str, Any]:
    if not registry.remove_member(family_id, member_id):
        raise HTTPException(status_code=404, detail=f"member not found: {member_id}")
    return {"id": member_id, "removed": True}
