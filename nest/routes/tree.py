from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

try:
    from ..deps import get_registry, get_store
    from ..serialize import _forest_to_public
    from ..tree import build_forest, find_node
except ImportError:  # pragma: no cover
    from deps import get_registry, get_store
    from serialize import _forest_to_public
    from tree import build_forest, find_node

router = APIRouter(tags=["tree"])


@router.get("/families/{family_id}/tree")
def family_tree(
    family_id: str,
    selected: Optional[str] = Query(default=None, max_length=64),
    registry: Any = Depends(get_registry),
    store: Any = Depends(get_store),
) -> dict[str, Any]:
    """Family forest for hierarchical display.

    Rebuilt from the full member and edge snapshot on every call. ``selected``
    is the UI's current selection. It marks the one node holding that member
    and is echoed back as null when nobody in the family matches.
    """

    members = registry.list_members(family_id)
    forest = build_forest(members, store.edges(family_id))
    selected_node = find_node(forest, selected) if selected else None
    return {
        "family_id": family_id,
        "total_members": len(members),
        "selected": selected if selected_node is not None else None,
        "roots": _forest_to_public(forest, selected_node=selected_node),
    }
