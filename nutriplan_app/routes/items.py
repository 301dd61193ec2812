"""Read-only knowledge base endpoints.

Exposes GET /api/items, GET /api/items/quarantine and GET /api/items/{item_id}.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends

from ..core.utils import normalize_tag
from ..schemas.models import KnowledgeItem
from ..schemas.schemas import QuarantineResponse
from ..services.planning import PlanningService
from .deps import get_planner

router = APIRouter()


@router.get("/items", response_model=List[KnowledgeItem])
def list_items(category: Optional[str] = None, limit: Optional[int] = None,
               planner: PlanningService = Depends(get_planner)):
    """Return knowledge items, optionally narrowed to one category."""
    query = planner.knowledge_base.query()
    if category:
        wanted = normalize_tag(category)
        query = query.where(lambda item: item.category == wanted)
    items = query.to_list()
    return items[:limit] if limit else items


@router.get("/items/quarantine", response_model=QuarantineResponse)
def quarantine(planner: PlanningService = Depends(get_planner)):
    """Items rejected at load time and why."""
    return planner.knowledge_base.quarantine_report()


@router.get("/items/{item_id}", response_model=KnowledgeItem)
def get_item(item_id: str, planner: PlanningService = Depends(get_planner)):
    return planner.knowledge_base.get(item_id)
