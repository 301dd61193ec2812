"""Meal analysis endpoints: taste balance and compatibility."""
from fastapi import APIRouter, Depends, HTTPException

from ..schemas.models import CompatibilityScore
from ..schemas.schemas import CompatibilityRequest, TasteAnalysisRequest, TasteAnalysisResponse
from ..services.planning import PlanningService
from .deps import get_planner

router = APIRouter()


@router.post("/tastes", response_model=TasteAnalysisResponse)
def analyze_tastes(payload: TasteAnalysisRequest, planner: PlanningService = Depends(get_planner)):
    """Six-taste composite of a meal given by item ids and/or raw vectors."""
    if not payload.item_ids and not payload.vectors:
        raise HTTPException(status_code=400, detail="Provide item_ids or vectors")
    if payload.quantities is not None and len(payload.quantities) != len(payload.item_ids):
        raise HTTPException(status_code=400, detail="quantities must match item_ids")

    quantities = payload.quantities or [1.0] * len(payload.item_ids)
    entries = [
        (planner.knowledge_base.get(item_id).attributes, qty)
        for item_id, qty in zip(payload.item_ids, quantities)
    ]
    entries.extend(payload.vectors)
    composite = planner.aggregator.aggregate(entries)

    balancing = planner.balancing_foods(composite, payload.suggestion_limit)
    advice = None
    if payload.profile is not None:
        advice = planner.thermal_advice(composite, payload.profile, payload.context)
    return TasteAnalysisResponse(
        composite=composite,
        balancing_foods=[item.id for item in balancing],
        thermal_advice=advice,
    )


@router.post("/compatibility", response_model=CompatibilityScore)
def score_compatibility(payload: CompatibilityRequest, planner: PlanningService = Depends(get_planner)):
    """Compatibility of one item, or several eaten together, for a subject."""
    if payload.quantities is not None and len(payload.quantities) != len(payload.item_ids):
        raise HTTPException(status_code=400, detail="quantities must match item_ids")
    return planner.score(payload.profile, payload.item_ids, payload.context, payload.quantities)
