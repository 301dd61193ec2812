"""Plan assembly endpoints."""
from fastapi import APIRouter, Depends, HTTPException

from ..schemas.models import NutrientTargets, Plan
from ..schemas.schemas import PlanRequest, PlanResponse
from ..services.planning import PlanningService
from .deps import get_planner

router = APIRouter()


@router.post("", response_model=PlanResponse)
def create_plan(payload: PlanRequest, planner: PlanningService = Depends(get_planner)):
    """Assemble a multi-day plan and its aggregation report."""
    if payload.save and planner.plan_repository is None:
        raise HTTPException(status_code=400, detail="Plan saving is not configured")
    overrides = {(o.day, o.meal_type): o.category for o in payload.slot_overrides}
    targets = NutrientTargets(per_day=payload.targets) if payload.targets else None
    result = planner.build_plan(
        payload.profile,
        payload.context,
        days=payload.days,
        meal_types=payload.meal_types,
        slot_categories=payload.slot_categories,
        slot_overrides=overrides,
        items_per_slot=payload.items_per_slot,
        start_date=payload.start_date,
        targets=targets,
        progress=payload.progress,
        save=payload.save,
    )
    return PlanResponse(plan=result.plan, report=result.report)


@router.get("/{plan_id}", response_model=Plan)
def get_plan(plan_id: str, planner: PlanningService = Depends(get_planner)):
    if planner.plan_repository is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    try:
        return planner.plan_repository.load_plan(plan_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Plan not found")
