"""Pydantic schemas for request/response models."""
import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, Field

from nutriplan_app.core.errors import MalformedAttributeVector
from nutriplan_app.schemas.models import (
    AggregationReport,
    CompositeProfile,
    Plan,
    ProgressMeasurement,
    ScoringContext,
    ThermalBalanceAdvice,
    WeightedVector,
)


class RecommendationRequest(BaseModel):
    # Raw mapping so a missing archetype surfaces as a controlled 422
    profile: Dict[str, Any]
    context: ScoringContext = Field(default_factory=ScoringContext)
    category: Optional[str] = None
    meal_type: Optional[str] = None
    top_n: Optional[int] = Field(None, ge=1, le=100)
    require_in_season: bool = False


class SlotOverride(BaseModel):
    day: int = Field(..., ge=1)
    meal_type: str
    category: str


class PlanRequest(BaseModel):
    profile: Dict[str, Any]
    context: ScoringContext = Field(default_factory=ScoringContext)
    days: Optional[int] = Field(None, ge=1, le=28)
    meal_types: Optional[List[str]] = None
    slot_categories: Optional[Dict[str, str]] = None
    slot_overrides: List[SlotOverride] = []
    items_per_slot: int = Field(1, ge=1, le=3)
    start_date: Optional[datetime.date] = None
    # per-day nutrient targets, e.g. {"calories": 2000}
    targets: Optional[Dict[str, float]] = None
    progress: List[ProgressMeasurement] = []
    save: bool = False


class PlanResponse(BaseModel):
    plan: Plan
    report: AggregationReport


class TasteAnalysisRequest(BaseModel):
    item_ids: List[str] = []
    quantities: Optional[List[Annotated[float, Field(ge=0)]]] = None
    # raw vectors can be analysed without being in the knowledge base
    vectors: List[WeightedVector] = []
    profile: Optional[Dict[str, Any]] = None
    context: ScoringContext = Field(default_factory=ScoringContext)
    suggestion_limit: int = Field(5, ge=0, le=50)


class TasteAnalysisResponse(BaseModel):
    composite: CompositeProfile
    balancing_foods: List[str] = []
    thermal_advice: Optional[ThermalBalanceAdvice] = None


class CompatibilityRequest(BaseModel):
    profile: Dict[str, Any]
    item_ids: List[str] = Field(..., min_length=1)
    quantities: Optional[List[Annotated[float, Field(ge=0)]]] = None
    context: ScoringContext = Field(default_factory=ScoringContext)


class QuarantineResponse(BaseModel):
    loaded: int
    quarantined: int
    entries: List[MalformedAttributeVector] = []
