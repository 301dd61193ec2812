"""Domain value objects for the scoring and planning engine.

Everything here is a pydantic model so plans and reports can be handed to a
renderer or a persistence layer with `model_dump()` and nothing else.
"""
import datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nutriplan_app.core.constants import ALL_SEASONS_TAG
from nutriplan_app.core.errors import EmptyCandidateSet, ProfileSchemaError, UnitMismatch
from nutriplan_app.core.utils import normalize_tags, resolve_season, split_list
from nutriplan_app.schemas.enums import (
    Archetype,
    BalanceCategory,
    DigestiveStrength,
    Digestibility,
    Dosha,
    DoshaImpact,
    IngredientPriority,
    IngredientRole,
    Season,
    SlotStatus,
    TasteAxis,
    ThermalEffect,
)


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True)


def _tag_tuple(value) -> Tuple[str, ...]:
    return normalize_tags(split_list(value))


# ---------------------------------------------------------------------------
# Attribute vectors
# ---------------------------------------------------------------------------

class TasteProfile(_Value):
    """Six taste intensities. Item vectors need not sum to 100."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    sweet: float = Field(0.0, ge=0)
    sour: float = Field(0.0, ge=0)
    salty: float = Field(0.0, ge=0)
    pungent: float = Field(0.0, ge=0)
    bitter: float = Field(0.0, ge=0)
    astringent: float = Field(0.0, ge=0)

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> "TasteProfile":
        values = {}
        for key, value in (mapping or {}).items():
            axis = TasteAxis(key.value if isinstance(key, TasteAxis) else str(key).strip().lower())
            values[axis.value] = 0.0 if value is None else float(value)
        return cls(**values)

    def get(self, axis: TasteAxis) -> float:
        return getattr(self, TasteAxis(axis).value)

    def as_dict(self) -> Dict[TasteAxis, float]:
        return {axis: self.get(axis) for axis in TasteAxis}

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())


class DoshaEffect(_Value):
    """Signed per-dosha effect; negative pacifies, positive aggravates."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    vata: float = 0.0
    pitta: float = 0.0
    kapha: float = 0.0

    def get(self, dosha: Dosha) -> float:
        return getattr(self, Dosha(dosha).value)

    def as_dict(self) -> Dict[Dosha, float]:
        return {dosha: self.get(dosha) for dosha in Dosha}


class AttributeVector(_Value):
    tastes: TasteProfile = Field(default_factory=TasteProfile)
    thermal: Optional[ThermalEffect] = None
    thermal_intensity: Optional[float] = Field(None, ge=1, le=5)
    dosha_effect: Optional[DoshaEffect] = None

    @property
    def is_resolved(self) -> bool:
        """True once the inference step has filled every optional attribute."""
        return (self.thermal is not None and self.thermal_intensity is not None
                and self.dosha_effect is not None)


class WeightedVector(_Value):
    """An attribute vector with the quantity it contributes to a meal."""
    vector: AttributeVector
    quantity: float = Field(1.0, ge=0)


# ---------------------------------------------------------------------------
# Knowledge items
# ---------------------------------------------------------------------------

class Ingredient(_Value):
    name: str
    quantity: float = Field(0.0, ge=0)
    unit: str = ""
    role: Optional[IngredientRole] = None
    optional: bool = False

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value


class KnowledgeItem(_Value):
    """A food or recipe as held by the knowledge base. Never mutated after load."""
    id: str
    name: str
    category: str = ""
    cuisine: Optional[str] = None
    tags: Tuple[str, ...] = ()
    meal_types: Tuple[str, ...] = ()
    attributes: AttributeVector = Field(default_factory=AttributeVector)
    seasons: Tuple[str, ...] = ()
    digestibility: Digestibility = Digestibility.MODERATE
    contraindications: Tuple[str, ...] = ()
    allergens: Tuple[str, ...] = ()
    dietary_flags: Tuple[str, ...] = ()
    benefits: Tuple[str, ...] = ()
    nutrients: Dict[str, float] = Field(default_factory=dict)
    ingredients: Tuple[Ingredient, ...] = ()
    metadata: Dict[str, Any] = Field(default_factory=dict)
    source: str = "knowledge-base"

    @field_validator("tags", "meal_types", "seasons", "contraindications",
                     "allergens", "dietary_flags", mode="before")
    @classmethod
    def _normalize_tag_fields(cls, value):
        return _tag_tuple(value)

    @field_validator("benefits", mode="before")
    @classmethod
    def _split_benefits(cls, value):
        # benefit text is matched by substring, keep it readable
        return tuple(split_list(value))

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value):
        tags = _tag_tuple([value]) if value else ()
        return tags[0] if tags else ""

    def in_season(self, season: Season) -> bool:
        """Items without a season list are available all year."""
        if not self.seasons or ALL_SEASONS_TAG in self.seasons:
            return True
        return Season(season).value in self.seasons


# ---------------------------------------------------------------------------
# Subject and context
# ---------------------------------------------------------------------------

class SubjectProfile(_Value):
    id: Optional[str] = None
    name: Optional[str] = None
    archetype: Archetype
    digestive_strength: DigestiveStrength = DigestiveStrength.MODERATE
    # 0..10, 7 and above is treated as high stress
    stress_level: float = Field(0.0, ge=0, le=10)
    symptoms: Tuple[str, ...] = ()
    goals: Tuple[str, ...] = ()
    exclusions: Tuple[str, ...] = ()

    @field_validator("archetype", mode="before")
    @classmethod
    def _parse_archetype(cls, value):
        if isinstance(value, str):
            # Archetype._missing_ handles aliases like "tridoshic"
            return Archetype(value)
        return value

    @field_validator("symptoms", "exclusions", mode="before")
    @classmethod
    def _normalize_tag_fields(cls, value):
        return _tag_tuple(value)

    @field_validator("goals", mode="before")
    @classmethod
    def _split_goals(cls, value):
        return tuple(split_list(value))

    @classmethod
    def from_mapping(cls, data: Mapping) -> "SubjectProfile":
        """Build a profile from raw input, raising ProfileSchemaError on bad shape."""
        if isinstance(data, SubjectProfile):
            return data
        if not data or not data.get("archetype"):
            raise ProfileSchemaError("subject profile requires an archetype")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ProfileSchemaError(f"invalid subject profile: {exc}") from exc


class ScoringContext(_Value):
    season: Optional[Season] = None
    region: Optional[str] = None
    temperature: Optional[float] = None
    reference_date: Optional[datetime.date] = None
    # vectors already chosen for the same meal
    companions: Tuple[WeightedVector, ...] = ()

    def resolved_season(self) -> Season:
        return resolve_season(self.season, self.reference_date, self.temperature)

    def for_date(self, day: datetime.date) -> "ScoringContext":
        return self.model_copy(update={"reference_date": day})

    def with_companions(self, companions) -> "ScoringContext":
        return self.model_copy(update={"companions": tuple(companions)})


# ---------------------------------------------------------------------------
# Aggregation and scoring results
# ---------------------------------------------------------------------------

class CompositeProfile(_Value):
    percentages: TasteProfile = Field(default_factory=TasteProfile)
    balance_score: int = 0
    balance_category: BalanceCategory = BalanceCategory.SEVERELY_IMBALANCED
    mean_absolute_deviation: float = 0.0
    dominant: Tuple[TasteAxis, ...] = ()
    deficient: Tuple[TasteAxis, ...] = ()
    dosha_effect: DoshaEffect = Field(default_factory=DoshaEffect)
    dosha_impact: Dict[Dosha, DoshaImpact] = Field(default_factory=dict)
    thermal: ThermalEffect = ThermalEffect.NEUTRAL
    thermal_intensity: float = 0.0
    total_weight: float = 0.0
    suggestions: Tuple[str, ...] = ()
    empty: bool = False
    warnings: Tuple[str, ...] = ()

    def as_vector(self) -> AttributeVector:
        """View the composite as a single resolved attribute vector."""
        intensity = self.thermal_intensity if self.thermal_intensity >= 1 else None
        return AttributeVector(
            tastes=self.percentages,
            thermal=self.thermal,
            thermal_intensity=min(intensity, 5.0) if intensity is not None else None,
            dosha_effect=self.dosha_effect,
        )


class RationaleEntry(_Value):
    axis: str
    delta: float = 0.0
    message: str


class CompatibilityScore(_Value):
    constitutional: int
    constitutional_impact: DoshaImpact
    dosha_scalar: float
    season: Season
    seasonal: int
    seasonal_suitability: Dict[Season, int]
    constitutional_thermal: int
    goal: int = 0
    goal_matches: Tuple[str, ...] = ()
    digestibility: int = 0
    balance: int = 0
    deltas: Dict[str, float] = Field(default_factory=dict)
    aggregate: int
    rationale: Tuple[RationaleEntry, ...] = ()


class Recommendation(_Value):
    item: KnowledgeItem
    rank: int
    score: int
    compatibility: CompatibilityScore
    rationale: Tuple[RationaleEntry, ...] = ()

    @property
    def item_id(self) -> str:
        return self.item.id


class ExcludedItem(_Value):
    item_id: str
    name: str
    reason: str


class RankingResult(_Value):
    recommendations: Tuple[Recommendation, ...] = ()
    excluded: Tuple[ExcludedItem, ...] = ()
    warnings: Tuple[str, ...] = ()
    candidate_count: int = 0

    @property
    def item_ids(self) -> List[str]:
        return [rec.item.id for rec in self.recommendations]

    def __len__(self) -> int:
        return len(self.recommendations)


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

class SlotSelection(_Value):
    item_id: str
    name: str
    score: int
    rank: int
    relaxed: bool = False
    rationale: Tuple[RationaleEntry, ...] = ()


class PlanSlot(_Value):
    day: int
    meal_type: str
    category: Optional[str] = None
    date: Optional[datetime.date] = None
    status: SlotStatus
    selections: Tuple[SlotSelection, ...] = ()
    marker: Optional[EmptyCandidateSet] = None

    @property
    def is_empty(self) -> bool:
        return self.status is SlotStatus.EMPTY

    @property
    def item_ids(self) -> List[str]:
        return [s.item_id for s in self.selections]


class Relaxation(_Value):
    day: int
    meal_type: str
    item_id: str
    reason: str


class NutrientTargets(_Value):
    """Per-day nutrient targets, e.g. {"calories": 2000, "protein": 60}."""
    per_day: Dict[str, float] = Field(default_factory=dict)


class ProgressMeasurement(_Value):
    """A measured value supplied from outside; never fabricated by the engine."""
    goal: str
    baseline: float
    current: float
    target: float
    measured_at: Optional[datetime.date] = None


class ShoppingEntry(_Value):
    name: str
    quantity: float
    unit: str
    priority: IngredientPriority
    unit_mismatch: bool = False
    sources: Tuple[str, ...] = ()
    warning: Optional[UnitMismatch] = None


class GoalDelta(_Value):
    week: int
    start_day: int
    end_day: int
    nutrient: str
    target: float
    actual: float
    delta: float
    percent_of_target: Optional[float] = None


class GoalProgress(_Value):
    goal: str
    status: str
    completion: Optional[float] = None
    measurement: Optional[ProgressMeasurement] = None


class Plan(_Value):
    id: str
    subject_id: Optional[str] = None
    start_date: Optional[datetime.date] = None
    days: int
    meal_types: Tuple[str, ...]
    slots: Dict[int, Dict[str, PlanSlot]]
    relaxations: Tuple[Relaxation, ...] = ()
    warnings: Tuple[str, ...] = ()
    # filled in by AggregationReporter.attach
    weekly_goal_deltas: Tuple[GoalDelta, ...] = ()
    shopping_list: Tuple[ShoppingEntry, ...] = ()

    def iter_slots(self) -> Iterator[PlanSlot]:
        """Slots in day order, then meal order."""
        for day in sorted(self.slots):
            for meal_type in self.meal_types:
                slot = self.slots[day].get(meal_type)
                if slot is not None:
                    yield slot

    def empty_slots(self) -> List[PlanSlot]:
        return [slot for slot in self.iter_slots() if slot.is_empty]

    def selected_item_ids(self) -> List[str]:
        return [item_id for slot in self.iter_slots() for item_id in slot.item_ids]


class AggregationReport(_Value):
    plan_id: str
    slot_totals: Dict[int, Dict[str, Dict[str, float]]] = Field(default_factory=dict)
    day_totals: Dict[int, Dict[str, float]] = Field(default_factory=dict)
    plan_totals: Dict[str, float] = Field(default_factory=dict)
    daily_averages: Dict[str, float] = Field(default_factory=dict)
    shopping_list: Tuple[ShoppingEntry, ...] = ()
    weekly_goal_deltas: Tuple[GoalDelta, ...] = ()
    goal_progress: Tuple[GoalProgress, ...] = ()
    warnings: Tuple[str, ...] = ()


class ThermalBalanceAdvice(_Value):
    add_heating: bool = False
    add_cooling: bool = False
    suggestions: Tuple[str, ...] = ()
