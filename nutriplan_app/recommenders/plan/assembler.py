"""Multi-day plan assembly on top of the ranking engine."""
import datetime
import logging
import uuid
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from nutriplan_app.core.constants import (
    DAILY_REPETITION_CAP,
    DEFAULT_MEAL_TYPES,
    DEFAULT_PLAN_DAYS,
    DEFAULT_SLOT_CATEGORIES,
    PLAN_REPETITION_CAP,
    REPETITION_WINDOW_DAYS,
)
from nutriplan_app.core.errors import EmptyCandidateSet
from nutriplan_app.core.utils import normalize_tag
from nutriplan_app.recommenders.compatibility.scorer import coerce_profile
from nutriplan_app.recommenders.ranking.engine import RankingEngine
from nutriplan_app.schemas.enums import SlotStatus
from nutriplan_app.schemas.models import (
    Plan,
    PlanSlot,
    RankingResult,
    RationaleEntry,
    Recommendation,
    Relaxation,
    ScoringContext,
    SlotSelection,
    SubjectProfile,
    WeightedVector,
)

logger = logging.getLogger(__name__)


class RepetitionCounters(BaseModel):
    """How often each item has been used, per day and per 7-day block.

    Immutable: `record` returns a new value, so the counters can be threaded
    through the assembly loop explicitly.
    """
    model_config = ConfigDict(frozen=True)

    by_day: Dict[int, Dict[str, int]] = Field(default_factory=dict)
    by_block: Dict[int, Dict[str, int]] = Field(default_factory=dict)

    @staticmethod
    def block_for(day: int) -> int:
        return (day - 1) // REPETITION_WINDOW_DAYS

    def day_count(self, day: int, item_id: str) -> int:
        return self.by_day.get(day, {}).get(item_id, 0)

    def block_count(self, day: int, item_id: str) -> int:
        return self.by_block.get(self.block_for(day), {}).get(item_id, 0)

    def allows(self, day: int, item_id: str, daily_cap: int = DAILY_REPETITION_CAP,
               plan_cap: int = PLAN_REPETITION_CAP) -> bool:
        return self.day_count(day, item_id) < daily_cap and self.block_count(day, item_id) < plan_cap

    def record(self, day: int, item_id: str) -> "RepetitionCounters":
        block = self.block_for(day)
        by_day = {d: dict(counts) for d, counts in self.by_day.items()}
        by_block = {b: dict(counts) for b, counts in self.by_block.items()}
        by_day.setdefault(day, {})[item_id] = self.day_count(day, item_id) + 1
        by_block.setdefault(block, {})[item_id] = self.block_count(day, item_id) + 1
        return RepetitionCounters(by_day=by_day, by_block=by_block)


class PlanAssembler:
    """Fills a days x meal-types grid, one ranking call per slot."""

    def __init__(self, ranking_engine: RankingEngine):
        self.ranking_engine = ranking_engine

    def assemble(self, profile, context: Optional[ScoringContext] = None, *,
                 days: int = DEFAULT_PLAN_DAYS,
                 meal_types: Sequence[str] = DEFAULT_MEAL_TYPES,
                 slot_categories: Optional[Mapping[str, str]] = None,
                 slot_overrides: Optional[Mapping[Tuple[int, str], str]] = None,
                 items_per_slot: int = 1,
                 daily_cap: int = DAILY_REPETITION_CAP,
                 plan_cap: int = PLAN_REPETITION_CAP,
                 start_date: Optional[datetime.date] = None,
                 external: Optional[Iterable] = None) -> Plan:
        """Assemble a plan; every slot ends up filled, relaxed or marked empty.

        Days are numbered from 1. `slot_overrides[(day, meal_type)]` replaces
        the category of a single slot.
        """
        if days < 1:
            raise ValueError("days must be >= 1")
        if items_per_slot < 1:
            raise ValueError("items_per_slot must be >= 1")
        profile = coerce_profile(profile)
        context = context or ScoringContext()
        start = start_date or context.reference_date or datetime.date.today()
        meal_types = tuple(normalize_tag(m) for m in meal_types)
        categories = dict(DEFAULT_SLOT_CATEGORIES)
        categories.update({normalize_tag(k): v for k, v in (slot_categories or {}).items()})
        overrides = {(int(d), normalize_tag(m)): c for (d, m), c in (slot_overrides or {}).items()}
        external = list(external) if external is not None else None

        counters = RepetitionCounters()
        slots: Dict[int, Dict[str, PlanSlot]] = {}
        relaxations: List[Relaxation] = []
        warnings: List[str] = []

        for day in range(1, days + 1):
            day_date = start + datetime.timedelta(days=day - 1)
            day_context = context.for_date(day_date)
            slots[day] = {}
            for meal_type in meal_types:
                category = overrides.get((day, meal_type), categories.get(meal_type))
                slot, counters, slot_relaxations = self._fill_slot(
                    profile, day_context, day, day_date, meal_type, category, counters,
                    items_per_slot=items_per_slot, daily_cap=daily_cap,
                    plan_cap=plan_cap, external=external,
                )
                slots[day][meal_type] = slot
                relaxations.extend(slot_relaxations)
                if slot.marker is not None:
                    warnings.append(f"day {day} {meal_type}: {slot.marker.reason}")

        plan = Plan(
            id=uuid.uuid4().hex,
            subject_id=profile.id,
            start_date=start,
            days=days,
            meal_types=meal_types,
            slots=slots,
            relaxations=tuple(relaxations),
            warnings=tuple(warnings),
        )
        logger.info("Assembled %d-day plan %s (%d relaxations, %d empty slots)",
                    days, plan.id, len(relaxations), len(plan.empty_slots()))
        return plan

    def _rank(self, profile: SubjectProfile, context: ScoringContext, meal_type: str,
              category: Optional[str], external) -> RankingResult:
        return self.ranking_engine.rank(profile, context, category=category,
                                        meal_type=meal_type, external=external)

    def _fill_slot(self, profile: SubjectProfile, context: ScoringContext, day: int,
                   day_date: datetime.date, meal_type: str, category: Optional[str],
                   counters: RepetitionCounters, *, items_per_slot: int, daily_cap: int,
                   plan_cap: int, external) -> Tuple[PlanSlot, RepetitionCounters, List[Relaxation]]:
        ranking = self._rank(profile, context, meal_type, category, external)
        if not ranking.recommendations:
            if ranking.excluded:
                reason = f"all {len(ranking.excluded)} candidates excluded by hard filters"
            else:
                reason = "no candidates available"
            marker = EmptyCandidateSet(day=day, meal_type=meal_type, category=category,
                                       reason=reason, excluded_count=len(ranking.excluded))
            logger.warning("Empty slot day %d %s (category %s): %s", day, meal_type, category, reason)
            slot = PlanSlot(day=day, meal_type=meal_type, category=category, date=day_date,
                            status=SlotStatus.EMPTY, marker=marker)
            return slot, counters, []

        selections: List[SlotSelection] = []
        relaxations: List[Relaxation] = []
        chosen: List[Recommendation] = []
        status = SlotStatus.FILLED
        for pick in range(items_per_slot):
            if pick:
                # later picks are scored against what is already on the plate
                companions = [WeightedVector(vector=rec.item.attributes) for rec in chosen]
                ranking = self._rank(profile, context.with_companions(companions),
                                     meal_type, category, external)
            chosen_ids = {rec.item.id for rec in chosen}
            available = [rec for rec in ranking.recommendations if rec.item.id not in chosen_ids]
            if not available:
                break

            rec = next((r for r in available if counters.allows(day, r.item.id, daily_cap, plan_cap)), None)
            rationale = rec.rationale if rec is not None else ()
            relaxed = rec is None
            if relaxed:
                rec = available[0]
                reason = (f"all {len(available)} candidates reached the repetition cap "
                          f"(daily {daily_cap}, weekly {plan_cap}); reused {rec.item.name}")
                relaxations.append(Relaxation(day=day, meal_type=meal_type, item_id=rec.item.id, reason=reason))
                rationale = rec.rationale + (RationaleEntry(axis="repetition", message=reason),)
                status = SlotStatus.RELAXED
                logger.info("Relaxed repetition cap for day %d %s: %s", day, meal_type, rec.item.id)

            counters = counters.record(day, rec.item.id)
            chosen.append(rec)
            selections.append(SlotSelection(
                item_id=rec.item.id,
                name=rec.item.name,
                score=rec.score,
                rank=rec.rank,
                relaxed=relaxed,
                rationale=rationale,
            ))

        slot = PlanSlot(day=day, meal_type=meal_type, category=category, date=day_date,
                        status=status, selections=tuple(selections))
        return slot, counters, relaxations