"""Derived rollups for an assembled plan.

Nothing here is stored; a report can be rebuilt at any time from the plan and
the knowledge base, and two runs on the same plan give identical output.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from nutriplan_app.core.constants import NUTRIENT_DECIMALS, REPETITION_WINDOW_DAYS, ROLE_PRIORITIES
from nutriplan_app.core.errors import UnitMismatch
from nutriplan_app.core.utils import clamp_score, normalize_tag, normalize_unit, round_half_up, text_matches
from nutriplan_app.schemas.enums import IngredientPriority
from nutriplan_app.schemas.models import (
    AggregationReport,
    GoalDelta,
    GoalProgress,
    Ingredient,
    NutrientTargets,
    Plan,
    ProgressMeasurement,
    ShoppingEntry,
)

logger = logging.getLogger(__name__)

MISSING_DATA = "missing-data"
COMPLETE = "complete"
IN_PROGRESS = "in-progress"


def ingredient_priority(ingredient: Ingredient) -> IngredientPriority:
    if ingredient.role is not None:
        return ROLE_PRIORITIES[ingredient.role]
    return IngredientPriority.OPTIONAL if ingredient.optional else IngredientPriority.ESSENTIAL


def _round(value: float) -> float:
    return round_half_up(value, NUTRIENT_DECIMALS)


def _add_into(target: Dict[str, float], nutrients: Dict[str, float]) -> None:
    for key, value in nutrients.items():
        target[key] = target.get(key, 0.0) + float(value)


def _rounded(totals: Dict[str, float]) -> Dict[str, float]:
    return {key: _round(totals[key]) for key in sorted(totals)}


class AggregationReporter:
    def __init__(self, knowledge_base):
        self.knowledge_base = knowledge_base

    def report(self, plan: Plan, *, targets: Optional[NutrientTargets] = None,
               progress: Optional[Iterable[ProgressMeasurement]] = None,
               goals: Optional[Iterable[str]] = None) -> AggregationReport:
        """Build the report for `plan`.

        `goals` are the subject goals whose progress should be reported; each
        needs a matching ProgressMeasurement, otherwise it is reported as
        missing data.
        """
        warnings: List[str] = []
        slot_totals: Dict[int, Dict[str, Dict[str, float]]] = {}
        day_raw: Dict[int, Dict[str, float]] = {}
        plan_raw: Dict[str, float] = {}
        ingredient_sources: List[Tuple[str, Ingredient]] = []

        for slot in plan.iter_slots():
            day_totals = day_raw.setdefault(slot.day, {})
            if slot.is_empty:
                reason = slot.marker.reason if slot.marker else "empty slot"
                warnings.append(f"day {slot.day} {slot.meal_type}: {reason}")
                continue
            slot_raw: Dict[str, float] = {}
            for selection in slot.selections:
                item = self.knowledge_base.find(selection.item_id)
                if item is None:
                    warnings.append(f"day {slot.day} {slot.meal_type}: unknown item {selection.item_id}")
                    continue
                _add_into(slot_raw, item.nutrients)
                ingredient_sources.extend((item.id, ing) for ing in item.ingredients)
            _add_into(day_totals, slot_raw)
            _add_into(plan_raw, slot_raw)
            slot_totals.setdefault(slot.day, {})[slot.meal_type] = _rounded(slot_raw)

        days = max(plan.days, 1)
        daily_averages = {key: _round(plan_raw[key] / days) for key in sorted(plan_raw)}

        shopping, shopping_warnings = self.shopping_list(ingredient_sources)
        warnings.extend(shopping_warnings)

        weekly = self.weekly_goal_deltas(plan, day_raw, targets) if targets is not None else ()
        goal_progress, progress_warnings = self.goal_progress(goals or (), progress or ())
        warnings.extend(progress_warnings)

        return AggregationReport(
            plan_id=plan.id,
            slot_totals={day: slot_totals[day] for day in sorted(slot_totals)},
            day_totals={day: _rounded(day_raw[day]) for day in sorted(day_raw)},
            plan_totals=_rounded(plan_raw),
            daily_averages=daily_averages,
            shopping_list=shopping,
            weekly_goal_deltas=weekly,
            goal_progress=goal_progress,
            warnings=tuple(warnings),
        )

    def attach(self, plan: Plan, report: AggregationReport) -> Plan:
        """Copy of `plan` carrying the report's weekly deltas and shopping list."""
        return plan.model_copy(update={
            "weekly_goal_deltas": report.weekly_goal_deltas,
            "shopping_list": report.shopping_list,
        })

    @staticmethod
    def shopping_list(sources: Iterable[Tuple[str, Ingredient]]) -> Tuple[Tuple[ShoppingEntry, ...], List[str]]:
        """Merge ingredients by name and unit; mismatched units stay on separate lines."""
        # name -> unit -> accumulated line, both in first-seen order
        merged: Dict[str, Dict[str, dict]] = {}
        display: Dict[str, str] = {}
        for item_id, ing in sources:
            key = ing.name.strip().casefold()
            display.setdefault(key, ing.name.strip())
            unit = normalize_unit(ing.unit)
            line = merged.setdefault(key, {}).setdefault(unit, {
                "quantity": 0.0, "priority": IngredientPriority.OPTIONAL, "sources": [],
            })
            line["quantity"] += ing.quantity
            if ingredient_priority(ing) is IngredientPriority.ESSENTIAL:
                line["priority"] = IngredientPriority.ESSENTIAL
            if item_id not in line["sources"]:
                line["sources"].append(item_id)

        entries: List[ShoppingEntry] = []
        warnings: List[str] = []
        for key, by_unit in merged.items():
            name = display[key]
            mismatch = None
            if len(by_unit) > 1:
                units = tuple(by_unit)
                message = f"{name}: cannot merge quantities in {', '.join(u or '(no unit)' for u in units)}"
                mismatch = UnitMismatch(ingredient=name, units=units, message=message)
                warnings.append(message)
                logger.info("Unit mismatch for %s: %s", name, units)
            for unit, line in by_unit.items():
                entries.append(ShoppingEntry(
                    name=name,
                    quantity=_round(line["quantity"]),
                    unit=unit,
                    priority=line["priority"],
                    unit_mismatch=mismatch is not None,
                    sources=tuple(line["sources"]),
                    warning=mismatch,
                ))
        return tuple(entries), warnings

    @staticmethod
    def weekly_goal_deltas(plan: Plan, day_totals: Dict[int, Dict[str, float]],
                           targets: NutrientTargets) -> Tuple[GoalDelta, ...]:
        deltas = []
        for week, start in enumerate(range(1, plan.days + 1, REPETITION_WINDOW_DAYS), start=1):
            end = min(start + REPETITION_WINDOW_DAYS - 1, plan.days)
            span = end - start + 1
            for nutrient in sorted(targets.per_day):
                target = targets.per_day[nutrient] * span
                actual = sum(day_totals.get(day, {}).get(nutrient, 0.0) for day in range(start, end + 1))
                percent = _round(actual / target * 100) if target else None
                deltas.append(GoalDelta(
                    week=week, start_day=start, end_day=end, nutrient=nutrient,
                    target=_round(target), actual=_round(actual),
                    delta=_round(actual - target), percent_of_target=percent,
                ))
        return tuple(deltas)

    @staticmethod
    def goal_progress(goals: Iterable[str], measurements: Iterable[ProgressMeasurement]
                      ) -> Tuple[Tuple[GoalProgress, ...], List[str]]:
        """Completion per goal from supplied measurements; never guessed."""
        measurements = list(measurements)
        wanted = list(goals)
        # measured goals the subject did not list are still reported
        for m in measurements:
            if not any(normalize_tag(m.goal) == normalize_tag(g) for g in wanted):
                wanted.append(m.goal)

        results, warnings = [], []
        for goal in wanted:
            m = next((m for m in measurements if normalize_tag(m.goal) == normalize_tag(goal)), None)
            if m is None:
                m = next((m for m in measurements if text_matches(m.goal, goal)), None)
            if m is None:
                warnings.append(f"no progress measurement for goal '{goal}'")
                results.append(GoalProgress(goal=goal, status=MISSING_DATA))
                continue
            span = m.target - m.baseline
            if span == 0:
                completion = 100.0 if m.current == m.target else 0.0
            else:
                completion = _round(clamp_score((m.current - m.baseline) / span * 100))
            status = COMPLETE if completion >= 100 else IN_PROGRESS
            results.append(GoalProgress(goal=goal, status=status, completion=completion, measurement=m))
        return tuple(results), warnings
