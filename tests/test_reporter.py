"""Tests for plan rollups, the shopping list and goal progress."""
import datetime

import pytest

from nutriplan_app.recommenders.plan.reporter import (
    COMPLETE,
    IN_PROGRESS,
    MISSING_DATA,
    AggregationReporter,
    ingredient_priority,
)
from nutriplan_app.schemas.enums import IngredientPriority, SlotStatus
from nutriplan_app.schemas.models import (
    Ingredient,
    NutrientTargets,
    Plan,
    PlanSlot,
    ProgressMeasurement,
    SlotSelection,
)


def build_plan(kb, picks, days, meal_types=("lunch", "dinner")):
    """Plan with the given {(day, meal_type): item_id} picks; other slots empty."""
    slots = {}
    for day in range(1, days + 1):
        slots[day] = {}
        for meal_type in meal_types:
            item_id = picks.get((day, meal_type))
            if item_id is None:
                slots[day][meal_type] = PlanSlot(day=day, meal_type=meal_type, status=SlotStatus.EMPTY)
                continue
            item = kb.find(item_id)
            name = item.name if item is not None else item_id
            slots[day][meal_type] = PlanSlot(
                day=day, meal_type=meal_type, status=SlotStatus.FILLED,
                selections=(SlotSelection(item_id=item_id, name=name, score=80, rank=1),),
            )
    return Plan(id="plan-1", days=days, meal_types=tuple(meal_types), slots=slots,
                start_date=datetime.date(2024, 1, 1))


@pytest.fixture
def reporter(sample_kb):
    return AggregationReporter(sample_kb)


@pytest.fixture
def two_day_plan(sample_kb):
    return build_plan(sample_kb, {
        (1, "lunch"): "moong-dal-kitchari",
        (1, "dinner"): "rajma-chawal",
        (2, "lunch"): "chicken-curry-rice",
    }, days=2)


class TestTotals:
    def test_slot_day_and_plan_totals(self, reporter, two_day_plan):
        report = reporter.report(two_day_plan)
        assert report.slot_totals[1]["lunch"]["calories"] == 380.0
        assert report.day_totals[1]["calories"] == 920.0
        assert report.day_totals[2]["calories"] == 610.0
        assert report.plan_totals["calories"] == 1530.0
        assert report.plan_totals["protein"] == 70.0
        assert report.daily_averages["calories"] == 765.0

    def test_empty_slots_are_reported(self, reporter, two_day_plan):
        report = reporter.report(two_day_plan)
        assert "dinner" not in report.slot_totals.get(2, {})
        assert any(w.startswith("day 2 dinner") for w in report.warnings)

    def test_unknown_item_is_a_warning(self, reporter, sample_kb):
        plan = build_plan(sample_kb, {(1, "lunch"): "retired-dish"}, days=1, meal_types=("lunch",))
        report = reporter.report(plan)
        assert report.plan_totals == {}
        assert any("unknown item retired-dish" in w for w in report.warnings)

    def test_report_is_reproducible(self, reporter, two_day_plan):
        targets = NutrientTargets(per_day={"calories": 1000})
        first = reporter.report(two_day_plan, targets=targets)
        second = reporter.report(two_day_plan, targets=targets)
        assert first.model_dump_json() == second.model_dump_json()


class TestShoppingList:
    def test_same_unit_merges(self, reporter, sample_kb):
        plan = build_plan(sample_kb, {
            (1, "lunch"): "moong-dal-kitchari",
            (1, "dinner"): "rajma-chawal",
        }, days=1)
        entries = {(e.name, e.unit): e for e in reporter.report(plan).shopping_list}
        ginger = entries[("Ginger", "tsp")]
        assert ginger.quantity == 3.0
        assert ginger.sources == ("moong-dal-kitchari", "rajma-chawal")
        assert not ginger.unit_mismatch
        rice = entries[("Basmati rice", "g")]
        assert rice.quantity == 140.0
        assert rice.priority is IngredientPriority.ESSENTIAL

    def test_unit_mismatch_is_flagged(self, reporter, two_day_plan):
        report = reporter.report(two_day_plan)
        ginger = [e for e in report.shopping_list if e.name == "Ginger"]
        assert {e.unit for e in ginger} == {"tsp", "inch"}
        assert all(e.unit_mismatch for e in ginger)
        assert ginger[0].warning.kind == "unit-mismatch"
        assert ginger[0].warning.units == ("tsp", "inch")
        assert any("Ginger" in w and "cannot merge" in w for w in report.warnings)

    def test_first_seen_order(self, reporter, two_day_plan):
        names = [e.name for e in reporter.report(two_day_plan).shopping_list]
        assert names[0] == "Basmati rice"

    def test_units_are_normalised(self):
        entries, warnings = AggregationReporter.shopping_list([
            ("a", Ingredient(name="Cumin", quantity=1, unit="teaspoon")),
            ("b", Ingredient(name="cumin", quantity=0.5, unit="tsp")),
        ])
        assert warnings == []
        assert len(entries) == 1
        assert entries[0].quantity == 1.5
        assert entries[0].name == "Cumin"

    @pytest.mark.parametrize("ingredient,expected", [
        (Ingredient(name="Rice", role="base"), IngredientPriority.ESSENTIAL),
        (Ingredient(name="Cumin", role="spice"), IngredientPriority.OPTIONAL),
        (Ingredient(name="Ghee"), IngredientPriority.ESSENTIAL),
        (Ingredient(name="Mint", optional=True), IngredientPriority.OPTIONAL),
    ])
    def test_priority(self, ingredient, expected):
        assert ingredient_priority(ingredient) is expected


class TestWeeklyGoals:
    def test_partial_week(self, reporter, two_day_plan):
        report = reporter.report(two_day_plan, targets=NutrientTargets(per_day={"calories": 1000}))
        (delta,) = report.weekly_goal_deltas
        assert (delta.week, delta.start_day, delta.end_day) == (1, 1, 2)
        assert delta.target == 2000.0
        assert delta.actual == 1530.0
        assert delta.delta == -470.0
        assert delta.percent_of_target == 76.5

    def test_weeks_split_at_seven_days(self, reporter, sample_kb):
        plan = build_plan(sample_kb, {(day, "lunch"): "moong-dal-kitchari" for day in range(1, 10)},
                          days=9, meal_types=("lunch",))
        report = reporter.report(plan, targets=NutrientTargets(per_day={"calories": 400}))
        weeks = [(d.week, d.start_day, d.end_day) for d in report.weekly_goal_deltas]
        assert weeks == [(1, 1, 7), (2, 8, 9)]
        assert report.weekly_goal_deltas[1].actual == 760.0

    def test_attach_copies_report_fields(self, reporter, two_day_plan):
        report = reporter.report(two_day_plan, targets=NutrientTargets(per_day={"calories": 1000}))
        plan = reporter.attach(two_day_plan, report)
        assert plan.shopping_list == report.shopping_list
        assert plan.weekly_goal_deltas == report.weekly_goal_deltas
        assert plan.slots == two_day_plan.slots


class TestGoalProgress:
    def test_measured_goal(self):
        measurement = ProgressMeasurement(goal="Weight Loss", baseline=80, current=77, target=75)
        results, warnings = AggregationReporter.goal_progress(["weight loss"], [measurement])
        assert warnings == []
        assert results[0].completion == 60.0
        assert results[0].status == IN_PROGRESS

    def test_completion_is_clamped(self):
        measurement = ProgressMeasurement(goal="strength", baseline=10, current=14, target=12)
        results, _ = AggregationReporter.goal_progress(["strength"], [measurement])
        assert results[0].completion == 100.0
        assert results[0].status == COMPLETE

    def test_target_equal_to_baseline(self):
        reached = ProgressMeasurement(goal="sleep", baseline=7, current=7, target=7)
        missed = ProgressMeasurement(goal="sleep", baseline=7, current=6, target=7)
        assert AggregationReporter.goal_progress(["sleep"], [reached])[0][0].completion == 100.0
        assert AggregationReporter.goal_progress(["sleep"], [missed])[0][0].completion == 0.0

    def test_missing_measurement(self):
        results, warnings = AggregationReporter.goal_progress(["digestion"], [])
        assert results[0].status == MISSING_DATA
        assert results[0].completion is None
        assert len(warnings) == 1

    def test_unlisted_measurement_is_reported(self, reporter, two_day_plan):
        measurement = ProgressMeasurement(goal="energy", baseline=2, current=3, target=6)
        report = reporter.report(two_day_plan, progress=[measurement], goals=["sleep"])
        goals = {g.goal: g for g in report.goal_progress}
        assert goals["sleep"].status == MISSING_DATA
        assert goals["energy"].completion == 25.0
