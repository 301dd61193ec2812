"""Generate a plan for a sample subject and print it with its shopping list."""
import argparse
import datetime
import sys
from pathlib import Path

from tabulate import tabulate

# Ensure project root is on sys.path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from nutriplan_app.core.config import get_settings
from nutriplan_app.core.logging import configure_logging
from nutriplan_app.schemas.models import NutrientTargets, ScoringContext, SubjectProfile
from nutriplan_app.services.planning import PlanningService


def print_plan(result):
    plan, report = result.plan, result.report
    rows = []
    for slot in plan.iter_slots():
        if slot.is_empty:
            rows.append([slot.day, slot.meal_type, slot.category, '-', '-', slot.marker.reason])
            continue
        for sel in slot.selections:
            note = 'relaxed' if sel.relaxed else ''
            rows.append([slot.day, slot.meal_type, slot.category, sel.name, sel.score, note])
    print("\n=== Plan ===")
    print(tabulate(rows, headers=['Day', 'Meal', 'Category', 'Item', 'Score', 'Note']))

    print("\n=== Daily totals ===")
    nutrients = sorted(report.plan_totals)
    day_rows = [[day] + [totals.get(n, 0.0) for n in nutrients] for day, totals in report.day_totals.items()]
    print(tabulate(day_rows, headers=['Day'] + nutrients))

    print("\n=== Shopping list ===")
    shop_rows = [[e.name, e.quantity, e.unit, e.priority.value, 'UNIT MISMATCH' if e.unit_mismatch else '']
                 for e in report.shopping_list]
    print(tabulate(shop_rows, headers=['Ingredient', 'Qty', 'Unit', 'Priority', '']))

    if report.weekly_goal_deltas:
        print("\n=== Weekly goal deltas ===")
        delta_rows = [[d.week, d.nutrient, d.target, d.actual, d.delta, d.percent_of_target]
                      for d in report.weekly_goal_deltas]
        print(tabulate(delta_rows, headers=['Week', 'Nutrient', 'Target', 'Actual', 'Delta', '%']))

    for warning in report.warnings:
        print(f"[warning] {warning}")


if __name__ == "__main__":
    p = argparse.ArgumentParser(description=__doc__)
    p.add_argument('--archetype', default='pitta', help='Subject archetype, e.g. vata-pitta')
    p.add_argument('--digestion', default='moderate', help='weak, moderate or strong')
    p.add_argument('--goals', default='cooling', help='Comma-separated goals')
    p.add_argument('--exclude', default='', help='Comma-separated exclusions, e.g. vegan,nut-free')
    p.add_argument('--season', default=None, help='Season; derived from the start date if omitted')
    p.add_argument('--days', type=int, default=None, help='Number of plan days')
    p.add_argument('--start', default=None, help='Start date (YYYY-MM-DD)')
    p.add_argument('--calories', type=float, default=None, help='Daily calorie target')
    args = p.parse_args()

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    planner = PlanningService.from_settings(settings)

    profile = SubjectProfile(
        id='cli-subject',
        archetype=args.archetype,
        digestive_strength=args.digestion,
        goals=args.goals,
        exclusions=args.exclude,
    )
    start = datetime.date.fromisoformat(args.start) if args.start else None
    context = ScoringContext(season=args.season, reference_date=start)
    targets = NutrientTargets(per_day={'calories': args.calories}) if args.calories else None
    print_plan(planner.build_plan(profile, context, days=args.days, start_date=start, targets=targets))
