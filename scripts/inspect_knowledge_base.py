"""Script for inspecting the knowledge base and its quarantine list."""
import argparse
import sys
from pathlib import Path

from tabulate import tabulate

# Ensure project root is on sys.path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from nutriplan_app.core.config import get_settings
from nutriplan_app.core.logging import configure_logging
from nutriplan_app.core.utils import normalize_tag
from nutriplan_app.knowledge.loader import load_knowledge_base


def inspect_knowledge_base(path: str, category: str = None):
    """Print the resolved items and anything that was quarantined."""
    kb = load_knowledge_base(path)
    query = kb.query()
    if category:
        wanted = normalize_tag(category)
        query = query.where(lambda item: item.category == wanted)

    rows = []
    for item in query:
        attrs = item.attributes
        effect = attrs.dosha_effect
        rows.append([
            item.id, item.name, item.category, attrs.thermal.value, attrs.thermal_intensity,
            effect.vata, effect.pitta, effect.kapha, item.digestibility.value,
            ', '.join(item.seasons) or 'all',
        ])
    print("\n=== Knowledge Items ===")
    print(tabulate(rows, headers=['ID', 'Name', 'Category', 'Thermal', 'Intensity',
                                  'Vata', 'Pitta', 'Kapha', 'Digestibility', 'Seasons']))

    print("\n=== Quarantine ===")
    if not kb.quarantine:
        print("(none)")
    else:
        q_rows = [[q.item_id or '-', q.name or '-', q.kind, q.reason] for q in kb.quarantine]
        print(tabulate(q_rows, headers=['ID', 'Name', 'Kind', 'Reason']))


if __name__ == "__main__":
    p = argparse.ArgumentParser(description=__doc__)
    p.add_argument('--path', default=None, help='Knowledge base file (.json or .csv)')
    p.add_argument('--category', default=None, help='Only show one category')
    args = p.parse_args()
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    inspect_knowledge_base(args.path or settings.KNOWLEDGE_BASE_PATH, args.category)
