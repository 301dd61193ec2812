"""Bulk loading of the knowledge base from JSON or CSV files."""
import json
import logging
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from nutriplan_app.knowledge.store import KnowledgeBase

logger = logging.getLogger(__name__)

# Column aliases seen in exported spreadsheets
CSV_RENAME_MAP = {
    "Name": "name",
    "Category": "category",
    "Thermal Effect": "thermal",
    "Virya": "thermal",
    "Energy (kcal)": "calories",
    "Protein (g)": "protein",
    "Carbohydrate (g)": "carbohydrates",
    "Fiber, total dietary (g)": "fiber",
    "Total Fat (g)": "fat",
}


def read_json_records(path: Path) -> List[Dict]:
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of items or an object with 'items'")
    return data


def read_csv_records(path: Path) -> List[Dict]:
    df = pd.read_csv(path)
    df = df.rename(columns=CSV_RENAME_MAP)
    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    # to_json turns NaN into null and numpy scalars into plain numbers
    return json.loads(df.to_json(orient="records"))


def load_records(path: Union[str, Path]) -> List[Dict]:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        return read_json_records(path)
    if suffix == ".csv":
        return read_csv_records(path)
    raise ValueError(f"Unsupported knowledge base format: {path.suffix}")


def load_knowledge_base(path: Union[str, Path]) -> KnowledgeBase:
    """Load, validate and resolve every item in `path`.

    Malformed items end up in the quarantine list; the rest are served.
    """
    records = load_records(path)
    kb = KnowledgeBase.from_records(records)
    logger.info("Loaded %d knowledge items from %s (%d quarantined)",
                len(kb), path, len(kb.quarantine))
    return kb
