"""Shared fixtures for the nutriplan tests."""
import datetime
from pathlib import Path

import pytest

from nutriplan_app.core.config import Settings
from nutriplan_app.knowledge.inference import resolve_attributes
from nutriplan_app.knowledge.loader import load_knowledge_base
from nutriplan_app.knowledge.store import KnowledgeBase
from nutriplan_app.schemas.enums import Season
from nutriplan_app.schemas.models import (
    AttributeVector,
    KnowledgeItem,
    ScoringContext,
    SubjectProfile,
    TasteProfile,
)

DATA_FILE = Path(__file__).resolve().parents[1] / "data" / "knowledge_base.json"


def make_vector(thermal=None, intensity=None, dosha=None, **tastes) -> AttributeVector:
    vector = AttributeVector(
        tastes=TasteProfile(**tastes),
        thermal=thermal,
        thermal_intensity=intensity,
        dosha_effect=dosha,
    )
    return resolve_attributes(vector)


def make_item(item_id, category="main-course", thermal=None, intensity=None, dosha=None,
              tastes=None, **fields) -> KnowledgeItem:
    tastes = tastes or {"sweet": 40, "sour": 10, "salty": 10, "pungent": 10, "bitter": 15, "astringent": 15}
    fields.setdefault("name", item_id.replace("-", " ").title())
    return KnowledgeItem(
        id=item_id,
        category=category,
        attributes=make_vector(thermal=thermal, intensity=intensity, dosha=dosha, **tastes),
        **fields,
    )


@pytest.fixture
def item_a():
    """Sweet/bitter/astringent cooling dish."""
    return make_item("item-a", thermal="cooling",
                     tastes={"sweet": 60, "bitter": 20, "astringent": 20})


@pytest.fixture
def item_b():
    """Pungent/sour heating dish."""
    return make_item("item-b", thermal="heating",
                     tastes={"pungent": 80, "sour": 20})


@pytest.fixture
def pitta_profile():
    return SubjectProfile(id="subject-1", archetype="pitta", digestive_strength="strong",
                          goals=["cooling"])


@pytest.fixture
def summer_context():
    return ScoringContext(season=Season.SUMMER)


@pytest.fixture
def sample_kb():
    return load_knowledge_base(DATA_FILE)


@pytest.fixture
def planning_kb():
    """Small knowledge base with enough variety for a 7-day plan."""
    items = [make_item(f"breakfast-{i}", category="breakfast") for i in range(1, 4)]
    items += [
        make_item(f"main-{i}", category="main-course",
                  tastes={"sweet": 30 + i * 5, "sour": 10, "salty": 10, "pungent": 10 + i, "bitter": 20, "astringent": 10})
        for i in range(1, 7)
    ]
    items += [make_item(f"snack-{i}", category="snack") for i in range(1, 4)]
    return KnowledgeBase(items)


@pytest.fixture
def plan_start():
    return datetime.date(2024, 7, 1)


@pytest.fixture
def settings():
    return Settings(DEFAULT_TOP_N=10, PLAN_DAYS=7, RANKING_WORKERS=1)
