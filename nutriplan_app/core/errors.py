"""Error taxonomy for the scoring and planning engine.

Load-time data problems are collected into a quarantine report, per-request
problems (empty candidate sets, unit mismatches) are embedded in the output.
Only a malformed subject profile is raised to the caller.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict

DIVISION_GUARD_WARNING = "division guard: taste total is zero, returning an empty profile"


class NutriplanError(Exception):
    """Base class for engine errors."""


class ItemNotFound(NutriplanError, KeyError):
    """Raised by the knowledge base when an id is unknown."""

    def __init__(self, item_id: str):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Knowledge item not found: {self.item_id}"


class ProfileSchemaError(NutriplanError, ValueError):
    """The subject profile is missing required fields (fatal for one call)."""


class MalformedAttributeVector(BaseModel):
    """Quarantine record for an item rejected at load time."""
    model_config = ConfigDict(frozen=True)

    item_id: Optional[str] = None
    name: Optional[str] = None
    reason: str
    kind: str = "malformed-attribute-vector"


class UnitMismatch(BaseModel):
    """Warning attached to shopping lines that could not be merged."""
    model_config = ConfigDict(frozen=True)

    ingredient: str
    units: tuple
    message: str
    kind: str = "unit-mismatch"


class EmptyCandidateSet(BaseModel):
    """Marker stored in a plan slot when no candidate survived filtering."""
    model_config = ConfigDict(frozen=True)

    day: int
    meal_type: str
    category: Optional[str] = None
    reason: str = "no candidates available"
    excluded_count: int = 0
    kind: str = "empty-candidate-set"
