"""Interfaces of the collaborators the planning service talks to.

The engine only reads profiles and only hands plans over; real storage lives
elsewhere. The in-memory versions back the demo API and the tests.
"""
import logging
import threading
from typing import Dict, Iterable, Mapping, Optional, Protocol, runtime_checkable

from nutriplan_app.schemas.models import Plan, ScoringContext, SubjectProfile

logger = logging.getLogger(__name__)


@runtime_checkable
class ProfileStore(Protocol):
    def load_profile(self, profile_id: str) -> SubjectProfile:
        ...


@runtime_checkable
class PlanRepository(Protocol):
    def save_plan(self, plan: Plan) -> None:
        ...

    def load_plan(self, plan_id: str) -> Plan:
        ...


@runtime_checkable
class ExternalAdvisor(Protocol):
    """Optional extra candidate source; its scores are never trusted."""

    def suggest(self, profile: SubjectProfile, context: ScoringContext,
                category: Optional[str] = None) -> Iterable[Mapping]:
        ...


class InMemoryProfileStore:
    def __init__(self, profiles: Optional[Iterable[SubjectProfile]] = None):
        self._profiles: Dict[str, SubjectProfile] = {}
        for profile in profiles or ():
            self.add(profile)

    def add(self, profile: SubjectProfile) -> None:
        if not profile.id:
            raise ValueError("profiles stored by id need an id")
        self._profiles[profile.id] = profile

    def load_profile(self, profile_id: str) -> SubjectProfile:
        try:
            return self._profiles[profile_id]
        except KeyError:
            raise KeyError(f"Profile not found: {profile_id}") from None


class InMemoryPlanRepository:
    def __init__(self):
        self._plans: Dict[str, Plan] = {}
        self._lock = threading.Lock()

    def save_plan(self, plan: Plan) -> None:
        with self._lock:
            self._plans[plan.id] = plan
        logger.debug("Saved plan %s", plan.id)

    def load_plan(self, plan_id: str) -> Plan:
        with self._lock:
            try:
                return self._plans[plan_id]
            except KeyError:
                raise KeyError(f"Plan not found: {plan_id}") from None

    def __len__(self) -> int:
        return len(self._plans)
