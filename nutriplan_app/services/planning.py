"""Planning service that wires the knowledge base, scorer, ranking and plan assembly."""
import datetime
import logging
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from nutriplan_app.core.config import Settings, get_settings
from nutriplan_app.knowledge.loader import load_knowledge_base
from nutriplan_app.knowledge.store import KnowledgeBase
from nutriplan_app.recommenders.compatibility.scorer import CompatibilityScorer, coerce_profile
from nutriplan_app.recommenders.plan.assembler import PlanAssembler
from nutriplan_app.recommenders.plan.reporter import AggregationReporter
from nutriplan_app.recommenders.ranking.engine import RankingEngine
from nutriplan_app.recommenders.taste.aggregator import TasteProfileAggregator
from nutriplan_app.recommenders.taste.utils import recommend_thermal_balance, suggest_foods_for_balance
from nutriplan_app.schemas.models import (
    AggregationReport,
    CompatibilityScore,
    CompositeProfile,
    KnowledgeItem,
    NutrientTargets,
    Plan,
    ProgressMeasurement,
    RankingResult,
    ScoringContext,
    SubjectProfile,
    ThermalBalanceAdvice,
)
from nutriplan_app.services.collaborators import ExternalAdvisor, PlanRepository, ProfileStore

logger = logging.getLogger(__name__)


class PlanResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan: Plan
    report: AggregationReport


class PlanningService:
    """Entry point used by the API and the scripts."""

    def __init__(self, knowledge_base: KnowledgeBase,
                 profile_store: Optional[ProfileStore] = None,
                 plan_repository: Optional[PlanRepository] = None,
                 advisor: Optional[ExternalAdvisor] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.knowledge_base = knowledge_base
        self.profile_store = profile_store
        self.plan_repository = plan_repository
        self.advisor = advisor
        self.aggregator = TasteProfileAggregator()
        self.scorer = CompatibilityScorer(self.aggregator)
        self.ranking_engine = RankingEngine(knowledge_base, self.scorer,
                                            max_workers=self.settings.RANKING_WORKERS)
        self.assembler = PlanAssembler(self.ranking_engine)
        self.reporter = AggregationReporter(knowledge_base)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "PlanningService":
        settings = settings or get_settings()
        kb = load_knowledge_base(settings.KNOWLEDGE_BASE_PATH)
        return cls(kb, settings=settings, **kwargs)

    # -- analysis ---------------------------------------------------------

    def analyze_tastes(self, item_ids: Sequence[str],
                       quantities: Optional[Sequence[float]] = None) -> CompositeProfile:
        return self.aggregator.analyze_meal(self.knowledge_base, item_ids, quantities)

    def balancing_foods(self, composite: CompositeProfile, limit: Optional[int] = None) -> List[KnowledgeItem]:
        return suggest_foods_for_balance(composite, self.knowledge_base, limit)

    def thermal_advice(self, composite: CompositeProfile, profile,
                       context: Optional[ScoringContext] = None) -> ThermalBalanceAdvice:
        profile = coerce_profile(profile)
        season = (context or ScoringContext()).resolved_season()
        return recommend_thermal_balance(composite, season, profile.archetype)

    def score(self, profile, item_ids: Sequence[str], context: Optional[ScoringContext] = None,
              quantities: Optional[Sequence[float]] = None) -> CompatibilityScore:
        """Score one item, or several items eaten together as a meal."""
        items = [self.knowledge_base.get(item_id) for item_id in item_ids]
        if not items:
            raise ValueError("at least one item id is required")
        if len(items) == 1:
            return self.scorer.score_item(profile, items[0], context)
        return self.scorer.score_meal(profile, items, context, quantities)

    # -- ranking and planning -----------------------------------------------

    def _advisor_candidates(self, profile: SubjectProfile, context: ScoringContext,
                            category: Optional[str] = None) -> Tuple[Optional[list], List[str]]:
        if self.advisor is None:
            return None, []
        try:
            return list(self.advisor.suggest(profile, context, category)), []
        except Exception as exc:
            logger.exception("External advisor failed, continuing with knowledge base only")
            return None, [f"external advisor failed: {exc}"]

    def recommend(self, profile, context: Optional[ScoringContext] = None, *,
                  category: Optional[str] = None, meal_type: Optional[str] = None,
                  top_n: Optional[int] = None, require_in_season: bool = False) -> RankingResult:
        profile = coerce_profile(profile)
        context = context or ScoringContext()
        external, warnings = self._advisor_candidates(profile, context, category)
        result = self.ranking_engine.rank(
            profile, context, category=category, meal_type=meal_type,
            top_n=top_n if top_n is not None else self.settings.DEFAULT_TOP_N,
            external=external, require_in_season=require_in_season,
        )
        if warnings:
            result = result.model_copy(update={"warnings": result.warnings + tuple(warnings)})
        return result

    def build_plan(self, profile, context: Optional[ScoringContext] = None, *,
                   days: Optional[int] = None,
                   meal_types: Optional[Sequence[str]] = None,
                   slot_categories: Optional[Mapping[str, str]] = None,
                   slot_overrides: Optional[Mapping[Tuple[int, str], str]] = None,
                   items_per_slot: int = 1,
                   start_date: Optional[datetime.date] = None,
                   targets: Optional[NutrientTargets] = None,
                   progress: Optional[Iterable[ProgressMeasurement]] = None,
                   save: bool = False) -> PlanResult:
        """Assemble a plan, report on it and optionally hand it to the repository."""
        profile = coerce_profile(profile)
        context = context or ScoringContext()
        external, warnings = self._advisor_candidates(profile, context)
        kwargs = {}
        if meal_types is not None:
            kwargs["meal_types"] = meal_types
        plan = self.assembler.assemble(
            profile, context,
            days=days or self.settings.PLAN_DAYS,
            slot_categories=slot_categories,
            slot_overrides=slot_overrides,
            items_per_slot=items_per_slot,
            daily_cap=self.settings.DAILY_REPETITION_CAP,
            plan_cap=self.settings.PLAN_REPETITION_CAP,
            start_date=start_date,
            external=external,
            **kwargs,
        )
        if warnings:
            plan = plan.model_copy(update={"warnings": plan.warnings + tuple(warnings)})
        report = self.reporter.report(plan, targets=targets, progress=progress, goals=profile.goals)
        plan = self.reporter.attach(plan, report)
        if save:
            if self.plan_repository is None:
                raise RuntimeError("No plan repository configured")
            self.plan_repository.save_plan(plan)
        return PlanResult(plan=plan, report=report)

    def plan_for_subject(self, profile_id: str, context: Optional[ScoringContext] = None,
                         **kwargs) -> PlanResult:
        if self.profile_store is None:
            raise RuntimeError("No profile store configured")
        profile = self.profile_store.load_profile(profile_id)
        return self.build_plan(profile, context, **kwargs)
