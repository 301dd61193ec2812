"""Ranking of candidate items by compatibility score."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Set, Tuple

import pandas as pd

from nutriplan_app.core.constants import DIETARY_RESTRICTION_EXCLUSIONS
from nutriplan_app.core.utils import normalize_tag, normalize_tags, text_matches
from nutriplan_app.knowledge.store import item_from_record
from nutriplan_app.recommenders.base import BaseRecommender
from nutriplan_app.recommenders.compatibility.scorer import CompatibilityScorer, coerce_profile
from nutriplan_app.schemas.enums import Season
from nutriplan_app.schemas.models import (
    CompatibilityScore,
    ExcludedItem,
    KnowledgeItem,
    RankingResult,
    Recommendation,
    ScoringContext,
    SubjectProfile,
)

logger = logging.getLogger(__name__)


def expand_exclusions(exclusions: Iterable[str]) -> Set[str]:
    """Subject exclusions with dietary restrictions replaced by what they rule out.

    "gluten-free" becomes "gluten", so an item tagged gluten-free is kept.
    """
    expanded = set()
    for tag in normalize_tags(exclusions):
        if tag in DIETARY_RESTRICTION_EXCLUSIONS:
            expanded.update(DIETARY_RESTRICTION_EXCLUSIONS[tag])
        else:
            expanded.add(tag)
    return expanded


def exclusion_reason(profile: SubjectProfile, item: KnowledgeItem,
                     season: Optional[Season] = None,
                     exclusions: Optional[Set[str]] = None) -> Optional[str]:
    """Why `item` must not be offered to `profile`, or None if it may be."""
    if exclusions is None:
        exclusions = expand_exclusions(profile.exclusions)
    markers = set(item.contraindications) | set(item.allergens) | set(item.tags)
    hit = sorted(markers & exclusions)
    if hit:
        return f"excluded tag: {', '.join(hit)}"
    for symptom in profile.symptoms:
        for contraindication in item.contraindications:
            if text_matches(symptom, contraindication):
                return f"contraindicated for {symptom}"
    if season is not None and not item.in_season(season):
        return f"not in season ({season.value})"
    return None


def slot_match(item: KnowledgeItem, category: Optional[str] = None, meal_type: Optional[str] = None) -> bool:
    if category and item.category != normalize_tag(category):
        return False
    # items without meal types can go anywhere their category allows
    if meal_type and item.meal_types and normalize_tag(meal_type) not in item.meal_types:
        return False
    return True


class RankingEngine(BaseRecommender):
    """Scores a candidate pool and returns it in a deterministic order.

    Order is aggregate score (desc), then constitutional sub-score (desc),
    then position in the candidate pool.
    """

    def __init__(self, knowledge_base, scorer: Optional[CompatibilityScorer] = None,
                 max_workers: int = 1, default_top_n: Optional[int] = None):
        super().__init__(knowledge_base)
        self.scorer = scorer or CompatibilityScorer()
        self.max_workers = max(1, int(max_workers or 1))
        self.default_top_n = default_top_n

    def candidates(self, profile: SubjectProfile, context: ScoringContext,
                   category: Optional[str] = None, meal_type: Optional[str] = None) -> Iterable[KnowledgeItem]:
        return self.knowledge_base.query(lambda item: slot_match(item, category, meal_type))

    def external_candidates(self, records: Iterable) -> Tuple[List[KnowledgeItem], List[str]]:
        """Validate advisor-supplied candidates; any score they carry is ignored."""
        items, warnings = [], []
        for record in records or ():
            try:
                item = item_from_record(record)
            except ValueError as exc:
                label = record.get('name', record.get('id')) if isinstance(record, dict) else record
                warnings.append(f"rejected external candidate {label}: {exc}")
                logger.warning("Rejected external candidate %s", label)
                continue
            items.append(item.model_copy(update={'source': 'external'}))
        return items, warnings

    def predict_scores(self, profile: SubjectProfile, items: List[KnowledgeItem],
                       context: ScoringContext) -> List[CompatibilityScore]:
        if self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                # map() yields in submission order
                return list(pool.map(lambda item: self.scorer.score_item(profile, item, context), items))
        return [self.scorer.score_item(profile, item, context) for item in items]

    def rank(self, profile, context: Optional[ScoringContext] = None,
             candidates: Optional[Iterable[KnowledgeItem]] = None, *,
             category: Optional[str] = None, meal_type: Optional[str] = None,
             top_n: Optional[int] = None, external: Optional[Iterable] = None,
             require_in_season: bool = False) -> RankingResult:
        profile = coerce_profile(profile)
        context = context or ScoringContext()
        if candidates is None:
            candidates = self.candidates(profile, context, category=category, meal_type=meal_type)

        pool = list(candidates)
        warnings: List[str] = []
        if external is not None:
            extra, rejected = self.external_candidates(external)
            extra = [item for item in extra if slot_match(item, category, meal_type)]
            pool.extend(extra)
            warnings.extend(rejected)

        season = context.resolved_season() if require_in_season else None
        exclusions = expand_exclusions(profile.exclusions)
        kept: List[KnowledgeItem] = []
        excluded: List[ExcludedItem] = []
        seen: Dict[str, KnowledgeItem] = {}
        for item in pool:
            if item.id in seen:
                if item.source == 'external':
                    owner = 'a knowledge base' if seen[item.id].source != 'external' else 'an earlier external'
                    warnings.append(f"external candidate {item.id} duplicates {owner} id")
                    logger.warning("Dropped duplicate external candidate %s", item.id)
                continue
            seen[item.id] = item
            reason = exclusion_reason(profile, item, season, exclusions)
            if reason:
                excluded.append(ExcludedItem(item_id=item.id, name=item.name, reason=reason))
                continue
            kept.append(item)

        if not kept:
            return RankingResult(excluded=tuple(excluded), warnings=tuple(warnings),
                                 candidate_count=len(seen))

        scores = self.predict_scores(profile, kept, context)
        df = pd.DataFrame({
            'position': range(len(kept)),
            'aggregate': [s.aggregate for s in scores],
            'constitutional': [s.constitutional for s in scores],
        })
        # equal scores fall back to pool position
        df = df.sort_values(['aggregate', 'constitutional', 'position'],
                            ascending=[False, False, True], kind='mergesort')
        limit = top_n if top_n is not None else self.default_top_n
        if limit is not None:
            df = df.head(max(0, int(limit)))

        recommendations = []
        for rank, position in enumerate(df['position'].tolist(), start=1):
            score = scores[position]
            recommendations.append(Recommendation(
                item=kept[position],
                rank=rank,
                score=score.aggregate,
                compatibility=score,
                rationale=score.rationale,
            ))
        logger.debug("Ranked %d candidates (%d excluded)", len(kept), len(excluded))
        return RankingResult(
            recommendations=tuple(recommendations),
            excluded=tuple(excluded),
            warnings=tuple(warnings),
            candidate_count=len(seen),
        )

    def generate_recommendations(self, profile: SubjectProfile, context: ScoringContext,
                                 top_k: Optional[int] = None, **filters) -> RankingResult:
        return self.rank(profile, context, top_n=top_k, **filters)
