"""Compatibility scoring between a subject profile and candidate items."""
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from nutriplan_app.core.constants import (
    BALANCE_CONTRIBUTION_WEIGHT,
    BASE_SCORE,
    CONSTITUTION_AGGRAVATE_PENALTY,
    CONSTITUTION_PACIFY_BONUS,
    CONSTITUTIONAL_THERMAL_PREFERENCES,
    DIGESTIBILITY_BONUS,
    DOSHA_ALIGNMENT_SCALE,
    GOAL_MATCH_CAP,
    GOAL_MATCH_INCREMENT,
    HIGH_STRESS_THRESHOLD,
    PITTA_HEAT_WARNING_INTENSITY,
    SEASONAL_THERMAL_PREFERENCES,
    STRESS_GOAL,
    THERMAL_MIDPOINT,
    THERMAL_SCALE,
    VATA_COLD_WARNING_INTENSITY,
)
from nutriplan_app.core.utils import clamp_score, round_half_up, text_matches
from nutriplan_app.knowledge.inference import resolve_attributes
from nutriplan_app.recommenders.taste.aggregator import TasteProfileAggregator, dosha_impact
from nutriplan_app.schemas.enums import (
    Archetype,
    DigestiveStrength,
    Digestibility,
    Dosha,
    DoshaImpact,
    Season,
    ThermalEffect,
)
from nutriplan_app.schemas.models import (
    AttributeVector,
    CompatibilityScore,
    CompositeProfile,
    KnowledgeItem,
    RationaleEntry,
    ScoringContext,
    SubjectProfile,
    WeightedVector,
)

logger = logging.getLogger(__name__)

DIGESTIBILITY_ORDER = (Digestibility.EASY, Digestibility.MODERATE, Digestibility.HEAVY)


def coerce_profile(profile) -> SubjectProfile:
    """Accept a SubjectProfile or a raw mapping (ProfileSchemaError if unusable)."""
    if isinstance(profile, SubjectProfile):
        return profile
    return SubjectProfile.from_mapping(profile)


def thermal_adjustment(preference: float) -> float:
    return (preference - THERMAL_MIDPOINT) * THERMAL_SCALE


def seasonal_suitability(thermal: ThermalEffect, archetype: Archetype) -> Dict[Season, int]:
    """Suitability of a thermal category in every season for one archetype."""
    constitution = thermal_adjustment(CONSTITUTIONAL_THERMAL_PREFERENCES[archetype][thermal])
    return {
        season: int(clamp_score(round_half_up(
            BASE_SCORE + thermal_adjustment(SEASONAL_THERMAL_PREFERENCES[season][thermal]) + constitution
        )))
        for season in Season
    }


def constitutional_thermal_score(thermal: ThermalEffect, archetype: Archetype) -> int:
    preference = CONSTITUTIONAL_THERMAL_PREFERENCES[archetype][thermal]
    return int(clamp_score(round_half_up(BASE_SCORE + thermal_adjustment(preference))))


def constitutional_fit(effect, archetype: Archetype) -> Tuple[int, DoshaImpact, float]:
    """Sub-score, impact on the primary dosha and the subject scalar.

    The subject scalar is the mean effect over the archetype's doshas; the
    bonus or penalty follows the effect on the first listed dosha
    (balanced-all uses the scalar itself).
    """
    components = archetype.components
    scalar = sum(effect.get(d) for d in components) / len(components)
    primary = archetype.primary
    primary_value = effect.get(primary) if primary is not None else scalar
    impact = dosha_impact(primary_value)
    raw = BASE_SCORE - DOSHA_ALIGNMENT_SCALE * scalar
    if impact is DoshaImpact.DECREASE:
        raw += CONSTITUTION_PACIFY_BONUS
    elif impact is DoshaImpact.INCREASE:
        raw -= CONSTITUTION_AGGRAVATE_PENALTY
    return int(clamp_score(round_half_up(raw))), impact, round_half_up(scalar, 2)


def subject_goals(profile: SubjectProfile) -> List[str]:
    goals = list(profile.goals)
    if profile.stress_level >= HIGH_STRESS_THRESHOLD and not any(text_matches(g, STRESS_GOAL) for g in goals):
        goals.append(STRESS_GOAL)
    return goals


def matching_goals(goals: Iterable[str], benefits: Iterable[str]) -> Tuple[str, ...]:
    benefits = list(benefits)
    return tuple(g for g in goals if any(text_matches(g, b) for b in benefits))


class CompatibilityScorer:
    """Scores items, composites and whole meals for one subject and context."""

    def __init__(self, aggregator: Optional[TasteProfileAggregator] = None):
        self.aggregator = aggregator or TasteProfileAggregator()

    def score_item(self, profile, item: KnowledgeItem, context: Optional[ScoringContext] = None) -> CompatibilityScore:
        return self._score(
            coerce_profile(profile),
            item.attributes,
            context or ScoringContext(),
            benefits=item.benefits,
            digestibility=item.digestibility,
            item=item,
        )

    def score_composite(self, profile, composite: CompositeProfile,
                        context: Optional[ScoringContext] = None,
                        benefits: Sequence[str] = (),
                        digestibility: Optional[Digestibility] = None) -> CompatibilityScore:
        return self._score(
            coerce_profile(profile),
            composite.as_vector(),
            context or ScoringContext(),
            benefits=benefits,
            digestibility=digestibility,
        )

    def score_meal(self, profile, items: Sequence[KnowledgeItem],
                   context: Optional[ScoringContext] = None,
                   quantities: Optional[Sequence[float]] = None) -> CompatibilityScore:
        """Score several items eaten together as one composite."""
        composite = self.aggregator.aggregate_items(items, quantities)
        benefits = []
        for item in items:
            benefits.extend(b for b in item.benefits if b not in benefits)
        # a meal is only as easy to digest as its heaviest part
        digestibility = max((item.digestibility for item in items),
                            key=DIGESTIBILITY_ORDER.index, default=None)
        return self.score_composite(profile, composite, context, benefits, digestibility)

    def _score(self, profile: SubjectProfile, vector: AttributeVector, context: ScoringContext,
               benefits: Sequence[str] = (), digestibility: Optional[Digestibility] = None,
               item: Optional[KnowledgeItem] = None) -> CompatibilityScore:
        vector = resolve_attributes(vector)
        archetype = profile.archetype
        season = context.resolved_season()
        rationale: List[RationaleEntry] = []

        # Constitutional fit
        constitutional, impact, scalar = constitutional_fit(vector.dosha_effect, archetype)
        constitutional_delta = constitutional - BASE_SCORE
        if constitutional_delta:
            verb = "Pacifies" if constitutional_delta > 0 else "Aggravates"
            rationale.append(RationaleEntry(
                axis="constitutional", delta=constitutional_delta,
                message=f"{verb} {archetype.value} (dosha effect {scalar:+.2f})",
            ))

        # Thermal / seasonal fit
        thermal = vector.thermal
        suitability = seasonal_suitability(thermal, archetype)
        seasonal = suitability[season]
        seasonal_delta = seasonal - BASE_SCORE
        if seasonal_delta:
            fit = "suits" if seasonal_delta > 0 else "is poorly suited to"
            rationale.append(RationaleEntry(
                axis="seasonal", delta=seasonal_delta,
                message=f"{thermal.value.capitalize()} food {fit} {season.value} for {archetype.value}",
            ))

        # Therapeutic goals
        matches = matching_goals(subject_goals(profile), benefits)
        goal_delta = min(len(matches) * GOAL_MATCH_INCREMENT, GOAL_MATCH_CAP)
        if goal_delta:
            rationale.append(RationaleEntry(
                axis="goal", delta=goal_delta, message=f"Supports goals: {', '.join(matches)}",
            ))

        # Digestibility
        digest_delta = 0
        if profile.digestive_strength is DigestiveStrength.WEAK and digestibility is Digestibility.EASY:
            digest_delta = DIGESTIBILITY_BONUS
            rationale.append(RationaleEntry(
                axis="digestibility", delta=digest_delta, message="Easy to digest for a weak digestion",
            ))

        # Contribution to the balance of what is already on the plate
        balance_delta = 0
        if context.companions:
            balance_delta = self._balance_delta(context.companions, vector)
            if balance_delta:
                direction = "Improves" if balance_delta > 0 else "Worsens"
                rationale.append(RationaleEntry(
                    axis="balance", delta=balance_delta, message=f"{direction} the taste balance of the meal",
                ))

        rationale.extend(self._notes(archetype, vector, season, item))

        deltas = {
            "constitutional": constitutional_delta,
            "seasonal": seasonal_delta,
            "goal": goal_delta,
            "digestibility": digest_delta,
            "balance": balance_delta,
        }
        aggregate = int(clamp_score(BASE_SCORE + sum(deltas.values())))
        return CompatibilityScore(
            constitutional=constitutional,
            constitutional_impact=impact,
            dosha_scalar=scalar,
            season=season,
            seasonal=seasonal,
            seasonal_suitability=suitability,
            constitutional_thermal=constitutional_thermal_score(thermal, archetype),
            goal=goal_delta,
            goal_matches=matches,
            digestibility=digest_delta,
            balance=balance_delta,
            deltas=deltas,
            aggregate=aggregate,
            rationale=tuple(rationale),
        )

    def _balance_delta(self, companions: Sequence[WeightedVector], vector: AttributeVector) -> int:
        before = self.aggregator.aggregate(companions)
        after = self.aggregator.aggregate(list(companions) + [WeightedVector(vector=vector)])
        return int(round_half_up((after.balance_score - before.balance_score) * BALANCE_CONTRIBUTION_WEIGHT))

    @staticmethod
    def _notes(archetype: Archetype, vector: AttributeVector, season: Season,
               item: Optional[KnowledgeItem]) -> List[RationaleEntry]:
        notes = []
        if item is not None and not item.in_season(season):
            notes.append(RationaleEntry(axis="season", message=f"Not listed for {season.value}"))
        doshas = archetype.components
        intensity = vector.thermal_intensity or 0
        if Dosha.PITTA in doshas and vector.thermal is ThermalEffect.HEATING and intensity > PITTA_HEAT_WARNING_INTENSITY:
            notes.append(RationaleEntry(axis="thermal", message="High heating intensity may aggravate Pitta"))
        if Dosha.VATA in doshas and vector.thermal is ThermalEffect.COOLING and intensity > VATA_COLD_WARNING_INTENSITY:
            notes.append(RationaleEntry(axis="thermal", message="Excessive cooling may increase Vata"))
        return notes
