"""Six-taste profile aggregation and balance scoring."""
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from nutriplan_app.core.constants import (
    BALANCED_MAX_DEVIATION,
    DEFICIENT_TASTE_FRACTION,
    DOMINANT_TASTE_LIMIT,
    DOMINANT_TASTE_THRESHOLD,
    DOSHA_IMPACT_THRESHOLD,
    IDEAL_TASTE_DISTRIBUTION,
    IMBALANCED_MAX_DEVIATION,
    PERCENT_DECIMALS,
)
from nutriplan_app.core.errors import DIVISION_GUARD_WARNING
from nutriplan_app.core.utils import round_half_up
from nutriplan_app.knowledge.inference import resolve_attributes
from nutriplan_app.schemas.enums import (
    BalanceCategory,
    Dosha,
    DoshaImpact,
    TasteAxis,
    ThermalEffect,
)
from nutriplan_app.schemas.models import (
    AttributeVector,
    CompositeProfile,
    DoshaEffect,
    KnowledgeItem,
    TasteProfile,
    WeightedVector,
)

logger = logging.getLogger(__name__)

AXES = tuple(TasteAxis)
IDEAL = np.array([IDEAL_TASTE_DISTRIBUTION[a] for a in AXES], dtype=float)

# (axis, comparison, threshold, text) checked in order
TASTE_SUGGESTIONS = (
    (TasteAxis.SWEET, "lt", 20, "Add more sweet foods like dates, rice, or sweet fruits"),
    (TasteAxis.BITTER, "lt", 10, "Include bitter greens like karela, neem, or turmeric"),
    (TasteAxis.ASTRINGENT, "lt", 5, "Add astringent foods like pomegranate, legumes, or green tea"),
    (TasteAxis.PUNGENT, "gt", 25, "Reduce spicy and pungent foods to avoid aggravating Pitta"),
    (TasteAxis.SALTY, "gt", 20, "Reduce salt intake to prevent water retention and Kapha increase"),
    (TasteAxis.SWEET, "gt", 40, "Excessive sweet taste may increase Kapha - balance with pungent and bitter tastes"),
)
RESTRUCTURE_SUGGESTION = "Consider completely restructuring your meal to include all six tastes"


def dosha_impact(value: float) -> DoshaImpact:
    """Map a signed dosha scalar to increase/decrease/neutral."""
    if value > DOSHA_IMPACT_THRESHOLD:
        return DoshaImpact.INCREASE
    if value < -DOSHA_IMPACT_THRESHOLD:
        return DoshaImpact.DECREASE
    return DoshaImpact.NEUTRAL


def balance_category(mean_deviation: float) -> BalanceCategory:
    if mean_deviation <= BALANCED_MAX_DEVIATION:
        return BalanceCategory.BALANCED
    if mean_deviation <= IMBALANCED_MAX_DEVIATION:
        return BalanceCategory.IMBALANCED
    return BalanceCategory.SEVERELY_IMBALANCED


def balance_score(percentages: Sequence[float]) -> int:
    """0..100 closeness of a percentage profile to the ideal distribution."""
    pct = np.asarray(percentages, dtype=float)
    relative = float(np.mean(np.abs(pct - IDEAL) / IDEAL))
    return int(max(0.0, round_half_up((1 - relative) * 100)))


def dominant_axes(percentages: Dict[TasteAxis, float]) -> Tuple[TasteAxis, ...]:
    # sorted() is stable so equal shares keep canonical axis order
    ranked = sorted(AXES, key=lambda a: -percentages[a])
    return tuple(a for a in ranked if percentages[a] > DOMINANT_TASTE_THRESHOLD)[:DOMINANT_TASTE_LIMIT]


def deficient_axes(percentages: Dict[TasteAxis, float]) -> Tuple[TasteAxis, ...]:
    return tuple(
        a for a in AXES
        if percentages[a] < IDEAL_TASTE_DISTRIBUTION[a] * DEFICIENT_TASTE_FRACTION
    )


def suggestions_for(percentages: Dict[TasteAxis, float], category: BalanceCategory) -> Tuple[str, ...]:
    out: List[str] = []
    if category is BalanceCategory.SEVERELY_IMBALANCED:
        out.append(RESTRUCTURE_SUGGESTION)
    for axis, op, threshold, text in TASTE_SUGGESTIONS:
        value = percentages[axis]
        if (op == "lt" and value < threshold) or (op == "gt" and value > threshold):
            out.append(text)
    return tuple(out)


def _as_weighted(entry) -> WeightedVector:
    if isinstance(entry, WeightedVector):
        return entry
    if isinstance(entry, AttributeVector):
        return WeightedVector(vector=entry)
    vector, quantity = entry
    if quantity is None or quantity < 0:
        raise ValueError(f"quantity must be >= 0, got {quantity}")
    return WeightedVector(vector=vector, quantity=quantity)


class TasteProfileAggregator:
    """Combines weighted attribute vectors into one composite profile."""

    def aggregate(self, entries: Iterable) -> CompositeProfile:
        """Aggregate `(AttributeVector, quantity)` pairs or WeightedVectors.

        A zero total (no entries, zero quantities or no taste at all) gives
        the empty profile rather than a division error.
        """
        weighted = [_as_weighted(e) for e in entries]
        total_quantity = float(sum(w.quantity for w in weighted))
        if not weighted or total_quantity <= 0:
            return self.empty_profile(total_quantity)

        weights = np.array([w.quantity for w in weighted], dtype=float) / total_quantity
        vectors = [resolve_attributes(w.vector) for w in weighted]
        matrix = np.array([[v.tastes.get(a) for a in AXES] for v in vectors], dtype=float)
        taste_sums = weights @ matrix
        taste_total = float(taste_sums.sum())
        if taste_total <= 0:
            return self.empty_profile(total_quantity)

        raw_pct = taste_sums / taste_total * 100
        percentages = {a: round_half_up(float(p), PERCENT_DECIMALS) for a, p in zip(AXES, raw_pct)}
        pct_array = [percentages[a] for a in AXES]

        mean_dev = float(np.mean(np.abs(np.array(pct_array) - IDEAL)))
        category = balance_category(mean_dev)

        dosha_values = {}
        for dosha in Dosha:
            value = float(sum(w * v.dosha_effect.get(dosha) for w, v in zip(weights, vectors)))
            dosha_values[dosha.value] = round_half_up(value, 1)
        effect = DoshaEffect(**dosha_values)

        thermal, intensity = self._thermal(weights, vectors)

        return CompositeProfile(
            percentages=TasteProfile(**{a.value: p for a, p in percentages.items()}),
            balance_score=balance_score(pct_array),
            balance_category=category,
            mean_absolute_deviation=round_half_up(mean_dev, 2),
            dominant=dominant_axes(percentages),
            deficient=deficient_axes(percentages),
            dosha_effect=effect,
            dosha_impact={d: dosha_impact(effect.get(d)) for d in Dosha},
            thermal=thermal,
            thermal_intensity=intensity,
            total_weight=total_quantity,
            suggestions=suggestions_for(percentages, category),
        )

    def aggregate_items(self, items: Sequence[KnowledgeItem],
                        quantities: Optional[Sequence[float]] = None) -> CompositeProfile:
        if quantities is None:
            quantities = [1.0] * len(items)
        if len(quantities) != len(items):
            raise ValueError("quantities must match items")
        return self.aggregate(zip((item.attributes for item in items), quantities))

    def analyze_meal(self, knowledge_base, item_ids: Sequence[str],
                     quantities: Optional[Sequence[float]] = None) -> CompositeProfile:
        """Aggregate a meal given by knowledge base ids (unknown ids raise ItemNotFound)."""
        items = [knowledge_base.get(item_id) for item_id in item_ids]
        return self.aggregate_items(items, quantities)

    @staticmethod
    def _thermal(weights, vectors: List[AttributeVector]) -> Tuple[ThermalEffect, float]:
        per_effect = {effect: 0.0 for effect in ThermalEffect}
        for w, v in zip(weights, vectors):
            per_effect[v.thermal] += float(w) * v.thermal_intensity
        heating = per_effect[ThermalEffect.HEATING]
        cooling = per_effect[ThermalEffect.COOLING]
        neutral = per_effect[ThermalEffect.NEUTRAL]
        if heating > cooling + neutral:
            overall = ThermalEffect.HEATING
        elif cooling > heating + neutral:
            overall = ThermalEffect.COOLING
        else:
            overall = ThermalEffect.NEUTRAL
        return overall, round_half_up(heating + cooling + neutral, 1)

    @staticmethod
    def empty_profile(total_weight: float = 0.0) -> CompositeProfile:
        """The defined result for a zero total."""
        logger.debug("Taste total is zero, returning empty profile")
        zeros = {a: 0.0 for a in AXES}
        category = BalanceCategory.SEVERELY_IMBALANCED
        return CompositeProfile(
            percentages=TasteProfile(),
            balance_score=0,
            balance_category=category,
            mean_absolute_deviation=round_half_up(float(np.mean(IDEAL)), 2),
            dominant=(),
            deficient=AXES,
            dosha_effect=DoshaEffect(),
            dosha_impact={d: DoshaImpact.NEUTRAL for d in Dosha},
            thermal=ThermalEffect.NEUTRAL,
            thermal_intensity=0.0,
            total_weight=max(total_weight, 0.0),
            suggestions=suggestions_for(zeros, category),
            empty=True,
            warnings=(DIVISION_GUARD_WARNING,),
        )
