"""Meal-balancing helpers built on top of the taste aggregator."""
from typing import List, Optional

from nutriplan_app.core.constants import (
    ADD_COOLING_CONSTITUTION_PREFERENCE,
    ADD_HEATING_SEASON_PREFERENCE,
    BALANCING_FOOD_TASTE_SHARE,
    CONSTITUTIONAL_THERMAL_PREFERENCES,
    SEASONAL_THERMAL_PREFERENCES,
)
from nutriplan_app.knowledge.inference import taste_shares
from nutriplan_app.schemas.enums import Archetype, Season, ThermalEffect
from nutriplan_app.schemas.models import CompositeProfile, KnowledgeItem, ThermalBalanceAdvice


def suggest_foods_for_balance(composite: CompositeProfile, knowledge_base,
                              limit: Optional[int] = None) -> List[KnowledgeItem]:
    """Items that would supply one of the composite's deficient tastes.

    An item qualifies when a deficient axis makes up more than 30% of its
    own taste total. Knowledge base order is kept.
    """
    deficient = composite.deficient
    if not deficient:
        return []

    def supplies_deficit(item: KnowledgeItem) -> bool:
        shares = taste_shares(item.attributes.tastes)
        return any(shares[axis] > BALANCING_FOOD_TASTE_SHARE for axis in deficient)

    found = knowledge_base.query(supplies_deficit).to_list()
    return found[:limit] if limit is not None else found


def recommend_thermal_balance(composite: CompositeProfile, season: Season,
                              archetype: Archetype) -> ThermalBalanceAdvice:
    season_prefs = SEASONAL_THERMAL_PREFERENCES[Season(season)]
    constitution_prefs = CONSTITUTIONAL_THERMAL_PREFERENCES[Archetype(archetype)]
    add_heating = add_cooling = False
    suggestions = []
    if composite.thermal is ThermalEffect.COOLING and season_prefs[ThermalEffect.HEATING] > ADD_HEATING_SEASON_PREFERENCE:
        add_heating = True
        suggestions.append("Add warming spices like ginger, cinnamon, or black pepper")
    if composite.thermal is ThermalEffect.HEATING and constitution_prefs[ThermalEffect.COOLING] > ADD_COOLING_CONSTITUTION_PREFERENCE:
        add_cooling = True
        suggestions.append("Add cooling elements like coconut, cucumber, or mint")
    return ThermalBalanceAdvice(add_heating=add_heating, add_cooling=add_cooling,
                                suggestions=tuple(suggestions))
