"""Fixed scoring constants.

Historical tuning values; the tests assert against them directly.
"""
from nutriplan_app.schemas.enums import (
    Archetype,
    Dosha,
    IngredientPriority,
    IngredientRole,
    Season,
    TasteAxis,
    ThermalEffect,
    total_mapping,
)

TASTE_AXES = tuple(TasteAxis)

# --- Profile aggregation -------------------------------------------------
IDEAL_TASTE_DISTRIBUTION = total_mapping(TasteAxis, {
    TasteAxis.SWEET: 30.0,
    TasteAxis.SOUR: 15.0,
    TasteAxis.SALTY: 10.0,
    TasteAxis.PUNGENT: 15.0,
    TasteAxis.BITTER: 20.0,
    TasteAxis.ASTRINGENT: 10.0,
})
BALANCED_MAX_DEVIATION = 10.0
IMBALANCED_MAX_DEVIATION = 20.0
DOMINANT_TASTE_THRESHOLD = 25.0
DOMINANT_TASTE_LIMIT = 2
DEFICIENT_TASTE_FRACTION = 0.5
PERCENT_DECIMALS = 1

# --- Inference of missing attributes ---------------------------------------
DEFAULT_THERMAL_INTENSITY = 2
MIN_THERMAL_INTENSITY = 1
MAX_THERMAL_INTENSITY = 5
INTENSITY_RAISE = 2
INTENSITY_LOWER = 1
PUNGENT_RAISE_SHARE = 50.0
SOUR_RAISE_SHARE = 60.0
SWEET_LOWER_SHARE = 70.0
BITTER_LOWER_SHARE = 50.0
THERMAL_INFERENCE_MARGIN = 20.0
HEATING_TASTES = (TasteAxis.PUNGENT, TasteAxis.SOUR, TasteAxis.SALTY)
COOLING_TASTES = (TasteAxis.SWEET, TasteAxis.BITTER, TasteAxis.ASTRINGENT)
DOSHA_EFFECT_MIN = -3.0
DOSHA_EFFECT_MAX = 3.0

DOSHA_TASTE_EFFECTS = total_mapping(TasteAxis, {
    TasteAxis.SWEET: {Dosha.VATA: -2, Dosha.PITTA: -1, Dosha.KAPHA: 2},
    TasteAxis.SOUR: {Dosha.VATA: -1, Dosha.PITTA: 1, Dosha.KAPHA: 1},
    TasteAxis.SALTY: {Dosha.VATA: -2, Dosha.PITTA: 1, Dosha.KAPHA: 2},
    TasteAxis.PUNGENT: {Dosha.VATA: 1, Dosha.PITTA: 2, Dosha.KAPHA: -2},
    TasteAxis.BITTER: {Dosha.VATA: 1, Dosha.PITTA: -2, Dosha.KAPHA: -1},
    TasteAxis.ASTRINGENT: {Dosha.VATA: 1, Dosha.PITTA: -1, Dosha.KAPHA: -1},
})

THERMAL_DOSHA_SHIFT = total_mapping(ThermalEffect, {
    ThermalEffect.HEATING: {Dosha.VATA: -0.5, Dosha.PITTA: 1.0, Dosha.KAPHA: -0.5},
    ThermalEffect.COOLING: {Dosha.VATA: 0.5, Dosha.PITTA: -1.0, Dosha.KAPHA: 0.5},
    ThermalEffect.NEUTRAL: {Dosha.VATA: 0.0, Dosha.PITTA: 0.0, Dosha.KAPHA: 0.0},
})

# --- Compatibility scoring ---------------------------------------------------
BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100
DOSHA_IMPACT_THRESHOLD = 0.5
DOSHA_ALIGNMENT_SCALE = 10
CONSTITUTION_PACIFY_BONUS = 20
CONSTITUTION_AGGRAVATE_PENALTY = 20
THERMAL_MIDPOINT = 0.5
THERMAL_SCALE = 100
GOAL_MATCH_INCREMENT = 10
GOAL_MATCH_CAP = 30
DIGESTIBILITY_BONUS = 15
BALANCE_CONTRIBUTION_WEIGHT = 0.25
HIGH_STRESS_THRESHOLD = 7.0
STRESS_GOAL = "calming"
PITTA_HEAT_WARNING_INTENSITY = 3.0

SEASONAL_THERMAL_PREFERENCES = total_mapping(Season, {
    Season.SPRING: {ThermalEffect.HEATING: 0.6, ThermalEffect.COOLING: 0.3, ThermalEffect.NEUTRAL: 0.8},
    Season.SUMMER: {ThermalEffect.HEATING: 0.2, ThermalEffect.COOLING: 1.0, ThermalEffect.NEUTRAL: 0.7},
    Season.MONSOON: {ThermalEffect.HEATING: 0.8, ThermalEffect.COOLING: 0.4, ThermalEffect.NEUTRAL: 0.7},
    Season.AUTUMN: {ThermalEffect.HEATING: 0.5, ThermalEffect.COOLING: 0.5, ThermalEffect.NEUTRAL: 0.8},
    Season.WINTER: {ThermalEffect.HEATING: 1.0, ThermalEffect.COOLING: 0.2, ThermalEffect.NEUTRAL: 0.6},
})

DOSHA_THERMAL_PREFERENCES = total_mapping(Dosha, {
    Dosha.VATA: {ThermalEffect.HEATING: 0.8, ThermalEffect.COOLING: 0.3, ThermalEffect.NEUTRAL: 0.7},
    Dosha.PITTA: {ThermalEffect.HEATING: 0.2, ThermalEffect.COOLING: 1.0, ThermalEffect.NEUTRAL: 0.8},
    Dosha.KAPHA: {ThermalEffect.HEATING: 1.0, ThermalEffect.COOLING: 0.3, ThermalEffect.NEUTRAL: 0.6},
})


def _blend_preferences(archetype: Archetype) -> dict:
    # composites and balanced-all take the mean of their component rows
    doshas = archetype.components
    return {
        effect: sum(DOSHA_THERMAL_PREFERENCES[d][effect] for d in doshas) / len(doshas)
        for effect in ThermalEffect
    }


CONSTITUTIONAL_THERMAL_PREFERENCES = total_mapping(
    Archetype, {archetype: _blend_preferences(archetype) for archetype in Archetype}
)

# --- Ranking hard filters ----------------------------------------------------
DIETARY_RESTRICTION_EXCLUSIONS = {
    "vegetarian": ("meat", "fish", "poultry"),
    "vegan": ("meat", "fish", "poultry", "dairy", "eggs", "honey"),
    "gluten-free": ("gluten",),
    "dairy-free": ("dairy",),
    "nut-free": ("nuts",),
}
ALL_SEASONS_TAG = "all"

# --- Plan assembly -----------------------------------------------------------
DEFAULT_MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")
DEFAULT_SLOT_CATEGORIES = {
    "breakfast": "breakfast",
    "lunch": "main-course",
    "dinner": "main-course",
    "snack": "snack",
}
DEFAULT_PLAN_DAYS = 7
DAILY_REPETITION_CAP = 1
PLAN_REPETITION_CAP = 3
REPETITION_WINDOW_DAYS = 7

# --- Aggregation report ------------------------------------------------------
ROLE_PRIORITIES = total_mapping(IngredientRole, {
    IngredientRole.MAIN: IngredientPriority.ESSENTIAL,
    IngredientRole.BASE: IngredientPriority.ESSENTIAL,
    IngredientRole.SPICE: IngredientPriority.OPTIONAL,
    IngredientRole.GARNISH: IngredientPriority.OPTIONAL,
})
UNIT_ALIASES = {
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tsps": "tsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "tbsps": "tbsp",
    "cups": "cup",
    "gram": "g",
    "grams": "g",
    "gm": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "millilitre": "ml",
    "milliliter": "ml",
    "millilitres": "ml",
    "milliliters": "ml",
    "litre": "l",
    "liter": "l",
    "inches": "inch",
    "pieces": "piece",
    "pcs": "piece",
    "pods": "pod",
    "cloves": "clove",
}
NUTRIENT_DECIMALS = 1

# --- Season derivation -------------------------------------------------------
MONTH_SEASONS = {
    1: Season.WINTER, 2: Season.WINTER,
    3: Season.SPRING, 4: Season.SPRING, 5: Season.SPRING,
    6: Season.SUMMER, 7: Season.SUMMER, 8: Season.SUMMER,
    9: Season.MONSOON, 10: Season.MONSOON,
    11: Season.AUTUMN, 12: Season.AUTUMN,
}
HOT_TEMPERATURE_C = 32.0
COLD_TEMPERATURE_C = 12.0

# --- Thermal advice ----------------------------------------------------------
VATA_COLD_WARNING_INTENSITY = 3.0
ADD_HEATING_SEASON_PREFERENCE = 0.7
ADD_COOLING_CONSTITUTION_PREFERENCE = 0.8
BALANCING_FOOD_TASTE_SHARE = 30.0
