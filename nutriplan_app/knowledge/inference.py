"""Backfill of missing thermal and dosha attributes.

Runs once per item at load time. Every function here is pure and only fills
attributes that are missing, so running it twice gives the same vector.
"""
from typing import Dict

from nutriplan_app.core.constants import (
    BITTER_LOWER_SHARE,
    COOLING_TASTES,
    DEFAULT_THERMAL_INTENSITY,
    DOSHA_EFFECT_MAX,
    DOSHA_EFFECT_MIN,
    DOSHA_TASTE_EFFECTS,
    HEATING_TASTES,
    INTENSITY_LOWER,
    INTENSITY_RAISE,
    MAX_THERMAL_INTENSITY,
    MIN_THERMAL_INTENSITY,
    PUNGENT_RAISE_SHARE,
    SOUR_RAISE_SHARE,
    SWEET_LOWER_SHARE,
    THERMAL_DOSHA_SHIFT,
    THERMAL_INFERENCE_MARGIN,
)
from nutriplan_app.core.utils import clamp, round_half_up
from nutriplan_app.schemas.enums import Dosha, TasteAxis, ThermalEffect
from nutriplan_app.schemas.models import AttributeVector, DoshaEffect, TasteProfile


def taste_shares(tastes: TasteProfile) -> Dict[TasteAxis, float]:
    """Each axis as a percentage of the item's own taste total."""
    total = tastes.total
    if total <= 0:
        return {axis: 0.0 for axis in TasteAxis}
    return {axis: value / total * 100 for axis, value in tastes.as_dict().items()}


def infer_thermal(tastes: TasteProfile) -> ThermalEffect:
    shares = taste_shares(tastes)
    heating = sum(shares[a] for a in HEATING_TASTES)
    cooling = sum(shares[a] for a in COOLING_TASTES)
    if heating - cooling > THERMAL_INFERENCE_MARGIN:
        return ThermalEffect.HEATING
    if cooling - heating > THERMAL_INFERENCE_MARGIN:
        return ThermalEffect.COOLING
    return ThermalEffect.NEUTRAL


def infer_thermal_intensity(tastes: TasteProfile) -> float:
    """Pungent/sour push intensity up, sweet/bitter pull it down."""
    shares = taste_shares(tastes)
    intensity = DEFAULT_THERMAL_INTENSITY
    if shares[TasteAxis.PUNGENT] > PUNGENT_RAISE_SHARE or shares[TasteAxis.SOUR] > SOUR_RAISE_SHARE:
        intensity += INTENSITY_RAISE
    if shares[TasteAxis.SWEET] > SWEET_LOWER_SHARE or shares[TasteAxis.BITTER] > BITTER_LOWER_SHARE:
        intensity -= INTENSITY_LOWER
    return float(clamp(intensity, MIN_THERMAL_INTENSITY, MAX_THERMAL_INTENSITY))


def infer_dosha_effect(tastes: TasteProfile, thermal: ThermalEffect) -> DoshaEffect:
    shares = taste_shares(tastes)
    values = {}
    for dosha in Dosha:
        raw = sum(shares[axis] / 100 * DOSHA_TASTE_EFFECTS[axis][dosha] for axis in TasteAxis)
        raw += THERMAL_DOSHA_SHIFT[thermal][dosha]
        values[dosha.value] = clamp(round_half_up(raw, 1), DOSHA_EFFECT_MIN, DOSHA_EFFECT_MAX)
    return DoshaEffect(**values)


def resolve_attributes(vector: AttributeVector) -> AttributeVector:
    """Return `vector` with thermal, intensity and dosha effect filled in."""
    if vector.is_resolved:
        return vector
    thermal = vector.thermal or infer_thermal(vector.tastes)
    intensity = vector.thermal_intensity
    if intensity is None:
        intensity = infer_thermal_intensity(vector.tastes)
    dosha_effect = vector.dosha_effect or infer_dosha_effect(vector.tastes, thermal)
    return vector.model_copy(update={
        "thermal": thermal,
        "thermal_intensity": intensity,
        "dosha_effect": dosha_effect,
    })
