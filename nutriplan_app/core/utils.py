"""Utility helpers for the Nutriplan application."""
import datetime
import math
from decimal import ROUND_FLOOR, Decimal
from typing import Iterable, List, Optional, Tuple

from nutriplan_app.core.constants import (
    COLD_TEMPERATURE_C,
    HOT_TEMPERATURE_C,
    MAX_SCORE,
    MIN_SCORE,
    MONTH_SEASONS,
    UNIT_ALIASES,
)
from nutriplan_app.schemas.enums import Season


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round ties toward +infinity (2.5 -> 3, -2.5 -> -2), unlike builtin round().

    Goes through str() so that 0.15 rounds to 0.2 instead of falling foul of
    the binary representation.
    """
    if value is None or math.isnan(value):
        return 0.0
    scale = Decimal(10) ** ndigits
    scaled = (Decimal(str(value)) * scale + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)
    return float(scaled / scale)


def round_int(value: float) -> int:
    return int(round_half_up(value))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_score(value: float) -> float:
    """Clamp to the 0..100 score range."""
    return clamp(value, MIN_SCORE, MAX_SCORE)


def season_for_date(day: datetime.date) -> Season:
    """Season for a calendar date (Indian six-season calendar folded to five)."""
    return MONTH_SEASONS[day.month]


def resolve_season(season: Optional[Season], reference_date: Optional[datetime.date] = None,
                   temperature: Optional[float] = None) -> Season:
    """Explicit season wins, then a strong temperature hint, then the calendar."""
    if season is not None:
        return season
    if temperature is not None:
        if temperature >= HOT_TEMPERATURE_C:
            return Season.SUMMER
        if temperature <= COLD_TEMPERATURE_C:
            return Season.WINTER
    return season_for_date(reference_date or datetime.date.today())


def normalize_tag(tag) -> str:
    """Lower-case, trimmed, underscores/spaces collapsed to hyphens."""
    text = str(tag or '').strip().lower()
    return '-'.join(text.replace('_', ' ').split())


def normalize_tags(tags: Iterable) -> Tuple[str, ...]:
    seen = []
    for tag in tags or ():
        norm = normalize_tag(tag)
        if norm and norm not in seen:
            seen.append(norm)
    return tuple(seen)


def split_list(value) -> List[str]:
    """Accept a list, a comma/semicolon separated string or nothing."""
    if value is None:
        return []
    if isinstance(value, float) and math.isnan(value):
        # empty pandas cell
        return []
    if isinstance(value, str):
        parts = value.replace(';', ',').split(',')
        return [p.strip() for p in parts if p.strip()]
    return [str(v).strip() for v in value if str(v).strip()]


def normalize_unit(unit) -> str:
    text = str(unit or '').strip().lower().rstrip('.')
    return UNIT_ALIASES.get(text, text)


def text_matches(a: str, b: str) -> bool:
    """Case-insensitive substring match in either direction."""
    left = normalize_tag(a)
    right = normalize_tag(b)
    if not left or not right:
        return False
    return left in right or right in left
