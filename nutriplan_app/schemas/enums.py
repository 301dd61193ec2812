"""Enumerations shared by the knowledge base, scorer and planner."""
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple, Type, TypeVar

E = TypeVar("E", bound=Enum)


class TasteAxis(str, Enum):
    SWEET = "sweet"
    SOUR = "sour"
    SALTY = "salty"
    PUNGENT = "pungent"
    BITTER = "bitter"
    ASTRINGENT = "astringent"


class ThermalEffect(str, Enum):
    HEATING = "heating"
    COOLING = "cooling"
    NEUTRAL = "neutral"


class Dosha(str, Enum):
    VATA = "vata"
    PITTA = "pitta"
    KAPHA = "kapha"


class Archetype(str, Enum):
    """Subject constitution: a primary dosha, a two-way composite or balanced-all."""
    VATA = "vata"
    PITTA = "pitta"
    KAPHA = "kapha"
    VATA_PITTA = "vata-pitta"
    PITTA_KAPHA = "pitta-kapha"
    VATA_KAPHA = "vata-kapha"
    BALANCED_ALL = "balanced-all"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-")
            if key == "tridoshic":
                return cls.BALANCED_ALL
            for member in cls:
                if member.value == key:
                    return member
        return None

    @property
    def components(self) -> Tuple[Dosha, ...]:
        return ARCHETYPE_COMPONENTS[self]

    @property
    def primary(self) -> Optional[Dosha]:
        """First listed dosha, or None for balanced-all."""
        if self is Archetype.BALANCED_ALL:
            return None
        return self.components[0]


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    MONSOON = "monsoon"
    AUTUMN = "autumn"
    WINTER = "winter"


class DigestiveStrength(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class Digestibility(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    HEAVY = "heavy"


class DoshaImpact(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    NEUTRAL = "neutral"


class BalanceCategory(str, Enum):
    BALANCED = "balanced"
    IMBALANCED = "imbalanced"
    SEVERELY_IMBALANCED = "severely-imbalanced"


class IngredientRole(str, Enum):
    MAIN = "main"
    BASE = "base"
    SPICE = "spice"
    GARNISH = "garnish"


class IngredientPriority(str, Enum):
    ESSENTIAL = "essential"
    OPTIONAL = "optional"


class SlotStatus(str, Enum):
    FILLED = "filled"
    RELAXED = "relaxed"
    EMPTY = "empty"


def total_mapping(enum_cls: Type[E], mapping: Mapping[E, object]) -> Dict[E, object]:
    """Return `mapping` as a dict after checking it covers every member of `enum_cls`.

    Lookup tables keyed by an enum are built through this helper so that a
    missing member fails at import time instead of surfacing as a None later.
    """
    missing = [m.value for m in enum_cls if m not in mapping]
    if missing:
        raise ValueError(f"{enum_cls.__name__} table is missing {missing}")
    return dict(mapping)


ARCHETYPE_COMPONENTS = total_mapping(Archetype, {
    Archetype.VATA: (Dosha.VATA,),
    Archetype.PITTA: (Dosha.PITTA,),
    Archetype.KAPHA: (Dosha.KAPHA,),
    Archetype.VATA_PITTA: (Dosha.VATA, Dosha.PITTA),
    Archetype.PITTA_KAPHA: (Dosha.PITTA, Dosha.KAPHA),
    Archetype.VATA_KAPHA: (Dosha.VATA, Dosha.KAPHA),
    Archetype.BALANCED_ALL: (Dosha.VATA, Dosha.PITTA, Dosha.KAPHA),
})
