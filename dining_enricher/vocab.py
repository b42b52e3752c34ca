"""
Closed vocabularies for categorical venue fields.

Each vocabulary is a str-valued Enum so members serialize as their plain value.
Provider tokens are canonicalized (lower-cased, whitespace collapsed to "_")
before lookup; tokens outside the vocabulary are dropped, and vocabularies
that must never be empty declare a default member.
"""
import re
from enum import Enum
from typing import Iterable, List, Optional


def canonical_token(value: str) -> str:
    """Lower-case a provider token and collapse whitespace runs to underscores."""
    return re.sub(r"\s+", "_", value.strip().lower())


class Vocabulary(str, Enum):
    @classmethod
    def parse(cls, value) -> Optional["Vocabulary"]:
        if not isinstance(value, str):
            return None
        try:
            return cls(canonical_token(value))
        except ValueError:
            return None

    @classmethod
    def parse_many(cls, values: Iterable) -> List["Vocabulary"]:
        """Parse a list of tokens, dropping unknown ones and repeats, keeping order."""
        parsed = []
        for value in values or []:
            member = cls.parse(value)
            if member is not None and member not in parsed:
                parsed.append(member)
        return parsed

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class VenueType(Vocabulary):
    RESTAURANT = "restaurant"
    BAR = "bar"
    BREWERY = "brewery"
    CAFE = "cafe"
    FOOD_TRUCK = "food_truck"
    LODGE_DINING = "lodge_dining"

    @classmethod
    def default(cls) -> "VenueType":
        return cls.RESTAURANT


class CuisineType(Vocabulary):
    AMERICAN = "american"
    ITALIAN = "italian"
    MEXICAN = "mexican"
    ASIAN = "asian"
    JAPANESE = "japanese"
    CHINESE = "chinese"
    THAI = "thai"
    INDIAN = "indian"
    FRENCH = "french"
    MEDITERRANEAN = "mediterranean"
    PIZZA = "pizza"
    BURGERS = "burgers"
    SEAFOOD = "seafood"
    STEAKHOUSE = "steakhouse"
    BBQ = "bbq"
    PUB_FOOD = "pub_food"
    DELI = "deli"
    BAKERY = "bakery"
    COFFEE = "coffee"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    INTERNATIONAL = "international"

    @classmethod
    def default(cls) -> "CuisineType":
        return cls.AMERICAN


class PriceRange(Vocabulary):
    BUDGET = "$"
    MODERATE = "$$"
    EXPENSIVE = "$$$"
    LUXURY = "$$$$"

    @classmethod
    def default(cls) -> "PriceRange":
        return cls.MODERATE


class Ambiance(Vocabulary):
    CASUAL = "casual"
    UPSCALE = "upscale"
    FAMILY_FRIENDLY = "family_friendly"
    APRES_SKI = "apres_ski"
    FINE_DINING = "fine_dining"
    SPORTS_BAR = "sports_bar"
    ROMANTIC = "romantic"
    LIVELY = "lively"
    COZY = "cozy"


class VenueFeature(Vocabulary):
    OUTDOOR_SEATING = "outdoor_seating"
    FIREPLACE = "fireplace"
    LIVE_MUSIC = "live_music"
    SPORTS_TV = "sports_tv"
    RESERVATIONS_REQUIRED = "reservations_required"
    HAPPY_HOUR = "happy_hour"
    DOG_FRIENDLY = "dog_friendly"
    TAKEOUT = "takeout"
    DELIVERY = "delivery"
    PRIVATE_EVENTS = "private_events"
    CRAFT_COCKTAILS = "craft_cocktails"
    LOCAL_BEER = "local_beer"


class MountainZone(Vocabulary):
    BASE = "base"
    MID_MOUNTAIN = "mid_mountain"
    SUMMIT = "summit"
    VILLAGE = "village"


class VenueSource(str, Enum):
    LLM = "llm"
    MANUAL = "manual"
    EXTERNAL_DIRECTORY = "external-directory"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    NO_RESULTS = "no_results"
