"""
Validation and normalization of untrusted provider venue payloads.

`normalize` turns the provider's loosely-typed venue list into `Venue` records
and a list of rejected entries with reasons. It never raises and performs no I/O.
"""
import re
import unicodedata
from typing import Any, List, Optional
from urllib.parse import urlparse

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dining_enricher.enricher.geo import is_valid_coordinate
from dining_enricher.models import NormalizationResult, RejectedVenue, Venue
from dining_enricher.vocab import (
    Ambiance,
    CuisineType,
    MountainZone,
    PriceRange,
    VenueFeature,
    VenueType,
)

CANADIAN_REGIONS = {"AB", "BC", "MB", "NB", "NL", "NS", "NT", "NU", "ON", "PE", "QC", "SK", "YT"}

_TRUE_STRINGS = {"true", "yes", "y", "1"}


class RawVenue(BaseModel):
    """Structural shape expected from the provider for one venue."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    description: Optional[str] = None
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=2, max_length=3)
    postal_code: str = Field(min_length=5)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    phone: Optional[str] = None
    website_url: Optional[str] = None
    venue_type: List[str] = Field(default_factory=list)
    cuisine_type: List[str] = Field(default_factory=list)
    price_range: Optional[str] = None
    serves_breakfast: bool = False
    serves_lunch: bool = False
    serves_dinner: bool = False
    serves_drinks: bool = False
    has_full_bar: bool = False
    ambiance: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    is_on_mountain: bool = False
    mountain_location: Optional[str] = None
    is_ski_in_ski_out: bool = False
    hours_notes: Optional[str] = None

    @field_validator("postal_code", "phone", mode="before")
    @classmethod
    def _numbers_to_text(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return f"{value:05d}"
        return value

    @field_validator("description", "website_url", "price_range", "mountain_location", "hours_notes", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("venue_type", "cuisine_type", "ambiance", "features", mode="before")
    @classmethod
    def _token_list(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)):
            return [item for item in value if isinstance(item, str)]
        return []

    @field_validator(
        "serves_breakfast", "serves_lunch", "serves_dinner", "serves_drinks",
        "has_full_bar", "is_on_mountain", "is_ski_in_ski_out",
        mode="before",
    )
    @classmethod
    def _flag(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        if isinstance(value, (int, float)):
            return value != 0
        return False


def generate_slug(*parts: Optional[str]) -> str:
    """
    Build a stable identity slug from name, city and region.

    Example: ("Joe's Bar", "Vail", "CO") -> "joes-bar-vail-co"
    """
    text = " ".join(p for p in parts if p)
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"['’`]", "", text.lower())
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Reduce to digits (keeping a leading +) and format ten-digit numbers as ddd-ddd-dddd."""
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)
    if not digits:
        return None
    if phone.lstrip().startswith("+"):
        return f"+{digits}"
    if len(digits) == 10:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    return digits


def normalize_website(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return url


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(loc) for loc in err["loc"]) or "venue"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def _to_venue(raw: RawVenue) -> Venue:
    region = raw.state.upper()
    venue_types = VenueType.parse_many(raw.venue_type) or [VenueType.default()]
    cuisines = CuisineType.parse_many(raw.cuisine_type) or [CuisineType.default()]
    return Venue(
        name=raw.name,
        slug=generate_slug(raw.name, raw.city, region),
        description=_clean_text(raw.description),
        address_line1=raw.address,
        city=raw.city,
        region=region,
        postal_code=raw.postal_code,
        country="CA" if region in CANADIAN_REGIONS else "US",
        latitude=raw.latitude,
        longitude=raw.longitude,
        phone=normalize_phone(raw.phone),
        website_url=normalize_website(raw.website_url),
        venue_type=venue_types,
        cuisine_type=cuisines,
        price_range=PriceRange.parse(raw.price_range) or PriceRange.default(),
        serves_breakfast=raw.serves_breakfast,
        serves_lunch=raw.serves_lunch,
        serves_dinner=raw.serves_dinner,
        serves_drinks=raw.serves_drinks,
        has_full_bar=raw.has_full_bar,
        ambiance=Ambiance.parse_many(raw.ambiance),
        features=VenueFeature.parse_many(raw.features),
        is_on_mountain=raw.is_on_mountain,
        mountain_location=MountainZone.parse(raw.mountain_location),
        is_ski_in_ski_out=raw.is_ski_in_ski_out,
        hours_notes=_clean_text(raw.hours_notes),
    )


def normalize(raw_venues: Any) -> NormalizationResult:
    """
    Validate and normalize the provider's venue list.

    Entries with a broken structure or coordinates outside the supported
    continent are rejected; everything else becomes a `Venue`. Unknown
    categorical tokens are dropped, and venue/cuisine types fall back to a
    single default when nothing recognizable remains.

    Args:
        raw_venues: The provider's `venues` array (any shape is tolerated).

    Returns:
        NormalizationResult: Valid venues and rejected entries with reasons.
    """
    result = NormalizationResult()
    if not isinstance(raw_venues, list):
        result.rejected.append(RejectedVenue(name=None, reason="venues payload is not a list"))
        return result

    for entry in raw_venues:
        if not isinstance(entry, dict):
            result.rejected.append(RejectedVenue(name=None, reason="entry is not an object"))
            continue

        try:
            raw = RawVenue.model_validate(entry)
        except ValidationError as e:
            name = entry.get("name")
            result.rejected.append(
                RejectedVenue(name=name if isinstance(name, str) else None, reason=_describe_errors(e))
            )
            continue

        if not is_valid_coordinate(raw.latitude, raw.longitude):
            result.rejected.append(RejectedVenue(name=raw.name, reason="invalid coordinates"))
            continue

        try:
            result.valid.append(_to_venue(raw))
        except Exception as e:
            result.rejected.append(RejectedVenue(name=raw.name, reason=f"normalization failed: {e}"))

    logger.debug(
        f"Normalized {len(raw_venues)} venues: {len(result.valid)} valid, {len(result.rejected)} rejected"
    )
    return result
