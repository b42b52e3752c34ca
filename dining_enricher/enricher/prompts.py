from dining_enricher.models import ResortQuery
from dining_enricher.vocab import (
    Ambiance,
    CuisineType,
    MountainZone,
    PriceRange,
    VenueFeature,
    VenueType,
)

SYSTEM_PROMPT = (
    "You are an expert on restaurants, bars, and dining near ski resorts in North America. "
    "You provide accurate, factual information about businesses. Always respond with valid JSON."
)


def _one_of(values) -> str:
    return ", ".join(f'"{v}"' for v in values)


def _choices(values) -> str:
    return f"[{_one_of(values)}]"


def _venue_schema() -> str:
    """Numbered description of every field the provider must populate."""
    fields = [
        "name: The official business name",
        "description: A brief 1-2 sentence description of the venue",
        "address: Street address",
        "city: City name",
        'state: Two-letter state/province code (e.g., "CO", "UT", "BC")',
        "postal_code: ZIP/postal code",
        "latitude: Precise GPS latitude (decimal degrees)",
        "longitude: Precise GPS longitude (decimal degrees)",
        "phone: Phone number if known (format: xxx-xxx-xxxx)",
        "website_url: Official website URL if known",
        f"venue_type: Array of types from: {_choices(VenueType.values())}",
        f"cuisine_type: Array of cuisines from: {_choices(CuisineType.values())}",
        f"price_range: One of: {_one_of(PriceRange.values())}",
        "serves_breakfast: Boolean",
        "serves_lunch: Boolean",
        "serves_dinner: Boolean",
        "serves_drinks: Boolean - true if they serve alcoholic beverages",
        "has_full_bar: Boolean - true if they have a full liquor bar (not just beer/wine)",
        f"ambiance: Array from: {_choices(Ambiance.values())}",
        f"features: Array from: {_choices(VenueFeature.values())}",
        "is_on_mountain: Boolean - true if located at resort base area or on the mountain",
        f"mountain_location: If on mountain, one of: {_one_of(MountainZone.values())}",
        "is_ski_in_ski_out: Boolean - true if accessible directly from ski runs",
        "hours_notes: Brief notes about hours, especially seasonal variations",
    ]
    return "\n".join(f"{i}. {line}" for i, line in enumerate(fields, start=1))


def build_user_prompt(resort: ResortQuery, radius_miles: float, max_venues: int) -> str:
    """
    Build the venue-discovery instruction for one resort.

    Args:
        resort (ResortQuery): Resort to search around.
        radius_miles (float): Search radius.
        max_venues (int): Exact number of venues to request.

    Returns:
        str: Prompt text embedding the resort, the search bounds and the field schema.
    """
    radius = f"{radius_miles:g}"
    return f"""You are a helpful assistant that provides information about restaurants, bars, and dining venues near ski resorts.

For the ski resort "{resort.name}" located near {resort.nearest_city}, {resort.region} (coordinates: {resort.latitude}, {resort.longitude}), please provide a list of dining venues within {radius} miles.

Include:
- Restaurants (casual, fine dining, family-friendly)
- Bars and pubs
- Breweries and taprooms
- Cafes and coffee shops
- Lodge dining facilities at the resort base
- Apres-ski spots
- Food trucks if notable/permanent

For each venue, provide:
{_venue_schema()}

Return EXACTLY {max_venues} venues.

Prioritize in this order:
1. On-mountain dining facilities and apres-ski spots at the resort
2. Restaurants and bars in the resort village/base area
3. Venues in nearby ski towns within {radius} miles
4. Well-known and popular local restaurants and bars
5. Variety of cuisine types and price ranges

IMPORTANT:
- Only include businesses you are confident actually exist
- Provide accurate GPS coordinates
- Include resort-operated dining at the base area
- Include both high-end restaurants and casual/affordable options

Return your response as a JSON object with a "venues" array."""
