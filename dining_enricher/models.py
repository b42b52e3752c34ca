"""
Typed data models for the dining enrichment pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from dining_enricher.vocab import (
    Ambiance,
    CuisineType,
    MountainZone,
    OutcomeStatus,
    PriceRange,
    VenueFeature,
    VenueSource,
    VenueType,
)


@dataclass(frozen=True)
class ResortQuery:
    """Resort to enrich, as supplied by the resort source."""
    id: str
    slug: str
    name: str
    latitude: float
    longitude: float
    nearest_city: str = ""
    region: str = ""
    asset_path: Optional[str] = None
    radius_miles: Optional[float] = None  # Falls back to the run config when unset
    max_venues: Optional[int] = None


@dataclass
class Venue:
    """Validated, normalized dining venue."""
    name: str
    slug: str
    address_line1: str
    city: str
    region: str
    postal_code: str
    latitude: float
    longitude: float
    venue_type: List[VenueType]
    cuisine_type: List[CuisineType]
    price_range: PriceRange = PriceRange.MODERATE
    description: Optional[str] = None
    address_line2: Optional[str] = None
    country: str = "US"
    phone: Optional[str] = None
    website_url: Optional[str] = None
    serves_breakfast: bool = False
    serves_lunch: bool = False
    serves_dinner: bool = False
    serves_drinks: bool = False
    has_full_bar: bool = False
    ambiance: List[Ambiance] = field(default_factory=list)
    features: List[VenueFeature] = field(default_factory=list)
    is_on_mountain: bool = False
    mountain_location: Optional[MountainZone] = None
    is_ski_in_ski_out: bool = False
    hours_notes: Optional[str] = None
    source: VenueSource = VenueSource.LLM
    verified: bool = False
    is_active: bool = True
    id: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        """Row for the dining_venues table; enums become their plain values."""
        record = {
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.region,
            "postal_code": self.postal_code,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "phone": self.phone,
            "website_url": self.website_url,
            "venue_type": [t.value for t in self.venue_type],
            "cuisine_type": [c.value for c in self.cuisine_type],
            "price_range": self.price_range.value,
            "serves_breakfast": self.serves_breakfast,
            "serves_lunch": self.serves_lunch,
            "serves_dinner": self.serves_dinner,
            "serves_drinks": self.serves_drinks,
            "has_full_bar": self.has_full_bar,
            "ambiance": [a.value for a in self.ambiance],
            "features": [f.value for f in self.features],
            "is_on_mountain": self.is_on_mountain,
            "mountain_location": self.mountain_location.value if self.mountain_location else None,
            "is_ski_in_ski_out": self.is_ski_in_ski_out,
            "hours_notes": self.hours_notes,
            "source": self.source.value,
            "verified": self.verified,
            "is_active": self.is_active,
        }
        if self.id is not None:
            record["id"] = self.id
        return record


@dataclass(frozen=True)
class RejectedVenue:
    """Provider entry that failed validation."""
    name: Optional[str]
    reason: str


@dataclass
class NormalizationResult:
    valid: List[Venue] = field(default_factory=list)
    rejected: List[RejectedVenue] = field(default_factory=list)


@dataclass
class LLMVenueResponse:
    """Raw venues returned by the provider plus token usage and cost."""
    venues: List[Any]
    prompt_tokens: int
    completion_tokens: int
    cost: float
    raw_payload: Any


@dataclass
class DedupResult:
    venue: Venue
    is_new: bool
    existing_id: Optional[str] = None
    duplicate_in_batch: bool = False


@dataclass(frozen=True)
class ResortVenueLink:
    """Resort-to-venue association with resort-specific derived facts."""
    resort_id: str
    venue_id: str
    distance_miles: float
    drive_time_minutes: int
    is_on_mountain: bool
    is_preferred: bool = False

    def to_record(self) -> Dict[str, Any]:
        return {
            "resort_id": self.resort_id,
            "dining_venue_id": self.venue_id,
            "distance_miles": self.distance_miles,
            "drive_time_minutes": self.drive_time_minutes,
            "is_on_mountain": self.is_on_mountain,
            "is_preferred": self.is_preferred,
        }


@dataclass(frozen=True)
class EnrichmentOutcome:
    """Result of enriching one resort. One per resort per run."""
    resort_id: str
    resort_name: str
    status: OutcomeStatus
    venues_found: int = 0
    venues_created: int = 0
    venues_updated: int = 0
    venues_linked: int = 0
    venues_rejected: int = 0
    error: Optional[str] = None
    duration_ms: int = 0
    total_cost: Optional[float] = None


@dataclass(frozen=True)
class EnrichmentLogEntry:
    """Append-only audit row written for every processed resort."""
    resort_id: str
    resort_name: str
    search_radius_miles: float
    search_lat: float
    search_lng: float
    venues_found: int
    venues_created: int
    venues_updated: int
    venues_linked: int
    status: str
    error_message: Optional[str]
    model_used: str
    prompt_tokens: int
    completion_tokens: int
    total_cost: float
    raw_response: Any
    started_at: datetime
    completed_at: datetime
    duration_ms: int

    def to_record(self) -> Dict[str, Any]:
        record = asdict(self)
        record["started_at"] = self.started_at.isoformat()
        record["completed_at"] = self.completed_at.isoformat()
        return record


@dataclass(frozen=True)
class EnrichmentStats:
    """Aggregate counts reported by the status command."""
    total_venues: int
    total_links: int
    resorts_with_venues: int
    active_resorts: int

    def render(self) -> str:
        rule = "=" * 50
        return "\n".join([
            "",
            rule,
            "DINING ENRICHMENT STATUS",
            rule,
            f"Total Dining Venues:   {self.total_venues}",
            f"Resort-Venue Links:    {self.total_links}",
            f"Resorts with Venues:   {self.resorts_with_venues}",
            f"Total Active Resorts:  {self.active_resorts}",
            rule,
        ])


@dataclass
class RunSummary:
    """Aggregate counters for one run. Built fresh by every entry point."""
    resorts_processed: int = 0
    resorts_succeeded: int = 0
    resorts_failed: int = 0
    resorts_no_results: int = 0
    resorts_planned: int = 0
    venues_found: int = 0
    venues_created: int = 0
    venues_updated: int = 0
    venues_linked: int = 0
    total_cost: float = 0.0
    duration_seconds: float = 0.0
    dry_run: bool = False
    outcomes: List[EnrichmentOutcome] = field(default_factory=list)

    def record(self, outcome: EnrichmentOutcome) -> None:
        self.outcomes.append(outcome)
        self.resorts_processed += 1
        if outcome.status in (OutcomeStatus.SUCCESS, OutcomeStatus.PARTIAL):
            self.resorts_succeeded += 1
        elif outcome.status == OutcomeStatus.FAILED:
            self.resorts_failed += 1
        else:
            self.resorts_no_results += 1
        self.venues_found += outcome.venues_found
        self.venues_created += outcome.venues_created
        self.venues_updated += outcome.venues_updated
        self.venues_linked += outcome.venues_linked
        self.total_cost += outcome.total_cost or 0.0

    def render(self) -> str:
        rule = "=" * 50
        lines = ["", rule, "DINING ENRICHMENT SUMMARY" + (" (DRY RUN)" if self.dry_run else ""), rule]
        if self.dry_run:
            lines.append(f"Resorts Planned:       {self.resorts_planned}")
        lines += [
            f"Resorts Processed:     {self.resorts_processed}",
            f"Successful:            {self.resorts_succeeded}",
            f"Failed:                {self.resorts_failed}",
            f"No Results:            {self.resorts_no_results}",
            "-" * 50,
            f"Venues Found:          {self.venues_found}",
            f"Venues Created:        {self.venues_created}",
            f"Venues Updated:        {self.venues_updated}",
            f"Venues Linked:         {self.venues_linked}",
            "-" * 50,
            f"Total Cost:            ${self.total_cost:.4f}",
            f"Total Duration:        {self.duration_seconds:.1f}s",
            rule,
        ]
        return "\n".join(lines)
