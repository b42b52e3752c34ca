"""
Supabase-backed resort source and venue store.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger
from supabase import Client, create_client

from dining_enricher.config import SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL
from dining_enricher.errors import StoreError
from dining_enricher.models import (
    EnrichmentLogEntry,
    EnrichmentStats,
    ResortQuery,
    ResortVenueLink,
    Venue,
)

RESORTS_VIEW = "resorts_map_pins"
RESORTS_TABLE = "resorts"
VENUES_TABLE = "dining_venues"
LINKS_TABLE = "resort_dining_venues"
LOGS_TABLE = "dining_enrichment_logs"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SupabaseStore:
    """Reads resorts and writes venues, links and enrichment logs."""

    def __init__(self, client: Optional[Client] = None):
        if client is None:
            if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
                raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment")
            client = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
        self.client = client

    # ==================== RESORTS ====================

    def list_eligible_resorts(
        self,
        identifier: Optional[str] = None,
        region: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ResortQuery]:
        """
        Fetch active resorts that have coordinates, ordered by name.

        Args:
            identifier: Resort slug to restrict to a single resort.
            region: State/province code, matched case-insensitively.
            limit: Maximum number of resorts to return.
        """
        query = (
            self.client.table(RESORTS_VIEW)
            .select("id, name, slug, latitude, longitude, nearest_city, state_code")
            .eq("is_active", True)
            .not_.is_("latitude", "null")
            .not_.is_("longitude", "null")
        )
        if identifier:
            query = query.eq("slug", identifier)
        if region:
            query = query.ilike("state_code", region)
        query = query.order("name")
        if limit:
            query = query.limit(limit)

        rows = query.execute().data or []
        if not rows:
            return []

        asset_paths: Dict[str, Optional[str]] = {}
        try:
            asset_rows = (
                self.client.table(RESORTS_TABLE)
                .select("id, asset_path")
                .in_("id", [row["id"] for row in rows])
                .execute()
                .data
                or []
            )
            asset_paths = {row["id"]: row.get("asset_path") for row in asset_rows}
        except Exception as e:
            logger.warning(f"Failed to fetch asset paths: {e}")

        return [
            ResortQuery(
                id=row["id"],
                slug=row["slug"],
                name=row["name"],
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                nearest_city=row.get("nearest_city") or "",
                region=row.get("state_code") or "",
                asset_path=asset_paths.get(row["id"]),
            )
            for row in rows
        ]

    # ==================== VENUES ====================

    def find_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        response = self.client.table(VENUES_TABLE).select("*").eq("slug", slug).limit(1).execute()
        return response.data[0] if response.data else None

    def find_by_name_city_region(self, name: str, city: str, region: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive exact match on name, city and state."""
        response = (
            self.client.table(VENUES_TABLE)
            .select("*")
            .ilike("name", _escape_like(name))
            .ilike("city", _escape_like(city))
            .ilike("state", _escape_like(region))
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def find_by_city_region(self, city: str, region: str) -> List[Dict[str, Any]]:
        response = (
            self.client.table(VENUES_TABLE)
            .select("id, name, slug, city, state")
            .ilike("city", _escape_like(city))
            .ilike("state", _escape_like(region))
            .execute()
        )
        return response.data or []

    def upsert_venue(self, venue: Venue) -> Dict[str, Any]:
        """Insert or update a venue keyed by slug, stamping the enrichment time."""
        now = _now_iso()
        record = {**venue.to_record(), "updated_at": now, "last_enriched_at": now}
        try:
            response = self.client.table(VENUES_TABLE).upsert(record, on_conflict="slug").execute()
        except Exception as e:
            raise StoreError(f"Failed to upsert dining venue '{venue.name}': {e}") from e
        if not response.data:
            raise StoreError(f"Upsert of dining venue '{venue.name}' returned no row")
        return response.data[0]

    # ==================== LINKS ====================

    def upsert_link(self, link: ResortVenueLink) -> None:
        record = {**link.to_record(), "updated_at": _now_iso()}
        try:
            self.client.table(LINKS_TABLE).upsert(record, on_conflict="resort_id,dining_venue_id").execute()
        except Exception as e:
            raise StoreError(f"Failed to link resort {link.resort_id} to venue {link.venue_id}: {e}") from e

    # ==================== LOGS & STATS ====================

    def append_log_entry(self, entry: EnrichmentLogEntry) -> None:
        try:
            self.client.table(LOGS_TABLE).insert(entry.to_record()).execute()
        except Exception as e:
            raise StoreError(f"Failed to write enrichment log for {entry.resort_name}: {e}") from e

    def get_enrichment_stats(self) -> EnrichmentStats:
        venues = self.client.table(VENUES_TABLE).select("id", count="exact").limit(1).execute()
        links = self.client.table(LINKS_TABLE).select("id", count="exact").limit(1).execute()
        linked_resorts = self.client.table(LINKS_TABLE).select("resort_id").execute()
        resorts = (
            self.client.table(RESORTS_TABLE)
            .select("id", count="exact")
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        return EnrichmentStats(
            total_venues=venues.count or 0,
            total_links=links.count or 0,
            resorts_with_venues=len({row["resort_id"] for row in linked_resorts.data or []}),
            active_resorts=resorts.count or 0,
        )


def _escape_like(value: str) -> str:
    """Escape ILIKE wildcards so the match is literal."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
