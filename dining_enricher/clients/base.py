"""Interfaces the enricher expects from its external collaborators."""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from dining_enricher.clients.openai_client import Completion
from dining_enricher.models import (
    EnrichmentLogEntry,
    EnrichmentStats,
    ResortQuery,
    ResortVenueLink,
    Venue,
)


@runtime_checkable
class LLMProvider(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str,
        json_mode: bool = True,
        temperature: float = 0.3,
        max_tokens: int = 6000,
    ) -> Completion:
        """Single system+user completion returning content and token usage."""
        ...


class ResortSource(Protocol):
    def list_eligible_resorts(
        self,
        identifier: Optional[str] = None,
        region: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ResortQuery]:
        """Active resorts with known coordinates, ordered by name."""
        ...


class VenueStore(Protocol):
    def find_by_slug(self, slug: str) -> Optional[Dict[str, Any]]: ...

    def find_by_name_city_region(self, name: str, city: str, region: str) -> Optional[Dict[str, Any]]: ...

    def find_by_city_region(self, city: str, region: str) -> List[Dict[str, Any]]: ...

    def upsert_venue(self, venue: Venue) -> Dict[str, Any]: ...

    def upsert_link(self, link: ResortVenueLink) -> None: ...

    def append_log_entry(self, entry: EnrichmentLogEntry) -> None: ...

    def get_enrichment_stats(self) -> EnrichmentStats: ...


class AuditBlobStore(Protocol):
    def put(self, path: str, document: Dict[str, Any]) -> str: ...

    def exists(self, path: str) -> bool: ...

    def get(self, path: str) -> Optional[Dict[str, Any]]: ...


def audit_path(asset_path: str) -> str:
    """Object path of a resort's dining audit document."""
    return f"resorts/{asset_path}/dining-venues.json"
