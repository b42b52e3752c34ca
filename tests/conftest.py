import itertools
import json
from typing import Any, Dict, List, Optional

import pytest
from tenacity import wait_none

from dining_enricher.clients.openai_client import Completion
from dining_enricher.config import EnrichmentConfig
from dining_enricher.enricher.enrichment_orchestrator import DiningEnricher
from dining_enricher.enricher.llm_client import VenueLLMClient
from dining_enricher.enricher.rate_limiter import RateLimiter
from dining_enricher.errors import StoreError
from dining_enricher.models import EnrichmentStats, ResortQuery


def make_raw_venue(**overrides) -> Dict[str, Any]:
    """A provider venue entry with every field populated."""
    venue = {
        "name": "Summit Grill",
        "description": "Slopeside burgers and beer.",
        "address": "100 Mountain Rd",
        "city": "Test Town",
        "state": "CO",
        "postal_code": "80401",
        "latitude": 40.0289,
        "longitude": -105.0,
        "phone": "(970) 555-1234",
        "website_url": "https://summitgrill.example.com",
        "venue_type": ["restaurant", "bar"],
        "cuisine_type": ["american", "burgers"],
        "price_range": "$$",
        "serves_breakfast": False,
        "serves_lunch": True,
        "serves_dinner": True,
        "serves_drinks": True,
        "has_full_bar": True,
        "ambiance": ["casual", "apres_ski"],
        "features": ["outdoor_seating", "fireplace"],
        "is_on_mountain": False,
        "mountain_location": None,
        "is_ski_in_ski_out": False,
        "hours_notes": "Winter only",
    }
    venue.update(overrides)
    return venue


def make_resort(resort_id: str = "r1", name: str = "Test Peak", **overrides) -> ResortQuery:
    fields = dict(
        id=resort_id,
        slug=name.lower().replace(" ", "-"),
        name=name,
        latitude=40.0,
        longitude=-105.0,
        nearest_city="Test Town",
        region="CO",
        asset_path=f"co/{name.lower().replace(' ', '-')}",
        radius_miles=10,
    )
    fields.update(overrides)
    return ResortQuery(**fields)


class FakeProvider:
    """LLM provider returning canned content per resort name found in the prompt."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None, default: Any = None):
        self.responses = responses or {}
        self.default = default if default is not None else {"venues": []}
        self.calls: List[str] = []

    async def complete(self, system_prompt, user_prompt, *, model, json_mode, temperature, max_tokens):
        self.calls.append(user_prompt)
        response = self.default
        for name, value in self.responses.items():
            if f'"{name}"' in user_prompt:
                response = value
                break
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, BaseException):
            raise response
        content = response if isinstance(response, str) else json.dumps(response)
        return Completion(content=content, prompt_tokens=1000, completion_tokens=2000)


class FakeStore:
    """In-memory resort source and venue store keyed like the real tables."""

    def __init__(self, resorts: Optional[List[ResortQuery]] = None):
        self.resorts = resorts or []
        self.venues: Dict[str, Dict[str, Any]] = {}
        self.links: Dict[tuple, Dict[str, Any]] = {}
        self.logs: List[Any] = []
        self.lookups: List[tuple] = []
        self.fail_upsert_for: set = set()
        self.fail_logs = False
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    def list_eligible_resorts(self, identifier=None, region=None, limit=None):
        resorts = sorted(self.resorts, key=lambda r: r.name)
        if identifier:
            resorts = [r for r in resorts if r.slug == identifier]
        if region:
            resorts = [r for r in resorts if r.region.lower() == region.lower()]
        return resorts[:limit] if limit else resorts

    def find_by_slug(self, slug):
        self.lookups.append(("slug", slug))
        return self.venues.get(slug)

    def find_by_name_city_region(self, name, city, region):
        self.lookups.append(("name", name))
        for record in self.venues.values():
            if (record["name"].lower(), record["city"].lower(), record["state"].lower()) == (
                name.lower(), city.lower(), region.lower()
            ):
                return record
        return None

    def find_by_city_region(self, city, region):
        self.lookups.append(("city", city))
        return [
            record for record in self.venues.values()
            if record["city"].lower() == city.lower() and record["state"].lower() == region.lower()
        ]

    def upsert_venue(self, venue):
        if venue.slug in self.fail_upsert_for:
            raise StoreError(f"write failed for {venue.slug}")
        record = venue.to_record()
        existing = self.venues.get(venue.slug)
        record["id"] = existing["id"] if existing else f"v{next(self._ids)}"
        record["last_enriched_at"] = next(self._clock)
        self.venues[venue.slug] = record
        return record

    def upsert_link(self, link):
        self.links[(link.resort_id, link.venue_id)] = link.to_record()

    def append_log_entry(self, entry):
        if self.fail_logs:
            raise StoreError("log table unavailable")
        self.logs.append(entry)

    def get_enrichment_stats(self):
        return EnrichmentStats(
            total_venues=len(self.venues),
            total_links=len(self.links),
            resorts_with_venues=len({resort_id for resort_id, _ in self.links}),
            active_resorts=len(self.resorts),
        )

    @property
    def write_count(self) -> int:
        return len(self.venues) + len(self.links) + len(self.logs)


class FakeAuditStore:
    def __init__(self, documents: Optional[Dict[str, Any]] = None, fail: bool = False):
        self.documents = dict(documents or {})
        self.fail = fail
        self.puts: List[str] = []

    def put(self, path, document):
        self.puts.append(path)
        if self.fail:
            raise RuntimeError("bucket unavailable")
        self.documents[path] = json.loads(json.dumps(document, default=str))
        return f"https://storage.example.com/{path}"

    def exists(self, path):
        return path in self.documents

    def get(self, path):
        return self.documents.get(path)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def audit_store():
    return FakeAuditStore()


def build_enricher(store, provider, audit_store=None, **config_overrides) -> DiningEnricher:
    config = EnrichmentConfig(**{"delay_between_requests_ms": 0, **config_overrides})
    return DiningEnricher(
        resort_source=store,
        store=store,
        llm_client=VenueLLMClient(provider, model="gpt-4o-mini"),
        audit_store=audit_store,
        config=config,
        rate_limiter=RateLimiter(0),
        retry_wait=wait_none(),
    )
