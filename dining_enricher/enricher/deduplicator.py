from dataclasses import replace
from typing import Dict, Optional

from loguru import logger
from rapidfuzz import fuzz

from dining_enricher.config import FUZZY_THRESHOLD
from dining_enricher.models import DedupResult, Venue


class Deduplicator:
    """
    Resolve a normalized venue against venues seen earlier in the batch and
    venues already in the store.

    Lookup order: seen in this batch -> exact slug -> case-insensitive
    name/city/region -> fuzzy name within the same city/region -> new.
    Slugs are recomputed each run and can drift from the stored slug of the
    same real-world venue, so the name-based tiers adopt the stored identity.
    """

    def __init__(self, store, fuzzy_threshold: Optional[float] = FUZZY_THRESHOLD):
        self.store = store
        self.fuzzy_threshold = fuzzy_threshold
        # incoming slug -> venue as resolved the first time it was seen
        self._seen: Dict[str, Venue] = {}

    def reset(self) -> None:
        """Forget the batch. Called between resorts so a venue can serve several resorts."""
        self._seen.clear()

    def resolve(self, venue: Venue) -> DedupResult:
        first = self._seen.get(venue.slug)
        if first is not None:
            logger.debug(f"Duplicate in batch: {venue.slug}")
            return DedupResult(
                venue=replace(venue, id=first.id, slug=first.slug),
                is_new=False,
                existing_id=first.id,
                duplicate_in_batch=True,
            )

        result = self._lookup(venue)
        self._seen[venue.slug] = result.venue
        self._seen.setdefault(result.venue.slug, result.venue)
        return result

    def _lookup(self, venue: Venue) -> DedupResult:
        existing = self.store.find_by_slug(venue.slug)
        if existing:
            logger.debug(f"Found existing venue by slug: {venue.slug} ({existing['id']})")
            return self._adopt(venue, existing)

        existing = self.store.find_by_name_city_region(venue.name, venue.city, venue.region)
        if existing:
            logger.debug(f"Found existing venue by name/city: {venue.name}, {venue.city} ({existing['id']})")
            return self._adopt(venue, existing)

        existing = self._fuzzy_match(venue)
        if existing:
            logger.debug(f"Fuzzy-matched '{venue.name}' to stored '{existing['name']}' ({existing['id']})")
            return self._adopt(venue, existing)

        return DedupResult(venue=venue, is_new=True)

    def _adopt(self, venue: Venue, existing: dict) -> DedupResult:
        return DedupResult(
            venue=replace(venue, id=existing["id"], slug=existing.get("slug") or venue.slug),
            is_new=False,
            existing_id=existing["id"],
        )

    def _fuzzy_match(self, venue: Venue) -> Optional[dict]:
        if self.fuzzy_threshold is None:
            return None

        best, best_score = None, 0.0
        for candidate in self.store.find_by_city_region(venue.city, venue.region):
            score = fuzz.token_sort_ratio(venue.name.lower(), str(candidate.get("name") or "").lower())
            # Early exit on an exact token match
            if score >= 100:
                return candidate
            if score > best_score:
                best, best_score = candidate, score

        return best if best is not None and best_score >= self.fuzzy_threshold else None
