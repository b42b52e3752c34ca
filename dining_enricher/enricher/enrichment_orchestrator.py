# dining_enricher/enricher/enrichment_orchestrator.py

import time
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import openai
from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from dining_enricher.clients.base import audit_path
from dining_enricher.config import RADIUS_SAFETY_FACTOR, EnrichmentConfig
from dining_enricher.enricher.deduplicator import Deduplicator
from dining_enricher.enricher.geo import calculate_distance, estimate_drive_time, is_on_mountain
from dining_enricher.enricher.normalizer import normalize
from dining_enricher.enricher.rate_limiter import RateLimiter
from dining_enricher.models import (
    EnrichmentLogEntry,
    EnrichmentOutcome,
    EnrichmentStats,
    LLMVenueResponse,
    NormalizationResult,
    ResortQuery,
    ResortVenueLink,
    RunSummary,
    Venue,
)
from dining_enricher.vocab import OutcomeStatus

AUDIT_VERSION = "1.0"

# Provider errors worth another attempt; anything else fails the resort immediately
TRANSIENT_PROVIDER_ERRORS = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class DiningEnricher:
    """
    Drive dining-venue enrichment for a list of resorts.

    Resorts are processed one at a time. A failure while calling the provider
    fails only that resort; a failure while saving a venue skips only that venue.
    Every entry point starts a fresh run (summary counters and dedup state) and
    prints a summary when it finishes.
    """

    def __init__(
        self,
        resort_source,
        store,
        llm_client,
        audit_store=None,
        config: Optional[EnrichmentConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        retry_wait=None,
    ):
        self.resort_source = resort_source
        self.store = store
        self.llm_client = llm_client
        self.audit_store = audit_store
        self.config = config or EnrichmentConfig()
        self.rate_limiter = rate_limiter or RateLimiter(self.config.delay_between_requests_ms / 1000)
        self.retry_wait = retry_wait or wait_exponential_jitter(initial=2, max=30)
        self.summary = RunSummary(dry_run=self.config.dry_run)
        self.deduplicator = Deduplicator(store, self.config.fuzzy_threshold)

    # ==================== ENTRY POINTS ====================

    async def enrich_all(self, limit: Optional[int] = None) -> RunSummary:
        resorts = self.resort_source.list_eligible_resorts(limit=limit)
        logger.info(f"Starting enrichment for {len(resorts)} resorts")
        return await self._run(resorts)

    async def enrich_resort_by_id(self, identifier: str) -> RunSummary:
        resorts = self.resort_source.list_eligible_resorts(identifier=identifier)
        if not resorts:
            logger.error(f"Resort not found: {identifier}")
        return await self._run(resorts[:1])

    async def enrich_region(self, region: str, limit: Optional[int] = None) -> RunSummary:
        resorts = self.resort_source.list_eligible_resorts(region=region, limit=limit)
        if not resorts:
            logger.error(f"No resorts found in region: {region.upper()}")
        else:
            logger.info(f"Starting enrichment for {len(resorts)} resorts in {region.upper()}")
        return await self._run(resorts)

    async def replay_resort(self, identifier: str) -> RunSummary:
        """Re-run normalization and persistence from a resort's stored audit document."""
        resorts = self.resort_source.list_eligible_resorts(identifier=identifier)
        if not resorts:
            logger.error(f"Resort not found: {identifier}")
        return await self._run(resorts[:1], replay=True)

    def status(self) -> EnrichmentStats:
        stats = self.store.get_enrichment_stats()
        print(stats.render())
        return stats

    async def _run(self, resorts: List[ResortQuery], replay: bool = False) -> RunSummary:
        self.summary = RunSummary(dry_run=self.config.dry_run, resorts_planned=len(resorts))
        self.deduplicator = Deduplicator(self.store, self.config.fuzzy_threshold)
        started = time.perf_counter()
        try:
            for i, resort in enumerate(resorts, start=1):
                logger.info(f"[{i}/{len(resorts)}] {resort.name}")
                outcome = self.replay(resort) if replay else await self.enrich_resort(resort)
                if outcome is not None:
                    self.summary.record(outcome)
        finally:
            self.summary.duration_seconds = time.perf_counter() - started
            print(self.summary.render())
        return self.summary

    # ==================== PER-RESORT ====================

    def _search_bounds(self, resort: ResortQuery) -> Tuple[float, int]:
        radius = resort.radius_miles or self.config.search_radius_miles
        max_venues = resort.max_venues or self.config.max_venues_per_resort
        return radius, max_venues

    async def enrich_resort(self, resort: ResortQuery) -> Optional[EnrichmentOutcome]:
        """
        Enrich a single resort.

        Returns:
            Optional[EnrichmentOutcome]: The outcome, or None when the resort was
            not processed (dry run or skipped because an audit document exists).
        """
        start = time.perf_counter()
        radius, max_venues = self._search_bounds(resort)

        if self.config.dry_run:
            print(f"[DRY RUN] Would enrich {resort.name} ({resort.region}) within {radius:g} miles, up to {max_venues} venues")
            return None

        if self.config.skip_existing and self._has_audit(resort):
            logger.info(f"Skipping {resort.name}: audit document already exists")
            return None

        try:
            response = await self._request_venues(resort, radius, max_venues)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error(f"Provider request failed for {resort.name}: {error}")
            outcome = EnrichmentOutcome(
                resort_id=resort.id,
                resort_name=resort.name,
                status=OutcomeStatus.FAILED,
                error=error,
                duration_ms=_elapsed_ms(start),
            )
            self._write_log(resort, outcome, None, radius, self.config.openai_model)
            return outcome

        return self._process_response(resort, response, radius, start, self.config.openai_model, write_audit=True)

    def replay(self, resort: ResortQuery) -> Optional[EnrichmentOutcome]:
        """Process a resort from its audit document's raw provider payload, without calling the provider."""
        start = time.perf_counter()
        radius, _ = self._search_bounds(resort)

        if self.config.dry_run:
            print(f"[DRY RUN] Would replay {resort.name} from its audit document")
            return None

        document = None
        error = None
        if self.audit_store is None or not resort.asset_path:
            error = "no audit store or asset path available for replay"
        else:
            try:
                document = self.audit_store.get(audit_path(resort.asset_path))
            except Exception as e:
                error = f"failed to read audit document: {e}"
            if document is None and error is None:
                error = f"no audit document at {audit_path(resort.asset_path)}"
            elif error is None and not isinstance(document, dict):
                error = f"audit document is a {type(document).__name__}, expected an object"
            elif error is None and not isinstance(document.get("search") or {}, dict):
                error = "audit document has a malformed 'search' block"

        if error is not None:
            logger.error(f"Cannot replay {resort.name}: {error}")
            outcome = EnrichmentOutcome(
                resort_id=resort.id,
                resort_name=resort.name,
                status=OutcomeStatus.FAILED,
                error=error,
                duration_ms=_elapsed_ms(start),
            )
            self._write_log(resort, outcome, None, radius, self.config.openai_model)
            return outcome

        raw_payload = document.get("raw_response") or {}
        venues = raw_payload.get("venues", []) if isinstance(raw_payload, dict) else []
        radius = (document.get("search") or {}).get("radius_miles") or radius
        response = LLMVenueResponse(venues=venues, prompt_tokens=0, completion_tokens=0, cost=0.0, raw_payload=raw_payload)
        model = document.get("model") or self.config.openai_model
        return self._process_response(resort, response, radius, start, model, write_audit=False)

    async def _request_venues(self, resort: ResortQuery, radius: float, max_venues: int) -> LLMVenueResponse:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, self.config.provider_max_attempts)),
            wait=self.retry_wait,
            retry=retry_if_exception_type(TRANSIENT_PROVIDER_ERRORS),
            before_sleep=lambda state: logger.warning(
                f"Transient provider error for {resort.name} "
                f"(attempt {state.attempt_number}): {state.outcome.exception()}"
            ),
            reraise=True,
        ):
            with attempt:
                await self.rate_limiter.wait()
                return await self.llm_client.request_venues(resort, radius, max_venues)

    def _process_response(
        self,
        resort: ResortQuery,
        response: LLMVenueResponse,
        radius: float,
        start: float,
        model: str,
        write_audit: bool,
    ) -> EnrichmentOutcome:
        normalized = normalize(response.venues)
        for rejected in normalized.rejected:
            logger.debug(f"Rejected venue '{rejected.name}': {rejected.reason}")

        located = [
            (venue, calculate_distance(resort.latitude, resort.longitude, venue.latitude, venue.longitude))
            for venue in normalized.valid
        ]

        if write_audit:
            self._write_audit(resort, response, normalized, located, radius, model)

        if not normalized.valid:
            outcome = EnrichmentOutcome(
                resort_id=resort.id,
                resort_name=resort.name,
                status=OutcomeStatus.NO_RESULTS,
                venues_rejected=len(normalized.rejected),
                duration_ms=_elapsed_ms(start),
                total_cost=response.cost,
            )
            logger.info(f"No valid venues for {resort.name} ({len(normalized.rejected)} rejected)")
            self._write_log(resort, outcome, response, radius, model)
            return outcome

        self.deduplicator.reset()
        created, updated, linked = self._persist_venues(resort, located, radius)

        outcome = EnrichmentOutcome(
            resort_id=resort.id,
            resort_name=resort.name,
            status=OutcomeStatus.SUCCESS if linked > 0 else OutcomeStatus.PARTIAL,
            venues_found=len(normalized.valid),
            venues_created=created,
            venues_updated=updated,
            venues_linked=linked,
            venues_rejected=len(normalized.rejected),
            duration_ms=_elapsed_ms(start),
            total_cost=response.cost,
        )
        self._write_log(resort, outcome, response, radius, model)
        logger.info(
            f"Completed {resort.name}: found={outcome.venues_found} created={created} "
            f"updated={updated} linked={linked} cost=${response.cost:.4f}"
        )
        return outcome

    def _persist_venues(self, resort: ResortQuery, located: List[Tuple[Venue, float]], radius: float) -> Tuple[int, int, int]:
        created = updated = linked = 0
        max_distance = radius * RADIUS_SAFETY_FACTOR

        for venue, distance in located:
            try:
                dedup = self.deduplicator.resolve(venue)
                saved = self.store.upsert_venue(dedup.venue)
                if dedup.is_new:
                    created += 1
                    logger.debug(f"Created venue {venue.name} ({saved['id']})")
                else:
                    updated += 1
                    logger.debug(f"Updated venue {venue.name} ({saved['id']})")

                if distance > max_distance:
                    logger.warning(f"Venue {venue.name} is {distance:.1f} miles from {resort.name}, skipping link")
                    continue

                self.store.upsert_link(
                    ResortVenueLink(
                        resort_id=resort.id,
                        venue_id=saved["id"],
                        distance_miles=round(distance, 2),
                        drive_time_minutes=estimate_drive_time(distance),
                        is_on_mountain=is_on_mountain(distance) or venue.is_on_mountain,
                    )
                )
                linked += 1
            except Exception as e:
                logger.error(f"Failed to process venue {venue.name}: {e}")

        return created, updated, linked

    # ==================== AUDIT & LOGGING ====================

    def _has_audit(self, resort: ResortQuery) -> bool:
        if self.audit_store is None or not resort.asset_path:
            return False
        try:
            return self.audit_store.exists(audit_path(resort.asset_path))
        except Exception as e:
            logger.warning(f"Could not check audit document for {resort.name}: {e}")
            return False

    def _write_audit(
        self,
        resort: ResortQuery,
        response: LLMVenueResponse,
        normalized: NormalizationResult,
        located: List[Tuple[Venue, float]],
        radius: float,
        model: str,
    ) -> None:
        if self.audit_store is None:
            logger.debug("Audit storage disabled, skipping audit document")
            return
        if not resort.asset_path:
            logger.warning(f"Resort {resort.name} has no asset path, skipping audit document")
            return

        document = {
            "version": AUDIT_VERSION,
            "enriched_at": datetime.now(timezone.utc).isoformat(),
            "model": model,
            "resort": {
                "id": resort.id,
                "name": resort.name,
                "slug": resort.slug,
                "asset_path": resort.asset_path,
            },
            "search": {
                "radius_miles": radius,
                "latitude": resort.latitude,
                "longitude": resort.longitude,
            },
            "statistics": {
                "venues_found": len(response.venues),
                "venues_valid": len(normalized.valid),
                "venues_rejected": len(normalized.rejected),
                "prompt_tokens": response.prompt_tokens,
                "completion_tokens": response.completion_tokens,
                "total_cost": response.cost,
            },
            "rejected": [{"name": r.name, "reason": r.reason} for r in normalized.rejected],
            "raw_response": response.raw_payload,
            "venues": [
                {**venue.to_record(), "distance_miles": round(distance, 2)}
                for venue, distance in located
            ],
        }

        path = audit_path(resort.asset_path)
        try:
            url = self.audit_store.put(path, document)
            logger.info(f"Saved audit document for {resort.name} to {url}")
        except Exception as e:
            logger.warning(f"Failed to save audit document for {resort.name}, continuing: {e}")

    def _write_log(
        self,
        resort: ResortQuery,
        outcome: EnrichmentOutcome,
        response: Optional[LLMVenueResponse],
        radius: float,
        model: str,
    ) -> None:
        completed_at = datetime.now(timezone.utc)
        entry = EnrichmentLogEntry(
            resort_id=resort.id,
            resort_name=resort.name,
            search_radius_miles=radius,
            search_lat=resort.latitude,
            search_lng=resort.longitude,
            venues_found=outcome.venues_found,
            venues_created=outcome.venues_created,
            venues_updated=outcome.venues_updated,
            venues_linked=outcome.venues_linked,
            status=outcome.status.value,
            error_message=outcome.error,
            model_used=model,
            prompt_tokens=response.prompt_tokens if response else 0,
            completion_tokens=response.completion_tokens if response else 0,
            total_cost=response.cost if response else 0.0,
            raw_response=response.raw_payload if response else None,
            started_at=completed_at - timedelta(milliseconds=outcome.duration_ms),
            completed_at=completed_at,
            duration_ms=outcome.duration_ms,
        )
        try:
            self.store.append_log_entry(entry)
        except Exception as e:
            logger.error(f"Failed to write enrichment log for {resort.name}: {e}")
