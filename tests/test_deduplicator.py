from dining_enricher.enricher.deduplicator import Deduplicator
from dining_enricher.enricher.normalizer import normalize
from tests.conftest import FakeStore, make_raw_venue


def _venue(**overrides):
    return normalize([make_raw_venue(**overrides)]).valid[0]


def _stored(store, **overrides):
    return store.upsert_venue(_venue(**overrides))


def test_new_venue_is_new():
    store = FakeStore()
    result = Deduplicator(store).resolve(_venue())

    assert result.is_new is True
    assert result.existing_id is None
    assert result.venue.id is None


def test_second_entry_with_same_slug_is_duplicate_in_batch_without_store_lookup():
    store = FakeStore()
    dedup = Deduplicator(store)

    first = dedup.resolve(_venue())
    lookups_after_first = len(store.lookups)
    second = dedup.resolve(_venue(description="Same place, different blurb"))

    assert first.is_new is True
    assert second.is_new is False
    assert second.duplicate_in_batch is True
    assert len(store.lookups) == lookups_after_first


def test_exact_slug_match_adopts_existing_identity():
    store = FakeStore()
    existing = _stored(store)

    result = Deduplicator(store).resolve(_venue())

    assert result.is_new is False
    assert result.existing_id == existing["id"]
    assert result.venue.id == existing["id"]


def test_name_city_region_match_adopts_stored_identity_and_slug():
    store = FakeStore()
    existing = _stored(store, name="Joe's Bar", city="Vail", state="CO")
    assert existing["slug"] == "joes-bar-vail-co"

    drifted = _venue(name="Joe's Bar", city="Vail", state="CO")
    drifted.slug = "joe-s-bar-vail-colorado"

    result = Deduplicator(store, fuzzy_threshold=None).resolve(drifted)

    assert result.is_new is False
    assert result.existing_id == existing["id"]
    assert result.venue.slug == "joes-bar-vail-co"


def test_name_match_is_case_insensitive():
    store = FakeStore()
    existing = _stored(store, name="The Red Lion", city="Vail", state="CO")

    venue = _venue(name="THE RED LION", city="vail", state="co")
    venue.slug = "something-else"

    result = Deduplicator(store, fuzzy_threshold=None).resolve(venue)
    assert result.existing_id == existing["id"]


def test_fuzzy_name_match_within_same_city():
    store = FakeStore()
    existing = _stored(store, name="Pepi's Bar and Restaurant", city="Vail", state="CO")

    result = Deduplicator(store, fuzzy_threshold=85).resolve(
        _venue(name="Pepis Bar & Restaurant", city="Vail", state="CO")
    )

    assert result.is_new is False
    assert result.existing_id == existing["id"]
    assert result.venue.slug == existing["slug"]


def test_fuzzy_match_does_not_merge_different_venues():
    store = FakeStore()
    _stored(store, name="Joe's Bar", city="Vail", state="CO")

    result = Deduplicator(store, fuzzy_threshold=90).resolve(
        _venue(name="Sweet Basil", city="Vail", state="CO")
    )
    assert result.is_new is True


def test_fuzzy_match_can_be_disabled():
    store = FakeStore()
    _stored(store, name="Pepi's Bar and Restaurant", city="Vail", state="CO")

    result = Deduplicator(store, fuzzy_threshold=None).resolve(
        _venue(name="Pepis Bar & Restaurant", city="Vail", state="CO")
    )
    assert result.is_new is True
    assert ("city", "Vail") not in store.lookups


def test_reset_allows_the_same_venue_again():
    store = FakeStore()
    dedup = Deduplicator(store)
    dedup.resolve(_venue())

    dedup.reset()
    result = dedup.resolve(_venue())

    assert result.duplicate_in_batch is False
