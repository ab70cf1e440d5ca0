import pytest

from conftest import warnings_in
from geopulse.services.normalize import normalize_search_results


def _item(**overrides):
    item = {
        "entity_id": "E1",
        "name": "Annapoorna",
        "location": {"lat": 11.01, "lon": 76.95},
        "popularity": 0.92,
        "properties": {"business_rating": 4.4, "address": "1 Race Course Rd"},
        "tags": [{"type": "urn:tag:category", "name": "South Indian Restaurant"}],
        "score": 0.8,
    }
    item.update(overrides)
    return item


def test_search_item_fields_resolved(fetched_at):
    batch = normalize_search_results({"items": [_item()]}, fetched_at=fetched_at)
    assert len(batch) == 1 and batch.errors == ()
    loc = batch.records[0]
    assert loc.id == "E1"
    assert (loc.coordinates.lat, loc.coordinates.lng) == (11.01, 76.95)
    assert loc.category == "restaurant"
    assert loc.source_category == "search"
    assert loc.rating == 4.4
    assert loc.address == "1 Race Course Rd"
    assert loc.metadata.timestamp == fetched_at
    assert loc.metadata.confidence.score == pytest.approx(0.8)
    assert loc.metadata.confidence.authoritative is True


def test_latitude_longitude_aliases(fetched_at):
    item = _item(location={"latitude": "11.2", "longitude": "77.1"})
    loc = normalize_search_results({"items": [item]}, fetched_at=fetched_at).records[0]
    assert (loc.coordinates.lat, loc.coordinates.lng) == (11.2, 77.1)


def test_missing_popularity_is_flagged_placeholder(fetched_at):
    item = _item()
    del item["popularity"]
    del item["properties"]
    loc = normalize_search_results({"items": [item]}, fetched_at=fetched_at).records[0]
    assert loc.popularity == 0.5
    assert loc.rating is None
    assert loc.metadata.confidence.placeholders == ("popularity",)
    assert loc.metadata.confidence.authoritative is False


def test_bad_records_dropped_batch_continues(fetched_at, log_records):
    items = [
        _item(entity_id="ok-1"),
        _item(entity_id="bad-lat", location={"lat": 123, "lon": 10}),
        "garbage",
        _item(entity_id="no-coords", location={}),
        _item(entity_id="ok-2"),
    ]
    batch = normalize_search_results({"items": items}, fetched_at=fetched_at)
    assert [loc.id for loc in batch.records] == ["ok-1", "ok-2"]
    assert [e.index for e in batch.errors] == [1, 2, 3]
    assert {e.source for e in batch.errors} == {"search"}
    assert len(warnings_in(log_records)) >= 3


def test_defaults_for_missing_id_and_name(fetched_at):
    item = {"location": {"lat": 1, "lon": 2}}
    loc = normalize_search_results([item], fetched_at=fetched_at).records[0]
    assert loc.id == "search_0"
    assert loc.name == "Unknown Location"
    assert loc.category == "place"


def test_non_list_payload_is_an_error_not_an_exception(fetched_at):
    batch = normalize_search_results({"items": "nope"}, fetched_at=fetched_at)
    assert batch.records == ()
    assert len(batch.errors) == 1
    assert normalize_search_results(None, fetched_at=fetched_at).records == ()
