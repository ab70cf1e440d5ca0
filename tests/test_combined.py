from geopulse.services.aggregate import aggregate_categories
from geopulse.services.combined import merge_combined


def test_buckets_merged_and_tagged(fetched_at):
    payload = {
        "popularity": [{"lat": 11.01, "lng": 76.95, "name": "A"}],
        "restaurants": [{"lat": 11.02, "lng": 76.96, "category": "restaurant"}],
    }
    batch = merge_combined(payload, fetched_at=fetched_at)
    assert len(batch) == 2
    assert [loc.source_category for loc in batch.records] == ["popularity", "restaurants"]

    table = aggregate_categories(batch.records, [])
    assert table.counts == {"restaurant": 1}


def test_category_resolution_order(fetched_at):
    payload = {
        "cafes": [
            {"lat": 1, "lng": 1, "tags": [{"type": "urn:tag:category", "name": "Coffee Shop"}]},
            {"lat": 1, "lng": 1, "type": "Bakery Cafe"},
            {"lat": 1, "lng": 1},
            {
                "lat": 1,
                "lng": 1,
                "category": "restaurant",
                "tags": [{"type": "urn:tag:genre:restaurant", "name": "Fine Dining"}],
            },
            {"lat": 1, "lng": 1, "type": "bar", "tags": []},
        ]
    }
    cats = [loc.category for loc in merge_combined(payload, fetched_at=fetched_at).records]
    assert cats == ["coffee_shop", "bakery_cafe", "cafes", "restaurant", "bar"]


def test_absent_buckets_are_empty(fetched_at):
    assert merge_combined({}, fetched_at=fetched_at).records == ()
    assert merge_combined({"unknownBucket": [{"lat": 1, "lng": 1}]}, fetched_at=fetched_at).records == ()


def test_invalid_entries_dropped_per_bucket(fetched_at):
    payload = {
        "hotels": [{"lat": 200, "lng": 1}, {"lat": 10, "lng": 10, "name": "Stay"}],
        "shopping": "not-a-list",
    }
    batch = merge_combined(payload, fetched_at=fetched_at)
    assert [loc.name for loc in batch.records] == ["Stay"]
    assert {(e.source, e.index) for e in batch.errors} == {("hotels", 0), ("shopping", -1)}


def test_defaults_and_placeholders(fetched_at):
    payload = {"userLocation": [{"latitude": 11, "longitude": 77}]}
    loc = merge_combined(payload, fetched_at=fetched_at).records[0]
    assert loc.id == "userLocation_0"
    assert loc.name == "Userlocation 1"
    assert loc.popularity == 0.5
    assert loc.metadata.source == "userLocation"
    assert loc.metadata.confidence.placeholders == ("popularity",)


def test_non_object_payload(fetched_at):
    batch = merge_combined(["x"], fetched_at=fetched_at)
    assert batch.records == ()
    assert batch.errors[0].source == "combined"
