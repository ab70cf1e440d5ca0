from geopulse.services.demographics import (
    SYNTHETIC_RANGES,
    aggregate_search_demographics,
    build_demographics,
    intensity_bucket,
)


def test_upstream_scores_used_verbatim(combined_payload):
    bundle = build_demographics(combined_payload, seed=1)
    assert bundle.age == {"25_to_29": 0.8, "30_to_34": 0.6}
    assert bundle.sources["age"] == "upstream"


def test_samples_bucketed_by_intensity(combined_payload):
    bundle = build_demographics(combined_payload, seed=1)
    assert bundle.income == {"low": 1, "medium": 1, "high": 1}
    assert bundle.density == {"low": 1, "medium": 1, "high": 1}
    assert bundle.sources["income"] == bundle.sources["density"] == "samples"


def test_bucket_thresholds():
    assert intensity_bucket(0.39) == "low"
    assert intensity_bucket(0.4) == "medium"
    assert intensity_bucket(0.69) == "medium"
    assert intensity_bucket(0.7) == "high"


def test_missing_dimensions_synthesized_and_flagged(combined_payload):
    bundle = build_demographics(combined_payload, seed=7)
    assert bundle.sources["gender"] == "synthesized"
    assert bundle.synthesized == ("gender",)
    for label, (low, high) in SYNTHETIC_RANGES["gender"].items():
        assert low <= bundle.gender[label] < high


def test_synthesis_is_reproducible_with_seed():
    a = build_demographics({}, seed=42)
    b = build_demographics({}, seed=42)
    assert a == b
    assert set(a.synthesized) == {"age", "gender", "income", "density"}


def test_synthesis_can_be_disabled():
    bundle = build_demographics(None, synthesize_missing=False)
    assert bundle.age == {} and bundle.gender == {}
    assert set(bundle.sources.values()) == {"empty"}


def test_bad_upstream_values_dropped(log_records):
    bundle = build_demographics(
        {"aggregatedGenderScores": {"male": 10, "female": -3, "other": "n/a"}},
        synthesize_missing=False,
    )
    assert bundle.gender == {"male": 10.0}
    assert len([r for r in log_records if r["level"].name == "WARNING"]) == 2


def test_samples_without_intensity_ignored():
    bundle = build_demographics(
        {"demographics": [{"lat": 1, "lng": 1}, "x"]}, synthesize_missing=False
    )
    assert bundle.income == {}
    assert bundle.sources["income"] == "empty"


def test_search_demographics_summed():
    items = [
        {"demographics": {"query": {"age": {"18_to_24": 0.2}, "gender": {"male": 0.5}}}},
        {"demographics": {"query": {"age": {"18_to_24": 0.3, "25_to_29": 0.1}}}},
        {"name": "no demographics"},
    ]
    out = aggregate_search_demographics(items)
    assert out.total_items == 2
    assert out.age["18_to_24"] == 0.5
    assert out.gender == {"male": 0.5}
    assert aggregate_search_demographics([]) is None


def test_oversized_score_dropped():
    bundle = build_demographics({"aggregatedAgeScores": {"18_to_24": 10**400, "25_to_29": 3}}, seed=0)
    assert bundle.age == {"25_to_29": 3.0}
    assert bundle.sources["age"] == "upstream"
