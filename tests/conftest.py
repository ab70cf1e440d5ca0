import os
import tempfile
from datetime import datetime, timezone

# settings are read at import time; point db/logs at a scratch dir first
_TMP = tempfile.mkdtemp(prefix="geopulse-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP}/test.db")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP, "logs"))

import pytest  # noqa: E402
from loguru import logger  # noqa: E402

FETCHED_AT = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fetched_at():
    return FETCHED_AT


@pytest.fixture
def log_records():
    """Capture loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    try:
        logger.remove(handler_id)
    except ValueError:
        pass  # already removed by an app startup


def warnings_in(records):
    return [r["message"] for r in records if r["level"].name == "WARNING"]


@pytest.fixture
def heatmap_payload():
    return {
        "heatmap": [
            {
                "location": {
                    "latitude": 11.0168,
                    "longitude": 76.9558,
                    "name": "Central Plaza",
                    "type": "restaurant",
                    "category": "restaurant",
                    "businessRating": "4.2",
                    "amenities": ["WiFi", "Parking"],
                },
                "query": {"affinity": 0.9, "affinity_rank": 0.8, "popularity": 0.7, "intensity": 0.85},
            },
            {
                "location": {"latitude": 11.03, "longitude": 76.97, "type": "cafe"},
                "query": {"affinity": 0.8, "affinity_rank": 0.6, "popularity": 0.4},
            },
            {
                "location": {"latitude": 11.05, "longitude": 76.99, "category": "park"},
                "query": {"affinity": 0.5, "affinityRank": 0.5, "popularity": 0.1},
            },
        ]
    }


@pytest.fixture
def combined_payload():
    return {
        "popularity": [{"lat": 11.01, "lng": 76.95, "name": "A", "popularity": 0.9}],
        "restaurants": [
            {"lat": 11.02, "lng": 76.96, "category": "restaurant", "rating": 4.6, "popularity": 0.7},
            {"latitude": "11.025", "longitude": "76.965", "category": "Restaurant", "rating": 3.2},
        ],
        "cafes": [{"lat": 11.04, "lng": 76.94, "type": "cafe", "popularity": 0.3}],
        "demographics": [
            {"lat": 11.0, "lng": 76.9, "intensity": 0.2},
            {"lat": 11.1, "lng": 77.0, "intensity": 0.5},
            {"lat": 11.2, "lng": 77.1, "intensity": 0.9},
        ],
        "aggregatedAgeScores": {"25_to_29": 0.8, "30_to_34": 0.6},
    }
