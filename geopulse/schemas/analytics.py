# geopulse/schemas/analytics.py
# -----------------------------------------------------------------------------
# Canonical analytics model handed to the presentation layer
# - snake_case in Python, camelCase on the wire (no upstream names leak out)
# - every record is frozen once built, mapping fields included
# -----------------------------------------------------------------------------
from datetime import datetime
from types import MappingProxyType
from typing import Annotated, Dict, Literal, Mapping, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

UnitFloat = Annotated[float, Field(ge=0.0, le=1.0)]


def ReadOnlyMap(value_type):
    """str -> value_type mapping, stored as a read-only proxy, dumped as a dict."""
    return Annotated[
        Mapping[str, value_type],
        AfterValidator(MappingProxyType),
        PlainSerializer(dict, return_type=Dict[str, value_type]),
    ]


ScoreMap = ReadOnlyMap(float)
CountMap = ReadOnlyMap(int)
LabelMap = ReadOnlyMap(str)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        validate_default=True,
    )


class Coordinates(CamelModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class Confidence(CamelModel):
    """Upstream confidence plus the fields that were filled in locally."""

    score: UnitFloat = 0.5
    authoritative: bool = True
    placeholders: Tuple[str, ...] = ()
    derived: Tuple[str, ...] = ()


class RecordMetadata(CamelModel):
    source: str
    timestamp: datetime
    confidence: Confidence


class Location(CamelModel):
    id: str
    name: str
    coordinates: Coordinates
    category: str
    source_category: str
    popularity: UnitFloat
    rating: Optional[float] = None
    address: str = ""
    metadata: RecordMetadata


class HeatPointLocation(CamelModel):
    name: str
    type: str
    address: str
    category: str
    amenities: Tuple[str, ...] = ()
    business_rating: Optional[float] = None


class HeatMetrics(CamelModel):
    intensity: UnitFloat
    affinity: UnitFloat
    affinity_rank: UnitFloat
    popularity: UnitFloat
    demographic_score: UnitFloat
    traffic_score: UnitFloat
    proximity_score: UnitFloat


class HeatPoint(CamelModel):
    id: str
    coordinates: Coordinates
    location: HeatPointLocation
    metrics: HeatMetrics
    metadata: RecordMetadata


class ValueRange(CamelModel):
    min: float
    max: float


class GeographicSpread(CamelModel):
    lat_range: ValueRange
    lng_range: ValueRange


class HeatmapCategoryStats(CamelModel):
    count: int
    average_intensity: float
    average_popularity: float
    average_rating: float


StatsMap = ReadOnlyMap(HeatmapCategoryStats)


class DemographicsBundle(CamelModel):
    age: ScoreMap = {}
    gender: ScoreMap = {}
    income: ScoreMap = {}
    density: ScoreMap = {}
    # dimension -> "upstream" | "samples" | "synthesized" | "empty"
    sources: LabelMap = {}

    @property
    def synthesized(self) -> Tuple[str, ...]:
        return tuple(k for k, v in self.sources.items() if v == "synthesized")


class AnalyticsSummary(CamelModel):
    total_locations: int
    heatmap_points: int
    categories: CountMap
    heatmap_category_breakdown: StatsMap = {}
    intensity_distribution: CountMap
    popularity_distribution: CountMap
    geographic_spread: Optional[GeographicSpread] = None
    average_intensity: float = 0.0
    top_category: Optional[str] = None
    ratings: CountMap


class ParseIssue(CamelModel):
    source: str
    index: int
    reason: str


class AnalyticsModel(CamelModel):
    status: Literal["ok", "empty"]
    generation: int = 0
    location: Optional[str] = None
    fetched_at: datetime
    locations: Tuple[Location, ...] = ()
    heat_points: Tuple[HeatPoint, ...] = ()
    summary: AnalyticsSummary
    demographics: DemographicsBundle
    issues: Tuple[ParseIssue, ...] = ()


class CategoryRow(CamelModel):
    category: str
    label: str
    count: int
    percentage: float


# ── requests / responses ─────────────────────────────────────────────────────
class AnalyticsRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    location: Optional[str] = None
    age: str = "25_to_29"
    income: str = "high"
    radius: int = Field(25, ge=1, le=100)  # km
    popularity: float = Field(0.3, ge=0.0, le=1.0)
    take: int = Field(50, ge=1, le=200)


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    location: Optional[str] = None
    take: int = Field(20, ge=1, le=100)


class SearchDemographics(CamelModel):
    age: ScoreMap = {}
    gender: ScoreMap = {}
    total_items: int = 0


class SearchResponse(CamelModel):
    locations: Tuple[Location, ...] = ()
    issues: Tuple[ParseIssue, ...] = ()
    demographics: Optional[SearchDemographics] = None


class AnalyticsExport(CamelModel):
    location: Optional[str] = None
    generation: int
    exported_at: datetime
    status: Literal["ok", "empty"]
    summary: AnalyticsSummary
    demographics: DemographicsBundle
    top_categories: Tuple[CategoryRow, ...] = ()
    locations: Tuple[Location, ...] = ()
    heat_points: Tuple[HeatPoint, ...] = ()
