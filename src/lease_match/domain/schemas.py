"""Pydantic v2 schemas for API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


class MatchingRunRequest(BaseModel):
    """Body for triggering a batch run; omitted fields use configured defaults."""

    min_score: float | None = Field(default=None, ge=0, le=100)
    chunk_size: int | None = Field(default=None, ge=1)


class PerformanceResponse(BaseModel):
    total_duration_ms: float
    listings_per_second: float
    pairs_per_second: float
    scored_pairs_per_second: float
    early_termination_rate: float
    memory_mb: float
    peak_memory_mb: float
    start_memory_mb: float
    chunk_metrics: list[dict] = []


class RunStatisticsResponse(BaseModel):
    """Outcome of one batch run."""

    processed: int
    matched: int
    skipped: int
    early_terminated: int
    early_termination_reasons: dict[str, int]
    errors: list[str]
    started_at: datetime
    finished_at: datetime | None = None
    duration_ms: int
    persisted: int
    aborted: bool
    performance: PerformanceResponse | None = None


class CalculateMatchRequest(BaseModel):
    """Body for scoring one listing against one solicitation."""

    listing_id: str
    solicitation_id: str


class PropertyMatchResponse(BaseModel):
    """A persisted match row."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    listing_id: str
    solicitation_id: str
    overall_score: int
    grade: str
    qualified: bool
    competitive: bool
    location_score: float | None = None
    space_score: float | None = None
    building_score: float | None = None
    timeline_score: float | None = None
    experience_score: float | None = None
    score_breakdown: dict | None = None
    updated_at: datetime | None = None
