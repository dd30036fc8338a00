"""
Data Transfer Objects (DTOs) Module

DTOs are used to transfer data between layers and to/from the API.
They use Pydantic for validation and serialization.
"""

from datetime import datetime, timezone
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# Enums
# ============================================================

class PredictionSource(str, Enum):
    """Where a returned prediction came from."""
    CACHED = "cached"
    GENERATED = "generated"
    DATABASE = "database"


class BatchItemStatus(str, Enum):
    """Per-fixture status of a batch prediction request."""
    EXISTING = "existing"
    GENERATED = "generated"
    REGENERATED = "regenerated"


# ============================================================
# Request DTOs
# ============================================================

class BatchPredictionRequestDTO(BaseModel):
    """Request for predicting several fixtures at once."""
    fixture_ids: list[int] = Field(..., min_length=1, description="Fixture identifiers")
    regenerate: bool = Field(default=False, description="Replace existing predictions")


# ============================================================
# Response DTOs
# ============================================================

class TeamDTO(BaseModel):
    """Team data transfer object."""
    id: int
    name: str
    code: Optional[str] = None
    country: Optional[str] = None
    logo: Optional[str] = None

    class Config:
        from_attributes = True


class FixtureDTO(BaseModel):
    """Fixture data transfer object."""
    id: int
    home_team: TeamDTO
    away_team: TeamDTO
    match_date: datetime
    status: str = "NS"
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None
    season: Optional[int] = None
    league_id: Optional[int] = None
    venue: Optional[str] = None

    class Config:
        from_attributes = True


class PredictionFactorsDTO(BaseModel):
    """Named factors behind a prediction."""
    home_form_score: float = Field(..., ge=0, le=100)
    away_form_score: float = Field(..., ge=0, le=100)
    head_to_head_score: float = Field(..., ge=0, le=100)
    home_advantage: float = Field(..., ge=0, le=100)
    goal_difference_factor: float = Field(..., ge=0, le=100)

    class Config:
        from_attributes = True


class PredictionDTO(BaseModel):
    """Prediction data transfer object."""
    fixture_id: int
    home_team_id: int
    away_team_id: int
    prediction: str
    confidence: int = Field(..., ge=0, le=100)
    confidence_band: str
    algorithm_version: str
    factors: PredictionFactorsDTO
    created_at: datetime


class PredictionResponseDTO(BaseModel):
    """Single fixture prediction."""
    data: PredictionDTO
    source: PredictionSource


class FixturePredictionDTO(BaseModel):
    """A fixture with its prediction."""
    fixture: FixtureDTO
    prediction: PredictionDTO


class UpcomingPredictionsResponseDTO(BaseModel):
    """Predictions generated for upcoming fixtures."""
    data: list[FixturePredictionDTO] = Field(default_factory=list)
    count: int
    days: int
    source: PredictionSource = PredictionSource.GENERATED
    generated_at: datetime = Field(default_factory=_utcnow)


class PredictionsListResponseDTO(BaseModel):
    """All stored predictions."""
    data: list[PredictionDTO] = Field(default_factory=list)
    count: int
    source: PredictionSource = PredictionSource.DATABASE


class BatchPredictionItemDTO(BaseModel):
    fixture_id: int
    prediction: PredictionDTO
    status: BatchItemStatus


class BatchPredictionErrorDTO(BaseModel):
    fixture_id: int
    error: str


class BatchPredictionResponseDTO(BaseModel):
    """Per-fixture results and errors of a batch request."""
    predictions: list[BatchPredictionItemDTO] = Field(default_factory=list)
    errors: list[BatchPredictionErrorDTO] = Field(default_factory=list)
    processed: int
    successful: int
    failed: int


class PredictionStatsDTO(BaseModel):
    """Distribution of stored predictions."""
    total_predictions: int
    home_wins: int
    draws: int
    away_wins: int
    home_win_percentage: float
    draw_percentage: float
    away_win_percentage: float
    average_confidence: float
    confidence_bands: dict[str, int] = Field(default_factory=dict)


class AccuracyResultDTO(BaseModel):
    """One back-tested fixture."""
    fixture_id: int
    fixture: str
    predicted: str
    actual: str
    confidence: int
    correct: bool


class AccuracyResponseDTO(BaseModel):
    """Back-test of the engine on completed fixtures."""
    matches_tested: int
    correct_predictions: int
    accuracy: float
    results: list[AccuracyResultDTO] = Field(default_factory=list)


class FormAnalysisDTO(BaseModel):
    wins: int
    draws: int
    losses: int
    goals_for: int
    goals_against: int
    points: int
    form_score: float

    class Config:
        from_attributes = True


class StatisticalAnalysisDTO(BaseModel):
    home_advantage: float
    goal_differential: float
    clean_sheet_ratio: float
    scoring_consistency: float
    defensive_strength: float
    attacking_strength: float
    seasons_used: list[int] = Field(default_factory=list)

    class Config:
        from_attributes = True


class TeamAnalysisDTO(BaseModel):
    """Form and statistics of one team."""
    team: TeamDTO
    form: FormAnalysisDTO
    statistics: StatisticalAnalysisDTO


class TeamInsightsDTO(TeamAnalysisDTO):
    """Team analysis with plain-language insights."""
    insights: list[str] = Field(default_factory=list)


class HeadToHeadSummaryDTO(BaseModel):
    total_matches: int
    team1_wins: int
    team2_wins: int
    draws: int
    team1_goals: int
    team2_goals: int
    average_goals_per_match: float
    dominant: str
    score: float = Field(..., ge=0, le=100)


class HeadToHeadDTO(BaseModel):
    matches: list[FixtureDTO] = Field(default_factory=list)
    summary: HeadToHeadSummaryDTO


class ComparisonDTO(BaseModel):
    """Side-by-side value of one metric."""
    first: float
    second: float
    difference: float
    advantage: str


class OutcomeProbabilitiesDTO(BaseModel):
    home_win: float = Field(..., ge=0, le=1)
    draw: float = Field(..., ge=0, le=1)
    away_win: float = Field(..., ge=0, le=1)


class MatchAnalysisDTO(BaseModel):
    """Full analysis of a fixture."""
    fixture: FixtureDTO
    home: TeamAnalysisDTO
    away: TeamAnalysisDTO
    head_to_head: HeadToHeadDTO
    home_advantage: float
    comparison: dict[str, ComparisonDTO] = Field(default_factory=dict)
    prediction: PredictionDTO
    stored_prediction: Optional[PredictionDTO] = None
    probabilities: OutcomeProbabilitiesDTO
    confidence_levels: dict[str, int] = Field(default_factory=dict)


class TeamComparisonDTO(BaseModel):
    """Analysis of two teams independent of any fixture."""
    team1: TeamAnalysisDTO
    team2: TeamAnalysisDTO
    comparison: dict[str, ComparisonDTO] = Field(default_factory=dict)
    head_to_head: HeadToHeadDTO


class FixturesResponseDTO(BaseModel):
    data: list[FixtureDTO] = Field(default_factory=list)
    count: int
    upcoming: bool
    days: int


class TeamsResponseDTO(BaseModel):
    data: list[TeamDTO] = Field(default_factory=list)
    count: int


class StandingDTO(BaseModel):
    """One row of a league table."""
    rank: int
    team: TeamDTO
    points: int
    goals_diff: int
    played: int
    win: int
    draw: int
    lose: int
    goals_for: int
    goals_against: int
    group: Optional[str] = None
    form: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True


class StandingsResponseDTO(BaseModel):
    data: list[StandingDTO] = Field(default_factory=list)
    count: int
    season: Optional[int] = None
    source: str = Field(..., description="database or api")


class ApiUsageDTO(BaseModel):
    """API-Football request budget for today."""
    used: int
    remaining: int
    total: int


class SyncResponseDTO(BaseModel):
    """Result of an on-demand sync from API-Football."""
    message: str
    count: int
    api_usage: ApiUsageDTO


class ApiServiceHealthDTO(BaseModel):
    status: str = Field(..., description="up or down")
    configured: bool
    usage: ApiUsageDTO


class DatabaseHealthDTO(BaseModel):
    status: str = Field(..., description="up or down")
    teams: Optional[int] = None
    fixtures: Optional[int] = None


class ServicesHealthDTO(BaseModel):
    api: ApiServiceHealthDTO
    database: DatabaseHealthDTO


class HealthResponseDTO(BaseModel):
    """Health check response; status is degraded when any service is down."""
    status: str = "healthy"
    version: str
    timestamp: datetime = Field(default_factory=_utcnow)
    services: Optional[ServicesHealthDTO] = None


class ErrorResponseDTO(BaseModel):
    """Error response."""
    error: str
    message: str
    details: Optional[dict] = None
