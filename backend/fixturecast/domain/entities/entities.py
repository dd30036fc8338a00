"""
Domain Entities Module

This module contains the core domain entities for the fixture prediction system.
These entities represent the core business concepts and are independent of any infrastructure.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from enum import Enum

from fixturecast.domain.constants import FINISHED_STATUSES, ALGORITHM_VERSION


class MatchOutcome(Enum):
    """Possible outcomes of a football match."""
    HOME_WIN = "HOME_WIN"
    DRAW = "DRAW"
    AWAY_WIN = "AWAY_WIN"


@dataclass(frozen=True)
class Team:
    """
    Represents a football team.

    Attributes:
        id: Numeric identifier of the team (API-Football team id)
        name: Full name of the team
        code: Abbreviated code (e.g., "MUN")
        country: Country where the team is based
        logo: URL of the team crest
    """
    id: int
    name: str
    code: Optional[str] = None
    country: Optional[str] = None
    logo: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Team name cannot be empty")


@dataclass(frozen=True)
class Fixture:
    """
    Represents a scheduled or completed match between two teams.

    Attributes:
        id: Unique identifier for the fixture
        home_team: The home team
        away_team: The away team
        match_date: Date and time of kick-off
        status: Short status code (NS=Not Started, FT=Full Time, AET, PEN, ...)
        home_goals: Goals scored by home team (None if not played)
        away_goals: Goals scored by away team (None if not played)
        season: Season the fixture belongs to (start year)
        league_id: Competition identifier
        venue: Stadium name
    """
    id: int
    home_team: Team
    away_team: Team
    match_date: datetime
    status: str = "NS"
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None
    season: Optional[int] = None
    league_id: Optional[int] = None
    venue: Optional[str] = None

    def __post_init__(self):
        if self.home_team.id == self.away_team.id:
            raise ValueError("A fixture needs two different teams")

    @property
    def is_completed(self) -> bool:
        """Check if the fixture has a final result."""
        return (
            self.status in FINISHED_STATUSES
            and self.home_goals is not None
            and self.away_goals is not None
        )

    @property
    def outcome(self) -> Optional[MatchOutcome]:
        """Get the fixture outcome if completed."""
        if not self.is_completed:
            return None
        if self.home_goals > self.away_goals:
            return MatchOutcome.HOME_WIN
        elif self.home_goals < self.away_goals:
            return MatchOutcome.AWAY_WIN
        return MatchOutcome.DRAW

    def involves(self, team_id: int) -> bool:
        """Check if a team plays in this fixture."""
        return team_id in (self.home_team.id, self.away_team.id)

    def goals_for(self, team_id: int) -> int:
        """Goals scored by the given team, from its home/away role."""
        if self.home_team.id == team_id:
            return self.home_goals or 0
        return self.away_goals or 0

    def goals_against(self, team_id: int) -> int:
        """Goals conceded by the given team, from its home/away role."""
        if self.home_team.id == team_id:
            return self.away_goals or 0
        return self.home_goals or 0


@dataclass
class SeasonStatistics:
    """
    Aggregate statistics of a team for one season.

    One record exists per (team, season); a resync replaces it as a whole.
    """
    team_id: int
    season: int
    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    home_wins: int = 0
    home_draws: int = 0
    home_losses: int = 0
    away_wins: int = 0
    away_draws: int = 0
    away_losses: int = 0
    clean_sheets: int = 0
    failed_to_score: int = 0
    form: str = ""  # e.g., "WWDLW"
    updated_at: Optional[datetime] = None

    @property
    def goal_difference(self) -> int:
        """Raw season goal difference."""
        return self.goals_for - self.goals_against

    @property
    def points(self) -> int:
        return self.wins * 3 + self.draws

    @property
    def home_played(self) -> int:
        return self.home_wins + self.home_draws + self.home_losses

    @property
    def away_played(self) -> int:
        return self.away_wins + self.away_draws + self.away_losses


@dataclass
class Standing:
    """
    League table row of a team for one season.

    A standings sync replaces the whole table of its (league, season).
    """
    team: Team
    season: int
    league_id: int
    rank: int
    points: int = 0
    goals_diff: int = 0
    played: int = 0
    win: int = 0
    draw: int = 0
    lose: int = 0
    goals_for: int = 0
    goals_against: int = 0
    group: Optional[str] = None
    form: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.rank < 1:
            raise ValueError("Standing rank must be positive")


@dataclass(frozen=True)
class FormAnalysis:
    """Short-window performance of a team over its last N completed matches."""
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    form_score: float = 50.0  # 0-100 scale

    @property
    def matches_analyzed(self) -> int:
        return self.wins + self.draws + self.losses

    @classmethod
    def neutral(cls) -> "FormAnalysis":
        """Result used when a team has no usable match history."""
        return cls()


@dataclass(frozen=True)
class StatisticalAnalysis:
    """
    Multi-season strength profile of a team.

    Percentages and strengths are on a 0-100 scale, goal differential is raw.
    """
    home_advantage: float = 50.0
    goal_differential: float = 0.0
    clean_sheet_ratio: float = 0.0
    scoring_consistency: float = 50.0
    defensive_strength: float = 50.0
    attacking_strength: float = 50.0
    seasons_used: tuple[int, ...] = ()

    @classmethod
    def neutral(cls) -> "StatisticalAnalysis":
        """Result used when no season contributed any data."""
        return cls()

    @property
    def overall_strength(self) -> float:
        """Average of attacking and defensive strength."""
        return (self.attacking_strength + self.defensive_strength) / 2


@dataclass(frozen=True)
class MatchContext:
    """Everything the outcome scorer needs for one fixture, built once per request."""
    home_team: Team
    away_team: Team
    fixture: Fixture
    home_form: FormAnalysis
    away_form: FormAnalysis
    home_stats: StatisticalAnalysis
    away_stats: StatisticalAnalysis
    head_to_head: tuple[Fixture, ...]
    home_advantage: float


@dataclass(frozen=True)
class PredictionFactors:
    """The five named factors behind a prediction."""
    home_form_score: float
    away_form_score: float
    head_to_head_score: float
    home_advantage: float
    goal_difference_factor: float

    @classmethod
    def neutral(cls) -> "PredictionFactors":
        return cls(
            home_form_score=50.0,
            away_form_score=50.0,
            head_to_head_score=50.0,
            home_advantage=0.0,
            goal_difference_factor=50.0,
        )

    def to_dict(self) -> dict:
        return {
            "home_form_score": self.home_form_score,
            "away_form_score": self.away_form_score,
            "head_to_head_score": self.head_to_head_score,
            "home_advantage": self.home_advantage,
            "goal_difference_factor": self.goal_difference_factor,
        }


@dataclass(frozen=True)
class PredictionResult:
    """
    Outcome call produced by the scoring engine.

    Attributes:
        outcome: Predicted outcome
        confidence: Integer self-reported certainty (0-100)
        factors: Named factors used to reach the call
    """
    outcome: MatchOutcome
    confidence: int
    factors: PredictionFactors

    def __post_init__(self):
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"Confidence must be between 0 and 100, got {self.confidence}")

    @classmethod
    def fallback(cls) -> "PredictionResult":
        """Conservative result returned when scoring cannot complete."""
        return cls(
            outcome=MatchOutcome.DRAW,
            confidence=30,
            factors=PredictionFactors.neutral(),
        )


@dataclass
class PredictionRecord:
    """
    Persisted prediction for a fixture.

    Exactly one live record exists per fixture id; saving a newer record replaces it.
    """
    fixture_id: int
    home_team_id: int
    away_team_id: int
    outcome: MatchOutcome
    confidence: int
    factors: PredictionFactors
    algorithm_version: str = ALGORITHM_VERSION
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_result(cls, fixture: Fixture, result: PredictionResult) -> "PredictionRecord":
        return cls(
            fixture_id=fixture.id,
            home_team_id=fixture.home_team.id,
            away_team_id=fixture.away_team.id,
            outcome=result.outcome,
            confidence=result.confidence,
            factors=result.factors,
        )


@dataclass(frozen=True)
class HeadToHeadSummary:
    """Tally of the completed meetings between two teams, from team 1's side."""
    total_matches: int = 0
    team1_wins: int = 0
    team2_wins: int = 0
    draws: int = 0
    team1_goals: int = 0
    team2_goals: int = 0

    @property
    def average_goals_per_match(self) -> float:
        if self.total_matches == 0:
            return 0.0
        return (self.team1_goals + self.team2_goals) / self.total_matches

    @property
    def dominant(self) -> str:
        """'team1', 'team2' or 'balanced'."""
        if self.team1_wins > self.team2_wins:
            return "team1"
        if self.team2_wins > self.team1_wins:
            return "team2"
        return "balanced"
