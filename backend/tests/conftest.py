"""
Shared test fixtures: in-memory repositories and fixture builders.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from fixturecast.domain.entities.entities import (
    Fixture,
    PredictionRecord,
    SeasonStatistics,
    Team,
)
from fixturecast.domain.exceptions import DataSourceException
from fixturecast.domain.repositories.repositories import (
    FootballDataRepository,
    PredictionRepository,
)

# Reference time for season resolution: the 2024 season (2024, 2023, 2022 blended)
REFERENCE_NOW = datetime(2024, 10, 1, 12, 0, tzinfo=timezone.utc)
BASE_DATE = datetime(2024, 9, 1, 15, 0, tzinfo=timezone.utc)


def make_team(team_id: int, name: Optional[str] = None) -> Team:
    return Team(id=team_id, name=name or f"Team {team_id}")


def make_fixture(
    fixture_id: int,
    home_id: int,
    away_id: int,
    home_goals: Optional[int] = None,
    away_goals: Optional[int] = None,
    days_ago: int = 0,
    status: Optional[str] = None,
) -> Fixture:
    """Completed when both goal counts are given, scheduled otherwise."""
    if status is None:
        status = "FT" if home_goals is not None and away_goals is not None else "NS"
    return Fixture(
        id=fixture_id,
        home_team=make_team(home_id),
        away_team=make_team(away_id),
        match_date=BASE_DATE - timedelta(days=days_ago),
        status=status,
        home_goals=home_goals,
        away_goals=away_goals,
        season=2024,
        league_id=39,
    )


class FakeFootballRepository(FootballDataRepository):
    """In-memory FootballDataRepository with switchable failures."""

    def __init__(self):
        self.teams: dict[int, Team] = {}
        self.fixtures: list[Fixture] = []
        self.upcoming: list[Fixture] = []
        self.statistics: dict[tuple[int, int], SeasonStatistics] = {}
        self.fail_recent_for: set[int] = set()
        self.fail_statistics_for: set[int] = set()
        self.fail_statistics_seasons: set[tuple[int, int]] = set()
        self.fail_head_to_head = False
        self.fail_upcoming = False

    def add_team(self, team_id: int, name: Optional[str] = None) -> Team:
        team = make_team(team_id, name)
        self.teams[team_id] = team
        return team

    def add_fixture(self, fixture: Fixture) -> Fixture:
        self.fixtures.append(fixture)
        return fixture

    def add_statistics(self, stats: SeasonStatistics) -> SeasonStatistics:
        self.statistics[(stats.team_id, stats.season)] = stats
        return stats

    def _completed(self) -> list[Fixture]:
        done = [f for f in self.fixtures if f.is_completed]
        return sorted(done, key=lambda f: f.match_date, reverse=True)

    async def get_recent_completed_matches(self, team_id: int, n: int = 5) -> list[Fixture]:
        if team_id in self.fail_recent_for:
            raise DataSourceException("recent matches unavailable")
        return [f for f in self._completed() if f.involves(team_id)][:n]

    async def get_season_statistics(self, team_id: int, season: int) -> Optional[SeasonStatistics]:
        if team_id in self.fail_statistics_for or (team_id, season) in self.fail_statistics_seasons:
            raise DataSourceException("statistics unavailable")
        return self.statistics.get((team_id, season))

    async def get_head_to_head_matches(self, team_a: int, team_b: int, limit: int = 10) -> list[Fixture]:
        if self.fail_head_to_head:
            raise DataSourceException("head-to-head unavailable")
        meetings = [f for f in self._completed() if f.involves(team_a) and f.involves(team_b)]
        return meetings[:limit]

    async def get_fixture_by_id(self, fixture_id: int) -> Optional[Fixture]:
        for fixture in self.fixtures + self.upcoming:
            if fixture.id == fixture_id:
                return fixture
        return None

    async def get_upcoming_fixtures(self, days: int = 7) -> list[Fixture]:
        if self.fail_upcoming:
            raise DataSourceException("upcoming fixtures unavailable")
        return list(self.upcoming)

    async def get_completed_fixtures(self, limit: int = 10) -> list[Fixture]:
        return self._completed()[:limit]

    async def get_team_by_id(self, team_id: int) -> Optional[Team]:
        return self.teams.get(team_id)

    async def get_teams(self) -> list[Team]:
        return sorted(self.teams.values(), key=lambda t: t.name)


class FakePredictionRepository(PredictionRepository):
    """In-memory PredictionRepository keyed by fixture id."""

    def __init__(self):
        self.records: dict[int, PredictionRecord] = {}

    async def save_prediction(self, record: PredictionRecord) -> PredictionRecord:
        self.records[record.fixture_id] = record
        return record

    async def get_prediction_by_fixture_id(self, fixture_id: int) -> Optional[PredictionRecord]:
        return self.records.get(fixture_id)

    async def get_predictions(self) -> list[PredictionRecord]:
        return sorted(self.records.values(), key=lambda r: r.created_at, reverse=True)


@pytest.fixture
def repository():
    """Empty in-memory football data repository."""
    return FakeFootballRepository()


@pytest.fixture
def prediction_repository():
    """Empty in-memory prediction repository."""
    return FakePredictionRepository()


@pytest.fixture
def strong_vs_weak_repository():
    """
    Team 1 won its last five 3-0, 3-1, 3-0, 3-1, 3-0 (15-2).
    Team 2 lost its last five by the mirrored scores (2-15).
    The two have never met.
    """
    repo = FakeFootballRepository()
    repo.add_team(1, "Strong FC")
    repo.add_team(2, "Weak FC")
    scores = [(3, 0), (3, 1), (3, 0), (3, 1), (3, 0)]
    for i, (scored, conceded) in enumerate(scores):
        # Alternate home and away roles to exercise role normalization
        if i % 2 == 0:
            repo.add_fixture(make_fixture(100 + i, 1, 10 + i, scored, conceded, days_ago=i + 1))
            repo.add_fixture(make_fixture(200 + i, 20 + i, 2, scored, conceded, days_ago=i + 1))
        else:
            repo.add_fixture(make_fixture(100 + i, 10 + i, 1, conceded, scored, days_ago=i + 1))
            repo.add_fixture(make_fixture(200 + i, 2, 20 + i, conceded, scored, days_ago=i + 1))
    repo.upcoming.append(make_fixture(900, 1, 2, days_ago=-3))
    return repo
