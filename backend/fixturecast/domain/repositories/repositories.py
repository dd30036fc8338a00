"""
Domain Repository Interfaces Module

These are abstract interfaces that define how the domain layer accesses data.
Concrete implementations are provided in the infrastructure layer.
This follows the Dependency Inversion Principle (DIP).
"""

from abc import ABC, abstractmethod
from typing import Optional

from fixturecast.domain.entities.entities import (
    Team,
    Fixture,
    SeasonStatistics,
    PredictionRecord,
)


class FootballDataRepository(ABC):
    """Abstract read access to historical football data."""

    @abstractmethod
    async def get_recent_completed_matches(
        self,
        team_id: int,
        n: int = 5,
    ) -> list[Fixture]:
        """Get the team's n most recent completed fixtures, most recent first."""
        pass

    @abstractmethod
    async def get_season_statistics(
        self,
        team_id: int,
        season: int,
    ) -> Optional[SeasonStatistics]:
        """Get the aggregate statistics of a team for one season."""
        pass

    @abstractmethod
    async def get_head_to_head_matches(
        self,
        team_a: int,
        team_b: int,
        limit: int = 10,
    ) -> list[Fixture]:
        """Get completed meetings between two teams (either side home), most recent first."""
        pass

    @abstractmethod
    async def get_fixture_by_id(self, fixture_id: int) -> Optional[Fixture]:
        """Get a specific fixture by ID."""
        pass

    @abstractmethod
    async def get_upcoming_fixtures(self, days: int = 7) -> list[Fixture]:
        """Get fixtures kicking off within the next `days` days."""
        pass

    @abstractmethod
    async def get_completed_fixtures(self, limit: int = 10) -> list[Fixture]:
        """Get the most recent completed fixtures across all teams."""
        pass

    @abstractmethod
    async def get_team_by_id(self, team_id: int) -> Optional[Team]:
        """Get a specific team by ID."""
        pass

    @abstractmethod
    async def get_teams(self) -> list[Team]:
        """Get all known teams."""
        pass


class PredictionRepository(ABC):
    """Abstract storage of predictions, one live record per fixture."""

    @abstractmethod
    async def save_prediction(self, record: PredictionRecord) -> PredictionRecord:
        """Insert or replace the prediction for record.fixture_id."""
        pass

    @abstractmethod
    async def get_prediction_by_fixture_id(
        self,
        fixture_id: int,
    ) -> Optional[PredictionRecord]:
        """Get the live prediction for a fixture."""
        pass

    @abstractmethod
    async def get_predictions(self) -> list[PredictionRecord]:
        """Get all stored predictions."""
        pass
