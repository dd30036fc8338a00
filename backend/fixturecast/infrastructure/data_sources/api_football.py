"""
API-Football Data Source

This module integrates with API-Football (api-football.com) for teams,
fixtures, head-to-head records and per-season team statistics.
Free tier: 100 requests/day.

API Documentation: https://www.api-football.com/documentation-v3
"""

import os
import logging
from datetime import datetime, timedelta
from dataclasses import dataclass, field
from typing import Optional

import httpx

from fixturecast.domain.constants import UPCOMING_STATUSES
from fixturecast.domain.entities.entities import Fixture, SeasonStatistics, Standing, Team
from fixturecast.domain.exceptions import DataSourceException
from fixturecast.domain.repositories.repositories import FootballDataRepository
from fixturecast.utils.time_utils import APP_TZ, get_current_season, get_current_time


logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass
class APIFootballConfig:
    """Configuration for API-Football."""
    api_key: Optional[str] = None
    base_url: str = field(
        default_factory=lambda: os.getenv("API_FOOTBALL_BASE_URL", "https://v3.football.api-sports.io")
    )
    league_id: int = field(default_factory=lambda: _env_int("API_FOOTBALL_LEAGUE_ID", 39))
    daily_limit: int = field(default_factory=lambda: _env_int("API_FOOTBALL_DAILY_LIMIT", 100))
    timeout: int = 30

    def __post_init__(self):
        # Try to get API key from environment if not provided
        if self.api_key is None:
            self.api_key = os.getenv("API_FOOTBALL_KEY")


class APIFootballSource(FootballDataRepository):
    """
    Data source for API-Football.

    Reads go straight to the API, so every call spends part of the daily
    request budget. Failures raise DataSourceException.
    """

    SOURCE_NAME = "API-Football"

    def __init__(
        self,
        config: Optional[APIFootballConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the data source."""
        self.config = config or APIFootballConfig()
        self._transport = transport
        self._request_count = 0
        self._last_reset = get_current_time().date()

    @property
    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return bool(self.config.api_key)

    @property
    def request_count(self) -> int:
        return self._request_count

    def _check_rate_limit(self) -> bool:
        """Check if we're within the daily request budget."""
        today = get_current_time().date()
        if today > self._last_reset:
            self._request_count = 0
            self._last_reset = today
        return self._request_count < self.config.daily_limit

    def get_remaining_requests(self) -> int:
        """Get number of remaining API requests for today."""
        self._check_rate_limit()
        return max(0, self.config.daily_limit - self._request_count)

    async def _make_request(self, endpoint: str, params: Optional[dict] = None):
        """
        Make authenticated request to API-Football.

        Args:
            endpoint: API endpoint (e.g., "/fixtures")
            params: Query parameters

        Returns:
            The `response` member of the JSON payload

        Raises:
            DataSourceException: missing key, exhausted budget, HTTP or API error
        """
        if not self.is_configured:
            raise DataSourceException("API-Football not configured (no API key)")

        if not self._check_rate_limit():
            raise DataSourceException(
                f"API-Football daily limit reached ({self.config.daily_limit}/day)"
            )

        url = f"{self.config.base_url}{endpoint}"
        headers = {
            "x-apisports-key": self.config.api_key,
        }

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    url,
                    headers=headers,
                    params=params,
                    timeout=self.config.timeout,
                )
                self._request_count += 1
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"API-Football HTTP error: {e}")
            raise DataSourceException(f"API-Football HTTP error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"API-Football request error: {e}")
            raise DataSourceException(f"API-Football request failed: {e}") from e
        except ValueError as e:
            raise DataSourceException(f"API-Football returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise DataSourceException(
                f"API-Football returned an unexpected payload: {type(data).__name__}"
            )

        # Errors come back either as a list or as a {field: message} dict
        if data.get("errors"):
            logger.error(f"API-Football error: {data['errors']}")
            raise DataSourceException(f"API-Football error: {data['errors']}")

        return data.get("response") or []

    # Parsing

    @staticmethod
    def _parse_team(team_data: dict, country: Optional[str] = None) -> Team:
        return Team(
            id=int(team_data["id"]),
            name=team_data.get("name") or f"Team {team_data['id']}",
            code=team_data.get("code"),
            country=team_data.get("country") or country,
            logo=team_data.get("logo"),
        )

    @classmethod
    def _parse_fixture(cls, fixture_data: dict) -> Optional[Fixture]:
        """Parse an API-Football fixture into a Fixture entity."""
        try:
            fixture = fixture_data.get("fixture", {})
            league = fixture_data.get("league", {})
            teams = fixture_data.get("teams", {})
            goals = fixture_data.get("goals", {})

            timestamp = fixture.get("timestamp")
            if timestamp:
                match_date = datetime.fromtimestamp(timestamp, APP_TZ)
            else:
                match_date = datetime.fromisoformat(fixture["date"])

            country = league.get("country")
            return Fixture(
                id=int(fixture["id"]),
                home_team=cls._parse_team(teams["home"], country),
                away_team=cls._parse_team(teams["away"], country),
                match_date=match_date,
                status=fixture.get("status", {}).get("short", "NS"),
                home_goals=goals.get("home"),
                away_goals=goals.get("away"),
                season=league.get("season"),
                league_id=league.get("id"),
                venue=(fixture.get("venue") or {}).get("name"),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Failed to parse fixture: {e}")
            return None

    @classmethod
    def _parse_fixtures(cls, response: list) -> list[Fixture]:
        fixtures = []
        for item in response:
            fixture = cls._parse_fixture(item)
            if fixture:
                fixtures.append(fixture)
        return fixtures

    @staticmethod
    def _parse_statistics(team_id: int, season: int, stats: dict) -> SeasonStatistics:
        """Map a /teams/statistics payload onto SeasonStatistics."""
        fixtures = stats.get("fixtures") or {}
        goals = stats.get("goals") or {}

        def split(section: str, key: str) -> int:
            return (fixtures.get(section) or {}).get(key) or 0

        def goal_total(side: str) -> int:
            return ((goals.get(side) or {}).get("total") or {}).get("total") or 0

        return SeasonStatistics(
            team_id=team_id,
            season=season,
            played=split("played", "total"),
            wins=split("wins", "total"),
            draws=split("draws", "total"),
            losses=split("loses", "total"),
            goals_for=goal_total("for"),
            goals_against=goal_total("against"),
            home_wins=split("wins", "home"),
            home_draws=split("draws", "home"),
            home_losses=split("loses", "home"),
            away_wins=split("wins", "away"),
            away_draws=split("draws", "away"),
            away_losses=split("loses", "away"),
            clean_sheets=(stats.get("clean_sheet") or {}).get("total") or 0,
            failed_to_score=(stats.get("failed_to_score") or {}).get("total") or 0,
            form=stats.get("form") or "",
            updated_at=get_current_time(),
        )

    # Teams

    async def get_teams(self, season: Optional[int] = None) -> list[Team]:
        """Get all teams of the configured league for a season."""
        season = season or get_current_season()
        response = await self._make_request("/teams", {
            "league": self.config.league_id,
            "season": season,
        })

        teams = []
        for item in response:
            try:
                teams.append(self._parse_team(item["team"]))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Error parsing team: {e}")
        return teams

    async def get_team_by_id(self, team_id: int) -> Optional[Team]:
        response = await self._make_request("/teams", {"id": team_id})
        if not response:
            return None
        return self._parse_team(response[0]["team"])

    # Fixtures

    async def get_fixture_by_id(self, fixture_id: int) -> Optional[Fixture]:
        response = await self._make_request("/fixtures", {"id": fixture_id})
        if not response:
            return None
        return self._parse_fixture(response[0])

    async def get_upcoming_fixtures(self, days: int = 7) -> list[Fixture]:
        """Fixtures of the configured league that have not kicked off within the next `days` days."""
        now = get_current_time()
        response = await self._make_request("/fixtures", {
            "league": self.config.league_id,
            "season": get_current_season(now),
            "from": now.strftime("%Y-%m-%d"),
            "to": (now + timedelta(days=days)).strftime("%Y-%m-%d"),
        })
        fixtures = [f for f in self._parse_fixtures(response) if f.status in UPCOMING_STATUSES]
        return sorted(fixtures, key=lambda f: f.match_date)

    async def get_completed_fixtures(self, limit: int = 10) -> list[Fixture]:
        response = await self._make_request("/fixtures", {
            "league": self.config.league_id,
            "last": limit,
        })
        fixtures = [f for f in self._parse_fixtures(response) if f.is_completed]
        return sorted(fixtures, key=lambda f: f.match_date, reverse=True)

    async def get_season_fixtures(self, season: Optional[int] = None) -> list[Fixture]:
        """All fixtures of the configured league for a season (one request)."""
        season = season or get_current_season()
        response = await self._make_request("/fixtures", {
            "league": self.config.league_id,
            "season": season,
        })
        return self._parse_fixtures(response)

    async def get_recent_completed_matches(self, team_id: int, n: int = 5) -> list[Fixture]:
        response = await self._make_request("/fixtures", {
            "team": team_id,
            "last": n,
        })
        fixtures = [f for f in self._parse_fixtures(response) if f.is_completed]
        return sorted(fixtures, key=lambda f: f.match_date, reverse=True)[:n]

    async def get_head_to_head_matches(
        self,
        team_a: int,
        team_b: int,
        limit: int = 10,
    ) -> list[Fixture]:
        response = await self._make_request("/fixtures/headtohead", {
            "h2h": f"{team_a}-{team_b}",
            "last": limit,
        })
        fixtures = [f for f in self._parse_fixtures(response) if f.is_completed]
        return sorted(fixtures, key=lambda f: f.match_date, reverse=True)[:limit]

    # Statistics

    async def get_season_statistics(self, team_id: int, season: int) -> Optional[SeasonStatistics]:
        """Aggregate statistics of a team in the configured league for one season."""
        response = await self._make_request("/teams/statistics", {
            "league": self.config.league_id,
            "season": season,
            "team": team_id,
        })
        # The endpoint answers with an object, or an empty list when there is no data
        if not response or not isinstance(response, dict):
            return None
        return self._parse_statistics(team_id, season, response)

    # Standings

    @classmethod
    def _parse_standing(cls, row: dict, season: int, league_id: int) -> Standing:
        overall = row.get("all") or {}
        goals = overall.get("goals") or {}
        return Standing(
            team=cls._parse_team(row["team"]),
            season=season,
            league_id=league_id,
            rank=int(row["rank"]),
            points=row.get("points") or 0,
            goals_diff=row.get("goalsDiff") or 0,
            played=overall.get("played") or 0,
            win=overall.get("win") or 0,
            draw=overall.get("draw") or 0,
            lose=overall.get("lose") or 0,
            goals_for=goals.get("for") or 0,
            goals_against=goals.get("against") or 0,
            group=row.get("group"),
            form=row.get("form"),
            status=row.get("status"),
            description=row.get("description"),
            updated_at=get_current_time(),
        )

    async def get_standings(self, season: Optional[int] = None) -> list[Standing]:
        """League table of the configured league, ordered by rank."""
        season = season or get_current_season()
        response = await self._make_request("/standings", {
            "league": self.config.league_id,
            "season": season,
        })
        try:
            rows = response[0]["league"]["standings"][0]
        except (IndexError, KeyError, TypeError):
            return []

        standings = []
        for row in rows:
            try:
                standings.append(self._parse_standing(row, season, self.config.league_id))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Error parsing standing: {e}")
        return sorted(standings, key=lambda s: s.rank)
