"""
Tests for the API-Football data source.

HTTP traffic is served by httpx.MockTransport, no network access is made.
"""

import asyncio

import httpx
import pytest

from fixturecast.domain.exceptions import DataSourceException
from fixturecast.infrastructure.data_sources.api_football import (
    APIFootballConfig,
    APIFootballSource,
)


def fixture_payload(fixture_id, home_id, away_id, home_goals, away_goals, status="FT", timestamp=1725202800):
    return {
        "fixture": {
            "id": fixture_id,
            "date": "2024-09-01T15:00:00+00:00",
            "timestamp": timestamp,
            "venue": {"name": "Stadium"},
            "status": {"short": status},
        },
        "league": {"id": 39, "season": 2024, "country": "England"},
        "teams": {
            "home": {"id": home_id, "name": f"Team {home_id}"},
            "away": {"id": away_id, "name": f"Team {away_id}"},
        },
        "goals": {"home": home_goals, "away": away_goals},
    }


STATISTICS_PAYLOAD = {
    "fixtures": {
        "played": {"home": 5, "away": 5, "total": 10},
        "wins": {"home": 4, "away": 2, "total": 6},
        "draws": {"home": 1, "away": 1, "total": 2},
        "loses": {"home": 0, "away": 2, "total": 2},
    },
    "goals": {
        "for": {"total": {"home": 12, "away": 8, "total": 20}},
        "against": {"total": {"home": 3, "away": 7, "total": 10}},
    },
    "clean_sheet": {"home": 3, "away": 1, "total": 4},
    "failed_to_score": {"home": 0, "away": 1, "total": 1},
    "form": "WWDLW",
}


def standing_row(rank, team_id, name, points, played=6, win=4, draw=1, lose=1, goals_for=12, goals_against=5):
    return {
        "rank": rank,
        "team": {"id": team_id, "name": name, "logo": f"https://media.test/{team_id}.png"},
        "points": points,
        "goalsDiff": goals_for - goals_against,
        "group": "Premier League",
        "form": "WWDLW",
        "status": "same",
        "description": "Promotion - Champions League (Group Stage)" if rank == 1 else None,
        "all": {
            "played": played, "win": win, "draw": draw, "lose": lose,
            "goals": {"for": goals_for, "against": goals_against},
        },
    }


def standings_payload(rows):
    return [{"league": {"id": 39, "season": 2024, "standings": [rows]}}]


class Recorder:
    """MockTransport handler that records requests and replays one payload."""

    def __init__(self, payload=None, status_code=200):
        self.payload = payload if payload is not None else {"errors": [], "response": []}
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


def make_source(handler, **config):
    config.setdefault("api_key", "test-key")
    config.setdefault("base_url", "https://api.test")
    return APIFootballSource(APIFootballConfig(**config), transport=httpx.MockTransport(handler))


class TestConfiguration:
    def test_key_is_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("API_FOOTBALL_KEY", "from-env")
        assert APIFootballConfig().api_key == "from-env"

    def test_unconfigured_source_raises(self, monkeypatch):
        monkeypatch.delenv("API_FOOTBALL_KEY", raising=False)
        source = APIFootballSource(APIFootballConfig())
        assert source.is_configured is False
        with pytest.raises(DataSourceException):
            asyncio.run(source.get_teams(2024))


class TestRequests:
    def test_key_header_and_params(self):
        handler = Recorder({"errors": [], "response": [fixture_payload(1, 1, 2, 2, 0)]})
        source = make_source(handler)

        asyncio.run(source.get_head_to_head_matches(1, 2, limit=5))

        request = handler.requests[0]
        assert request.headers["x-apisports-key"] == "test-key"
        assert request.url.path == "/fixtures/headtohead"
        assert request.url.params["h2h"] == "1-2"
        assert request.url.params["last"] == "5"

    def test_daily_limit(self):
        source = make_source(Recorder(), daily_limit=2)

        asyncio.run(source.get_completed_fixtures())
        asyncio.run(source.get_completed_fixtures())

        assert source.request_count == 2
        assert source.get_remaining_requests() == 0
        with pytest.raises(DataSourceException, match="daily limit"):
            asyncio.run(source.get_completed_fixtures())

    def test_http_error_raises_and_counts(self):
        source = make_source(Recorder(status_code=500))
        with pytest.raises(DataSourceException, match="500"):
            asyncio.run(source.get_completed_fixtures())
        assert source.request_count == 1

    def test_api_errors_raise(self):
        source = make_source(Recorder({"errors": {"token": "invalid"}, "response": []}))
        with pytest.raises(DataSourceException):
            asyncio.run(source.get_teams(2024))

    def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(DataSourceException):
            asyncio.run(make_source(handler).get_teams(2024))

    def test_non_object_payload_raises(self):
        def handler(request):
            return httpx.Response(200, json=[1, 2])

        source = make_source(handler)
        with pytest.raises(DataSourceException, match="unexpected payload"):
            asyncio.run(source.get_completed_fixtures())
        assert source.request_count == 1


class TestParsing:
    def test_recent_matches_keep_only_completed(self):
        payload = {"errors": [], "response": [
            fixture_payload(1, 1, 2, 2, 0, timestamp=1725202800),
            fixture_payload(2, 3, 1, 1, 1, timestamp=1725807600),
            fixture_payload(3, 1, 4, None, None, status="NS", timestamp=1726412400),
        ]}
        fixtures = asyncio.run(make_source(Recorder(payload)).get_recent_completed_matches(1, 5))

        assert [f.id for f in fixtures] == [2, 1]
        assert fixtures[0].home_team.country == "England"
        assert fixtures[0].venue == "Stadium"

    def test_malformed_fixture_is_skipped(self):
        broken = {"fixture": {"id": 9}, "teams": {}}
        payload = {"errors": [], "response": [broken, fixture_payload(1, 1, 2, 1, 0)]}
        fixtures = asyncio.run(make_source(Recorder(payload)).get_completed_fixtures())
        assert [f.id for f in fixtures] == [1]

    def test_season_statistics(self):
        source = make_source(Recorder({"errors": [], "response": STATISTICS_PAYLOAD}))

        stats = asyncio.run(source.get_season_statistics(1, 2024))

        assert (stats.played, stats.wins, stats.draws, stats.losses) == (10, 6, 2, 2)
        assert (stats.goals_for, stats.goals_against) == (20, 10)
        assert (stats.home_wins, stats.home_draws, stats.home_losses) == (4, 1, 0)
        assert stats.clean_sheets == 4
        assert stats.failed_to_score == 1
        assert stats.form == "WWDLW"

    def test_season_statistics_without_data(self):
        source = make_source(Recorder({"errors": [], "response": []}))
        assert asyncio.run(source.get_season_statistics(1, 2024)) is None

    def test_teams(self):
        payload = {"errors": [], "response": [
            {"team": {"id": 33, "name": "Manchester United", "code": "MUN", "country": "England"}},
        ]}
        handler = Recorder(payload)
        teams = asyncio.run(make_source(handler).get_teams(2024))

        assert teams[0].code == "MUN"
        assert handler.requests[0].url.params["season"] == "2024"
        assert handler.requests[0].url.params["league"] == "39"


class TestStandings:
    def test_standings_are_parsed_in_rank_order(self):
        rows = [
            standing_row(2, 50, "Manchester City", 13, win=4, draw=1, lose=1, goals_for=14, goals_against=6),
            standing_row(1, 40, "Liverpool", 15, win=5, draw=0, lose=1, goals_for=11, goals_against=2),
        ]
        handler = Recorder({"errors": [], "response": standings_payload(rows)})

        standings = asyncio.run(make_source(handler).get_standings(2024))

        assert [s.rank for s in standings] == [1, 2]
        leader = standings[0]
        assert leader.team.name == "Liverpool"
        assert leader.points == 15
        assert leader.goals_diff == 9
        assert (leader.played, leader.win, leader.draw, leader.lose) == (6, 5, 0, 1)
        assert (leader.goals_for, leader.goals_against) == (11, 2)
        assert leader.season == 2024
        assert leader.league_id == 39
        assert handler.requests[0].url.path == "/standings"
        assert handler.requests[0].url.params["season"] == "2024"

    def test_empty_standings(self):
        source = make_source(Recorder({"errors": [], "response": []}))
        assert asyncio.run(source.get_standings(2024)) == []

    def test_malformed_row_is_skipped(self):
        rows = [{"rank": 1}, standing_row(2, 50, "Manchester City", 13)]
        source = make_source(Recorder({"errors": [], "response": standings_payload(rows)}))

        standings = asyncio.run(source.get_standings(2024))

        assert [s.team.id for s in standings] == [50]
