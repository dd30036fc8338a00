"""
Tests for the daily data sync, from a mocked API-Football into SQLite.
"""

import asyncio

import httpx
import pytest

from fixturecast.application.services.data_sync_service import DataSyncService
from fixturecast.domain.entities.entities import Team
from fixturecast.infrastructure.data_sources.api_football import APIFootballConfig, APIFootballSource
from fixturecast.infrastructure.database.database_service import DatabaseService
from fixturecast.infrastructure.repositories.persistence_repository import PersistenceRepository

from test_api_football import STATISTICS_PAYLOAD, fixture_payload, standing_row, standings_payload


class FakeAPIFootball:
    """Routes API-Football endpoints to canned payloads."""

    def __init__(self, failing_statistics_teams=(), failing_standings=False, upcoming=()):
        self.failing_statistics_teams = {str(t) for t in failing_statistics_teams}
        self.failing_standings = failing_standings
        self.upcoming = list(upcoming)
        self.paths = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = request.url.params
        self.paths.append(path)

        if path == "/teams/statistics":
            if params["team"] in self.failing_statistics_teams:
                return httpx.Response(500, json={})
            return self.ok(STATISTICS_PAYLOAD)
        if path == "/standings":
            if self.failing_standings:
                return httpx.Response(500, json={})
            return self.ok(standings_payload([
                standing_row(1, 1, "Arsenal", 16),
                standing_row(2, 2, "Chelsea", 10),
            ]))
        if path == "/teams":
            return self.ok([
                {"team": {"id": 1, "name": "Arsenal"}},
                {"team": {"id": 2, "name": "Chelsea"}},
            ])
        if path == "/fixtures" and "from" in params:
            return self.ok(self.upcoming)
        if path == "/fixtures":
            return self.ok([fixture_payload(10, 1, 2, 2, 1)])
        return httpx.Response(404, json={})

    @staticmethod
    def ok(response):
        return httpx.Response(200, json={"errors": [], "response": response})


@pytest.fixture
def store():
    repo = PersistenceRepository(DatabaseService("sqlite://"))
    repo.create_tables()
    return repo


def make_service(handler, store, daily_limit=100, reserve=25):
    source = APIFootballSource(
        APIFootballConfig(api_key="test-key", base_url="https://api.test", daily_limit=daily_limit),
        transport=httpx.MockTransport(handler),
    )
    return DataSyncService(source, store, statistics_reserve=reserve, pause_seconds=0)


class TestDailySync:
    def test_daily_sync_fills_the_store(self, store):
        handler = FakeAPIFootball()
        service = make_service(handler, store)

        report = asyncio.run(service.daily_sync(7))

        assert report.teams == 2
        assert report.fixtures == 1
        assert report.statistics == 6
        assert report.errors == []
        assert report.standings == 2
        assert report.remaining_requests == 100 - 10
        assert handler.paths[:3] == ["/fixtures", "/teams", "/fixtures"]

        fixture = asyncio.run(store.get_fixture_by_id(10))
        assert fixture.home_team.name == "Arsenal"
        assert len(asyncio.run(store.get_recent_completed_matches(1))) == 1
        assert [s.team.name for s in asyncio.run(store.get_standings())] == ["Arsenal", "Chelsea"]

    def test_known_teams_are_not_refetched(self, store):
        asyncio.run(store.save_teams([Team(id=1, name="Arsenal")]))
        handler = FakeAPIFootball()

        report = asyncio.run(make_service(handler, store).daily_sync(7))

        assert report.teams == 0
        assert "/teams" not in handler.paths


class TestStatisticsSync:
    def test_stops_at_request_reserve(self, store):
        asyncio.run(store.save_teams([Team(id=1, name="Arsenal"), Team(id=2, name="Chelsea")]))
        service = make_service(FakeAPIFootball(), store, daily_limit=10, reserve=8)

        report = asyncio.run(service.sync_team_statistics(seasons=[2024, 2023]))

        assert report.statistics == 2
        assert report.remaining_requests == 8

    def test_failing_team_is_skipped(self, store):
        asyncio.run(store.save_teams([Team(id=1, name="Arsenal"), Team(id=2, name="Chelsea")]))
        service = make_service(FakeAPIFootball(failing_statistics_teams=[1]), store)

        report = asyncio.run(service.sync_team_statistics(seasons=[2024]))

        assert report.statistics == 1
        assert len(report.errors) == 1
        assert asyncio.run(store.get_season_statistics(2, 2024)).played == 10
        assert asyncio.run(store.get_season_statistics(1, 2024)) is None


class TestStandingsSync:
    def test_sync_standings_replaces_the_table(self, store):
        service = make_service(FakeAPIFootball(), store)

        assert asyncio.run(service.sync_standings(2024)) == 2
        assert asyncio.run(service.sync_standings(2024)) == 2

        standings = asyncio.run(store.get_standings(2024))
        assert [(s.rank, s.team.id, s.points) for s in standings] == [(1, 1, 16), (2, 2, 10)]

    def test_failing_standings_do_not_stop_the_daily_sync(self, store):
        handler = FakeAPIFootball(failing_standings=True)

        report = asyncio.run(make_service(handler, store).daily_sync(7))

        assert report.standings == 0
        assert report.errors == ["standings: API-Football HTTP error: 500"]
        assert report.statistics == 6
