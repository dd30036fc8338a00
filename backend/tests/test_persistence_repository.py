"""
Tests for the SQL persistence repository on an in-memory SQLite database.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from fixturecast.domain.entities.entities import (
    Fixture,
    MatchOutcome,
    PredictionFactors,
    PredictionRecord,
    SeasonStatistics,
    Standing,
    Team,
)
from fixturecast.infrastructure.database.database_service import DatabaseService
from fixturecast.api import dependencies
from fixturecast.infrastructure.repositories import persistence_repository
from fixturecast.infrastructure.repositories.persistence_repository import PersistenceRepository

from conftest import make_fixture, make_team


@pytest.fixture
def store():
    db_service = DatabaseService("sqlite://")
    repo = PersistenceRepository(db_service)
    repo.create_tables()
    return repo


def run(coro):
    return asyncio.run(coro)


class TestDatabaseService:
    def test_env_url_is_used(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        assert DatabaseService().db_url == "sqlite://"

    def test_store_is_provided_by_the_cached_dependency(self, monkeypatch):
        monkeypatch.setattr(persistence_repository, "get_database_service", lambda: DatabaseService("sqlite://"))
        dependencies.get_persistence_repository.cache_clear()
        try:
            store = dependencies.get_persistence_repository()
            assert store is dependencies.get_persistence_repository()
            assert store.db_service.db_url == "sqlite://"
        finally:
            dependencies.get_persistence_repository.cache_clear()

        assert not hasattr(persistence_repository, "get_persistence_repository")


class TestTeamsAndFixtures:
    def test_save_and_read_teams(self, store):
        run(store.save_teams([Team(id=2, name="Brentford"), Team(id=1, name="Arsenal", code="ARS")]))

        teams = run(store.get_teams())
        assert [t.name for t in teams] == ["Arsenal", "Brentford"]
        assert run(store.get_team_by_id(1)).code == "ARS"
        assert run(store.get_team_by_id(99)) is None

    def test_save_teams_updates_existing(self, store):
        run(store.save_teams([Team(id=1, name="Old Name")]))
        run(store.save_teams([Team(id=1, name="New Name")]))
        assert run(store.get_team_by_id(1)).name == "New Name"

    def test_save_fixtures_creates_missing_teams(self, store):
        saved = run(store.save_fixtures([make_fixture(10, 1, 2, 2, 1)]))

        assert saved == 1
        fixture = run(store.get_fixture_by_id(10))
        assert fixture.home_team.name == "Team 1"
        assert fixture.outcome == MatchOutcome.HOME_WIN
        assert fixture.match_date.tzinfo is not None
        assert len(run(store.get_teams())) == 2

    def test_fixture_update_replaces_result(self, store):
        run(store.save_fixtures([make_fixture(10, 1, 2)]))
        run(store.save_fixtures([make_fixture(10, 1, 2, 0, 3)]))
        assert run(store.get_fixture_by_id(10)).outcome == MatchOutcome.AWAY_WIN

    def test_recent_completed_matches_most_recent_first(self, store):
        run(store.save_fixtures([
            make_fixture(1, 1, 2, 1, 0, days_ago=10),
            make_fixture(2, 3, 1, 2, 2, days_ago=5),
            make_fixture(3, 1, 4, 0, 1, days_ago=1),
            make_fixture(4, 1, 5, days_ago=-2),  # scheduled
            make_fixture(5, 6, 7, 1, 0, days_ago=1),  # other teams
        ]))

        recent = run(store.get_recent_completed_matches(1, 5))
        assert [f.id for f in recent] == [3, 2, 1]
        assert [f.id for f in run(store.get_recent_completed_matches(1, 2))] == [3, 2]

    def test_head_to_head_in_both_orientations(self, store):
        run(store.save_fixtures([
            make_fixture(1, 1, 2, 1, 0, days_ago=10),
            make_fixture(2, 2, 1, 2, 2, days_ago=5),
            make_fixture(3, 1, 3, 0, 1, days_ago=1),
        ]))

        meetings = run(store.get_head_to_head_matches(2, 1))
        assert [f.id for f in meetings] == [2, 1]
        assert len(run(store.get_head_to_head_matches(1, 2, limit=1))) == 1

    def test_upcoming_fixtures_window(self, store):
        now = datetime.now(timezone.utc)

        def scheduled(fixture_id, delta):
            return Fixture(
                id=fixture_id,
                home_team=make_team(1),
                away_team=make_team(2),
                match_date=now + delta,
                status="NS",
            )

        run(store.save_fixtures([
            scheduled(1, timedelta(days=3)),
            scheduled(2, timedelta(days=1)),
            scheduled(3, timedelta(days=10)),
            scheduled(4, timedelta(days=-1)),
        ]))

        upcoming = run(store.get_upcoming_fixtures(7))
        assert [f.id for f in upcoming] == [2, 1]

    def test_completed_fixtures(self, store):
        run(store.save_fixtures([
            make_fixture(1, 1, 2, 1, 0, days_ago=3),
            make_fixture(2, 3, 4, 0, 0, days_ago=1),
            make_fixture(3, 5, 6),
        ]))
        assert [f.id for f in run(store.get_completed_fixtures(10))] == [2, 1]


class TestSeasonStatistics:
    def test_statistics_are_replaced_as_a_whole(self, store):
        run(store.save_teams([make_team(1)]))
        run(store.save_season_statistics(SeasonStatistics(team_id=1, season=2024, played=5, wins=5, form="WWWWW")))
        run(store.save_season_statistics(SeasonStatistics(team_id=1, season=2024, played=6, wins=5, losses=1)))

        stats = run(store.get_season_statistics(1, 2024))
        assert stats.played == 6
        assert stats.losses == 1
        assert stats.form == ""
        assert stats.updated_at is not None
        assert run(store.get_season_statistics(1, 2023)) is None


class TestStandings:
    @staticmethod
    def table(season, *entries):
        return [
            Standing(team=Team(id=team_id, name=name), season=season, league_id=39, rank=rank, points=points)
            for rank, team_id, name, points in entries
        ]

    def test_standings_by_rank_with_new_teams(self, store):
        table = self.table(2024, (2, 50, "Manchester City", 13), (1, 40, "Liverpool", 15))
        saved = run(store.save_standings(table))

        standings = run(store.get_standings(2024))
        assert saved == 2
        assert [(s.rank, s.team.name, s.points) for s in standings] == [
            (1, "Liverpool", 15),
            (2, "Manchester City", 13),
        ]
        assert run(store.get_team_by_id(40)).name == "Liverpool"

    def test_resync_replaces_the_season_table(self, store):
        run(store.save_standings(self.table(2024, (1, 40, "Liverpool", 15), (2, 50, "Manchester City", 13))))
        run(store.save_standings(self.table(2024, (1, 50, "Manchester City", 16), (2, 40, "Liverpool", 15))))

        standings = run(store.get_standings(2024))
        assert [(s.rank, s.team.id) for s in standings] == [(1, 50), (2, 40)]

    def test_latest_season_is_the_default(self, store):
        run(store.save_standings(self.table(2023, (1, 40, "Liverpool", 80))))
        run(store.save_standings(self.table(2024, (1, 50, "Manchester City", 16))))

        assert [s.season for s in run(store.get_standings())] == [2024]
        assert [s.points for s in run(store.get_standings(2023))] == [80]

    def test_no_standings(self, store):
        assert run(store.get_standings()) == []
        assert run(store.get_standings(2024)) == []


class TestHealth:
    def test_health_and_counts(self, store):
        run(store.save_fixtures([make_fixture(10, 1, 2, 2, 1), make_fixture(11, 2, 3)]))

        assert store.health_check() is True
        assert store.count_teams() == 3
        assert store.count_fixtures() == 2

    def test_failing_database_reports_unhealthy(self, store):
        store.db_service.get_session = lambda: BrokenSession()
        assert store.health_check() is False


class BrokenSession:
    def execute(self, statement):
        raise RuntimeError("database unreachable")

    def close(self):
        pass


class TestPredictions:
    def test_save_prediction_upserts_per_fixture(self, store):
        factors = PredictionFactors(60.0, 40.0, 50.0, 15.0, 55.0)
        first = PredictionRecord(
            fixture_id=900, home_team_id=1, away_team_id=2,
            outcome=MatchOutcome.DRAW, confidence=50, factors=factors,
            created_at=datetime(2024, 9, 1, tzinfo=timezone.utc),
        )
        second = PredictionRecord(
            fixture_id=900, home_team_id=1, away_team_id=2,
            outcome=MatchOutcome.HOME_WIN, confidence=66, factors=factors,
            created_at=datetime(2024, 9, 2, tzinfo=timezone.utc),
        )

        run(store.save_prediction(first))
        run(store.save_prediction(second))

        stored = run(store.get_prediction_by_fixture_id(900))
        assert stored.outcome == MatchOutcome.HOME_WIN
        assert stored.confidence == 66
        assert stored.factors == factors
        assert stored.created_at == datetime(2024, 9, 2, tzinfo=timezone.utc)
        assert len(run(store.get_predictions())) == 1

    def test_predictions_newest_first(self, store):
        for fixture_id, day in ((1, 1), (2, 3), (3, 2)):
            run(store.save_prediction(PredictionRecord(
                fixture_id=fixture_id, home_team_id=1, away_team_id=2,
                outcome=MatchOutcome.DRAW, confidence=40,
                factors=PredictionFactors.neutral(),
                created_at=datetime(2024, 9, day, tzinfo=timezone.utc),
            )))

        assert [r.fixture_id for r in run(store.get_predictions())] == [2, 3, 1]
        assert run(store.get_prediction_by_fixture_id(42)) is None
