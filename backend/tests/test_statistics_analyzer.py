"""
Unit Tests for StatisticsAnalyzer

Covers per-season metrics, the weighted multi-season blend and the
failure handling of the repository-backed analysis.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from fixturecast.domain.entities.entities import SeasonStatistics, StatisticalAnalysis
from fixturecast.domain.services.statistics_analyzer import (
    StatisticsAnalyzer,
    get_analysis_seasons,
)

from conftest import REFERENCE_NOW


def strong_season(team_id: int = 1, season: int = 2024) -> SeasonStatistics:
    return SeasonStatistics(
        team_id=team_id, season=season, played=10, wins=6, draws=2, losses=2,
        goals_for=20, goals_against=10,
        home_wins=4, home_draws=1, home_losses=0,
        away_wins=2, away_draws=1, away_losses=2,
        clean_sheets=4, failed_to_score=1,
    )


def poor_season(team_id: int = 1, season: int = 2023) -> SeasonStatistics:
    return SeasonStatistics(
        team_id=team_id, season=season, played=10, wins=0, draws=0, losses=10,
        goals_for=10, goals_against=20,
        home_wins=0, home_draws=0, home_losses=5,
        away_wins=0, away_draws=0, away_losses=5,
        clean_sheets=0, failed_to_score=5,
    )


class TestSeasonMetrics:
    def test_metrics_of_one_season(self):
        metrics = StatisticsAnalyzer.calculate_season_metrics(strong_season())

        assert metrics.home_advantage == pytest.approx(13 / 15 * 100)
        assert metrics.goal_differential == 10
        assert metrics.clean_sheet_ratio == pytest.approx(40)
        assert metrics.scoring_consistency == pytest.approx(90)
        assert metrics.defensive_strength == pytest.approx(75)
        assert metrics.attacking_strength == pytest.approx(80)

    def test_strengths_are_clamped(self):
        stats = SeasonStatistics(team_id=1, season=2024, played=2, goals_for=10, goals_against=12)
        metrics = StatisticsAnalyzer.calculate_season_metrics(stats)
        assert metrics.attacking_strength == 100.0
        assert metrics.defensive_strength == 0.0

    def test_no_home_games_gives_zero_home_advantage(self):
        stats = SeasonStatistics(team_id=1, season=2024, played=3, away_wins=3, goals_for=6)
        metrics = StatisticsAnalyzer.calculate_season_metrics(stats)
        assert metrics.home_advantage == 0.0

    def test_season_without_matches_has_no_metrics(self):
        assert StatisticsAnalyzer.calculate_season_metrics(SeasonStatistics(team_id=1, season=2024)) is None


class TestBlend:
    def test_missing_season_does_not_dilute_weights(self):
        analysis = StatisticsAnalyzer.blend([(strong_season(), 0.5), (poor_season(), 0.3)])

        assert analysis.home_advantage == pytest.approx(54.1667, abs=1e-3)
        assert analysis.goal_differential == pytest.approx(2.5)
        assert analysis.clean_sheet_ratio == pytest.approx(25)
        assert analysis.scoring_consistency == pytest.approx(75)
        assert analysis.defensive_strength == pytest.approx(65.625)
        assert analysis.attacking_strength == pytest.approx(65)
        assert analysis.seasons_used == (2024, 2023)

    def test_single_season_equals_its_metrics(self):
        analysis = StatisticsAnalyzer.blend([(strong_season(), 0.2)])
        assert analysis.attacking_strength == pytest.approx(80)
        assert analysis.seasons_used == (2024,)

    def test_no_data_is_neutral(self):
        assert StatisticsAnalyzer.blend([]) == StatisticalAnalysis.neutral()


class TestAnalyze:
    def test_analyze_blends_available_seasons(self, repository):
        repository.add_statistics(strong_season(season=2024))
        repository.add_statistics(poor_season(season=2023))

        analysis = asyncio.run(StatisticsAnalyzer(repository).analyze(1, REFERENCE_NOW))

        assert analysis.seasons_used == (2024, 2023)
        assert analysis.attacking_strength == pytest.approx(65)

    def test_analyze_without_data_is_neutral(self, repository):
        analysis = asyncio.run(StatisticsAnalyzer(repository).analyze(1, REFERENCE_NOW))
        assert analysis == StatisticalAnalysis.neutral()

    def test_failing_repository_is_neutral(self, repository):
        repository.add_statistics(strong_season())
        repository.fail_statistics_for.add(1)
        analysis = asyncio.run(StatisticsAnalyzer(repository).analyze(1, REFERENCE_NOW))
        assert analysis == StatisticalAnalysis.neutral()

    def test_failing_season_is_skipped_and_weights_renormalized(self, repository):
        repository.add_statistics(strong_season(season=2024))
        repository.add_statistics(poor_season(season=2023))
        repository.fail_statistics_seasons.add((1, 2024))

        analysis = asyncio.run(StatisticsAnalyzer(repository).analyze(1, REFERENCE_NOW))

        assert analysis.seasons_used == (2023,)
        assert analysis.attacking_strength == pytest.approx(40)
        assert analysis.defensive_strength == pytest.approx(50)
        assert analysis.goal_differential == pytest.approx(-10)
        assert analysis.clean_sheet_ratio == pytest.approx(0)

    def test_older_season_stands_in_for_a_failing_current_one(self, repository):
        repository.add_statistics(strong_season(season=2023))
        repository.fail_statistics_seasons.add((1, 2024))

        analysis = asyncio.run(StatisticsAnalyzer(repository).analyze(1, REFERENCE_NOW))

        assert analysis.seasons_used == (2023,)
        assert analysis.attacking_strength == pytest.approx(80)


class TestAnalysisSeasons:
    def test_seasons_resolved_from_reference_time(self):
        seasons = get_analysis_seasons(REFERENCE_NOW)
        assert [(s.season, s.weight) for s in seasons] == [(2024, 0.5), (2023, 0.3), (2022, 0.2)]

    def test_spring_belongs_to_previous_season(self):
        seasons = get_analysis_seasons(datetime(2025, 3, 1, tzinfo=timezone.utc))
        assert seasons[0].season == 2024
