"""
Statistics Analyzer Service

Handles calculation of team strength profiles from multi-season aggregate statistics.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from fixturecast.domain.constants import (
    ANALYSIS_SEASON_WEIGHTS,
    ATTACKING_GOALS_SCALE,
    DEFENSIVE_GOALS_SCALE,
)
from fixturecast.domain.entities.entities import SeasonStatistics, StatisticalAnalysis
from fixturecast.domain.repositories.repositories import FootballDataRepository
from fixturecast.domain.services.form_analyzer import clamp
from fixturecast.domain.value_objects.value_objects import AnalysisSeason
from fixturecast.utils.time_utils import get_current_season

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeasonMetrics:
    """Strength metrics computed from a single season."""
    home_advantage: float
    goal_differential: float
    clean_sheet_ratio: float
    scoring_consistency: float
    defensive_strength: float
    attacking_strength: float


def get_analysis_seasons(
    now: Optional[datetime] = None,
    table: Sequence[tuple[int, float]] = ANALYSIS_SEASON_WEIGHTS,
) -> list[AnalysisSeason]:
    """Resolve the (offset, weight) table into concrete seasons for today."""
    current = get_current_season(now)
    return [AnalysisSeason(season=current - offset, weight=weight) for offset, weight in table]


class StatisticsAnalyzer:
    """
    Blends per-season statistics into one StatisticalAnalysis.

    Every season is looked up independently; a missing or failing season is
    skipped and the remaining weights are renormalized.
    """

    def __init__(
        self,
        repository: FootballDataRepository,
        season_table: Sequence[tuple[int, float]] = ANALYSIS_SEASON_WEIGHTS,
    ):
        self.repository = repository
        self.season_table = tuple(season_table)

    @staticmethod
    def calculate_season_metrics(stats: SeasonStatistics) -> Optional[SeasonMetrics]:
        """
        Compute the metrics of one season.

        Returns None when the season has no played matches.
        """
        if stats is None or stats.played <= 0:
            return None

        played = stats.played
        home_games = stats.home_played
        if home_games > 0:
            home_advantage = (stats.home_wins * 3 + stats.home_draws) / (home_games * 3) * 100
        else:
            home_advantage = 0.0

        return SeasonMetrics(
            home_advantage=home_advantage,
            goal_differential=float(stats.goal_difference),
            clean_sheet_ratio=stats.clean_sheets / played * 100,
            scoring_consistency=(played - stats.failed_to_score) / played * 100,
            defensive_strength=clamp(100 - (stats.goals_against / played * DEFENSIVE_GOALS_SCALE)),
            attacking_strength=clamp(stats.goals_for / played * ATTACKING_GOALS_SCALE),
        )

    @classmethod
    def blend(
        cls,
        seasons: Sequence[tuple[SeasonStatistics, float]],
    ) -> StatisticalAnalysis:
        """
        Weight-normalized blend of the seasons that actually carry data.

        Args:
            seasons: (statistics, weight) pairs

        Returns:
            StatisticalAnalysis, neutral when no season contributed
        """
        totals = {
            "home_advantage": 0.0,
            "goal_differential": 0.0,
            "clean_sheet_ratio": 0.0,
            "scoring_consistency": 0.0,
            "defensive_strength": 0.0,
            "attacking_strength": 0.0,
        }
        total_weight = 0.0
        used: list[int] = []

        for stats, weight in seasons:
            metrics = cls.calculate_season_metrics(stats)
            if metrics is None:
                continue
            for key in totals:
                totals[key] += getattr(metrics, key) * weight
            total_weight += weight
            used.append(stats.season)

        if total_weight == 0:
            return StatisticalAnalysis.neutral()

        return StatisticalAnalysis(
            home_advantage=clamp(totals["home_advantage"] / total_weight),
            goal_differential=totals["goal_differential"] / total_weight,
            clean_sheet_ratio=clamp(totals["clean_sheet_ratio"] / total_weight),
            scoring_consistency=clamp(totals["scoring_consistency"] / total_weight),
            defensive_strength=clamp(totals["defensive_strength"] / total_weight),
            attacking_strength=clamp(totals["attacking_strength"] / total_weight),
            seasons_used=tuple(used),
        )

    async def _fetch_season(self, team_id: int, season: int) -> Optional[SeasonStatistics]:
        try:
            stats = await self.repository.get_season_statistics(team_id, season)
        except Exception as e:
            logger.warning(f"No statistics for team {team_id} in season {season}: {e}")
            return None
        if stats is None:
            logger.debug(f"No statistics stored for team {team_id} in season {season}")
        return stats

    async def analyze(
        self,
        team_id: int,
        now: Optional[datetime] = None,
    ) -> StatisticalAnalysis:
        """Fetch all configured seasons and blend them. Never raises."""
        seasons = get_analysis_seasons(now, self.season_table)
        results = await asyncio.gather(
            *[self._fetch_season(team_id, s.season) for s in seasons]
        )

        available = [
            (stats, s.weight)
            for stats, s in zip(results, seasons)
            if stats is not None
        ]
        analysis = self.blend(available)
        if not analysis.seasons_used:
            logger.info(f"No season data for team {team_id}, using neutral statistics")
        return analysis
