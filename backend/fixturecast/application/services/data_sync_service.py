"""
Data Sync Service

Pulls teams, fixtures, league standings and per-season team statistics from
API-Football into the local store, spending the daily request budget in
priority order.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from fixturecast.domain.exceptions import DataSourceException
from fixturecast.domain.services.statistics_analyzer import get_analysis_seasons
from fixturecast.infrastructure.data_sources.api_football import APIFootballSource
from fixturecast.infrastructure.repositories.persistence_repository import PersistenceRepository
from fixturecast.utils.time_utils import get_current_season

logger = logging.getLogger(__name__)

# Requests kept back for on-demand use after the statistics sync
STATISTICS_REQUEST_RESERVE = 25
STATISTICS_REQUEST_PAUSE_SECONDS = 0.2


@dataclass
class SyncReport:
    """Counts of what one sync run wrote."""
    teams: int = 0
    fixtures: int = 0
    statistics: int = 0
    standings: int = 0
    errors: list[str] = field(default_factory=list)
    remaining_requests: Optional[int] = None


class DataSyncService:
    """
    Copies API-Football data into the persistence store.

    Every step propagates DataSourceException, except that daily_sync records
    a failing standings refresh and the statistics loop skips a failing team.
    """

    def __init__(
        self,
        source: APIFootballSource,
        store: PersistenceRepository,
        statistics_reserve: int = STATISTICS_REQUEST_RESERVE,
        pause_seconds: float = STATISTICS_REQUEST_PAUSE_SECONDS,
    ):
        self.source = source
        self.store = store
        self.statistics_reserve = statistics_reserve
        self.pause_seconds = pause_seconds

    async def sync_teams(self, season: Optional[int] = None) -> int:
        teams = await self.source.get_teams(season)
        saved = await self.store.save_teams(teams)
        logger.info(f"Synced {saved} teams")
        return saved

    async def sync_season_fixtures(self, season: Optional[int] = None) -> int:
        """All fixtures of a season, played and scheduled."""
        fixtures = await self.source.get_season_fixtures(season)
        saved = await self.store.save_fixtures(fixtures)
        logger.info(f"Synced {saved} fixtures for season {season or get_current_season()}")
        return saved

    async def sync_upcoming_fixtures(self, days: int = 7) -> int:
        fixtures = await self.source.get_upcoming_fixtures(days)
        saved = await self.store.save_fixtures(fixtures)
        logger.info(f"Synced {saved} upcoming fixtures (next {days} days)")
        return saved

    async def sync_standings(self, season: Optional[int] = None) -> int:
        """Replace the stored league table of a season."""
        standings = await self.source.get_standings(season)
        saved = await self.store.save_standings(standings)
        logger.info(f"Synced {saved} standings rows for season {season or get_current_season()}")
        return saved

    async def sync_team_statistics(self, seasons: Optional[list[int]] = None) -> SyncReport:
        """
        Refresh the statistics of every stored team for the analysis seasons.

        Stops early when only the request reserve is left.
        """
        report = SyncReport()
        seasons = seasons or [s.season for s in get_analysis_seasons()]
        teams = await self.store.get_teams()

        for team in teams:
            for season in seasons:
                if self.source.get_remaining_requests() <= self.statistics_reserve:
                    logger.warning(
                        f"Only {self.source.get_remaining_requests()} requests left, stopping statistics sync"
                    )
                    report.remaining_requests = self.source.get_remaining_requests()
                    return report
                try:
                    stats = await self.source.get_season_statistics(team.id, season)
                    if stats is not None:
                        await self.store.save_season_statistics(stats)
                        report.statistics += 1
                except DataSourceException as e:
                    logger.error(f"Error syncing statistics for {team.name} ({season}): {e}")
                    report.errors.append(f"{team.id}/{season}: {e}")

                if self.pause_seconds > 0:
                    await asyncio.sleep(self.pause_seconds)

        report.remaining_requests = self.source.get_remaining_requests()
        logger.info(f"Synced {report.statistics} season statistics records")
        return report

    async def daily_sync(self, days: int = 7) -> SyncReport:
        """
        Daily sync in priority order.

        1. Upcoming fixtures
        2. Teams, only when the store has none
        3. Current season fixtures (results feed form and head-to-head)
        4. League standings
        5. Team statistics, while the budget allows
        """
        logger.info(f"Starting daily sync. API requests remaining: {self.source.get_remaining_requests()}")
        report = SyncReport()

        report.fixtures += await self.sync_upcoming_fixtures(days)

        if not await self.store.get_teams():
            report.teams = await self.sync_teams()

        report.fixtures += await self.sync_season_fixtures()

        try:
            report.standings = await self.sync_standings()
        except DataSourceException as e:
            logger.error(f"Error syncing standings: {e}")
            report.errors.append(f"standings: {e}")

        stats_report = await self.sync_team_statistics()
        report.statistics = stats_report.statistics
        report.errors.extend(stats_report.errors)
        report.remaining_requests = self.source.get_remaining_requests()

        logger.info(
            f"Daily sync completed: {report.teams} teams, {report.fixtures} fixtures, "
            f"{report.standings} standings rows, "
            f"{report.statistics} statistics, {len(report.errors)} errors. "
            f"API requests used today: {self.source.request_count}"
        )
        return report
