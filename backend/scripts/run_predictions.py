#!/usr/bin/env python3
"""
Prediction Worker Script
Runs the daily pipeline once: sync data from API-Football, predict the
upcoming fixtures and store the results in the database.
Designed to run from cron or locally for testing.
"""
import sys
import os
import asyncio
import logging
from datetime import datetime

# Add parent directory to path to import the fixturecast package
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scripts.worker_config import (  # noqa: E402
    DATABASE_URL, LOG_LEVEL, LOG_FORMAT, PREDICTION_DAYS, SKIP_SYNC,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format=LOG_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


async def main():
    """Main worker execution function."""
    start_time = datetime.now()
    logger.info("=" * 80)
    logger.info(f"Starting prediction worker at {start_time}")
    logger.info(f"Database: {DATABASE_URL.split('@')[-1] if '@' in DATABASE_URL else 'SQLite'}")
    logger.info("=" * 80)

    try:
        # Import dependencies after logging is configured
        from fixturecast.api.dependencies import get_api_football, get_persistence_repository
        from fixturecast.application.services.data_sync_service import DataSyncService
        from fixturecast.application.use_cases.use_cases import (
            GetPredictionStatsUseCase,
            PredictUpcomingFixturesUseCase,
        )
        from fixturecast.domain.services.prediction_engine import PredictionEngine

        store = get_persistence_repository()
        source = get_api_football()

        logger.info("Creating/verifying database tables...")
        store.create_tables()

        # Step 1: Sync
        logger.info("STEP 1/3: Syncing data from API-Football")
        if SKIP_SYNC:
            logger.info("Sync skipped (SKIP_SYNC set)")
        elif not source.is_configured:
            logger.warning("API_FOOTBALL_KEY not set, predicting from stored data only")
        else:
            report = await DataSyncService(source, store).daily_sync(PREDICTION_DAYS)
            logger.info(
                f"Synced {report.teams} teams, {report.fixtures} fixtures, {report.standings} standings rows, "
                f"{report.statistics} statistics ({len(report.errors)} errors)"
            )

        # Step 2: Predictions
        logger.info(f"STEP 2/3: Predicting fixtures of the next {PREDICTION_DAYS} days")
        engine = PredictionEngine(store)
        upcoming = await PredictUpcomingFixturesUseCase(store, engine).execute(PREDICTION_DAYS)
        for item in upcoming.data:
            logger.info(
                f"   {item.fixture.home_team.name} vs {item.fixture.away_team.name}: "
                f"{item.prediction.prediction} ({item.prediction.confidence}%)"
            )

        # Step 3: Summary
        logger.info("STEP 3/3: Summary")
        stats = await GetPredictionStatsUseCase(store).execute()

        duration = (datetime.now() - start_time).total_seconds()
        logger.info("=" * 80)
        logger.info("WORKER COMPLETED SUCCESSFULLY")
        logger.info(f"Duration: {duration:.2f} seconds")
        logger.info(f"Predictions saved this run: {upcoming.count}")
        logger.info(
            f"Stored predictions: {stats.total_predictions} "
            f"(home {stats.home_win_percentage}%, draw {stats.draw_percentage}%, "
            f"away {stats.away_win_percentage}%, mean confidence {stats.average_confidence})"
        )
        logger.info("=" * 80)

        return 0  # Success

    except Exception as e:
        logger.error("WORKER FAILED")
        logger.error(f"Error: {e}", exc_info=True)
        return 1  # Failure


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
