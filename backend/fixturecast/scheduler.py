import os
import logging
import asyncio
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from fixturecast.utils.time_utils import APP_TZ, get_current_time

logger = logging.getLogger(__name__)

DAILY_JOB_ID = "daily_sync_and_predict"


class PredictionScheduler:
    """Runs the daily data sync followed by the upcoming-prediction refresh."""

    def __init__(self, sync_hour: int = None, prediction_days: int = 7):
        self.scheduler = AsyncIOScheduler(timezone=APP_TZ)
        self.sync_hour = sync_hour if sync_hour is not None else int(os.getenv("SYNC_HOUR", "6"))
        self.prediction_days = prediction_days
        self._job_in_progress = False

    async def run_daily_job(self):
        """
        Execute the daily pipeline.
        1. Sync teams, fixtures and statistics from API-Football
        2. Predict and persist upcoming fixtures
        """
        if self._job_in_progress:
            logger.warning("Job already in progress, skipping scheduled run")
            return

        try:
            self._job_in_progress = True
            logger.info(f"Starting daily job at {get_current_time()}")

            # Dynamic imports keep the scheduler importable without a database
            from fixturecast.api.dependencies import get_api_football, get_persistence_repository
            from fixturecast.application.services.data_sync_service import DataSyncService
            from fixturecast.application.use_cases.use_cases import PredictUpcomingFixturesUseCase
            from fixturecast.domain.services.prediction_engine import PredictionEngine

            store = get_persistence_repository()
            source = get_api_football()

            logger.info("Step 1/2: Syncing data...")
            if source.is_configured:
                await DataSyncService(source, store).daily_sync(self.prediction_days)
            else:
                logger.warning("API-Football not configured, skipping data sync")

            logger.info("Step 2/2: Refreshing upcoming predictions...")
            use_case = PredictUpcomingFixturesUseCase(store, PredictionEngine(store))
            result = await use_case.execute(self.prediction_days)
            logger.info(f"Daily job finished. {result.count} predictions refreshed")

        except Exception as e:
            logger.error(f"Error during daily job: {str(e)}", exc_info=True)
        finally:
            self._job_in_progress = False

    def start(self, run_immediate: bool = False):
        """
        Start the scheduler with the daily job at SYNC_HOUR in the app timezone.

        Args:
            run_immediate: If True, triggers the job immediately in the background.
        """
        try:
            self.scheduler.add_job(
                self.run_daily_job,
                trigger=CronTrigger(hour=self.sync_hour, minute=0, timezone=APP_TZ),
                id=DAILY_JOB_ID,
                name=f"Daily sync and predictions at {self.sync_hour:02d}:00",
                replace_existing=True,
                max_instances=1,
            )

            self.scheduler.start()
            logger.info(f"Scheduler started. Daily job scheduled for {self.sync_hour:02d}:00 {APP_TZ.zone}")

            if run_immediate:
                logger.info("Triggering immediate job execution as requested...")
                asyncio.create_task(self.run_daily_job())

            job = self.scheduler.get_job(DAILY_JOB_ID)
            if job:
                logger.info(f"Next scheduled run: {job.next_run_time}")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {str(e)}", exc_info=True)

    def shutdown(self):
        """Shutdown the scheduler gracefully."""
        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown successfully")
        except Exception as e:
            logger.error(f"Error shutting down scheduler: {str(e)}")


# Global scheduler instance
_scheduler_instance = None


def get_scheduler() -> PredictionScheduler:
    """Get or create the global scheduler instance."""
    global _scheduler_instance
    if _scheduler_instance is None:
        _scheduler_instance = PredictionScheduler()
    return _scheduler_instance
