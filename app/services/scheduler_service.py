import logging
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.services.playlist_import_service import refresh_all_playlists


logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "playlist_refresh"


class PlaylistScheduler:
    """Scheduler for automatic playlist refresh"""

    def __init__(self):
        self.scheduler: AsyncIOScheduler | None = None

    async def _refresh_job(self) -> None:
        """Background job that refreshes every URL-backed playlist"""
        logger.info("Scheduled playlist refresh triggered")
        try:
            result = await refresh_all_playlists()
            if "error" in result:
                logger.error("Scheduled refresh failed: %s", result["error"])
            elif result.get("playlists_failed"):
                logger.warning(
                    "Scheduled refresh finished with %s failed playlist(s)",
                    result["playlists_failed"],
                )
        except Exception as e:
            logger.error("Exception in scheduled refresh: %s", e, exc_info=True)

    def start(self) -> None:
        """Start the scheduler with the playlist refresh job"""
        if not settings.playlist_refresh_enabled:
            logger.info("Scheduled playlist refresh disabled - scheduler not started")
            return

        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        try:
            trigger = CronTrigger.from_crontab(settings.playlist_refresh_cron)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", settings.playlist_refresh_cron, exc)
            raise

        self.scheduler = AsyncIOScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._refresh_job,
            trigger=trigger,
            id=REFRESH_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=settings.playlist_refresh_misfire_grace_sec
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next refresh: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")
        self.scheduler = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled refresh time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(REFRESH_JOB_ID)
        return job.next_run_time if job else None


playlist_scheduler = PlaylistScheduler()
