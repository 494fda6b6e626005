import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from xmltv_bridge.services.guide_service import GuideService


logger = logging.getLogger(__name__)

JOB_ID = "guide_warm"


class GuideWarmScheduler:
    """Rebuilds the default guide on a cron so requests hit a warm cache"""

    def __init__(self, guide_service: GuideService, cron: str | None, misfire_grace_sec: int = 300):
        self.guide_service = guide_service
        self.cron = cron
        self.misfire_grace_sec = misfire_grace_sec
        self.scheduler: AsyncIOScheduler | None = None

    async def _warm_job(self) -> None:
        """Background job that rebuilds the cached guide"""
        logger.info("Scheduled guide warm-up triggered")
        try:
            document = await self.guide_service.refresh()
            if document.degraded:
                logger.error("Scheduled warm-up produced an empty guide")
        except Exception as e:
            logger.error(f"Exception in scheduled warm-up: {e}", exc_info=True)

    def start(self) -> None:
        """Start the scheduler if a warm-up cron is configured"""
        if not self.cron:
            logger.info("Guide warm-up disabled (no cron configured)")
            return

        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        try:
            trigger = CronTrigger.from_crontab(self.cron)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", self.cron, exc)
            raise

        self.scheduler = AsyncIOScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._warm_job,
            trigger=trigger,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.misfire_grace_sec
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next warm-up: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self.scheduler = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled warm-up time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
