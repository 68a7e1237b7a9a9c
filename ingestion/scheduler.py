import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.exceptions import ExportException
from schemas.export import RunSummary

logger = logging.getLogger(__name__)


class ExportScheduler:
    def __init__(self, run_export: Callable[[], Awaitable[RunSummary]], interval_minutes: int):
        self.run_export = run_export
        self.interval_minutes = interval_minutes
        self.scheduler = AsyncIOScheduler()
        self.last_summary: Optional[RunSummary] = None

    async def run_export_job(self):
        """Job to run one export over the catalog"""
        logger.info("Scheduler: Starting export job")
        try:
            self.last_summary = await self.run_export()
        except ExportException as e:
            logger.error(f"Scheduler: export job failed - {e}", extra={"error_context": e.to_dict()})

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_export_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="export_job",
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"Export scheduler started (every {self.interval_minutes} minutes)")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("Export scheduler stopped")
