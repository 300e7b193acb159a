import logging
from typing import Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from ..bills.job import BillsJob
from ..cancellation import CancellationToken, RunCancelled

logger = logging.getLogger(__name__)

JOB_ID = "billsJob"


class BillsWorker:
    """Runs the bills job on a cron schedule, one run at a time"""

    def __init__(
        self,
        job: BillsJob,
        cron_schedule: str,
        cron_time_zone: Optional[str] = None,
        scheduler: Optional[BlockingScheduler] = None,
    ) -> None:
        self.job = job
        self.trigger = CronTrigger.from_crontab(cron_schedule, timezone=cron_time_zone)
        self.scheduler = scheduler or BlockingScheduler()
        self.current_cancellation: Optional[CancellationToken] = None
        self.stopping = False

    def run_job(self) -> None:
        """Run once, logging rather than raising any failure"""
        cancellation = CancellationToken()
        if self.stopping:
            cancellation.cancel()
        self.current_cancellation = cancellation
        try:
            outcome = self.job.check_for_bills(cancellation)
            logger.info(f"Bills run finished: {outcome.value}")
        except RunCancelled:
            logger.warning("Bills run cancelled")
        except Exception:
            logger.exception("Bills run failed")
        finally:
            self.current_cancellation = None

    def start(self) -> None:
        logger.info("Bills worker starting up.")
        self.scheduler.add_job(
            self.run_job,
            self.trigger,
            id=JOB_ID,
            name="bills",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        try:
            self.scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            self.stop()

    def stop(self) -> None:
        logger.info("Bills worker shutting down.")
        self.stopping = True
        if self.current_cancellation is not None:
            self.current_cancellation.cancel()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
