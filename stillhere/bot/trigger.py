"""JobQueue-backed trigger source for escalation wakes."""

import logging

from telegram.ext import ContextTypes, JobQueue

from stillhere.db.models import ScheduledWake, WakeKind
from stillhere.engine.escalation import EscalationScheduler
from stillhere.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def job_name(kind: WakeKind) -> str:
    return f"wake:{kind.value}"


async def wake_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Job callback: hand the wake to the scheduler."""
    scheduler: EscalationScheduler = context.bot_data["scheduler"]
    wake: ScheduledWake = context.job.data  # type: ignore
    await scheduler.on_wake(wake.kind, utcnow(), wake.token)


class JobQueueTrigger:
    """One run_once job per wake kind; scheduling replaces the existing job."""

    def __init__(self, job_queue: JobQueue):
        self.job_queue = job_queue

    def schedule(self, wake: ScheduledWake) -> None:
        self.cancel(wake.kind)
        self.job_queue.run_once(
            wake_job,
            when=wake.not_before,
            name=job_name(wake.kind),
            data=wake,
        )
        logger.info(f"Scheduled {wake.kind.value} wake for {wake.not_before.isoformat()}")

    def cancel(self, kind: WakeKind) -> None:
        for job in self.job_queue.get_jobs_by_name(job_name(kind)):
            job.schedule_removal()

    def complete(self, kind: WakeKind, token: str | None, success: bool) -> None:
        logger.debug(f"{kind.value} wake {token} completed (success={success})")
