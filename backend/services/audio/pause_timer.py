import logging
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from utils.time_utils import utc_in

logger = logging.getLogger(__name__)


class PauseTimer:
    """
    One-shot timer for the silence between two verses.

    Backed by a "date" job on the shared scheduler. Scheduling again replaces
    the pending job, and a job that already left the scheduler when cancel()
    ran is dropped by the generation check in _fire.
    """

    def __init__(self, job_id: str, scheduler: AsyncIOScheduler | None = None) -> None:
        if scheduler is None:
            from services.scheduler import scheduler
        self._scheduler = scheduler
        self.job_id = job_id
        self._job = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._job is not None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self._generation += 1
        self._job = self._scheduler.add_job(
            self._fire, "date",
            run_date=utc_in(delay),
            args=[self._generation, callback],
            id=self.job_id,
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.debug(f"Pause timer {self.job_id} set for {delay}s")

    def cancel(self) -> None:
        self._generation += 1
        job, self._job = self._job, None
        if job is None:
            return
        try:
            job.remove()
        except JobLookupError:
            pass  # already fired

    async def _fire(self, generation: int, callback: Callable[[], None]) -> None:
        if generation != self._generation:
            return
        self._job = None
        callback()
