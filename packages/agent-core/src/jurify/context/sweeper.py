"""Recurring expiry sweep for the shared context store."""

from __future__ import annotations

import logging
import uuid

from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from jurify.context.store import SharedContextStore

logger = logging.getLogger(__name__)

SWEEP_JOB_PREFIX = "shared_context_sweep"


class SweepHandle:
    """Cancellation handle owning exactly one scheduled sweep job."""

    def __init__(self, scheduler: AsyncIOScheduler, job: Job) -> None:
        self._scheduler = scheduler
        self.job = job
        self._cancelled = False

    @property
    def job_id(self) -> str:
        return self.job.id

    @property
    def active(self) -> bool:
        return not self._cancelled and self._scheduler.get_job(self.job.id) is not None

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        try:
            self._scheduler.remove_job(self.job.id)
        except JobLookupError:
            logger.debug(f"Sweep job {self.job.id} already removed")


async def _run_sweep(store: SharedContextStore) -> None:
    # Coroutine job: AsyncIOScheduler runs it on the loop thread, not an executor.
    removed = store.evict_expired()
    if removed:
        logger.info(f"Context sweep removed {removed} expired entries, {len(store)} remain")


def start_background_sweep(
    store: SharedContextStore,
    scheduler: AsyncIOScheduler,
    interval_ms: int | None = None,
) -> SweepHandle:
    """Register the recurring sweep for *store* and attach its handle to it.

    Every call gets its own job id, so several stores can share one scheduler.
    """
    interval = interval_ms if interval_ms is not None else store.limits.cleanup_interval_ms
    if interval <= 0:
        raise ValueError(f"Sweep interval must be positive, got {interval}")

    job = scheduler.add_job(
        _run_sweep,
        "interval",
        seconds=interval / 1000,
        args=[store],
        id=f"{SWEEP_JOB_PREFIX}:{uuid.uuid4().hex}",
        coalesce=True,
        max_instances=1,
    )
    handle = SweepHandle(scheduler, job)
    # Replaces and cancels any earlier sweep of this store.
    store.attach_sweep(handle)
    logger.info(f"Context sweep {job.id} scheduled every {interval} ms")
    return handle
