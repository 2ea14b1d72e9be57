"""Composition root for the shared context store.

One ``ContextRuntime`` per process owns the store and its sweep job.
Applications normally call ``ContextRuntime.create()`` at startup and pass
``runtime.store`` to the agents; ``get_instance()`` covers callers that only
need the process-wide store and cannot receive it explicitly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from jurify.config import ContextSettings
from jurify.context.lead import LeadContext
from jurify.context.store import SharedContextStore, StoreLimits
from jurify.context.sweeper import SweepHandle, start_background_sweep

logger = logging.getLogger(__name__)


class ContextRuntime:
    def __init__(
        self,
        store: SharedContextStore,
        scheduler: AsyncIOScheduler,
        owns_scheduler: bool,
        history_limit: int = 50,
    ) -> None:
        self.store = store
        self.leads = LeadContext(store, history_limit=history_limit)
        self.scheduler = scheduler
        self._owns_scheduler = owns_scheduler
        self.sweep: SweepHandle | None = None

    @classmethod
    def create(
        cls,
        settings: ContextSettings | None = None,
        scheduler: AsyncIOScheduler | None = None,
        clock: Callable[[], int] | None = None,
    ) -> ContextRuntime:
        settings = settings or ContextSettings()
        limits = StoreLimits(
            max_entries=settings.max_entries,
            ttl_ms=settings.ttl_ms,
            cleanup_interval_ms=settings.cleanup_interval_ms,
        )
        store = SharedContextStore(limits=limits, clock=clock)
        owns = scheduler is None
        return cls(
            store,
            scheduler or AsyncIOScheduler(),
            owns_scheduler=owns,
            history_limit=settings.history_limit,
        )

    @property
    def started(self) -> bool:
        # False again once the store is destroyed directly.
        return self.sweep is not None and self.sweep.active

    def start(self) -> None:
        """Schedule the sweep. Must run inside the application's event loop."""
        if self.started:
            return
        if self._owns_scheduler and not self.scheduler.running:
            asyncio.get_running_loop()  # raises RuntimeError off the loop
        self.sweep = start_background_sweep(self.store, self.scheduler)
        try:
            if self._owns_scheduler and not self.scheduler.running:
                self.scheduler.start()
        except Exception:
            self.sweep.cancel()
            self.sweep = None
            raise
        logger.info(
            f"Shared context started (capacity={self.store.capacity}, ttl={self.store.ttl_ms} ms)"
        )

    def shutdown(self) -> None:
        self.store.destroy()
        self.sweep = None
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Shared context shut down")


_runtime: ContextRuntime | None = None


def get_instance() -> SharedContextStore:
    """Return the process-wide store, creating and starting it on first call."""
    global _runtime
    if _runtime is None:
        runtime = ContextRuntime.create()
        runtime.start()
        # Bound only once started, so a failed start can be retried.
        _runtime = runtime
    return _runtime.store


def shutdown_instance() -> None:
    """Tear down the process-wide store. The next get_instance() rebuilds it."""
    global _runtime
    if _runtime is not None:
        _runtime.shutdown()
        _runtime = None
