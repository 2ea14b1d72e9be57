"""Shared context store: bounded, TTL-expiring per-lead state.

Agents keep conversation state keyed by lead id here between otherwise
stateless turns. Writes shallow-merge into the existing value; reads drop
expired entries lazily and a background sweep removes the rest.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from jurify.context.sweeper import SweepHandle

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10_000
DEFAULT_TTL_MS = 24 * 60 * 60 * 1000
DEFAULT_CLEANUP_INTERVAL_MS = 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class _Entry:
    data: dict[str, Any]
    updated_at: int


@dataclass
class StoreStats:
    entries: int
    capacity: int
    ttl_ms: int
    lazy_evictions: int = 0
    swept: int = 0
    capacity_evictions: int = 0


@dataclass
class StoreLimits:
    max_entries: int = DEFAULT_MAX_ENTRIES
    ttl_ms: int = DEFAULT_TTL_MS
    cleanup_interval_ms: int = DEFAULT_CLEANUP_INTERVAL_MS

    def __post_init__(self) -> None:
        for name in ("max_entries", "ttl_ms", "cleanup_interval_ms"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")


class SharedContextStore:
    """Process-wide scratchpad of per-lead state with capacity and TTL bounds.

    Operations are synchronous and never suspend, so on a single event loop
    they never interleave with each other or with the sweep job.
    """

    def __init__(
        self,
        limits: StoreLimits | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.limits = limits or StoreLimits()
        self._clock = clock or _now_ms
        self._entries: dict[str, _Entry] = {}
        self._sweep: SweepHandle | None = None
        self._counters = {"lazy": 0, "swept": 0, "capacity": 0}

    @property
    def capacity(self) -> int:
        return self.limits.max_entries

    @property
    def ttl_ms(self) -> int:
        return self.limits.ttl_ms

    def _is_expired(self, entry: _Entry, now: int) -> bool:
        return now - entry.updated_at > self.limits.ttl_ms

    def set(self, key: str, patch: dict[str, Any]) -> None:
        now = self._clock()
        existing = self._entries.get(key)
        if existing is not None and self._is_expired(existing, now):
            # Stale fields must not survive into a freshly stamped entry.
            del self._entries[key]
            existing = None

        if existing is None and len(self._entries) >= self.limits.max_entries:
            self._evict_oldest()

        base = existing.data if existing is not None else {}
        self._entries[key] = _Entry(data={**base, **patch}, updated_at=now)

    def get(self, key: str) -> dict[str, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return {}
        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            self._counters["lazy"] += 1
            logger.debug(f"Context for {key!r} expired on read")
            return {}
        return dict(entry.data)

    def clear(self, key: str) -> None:
        self._entries.pop(key, None)

    def evict_expired(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for k in expired:
            del self._entries[k]
        self._counters["swept"] += len(expired)
        return len(expired)

    def _evict_oldest(self) -> None:
        if not self._entries:
            return
        # min() keeps the first of equal timestamps, i.e. insertion order.
        oldest_key = min(self._entries, key=lambda k: self._entries[k].updated_at)
        del self._entries[oldest_key]
        self._counters["capacity"] += 1
        logger.debug(f"Context store full, evicted oldest entry {oldest_key!r}")

    def attach_sweep(self, handle: SweepHandle) -> None:
        if self._sweep is not None:
            self._sweep.cancel()
        self._sweep = handle

    @property
    def sweep_active(self) -> bool:
        return self._sweep is not None and self._sweep.active

    def destroy(self) -> None:
        if self._sweep is not None:
            self._sweep.cancel()
            self._sweep = None
        self._entries.clear()

    def snapshot(self) -> dict[str, dict[str, Any]]:
        now = self._clock()
        return {
            k: dict(e.data)
            for k, e in self._entries.items()
            if not self._is_expired(e, now)
        }

    def stats(self) -> StoreStats:
        return StoreStats(
            entries=len(self._entries),
            capacity=self.limits.max_entries,
            ttl_ms=self.limits.ttl_ms,
            lazy_evictions=self._counters["lazy"],
            swept=self._counters["swept"],
            capacity_evictions=self._counters["capacity"],
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and not self._is_expired(entry, self._clock())
