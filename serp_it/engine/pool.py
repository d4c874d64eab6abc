"""Bounded pool of expensive renderer handles with idle eviction."""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator, Awaitable, Callable, Generic, TypeVar

import structlog

from ..errors import PoolResourceError
from ..logging_conf import get_logger

if TYPE_CHECKING:
    from ..scheduler import MaintenanceScheduler

HandleT = TypeVar("HandleT")

EVICTION_JOB_ID = "pool::evict_idle"


@dataclass(slots=True)
class PooledResource(Generic[HandleT]):
    """Pool bookkeeping for one handle."""

    handle: HandleT
    in_use: bool
    last_released_at: float


class ResourcePool(Generic[HandleT]):
    """Reuse up to ``max_size`` handles and reclaim the ones left idle.

    ``acquire`` prefers an idle handle, then creates a new one while there is
    room, then waits for a release. Waiters block on a condition that every
    release notifies and re-check availability after each wake-up.

    Handle closing follows a close, log, continue policy: failures are logged
    and counted in ``close_failures`` but never raised.
    """

    def __init__(
        self,
        factory: Callable[[], Awaitable[HandleT]],
        closer: Callable[[HandleT], Awaitable[None]],
        *,
        max_size: int = 3,
        idle_timeout: float = 60.0,
        sweep_interval: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._factory = factory
        self._closer = closer
        self.max_size = max_size
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self._clock = clock
        self.logger = logger or get_logger("pool")
        self._pool: list[PooledResource[HandleT]] = []
        self._pending = 0
        self._generation = 0
        self._condition = asyncio.Condition()
        self._scheduler: MaintenanceScheduler | None = None
        self.close_failures = 0

    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        return len(self._pool)

    @property
    def in_use_count(self) -> int:
        return sum(1 for entry in self._pool if entry.in_use)

    def snapshot(self) -> list[PooledResource[HandleT]]:
        return list(self._pool)

    # ------------------------------------------------------------------
    async def acquire(self) -> HandleT:
        async with self._condition:
            while True:
                entry = self._claim_idle()
                if entry is not None:
                    return entry.handle
                if len(self._pool) + self._pending < self.max_size:
                    self._pending += 1
                    generation = self._generation
                    break
                await self._condition.wait()
        return await self._create(generation)

    async def release(self, handle: HandleT) -> None:
        entry = self._find(handle)
        if entry is None:
            return
        entry.in_use = False
        entry.last_released_at = self._clock()
        async with self._condition:
            self._condition.notify_all()

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[HandleT]:
        """Acquire a handle for the duration of the block.

        The release is shielded so a cancelled caller still returns the handle.
        """

        handle = await self.acquire()
        try:
            yield handle
        finally:
            await asyncio.shield(self.release(handle))

    async def evict_idle(self) -> int:
        now = self._clock()
        async with self._condition:
            expired = [
                entry
                for entry in self._pool
                if not entry.in_use and now - entry.last_released_at > self.idle_timeout
            ]
            for entry in expired:
                self._pool.remove(entry)
            if expired:
                self._condition.notify_all()
        for entry in expired:
            await self._close_quietly(entry.handle)
            self.logger.info("pool_handle_evicted", pool_size=len(self._pool))
        return len(expired)

    def start(self, scheduler: "MaintenanceScheduler") -> None:
        """Register the periodic idle sweep on ``scheduler``."""

        if self._scheduler is not None:
            return
        scheduler.schedule_interval(EVICTION_JOB_ID, self.evict_idle, self.sweep_interval)
        self._scheduler = scheduler

    async def close_all(self) -> None:
        if self._scheduler is not None:
            self._scheduler.remove(EVICTION_JOB_ID)
            self._scheduler = None
        async with self._condition:
            entries = list(self._pool)
            self._pool.clear()
            self._generation += 1
            self._condition.notify_all()
        if entries:
            await asyncio.gather(*(self._close_quietly(entry.handle) for entry in entries))
            self.logger.info("pool_closed", closed=len(entries))

    # ------------------------------------------------------------------
    def _claim_idle(self) -> PooledResource[HandleT] | None:
        for entry in self._pool:
            if not entry.in_use:
                entry.in_use = True
                entry.last_released_at = self._clock()
                return entry
        return None

    def _find(self, handle: HandleT) -> PooledResource[HandleT] | None:
        for entry in self._pool:
            if entry.handle is handle:
                return entry
        return None

    async def _create(self, generation: int) -> HandleT:
        try:
            handle = await self._factory()
        except BaseException as exc:
            self._pending -= 1
            await asyncio.shield(self._notify())
            if isinstance(exc, Exception):
                raise PoolResourceError(f"Failed to create renderer handle: {exc}") from exc
            raise
        self._pending -= 1
        if generation != self._generation:
            # close_all ran while the factory was in flight
            await asyncio.shield(self._close_quietly(handle))
            self.logger.info("pool_handle_discarded", reason="pool_closed")
            raise PoolResourceError("Pool was closed while creating a renderer handle")
        self._pool.append(PooledResource(handle=handle, in_use=True, last_released_at=self._clock()))
        self.logger.debug("pool_handle_created", pool_size=len(self._pool))
        return handle

    async def _notify(self) -> None:
        async with self._condition:
            self._condition.notify_all()

    async def _close_quietly(self, handle: HandleT) -> None:
        try:
            await self._closer(handle)
        except Exception as exc:  # noqa: BLE001
            self.close_failures += 1
            self.logger.warning("pool_close_failed", error=str(exc))


__all__ = ["EVICTION_JOB_ID", "PooledResource", "ResourcePool"]
