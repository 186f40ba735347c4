#!/usr/bin/env python3
"""
Dispatch of enrichment units to the scoring service.

A WorkerPool is built for each invocation and owns the concurrency cap
and the per-unit deadline. A DispatchPolicy decides how the pending units
of a batch are fed to it:
- FanOutPolicy: everything at once, bounded by max_workers
- TricklePolicy: one unit every interval seconds in input order, without
  waiting for earlier units to finish
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from ..exceptions import AnalysisTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


class WorkerPool:
    """Concurrency cap and per-unit deadline for one batch."""

    def __init__(self, max_workers: Optional[int] = None, unit_timeout: float = 30.0):
        """
        Initialize worker pool.

        Args:
            max_workers: Maximum units in flight; None means unbounded
            unit_timeout: Deadline in seconds for each scoring call
        """
        self.max_workers = max_workers
        self.unit_timeout = unit_timeout
        self._semaphore = asyncio.Semaphore(max_workers) if max_workers else None

    async def submit(self, unit: Callable[[], Awaitable[R]]) -> R:
        """Run a unit once a worker slot is free."""
        if self._semaphore is None:
            return await unit()
        async with self._semaphore:
            return await unit()

    async def call(self, awaitable: Awaitable[R], analysis_type: str) -> R:
        """
        Await a scoring call under the unit deadline.

        The call is cancelled when the deadline passes.

        Raises:
            AnalysisTimeoutError: If the deadline passes first
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.unit_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{analysis_type} call exceeded {self.unit_timeout:g}s deadline")
            raise AnalysisTimeoutError(analysis_type, self.unit_timeout)


UnitFn = Callable[[Any, WorkerPool], Awaitable[Any]]


class DispatchPolicy:
    """Base class for strategies that feed a batch's units to a worker pool."""

    name = "base"

    def __init__(self, unit_timeout: float = 30.0):
        self.unit_timeout = unit_timeout

    def create_pool(self) -> WorkerPool:
        return WorkerPool(None, self.unit_timeout)

    async def dispatch(self, items: Sequence[T], unit: UnitFn) -> None:
        """Run unit(item, pool) for every item and wait for all of them."""
        raise NotImplementedError

    async def _gather(self, tasks: List[Awaitable[Any]], total: int, start_time: float) -> None:
        results = await asyncio.gather(*tasks, return_exceptions=True)

        failed = 0
        for result in results:
            if isinstance(result, Exception):
                failed += 1
                logger.error(f"Enrichment unit failed: {result}")

        duration = time.monotonic() - start_time
        logger.info(f"{self.name} dispatch finished {total - failed}/{total} units in {duration:.2f}s")


class FanOutPolicy(DispatchPolicy):
    """Dispatch every unit at once, with at most max_workers in flight."""

    name = "fanout"

    def __init__(self, max_workers: int = 5, unit_timeout: float = 30.0):
        super().__init__(unit_timeout)
        self.max_workers = max_workers

    def create_pool(self) -> WorkerPool:
        return WorkerPool(self.max_workers, self.unit_timeout)

    async def dispatch(self, items: Sequence[T], unit: UnitFn) -> None:
        if not items:
            return

        pool = self.create_pool()
        logger.info(f"Fanning out {len(items)} units (max {self.max_workers} concurrent)")
        start_time = time.monotonic()

        tasks = [pool.submit(lambda item=item: unit(item, pool)) for item in items]
        await self._gather(tasks, len(items), start_time)

    def __repr__(self):
        return f"FanOutPolicy(max_workers={self.max_workers}, unit_timeout={self.unit_timeout:g})"


class TricklePolicy(DispatchPolicy):
    """Dispatch units one at a time, spaced by a fixed interval, in input order."""

    name = "trickle"

    def __init__(self, interval: float = 0.3, unit_timeout: float = 30.0):
        super().__init__(unit_timeout)
        self.interval = interval

    async def dispatch(self, items: Sequence[T], unit: UnitFn) -> None:
        if not items:
            return

        pool = self.create_pool()
        logger.info(f"Trickling {len(items)} units, one every {self.interval:g}s")
        start_time = time.monotonic()

        tasks = []
        for index, item in enumerate(items):
            if index:
                await asyncio.sleep(self.interval)
            tasks.append(asyncio.create_task(pool.submit(lambda item=item: unit(item, pool))))

        await self._gather(tasks, len(items), start_time)

    def __repr__(self):
        return f"TricklePolicy(interval={self.interval:g}, unit_timeout={self.unit_timeout:g})"


def policy_from_config(config, name: Optional[str] = None) -> DispatchPolicy:
    """
    Build the dispatch policy named in configuration.

    Args:
        config: Application Config
        name: Override for DISPATCH_POLICY (fanout or trickle)
    """
    app = config.app
    name = (name or app.dispatch_policy).lower()

    if name == FanOutPolicy.name:
        return FanOutPolicy(max_workers=app.max_concurrent_analyses, unit_timeout=app.analysis_timeout_seconds)
    if name == TricklePolicy.name:
        return TricklePolicy(interval=app.trickle_interval_ms / 1000.0, unit_timeout=app.analysis_timeout_seconds)

    raise ValueError(f"Unknown dispatch policy: {name}. Available: {FanOutPolicy.name}, {TricklePolicy.name}")
