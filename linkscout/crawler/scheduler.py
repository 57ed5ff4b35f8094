"""
Crawl scheduler that runs crawl jobs with bounded concurrency.
Jobs may submit further jobs to the same scheduler while they run.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Dict, Set

Job = Callable[[], Awaitable[None]]


@dataclass
class SchedulerStats:
    """Statistics for scheduler operations."""
    start_time: float
    jobs_submitted: int = 0
    jobs_completed: int = 0
    errors: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time


class CrawlScheduler:
    """
    Bounded-concurrency job queue.

    A job is a zero-argument coroutine function. Up to ``concurrency`` jobs run
    at once; the rest wait in FIFO order. The scheduler is idle only when no job
    is pending and none is running, so work submitted by a running job always
    keeps it busy.
    """

    def __init__(self, concurrency: int = 100):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.logger = logging.getLogger(__name__)

        self._pending: Deque[Job] = deque()
        self._running: Set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self.stats = SchedulerStats(start_time=time.time())

    def submit(self, job: Job):
        """Queue a job, starting it right away if a slot is free."""
        self._pending.append(job)
        self.stats.jobs_submitted += 1
        self._idle.clear()
        self._start_pending()

    async def wait_idle(self):
        """Wait until every submitted job, including ones added later, has finished."""
        await self._idle.wait()

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def in_flight(self) -> int:
        return len(self._running)

    @property
    def is_idle(self) -> bool:
        return not self._pending and not self._running

    def _start_pending(self):
        while self._pending and len(self._running) < self.concurrency:
            job = self._pending.popleft()
            task = asyncio.create_task(self._run(job))
            self._running.add(task)
            task.add_done_callback(self._on_done)

    async def _run(self, job: Job):
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats.errors += 1
            self.logger.error(f"Crawl job failed: {e}", exc_info=True)

    def _on_done(self, task: asyncio.Task):
        self._running.discard(task)
        self.stats.jobs_completed += 1
        self._start_pending()
        if self.is_idle:
            self._idle.set()

    def cancel(self):
        """Drop pending jobs and cancel the running ones."""
        dropped = len(self._pending)
        self._pending.clear()
        for task in list(self._running):
            task.cancel()
        if dropped or self._running:
            self.logger.debug(f"Cancelled {len(self._running)} running and {dropped} pending jobs")
        if not self._running:
            self._idle.set()

    def get_stats(self) -> Dict:
        """Get current scheduler statistics."""
        return {
            'jobs_submitted': self.stats.jobs_submitted,
            'jobs_completed': self.stats.jobs_completed,
            'errors': self.stats.errors,
            'pending': self.pending,
            'in_flight': self.in_flight,
            'elapsed_time': self.stats.elapsed_time
        }
