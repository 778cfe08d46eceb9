"""
Interval refetching for queries that must stay warm.

Uses APScheduler to re-run registered queries in the background:
- **Signals realtime / alerts**: every 60 s
- **Exchange rate**: every 5 min
- **Virtual portfolio**: every 30 s
- **Leaderboard**: every 2 min
- **Cache GC**: every minute, evicting entries past their gc time and
  dropping the jobs of evicted keys

A failed refetch is logged and leaves the previous cached value in place.
Background refetches do not count as a use, so a key nobody reads any
more ages out of the cache and takes its job with it.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from iqx.application.query_client import QueryClient, QueryKey, RetryPolicy
from iqx.domain.errors import DashboardApiError

logger = logging.getLogger(__name__)

GC_INTERVAL_SECONDS = 60


@dataclass
class RefetchJob:
    """A query kept warm at a fixed interval."""

    key: QueryKey
    fn: Callable[[], Any]
    interval: float
    stale_time: float = 0.0
    gc_time: Optional[float] = None
    retry: RetryPolicy = None

    @property
    def job_id(self) -> str:
        return "refetch:" + ":".join(str(part) for part in self.key)


class RefetchScheduler:
    """Re-runs registered queries on an interval and collects garbage.

    Usage:
        scheduler = RefetchScheduler(query_client)
        scheduler.start()
        scheduler.register(("signals", "realtime", "FPT"), fn, interval=60)
        scheduler.stop()
    """

    def __init__(self, query_client: QueryClient) -> None:
        self._queries = query_client
        self._jobs: dict[str, RefetchJob] = {}
        self._lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    @property
    def jobs(self) -> list[RefetchJob]:
        with self._lock:
            return list(self._jobs.values())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._scheduler is not None:
            logger.warning("Refetch scheduler already running.")
            return

        self._scheduler = BackgroundScheduler(
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self._scheduler.add_job(
            self.collect_garbage,
            IntervalTrigger(seconds=GC_INTERVAL_SECONDS),
            id="query_gc",
            name="Query cache garbage collection",
        )
        with self._lock:
            for job in self._jobs.values():
                self._schedule(job)
        self._scheduler.start()
        logger.info("Refetch scheduler started with %d jobs.", len(self._jobs))

    def stop(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
        logger.info("Refetch scheduler stopped.")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        key: QueryKey,
        fn: Callable[[], Any],
        interval: float,
        stale_time: float = 0.0,
        gc_time: Optional[float] = None,
        retry: RetryPolicy = None,
    ) -> RefetchJob:
        """Keep `key` warm. Registering an existing key replaces its job.

        Callers register after a successful fetch, so the key is cached
        and the next GC pass does not drop the job straight away.
        """
        job = RefetchJob(key, fn, interval, stale_time, gc_time, retry)
        with self._lock:
            self._jobs[job.job_id] = job
            if self._scheduler is not None:
                self._schedule(job)
        return job

    def unregister(self, key: QueryKey) -> bool:
        job_id = RefetchJob(key, lambda: None, 0).job_id
        with self._lock:
            job = self._jobs.pop(job_id, None)
            if job is not None and self._scheduler is not None:
                self._scheduler.remove_job(job_id)
        return job is not None

    def is_registered(self, key: QueryKey) -> bool:
        with self._lock:
            return RefetchJob(key, lambda: None, 0).job_id in self._jobs

    def run_job(self, job: RefetchJob) -> None:
        try:
            self._queries.refetch(
                job.key,
                job.fn,
                stale_time=job.stale_time,
                gc_time=job.gc_time,
                retry=job.retry,
                touch=False,
            )
        except DashboardApiError as exc:
            logger.warning("Background refetch of %s failed: %s", job.key, exc.message)

    def collect_garbage(self) -> int:
        """Run cache GC, then drop every job whose key is no longer cached.

        Returns the number of jobs dropped.
        """
        self._queries.collect_garbage()
        cached = set(self._queries.keys())
        with self._lock:
            orphans = [job.key for job in self._jobs.values() if job.key not in cached]
        for key in orphans:
            self.unregister(key)
        if orphans:
            logger.info("Stopped refetching %d unused queries.", len(orphans))
        return len(orphans)

    def _schedule(self, job: RefetchJob) -> None:
        self._scheduler.add_job(
            self.run_job,
            IntervalTrigger(seconds=job.interval),
            args=[job],
            id=job.job_id,
            name=f"Refetch {job.key[0]}",
            replace_existing=True,
        )
