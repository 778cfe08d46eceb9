"""
In-process query cache.

Every read goes through `QueryClient.fetch` with a tuple key and the
lifetimes declared by the query binding:

- stale_time: how long a result is served without refetching
- gc_time: how long an unused entry is kept before eviction

Mutations invalidate entries by key prefix so the next read refetches.
Failed fetches are retried with exponential backoff capped at a maximum
delay; `retry` may also be a predicate deciding per failure.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Iterable, Optional, Union

from iqx.domain.errors import DashboardApiError

logger = logging.getLogger(__name__)

QueryKey = tuple
RetryPredicate = Callable[[int, DashboardApiError], bool]
RetryPolicy = Union[bool, int, RetryPredicate, None]

DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_MAX_DELAY = 30.0
DEFAULT_GC_TIME = 5 * 60.0


def freeze(value: Any) -> Hashable:
    """Turn dicts and lists inside a key part into hashable tuples."""
    if isinstance(value, dict):
        return tuple(sorted((k, freeze(v)) for k, v in value.items() if v is not None))
    if isinstance(value, (list, tuple, set)):
        return tuple(freeze(v) for v in value)
    return value


def no_retry_on_client_error(max_failures: int) -> RetryPredicate:
    """Retry up to `max_failures` times, never on a 4xx reply."""

    def predicate(failure_count: int, error: DashboardApiError) -> bool:
        if error.status_code is not None and 400 <= error.status_code < 500:
            return False
        return failure_count < max_failures

    return predicate


@dataclass
class QueryEntry:
    data: Any
    updated_at: float
    last_used_at: float
    stale_time: float
    gc_time: float
    invalidated: bool = False

    def is_stale(self, now: float) -> bool:
        return self.invalidated or now - self.updated_at >= self.stale_time


class QueryClient:
    """Thread-safe cache of query results keyed by tuples.

    Args:
        retry: Default retry policy (count of retries).
        retry_max_delay: Upper bound on the backoff delay in seconds.
        default_gc_time: gc_time used when a query does not declare one.
        clock: Monotonic time source, injectable for tests.
        sleep: Sleep function used between retries, injectable for tests.
    """

    def __init__(
        self,
        retry: int = DEFAULT_RETRY_COUNT,
        retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY,
        default_gc_time: float = DEFAULT_GC_TIME,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._default_retry = retry
        self._retry_max_delay = retry_max_delay
        self._default_gc_time = default_gc_time
        self._clock = clock
        self._sleep = sleep
        self._entries: dict[QueryKey, QueryEntry] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[QueryKey, threading.Lock] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch(
        self,
        key: QueryKey,
        fn: Callable[[], Any],
        stale_time: float = 0.0,
        gc_time: Optional[float] = None,
        retry: RetryPolicy = None,
        enabled: bool = True,
        touch: bool = True,
    ) -> Any:
        """Return cached data while fresh, otherwise call `fn` and cache it.

        With enabled=False the cached value (or None) is returned and `fn`
        is never called. With touch=False the read does not count as a use,
        so background refetches never keep an entry alive past its gc_time.

        Raises:
            DashboardApiError: From `fn`, once the retry policy gives up.
        """
        if not enabled:
            return self.get_query_data(key)

        with self._key_lock(key):
            now = self._clock()
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and not entry.is_stale(now):
                    if touch:
                        entry.last_used_at = now
                    return entry.data

            data = self._run_with_retry(key, fn, retry)
            self.set_query_data(key, data, stale_time=stale_time, gc_time=gc_time, touch=touch)
            return data

    def refetch(
        self,
        key: QueryKey,
        fn: Callable[[], Any],
        stale_time: float = 0.0,
        gc_time: Optional[float] = None,
        retry: RetryPolicy = None,
        touch: bool = True,
    ) -> Any:
        """Fetch ignoring freshness. Used by polling and interval refetching."""
        self.invalidate(key)
        return self.fetch(
            key, fn, stale_time=stale_time, gc_time=gc_time, retry=retry, touch=touch
        )

    def get_query_data(self, key: QueryKey) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            entry.last_used_at = self._clock()
            return entry.data

    def set_query_data(
        self,
        key: QueryKey,
        data: Any,
        stale_time: float = 0.0,
        gc_time: Optional[float] = None,
        touch: bool = True,
    ) -> None:
        now = self._clock()
        with self._lock:
            previous = self._entries.get(key)
            last_used_at = now
            if not touch and previous is not None:
                last_used_at = previous.last_used_at
            self._entries[key] = QueryEntry(
                data=data,
                updated_at=now,
                last_used_at=last_used_at,
                stale_time=stale_time,
                gc_time=self._default_gc_time if gc_time is None else gc_time,
            )

    def keys(self) -> list[QueryKey]:
        with self._lock:
            return list(self._entries)

    # ------------------------------------------------------------------
    # Invalidation and eviction
    # ------------------------------------------------------------------

    def invalidate(self, *prefixes: QueryKey) -> int:
        """Mark every entry under any of the prefixes stale. Returns the count."""
        count = 0
        with self._lock:
            for key, entry in self._entries.items():
                if _matches(key, prefixes):
                    entry.invalidated = True
                    count += 1
        if count:
            logger.debug("Invalidated %d queries under %s", count, prefixes)
        return count

    def remove(self, *prefixes: QueryKey) -> int:
        with self._lock:
            doomed = [key for key in self._entries if _matches(key, prefixes)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def collect_garbage(self) -> list[QueryKey]:
        """Evict entries unused for longer than their gc_time. Returns their keys."""
        now = self._clock()
        with self._lock:
            doomed = [
                key
                for key, entry in self._entries.items()
                if now - entry.last_used_at > entry.gc_time
            ]
            for key in doomed:
                del self._entries[key]
                self._key_locks.pop(key, None)
        if doomed:
            logger.debug("Evicted %d unused queries", len(doomed))
        return doomed

    # ------------------------------------------------------------------
    # Mutations and polling
    # ------------------------------------------------------------------

    def mutate(
        self,
        fn: Callable[[], Any],
        invalidates: Iterable[QueryKey] = (),
    ) -> Any:
        """Run a write and, once it succeeds, invalidate the given prefixes."""
        result = fn()
        prefixes = tuple(invalidates)
        if prefixes:
            self.invalidate(*prefixes)
        return result

    def poll(
        self,
        key: QueryKey,
        fn: Callable[[], Any],
        interval: float,
        until: Callable[[Any], bool],
        max_attempts: int,
        stale_time: float = 0.0,
    ) -> Any:
        """Call `fn` every `interval` seconds until `until(result)` holds.

        Returns the last result, which may not satisfy `until` if
        `max_attempts` ran out.
        """
        result = None
        for attempt in range(max_attempts):
            result = self.refetch(key, fn, stale_time=stale_time)
            if until(result):
                return result
            if attempt < max_attempts - 1:
                self._sleep(interval)
        logger.info("Polling %s stopped after %d attempts", key, max_attempts)
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def retry_delay(self, failure_count: int) -> float:
        """Backoff before the next attempt: 1s, 2s, 4s... capped."""
        return min(1.0 * 2 ** failure_count, self._retry_max_delay)

    def _should_retry(
        self, retry: RetryPolicy, failure_count: int, error: DashboardApiError
    ) -> bool:
        if retry is None:
            retry = self._default_retry
        if callable(retry):
            return retry(failure_count, error)
        if retry is True:
            return True
        if retry is False:
            return False
        return failure_count < retry

    def _run_with_retry(self, key: QueryKey, fn: Callable[[], Any], retry: RetryPolicy) -> Any:
        failure_count = 0
        while True:
            try:
                return fn()
            except DashboardApiError as exc:
                if not self._should_retry(retry, failure_count, exc):
                    raise
                delay = self.retry_delay(failure_count)
                failure_count += 1
                logger.info(
                    "Query %s failed (%s); retry %d in %.0fs",
                    key,
                    type(exc).__name__,
                    failure_count,
                    delay,
                )
                self._sleep(delay)

    def _key_lock(self, key: QueryKey) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())


def _matches(key: QueryKey, prefixes: tuple[QueryKey, ...]) -> bool:
    return any(key[: len(prefix)] == prefix for prefix in prefixes)
