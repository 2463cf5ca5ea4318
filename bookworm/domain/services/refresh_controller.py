"""
Retry/refresh policy around the catalog fetch service.

A RefreshController owns everything a catalog view needs to keep its data
current for one subject (books or authors):

- a refetch token; bumping it is the only way to force a new cycle
  for the same subject, and it is part of the cache key
- automatic retries when a fetch raises (transport-level failures)
- an empty-result watchdog that re-fetches a few seconds after an empty
  result, until real rows show up
- last-writer-by-token: a result only replaces the visible state if its
  token is at least the highest token applied so far and, for the same
  token, no cycle started after it has been applied already

Everything runs on the asyncio event loop. Timers and in-flight cycles are
tasks owned by the controller and are cancelled by close().
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Optional, Tuple

from ..ports import NotificationSink
from ..value_objects import (
    CatalogResponse,
    FetchState,
    FetchSubject,
    Notification,
    NotificationLevel,
)
from .catalog_fetch_service import CatalogFetchService

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_S = 1.0
DEFAULT_EMPTY_RETRY_DELAY_S = 3.0
DEFAULT_STALE_TIME_S = 0.0

CacheKey = Tuple[FetchSubject, int]


class RefreshController:
    """
    Client-visible retry and staleness policy for one fetch subject.

    Usage:
        controller = RefreshController.for_subject(FetchSubject.BOOKS, fetch_service, sink)
        response = await controller.load()      # cached or fresh
        response = await controller.retry()     # bump token, fetch again
        await controller.close()                # cancel timers on teardown
    """

    def __init__(
        self,
        subject: FetchSubject,
        fetch: Callable[[], Awaitable[CatalogResponse]],
        notifier: NotificationSink,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY_S,
        empty_retry_delay: float = DEFAULT_EMPTY_RETRY_DELAY_S,
        stale_time: float = DEFAULT_STALE_TIME_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the controller.

        Args:
            subject: What this controller loads
            fetch: Coroutine function running one fetch cycle
            notifier: Sink for retry/failure messages
            max_attempts: Attempts per cycle when fetch raises
            retry_delay: Seconds between attempts
            empty_retry_delay: Seconds before the watchdog re-fetches an empty result
            stale_time: Seconds a cached result may be served for the same key;
                        0 means every load() runs a fresh cycle
            sleep: Awaitable delay, injectable for tests
            clock: Monotonic clock used for cache freshness
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if retry_delay < 0 or empty_retry_delay < 0 or stale_time < 0:
            raise ValueError("delays and stale_time cannot be negative")

        self._subject = subject
        self._fetch = fetch
        self._notifier = notifier
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._empty_retry_delay = empty_retry_delay
        self._stale_time = stale_time
        self._sleep = sleep
        self._clock = clock

        self._token = 0
        self._applied_token = -1
        self._cycle_seq = 0
        self._applied_seq = -1
        self._state = FetchState.IDLE
        self._response: Optional[CatalogResponse] = None
        self._error: Optional[Exception] = None
        self._cache: Dict[CacheKey, Tuple[CatalogResponse, float]] = {}
        self._inflight: Dict[int, asyncio.Task] = {}
        self._watchdog: Optional[asyncio.Task] = None
        self._closed = False

    @classmethod
    def for_subject(
        cls,
        subject: FetchSubject,
        fetch_service: CatalogFetchService,
        notifier: NotificationSink,
        **kwargs,
    ) -> "RefreshController":
        """Build a controller wired to the matching fetch service method."""
        if subject is FetchSubject.BOOKS:
            fetch = fetch_service.fetch_books_with_status
        else:
            fetch = fetch_service.fetch_authors_with_status
        return cls(subject, fetch, notifier, **kwargs)

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def subject(self) -> FetchSubject:
        return self._subject

    @property
    def refetch_token(self) -> int:
        return self._token

    @property
    def applied_token(self) -> int:
        """Token of the result currently visible, -1 before the first result."""
        return self._applied_token

    @property
    def cache_key(self) -> CacheKey:
        return (self._subject, self._token)

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def response(self) -> Optional[CatalogResponse]:
        return self._response

    @property
    def records(self) -> tuple:
        return self._response.records if self._response is not None else ()

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def pending_watchdog(self) -> Optional[asyncio.Task]:
        """The scheduled empty-result re-fetch, if any."""
        if self._watchdog is not None and not self._watchdog.done():
            return self._watchdog
        return None

    @property
    def is_closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Operations
    # =========================================================================

    async def load(self) -> CatalogResponse:
        """
        Return the result for the current cache key.

        Serves the cached result while it is younger than stale_time, joins
        a cycle already in flight for the same token, and otherwise runs a
        new cycle.
        """
        self._ensure_open()

        cached = self._cache.get(self.cache_key)
        if cached is not None and self._clock() - cached[1] < self._stale_time:
            logger.debug(f"Serving cached {self._subject.value} for token {self._token}")
            return cached[0]

        return await self._run(self._token, join=True)

    async def refetch(self) -> CatalogResponse:
        """Run a fresh cycle for the current token, bypassing the cache."""
        self._ensure_open()
        return await self._run(self._token, join=False)

    async def retry(self) -> CatalogResponse:
        """
        Manual retry: bump the token, tell the user, fetch again.

        Independent of the watchdog; a pending watchdog is cancelled once
        this cycle's result is applied.
        """
        self._ensure_open()
        self._token += 1
        logger.info(f"Manual retry for {self._subject.value} (token={self._token})")
        self._notify(
            NotificationLevel.INFO,
            f"Retrying connection to fetch {self._subject.value}...",
        )
        return await self._run(self._token, join=True)

    async def on_focus(self) -> CatalogResponse:
        """The consuming view regained focus."""
        return await self.refetch()

    async def on_reconnect(self) -> CatalogResponse:
        """The host regained network connectivity."""
        return await self.refetch()

    async def close(self) -> None:
        """
        Tear down: cancel the watchdog and every in-flight cycle.

        After close() no timer fires and no result is applied.
        """
        if self._closed:
            return
        self._closed = True

        tasks = [task for task in self._inflight.values() if not task.done()]
        if self._watchdog is not None and not self._watchdog.done():
            tasks.append(self._watchdog)
        self._watchdog = None

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._inflight.clear()
        logger.debug(f"Closed {self._subject.value} controller, cancelled {len(tasks)} task(s)")

    # =========================================================================
    # Private helper methods
    # =========================================================================

    async def _run(self, token: int, *, join: bool) -> CatalogResponse:
        task = self._inflight.get(token) if join else None
        if task is None:
            self._cycle_seq += 1
            task = asyncio.create_task(self._cycle(token, self._cycle_seq))
            self._inflight[token] = task
            task.add_done_callback(lambda done, token=token: self._forget(token, done))

        # Shielded so a cancelled caller does not cancel a cycle other callers share.
        return await asyncio.shield(task)

    def _forget(self, token: int, task: asyncio.Task) -> None:
        if self._inflight.get(token) is task:
            del self._inflight[token]

    async def _cycle(self, token: int, seq: int) -> CatalogResponse:
        self._state = FetchState.LOADING
        last_error: Optional[Exception] = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                response = await self._fetch()
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Fetching {self._subject.value} failed "
                    f"(attempt {attempt}/{self._max_attempts}): {e}"
                )
                if attempt < self._max_attempts:
                    self._notify(
                        NotificationLevel.INFO,
                        f"Retrying {self._subject.value} (attempt {attempt + 1} of {self._max_attempts})...",
                    )
                    await self._sleep(self._retry_delay)
                continue

            self._apply(token, seq, response)
            return self._response if self._response is not None else response

        return self._fail(token, seq, last_error)

    def _apply(self, token: int, seq: int, response: CatalogResponse) -> bool:
        if self._closed:
            return False

        # Ordered by token, then by cycle start; same-token cycles race on refetch.
        if (token, seq) < (self._applied_token, self._applied_seq):
            logger.debug(
                f"Dropping stale {self._subject.value} result for token {token} cycle {seq} "
                f"(already applied token {self._applied_token} cycle {self._applied_seq})"
            )
            return False

        self._applied_token = token
        self._applied_seq = seq
        self._response = response
        self._error = None
        self._state = FetchState.SUCCEEDED
        self._cache = {
            key: entry for key, entry in self._cache.items() if key[1] > token
        }
        self._cache[(self._subject, token)] = (response, self._clock())

        self._cancel_watchdog()
        if response.is_empty():
            self._schedule_watchdog()
        return True

    def _fail(self, token: int, seq: int, error: Optional[Exception]) -> CatalogResponse:
        logger.error(f"Giving up on {self._subject.value} after {self._max_attempts} attempts: {error}")

        if not self._closed and (token, seq) >= (self._applied_token, self._applied_seq):
            self._state = FetchState.FAILED
            self._error = error
            self._notify(NotificationLevel.ERROR, f"Failed to load {self._subject.value}")

        if self._response is not None:
            return self._response

        return CatalogResponse(
            records=(),
            origin="fallback_error",
            degradation_reason=f"Could not load {self._subject.value}: {error}",
        )

    def _schedule_watchdog(self) -> None:
        if self._closed:
            return
        logger.info(
            f"No {self._subject.value} found, retrying in {self._empty_retry_delay} seconds..."
        )
        self._watchdog = asyncio.create_task(self._watchdog_fire())

    def _cancel_watchdog(self) -> None:
        watchdog = self._watchdog
        self._watchdog = None
        if watchdog is not None and not watchdog.done():
            watchdog.cancel()

    async def _watchdog_fire(self) -> None:
        await self._sleep(self._empty_retry_delay)
        if self._closed:
            return
        # Fired: from here on this task is an ordinary caller of its cycle.
        self._watchdog = None
        self._token += 1
        logger.info(f"Retrying {self._subject.value} fetch (token={self._token})...")
        await self._run(self._token, join=True)

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"{self._subject.value} controller is closed")

    def _notify(self, level: NotificationLevel, message: str) -> None:
        try:
            self._notifier.notify(Notification(level=level, message=message))
        except Exception as e:
            logger.warning(f"Notification sink failed: {e}")
