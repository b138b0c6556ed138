"""Timer-driven refresh scheduling for sysdash."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from sysdash.config import MIN_REFRESH_INTERVAL_SECONDS, REFRESH_INTERVAL_SECONDS
from sysdash.store import MetricsStore

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], Any]


class RefreshScheduler:
    """
    Periodically triggers a refresh callback on the running event loop.

    The scheduler is either running (a repeating task fires every `interval`
    seconds) or stopped. Each firing dispatches the callback as its own task
    and does not wait for it, so a slow refresh never delays the cadence and
    refreshes may overlap. Stopping cancels the timer only; refreshes that
    are already in flight run to completion.
    """

    def __init__(
        self,
        on_refresh: RefreshCallback,
        interval: float = REFRESH_INTERVAL_SECONDS,
        *,
        auto_refresh: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the RefreshScheduler.

        Args:
            on_refresh: Called on every tick and manual refresh. May return
                an awaitable, which is scheduled as a task.
            interval: Seconds between ticks. Default 5.0s.
            auto_refresh: Whether `start()` enables the timer.
            sleep: Coroutine function used to wait between ticks.
        """
        self._on_refresh = on_refresh
        self._interval = max(MIN_REFRESH_INTERVAL_SECONDS, interval)
        self._auto_refresh = auto_refresh
        self._sleep = sleep
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[Any]] = set()
        self._tick_count = 0

    @property
    def interval(self) -> float:
        """Get the tick interval in seconds."""
        return self._interval

    @property
    def running(self) -> bool:
        """Check if the timer is armed."""
        return self._timer is not None and not self._timer.done()

    @property
    def tick_count(self) -> int:
        """Get the number of timer firings so far."""
        return self._tick_count

    def start(self) -> None:
        """Bring the scheduler up in its configured initial state."""
        if self._auto_refresh:
            self.enable()

    def enable(self) -> None:
        """Arm the repeating timer. Must be called from a running event loop."""
        if self.running:
            return
        self._timer = asyncio.get_running_loop().create_task(self._run(), name="RefreshScheduler")
        logger.info("Auto-refresh enabled (every %.1fs)", self._interval)

    def disable(self) -> None:
        """Cancel the repeating timer."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        logger.info("Auto-refresh disabled")

    def toggle(self) -> bool:
        """Switch between running and stopped; return the new running state."""
        if self.running:
            self.disable()
        else:
            self.enable()
        return self.running

    def close(self) -> None:
        """Stop the timer and forget the configured initial state."""
        self._auto_refresh = False
        self.disable()

    def manual_refresh(self) -> asyncio.Task[Any] | None:
        """
        Trigger one refresh immediately, outside the timer cadence.

        Returns:
            The task running the refresh when the callback is asynchronous.
        """
        return self._dispatch()

    async def _run(self) -> None:
        while True:
            await self._sleep(self._interval)
            self._tick_count += 1
            try:
                self._dispatch()
            except Exception:
                # A failing tick must not stop the cadence
                logger.exception("Refresh failed")

    def _dispatch(self) -> asyncio.Task[Any] | None:
        result = self._on_refresh()
        if not inspect.isawaitable(result):
            return None

        task = asyncio.ensure_future(result)
        self._in_flight.add(task)
        task.add_done_callback(self._on_refresh_done)
        return task

    def _on_refresh_done(self, task: asyncio.Task[Any]) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Refresh failed", exc_info=exc)


def start_periodic_collection(
    store: MetricsStore,
    interval: float = REFRESH_INTERVAL_SECONDS,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Callable[[], None]:
    """
    Force-refresh `store` every `interval` seconds.

    Must be called from a running event loop.

    Returns:
        A function that stops the collection.
    """

    async def collect() -> None:
        snapshot = await store.get(force_refresh=True)
        logger.info(
            "Collected metrics (cpu %.0f%%, memory %.0f%%)",
            snapshot.cpu.usage_percent,
            snapshot.memory.usage_percent,
        )

    scheduler = RefreshScheduler(collect, interval, sleep=sleep)
    scheduler.enable()
    return scheduler.close
