"""Periodic refresh task with an explicit start/stop lifecycle."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

AsyncSleep = Callable[[float], Awaitable[None]]


class RefreshScheduler(Generic[T]):
    """Runs a refresh coroutine now and then every `interval` seconds.

    The timer and manual triggers share refresh_now(). A refresh that
    starts while another is running is skipped. Failures are logged and
    kept in last_error; last_result keeps the last successful value.
    There are no retries beyond the next tick.

    Example:
        >>> scheduler = RefreshScheduler("changes", check, interval=30)
        >>> await scheduler.start()
        >>> ...
        >>> await scheduler.stop()
    """

    def __init__(
        self,
        name: str,
        refresh: Callable[[], Awaitable[T]],
        interval: float,
        *,
        async_sleep: AsyncSleep = asyncio.sleep,
    ) -> None:
        self.name = name
        self.interval = interval
        self._refresh = refresh
        self._async_sleep = async_sleep
        self._task: asyncio.Task[None] | None = None
        self._busy = False
        self._last_result: T | None = None
        self._last_error: Exception | None = None

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_result(self) -> T | None:
        return self._last_result

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    async def refresh_now(self) -> T | None:
        """Run one refresh unless one is already in progress.

        Returns:
            The refresh result, None if skipped or failed
        """
        if self._busy:
            logger.debug("refresh skipped, already running", scheduler=self.name)
            return None

        self._busy = True
        try:
            result = await self._refresh()
        except Exception as e:
            logger.warning("refresh failed", scheduler=self.name, error=str(e), exc_info=True)
            self._last_error = e
            return None
        finally:
            self._busy = False

        self._last_result = result
        self._last_error = None
        return result

    async def start(self) -> None:
        """Refresh immediately, then keep refreshing on the interval."""
        if self.is_running:
            logger.warning("scheduler already running", scheduler=self.name)
            return
        self._task = asyncio.create_task(self._run_loop())
        logger.info("started scheduler", scheduler=self.name, interval=self.interval)

    async def stop(self) -> None:
        """Cancel the timer task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("stopped scheduler", scheduler=self.name)

    async def _run_loop(self) -> None:
        while True:
            await self.refresh_now()
            await self._async_sleep(self.interval)
