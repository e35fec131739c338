"""Task status poller.

Turns a fire-and-poll backend workflow into a single awaitable: read the
task status at a fixed interval until the backend reports a terminal state
or the wall-clock budget runs out.

Usage:
    from flowledger.tasks import TaskPoller

    poller = TaskPoller(interval=1.5, timeout=600)
    record = await poller.wait(task_id, client.get_task_status)
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from flowledger.core import constants
from flowledger.core.errors import (
    TaskCancelledError,
    TaskFailedError,
    TaskTimeoutError,
    TransientApiError,
)
from flowledger.tasks.models import TaskState, TaskStatusRecord

logger = logging.getLogger(__name__)

FetchStatus = Callable[[str], Awaitable[TaskStatusRecord]]


class TaskPoller:
    """
    Polls a backend task until it succeeds, fails or times out.

    The poller holds configuration only. Each call to ``wait`` is an
    independent poll loop with its own request stream, so one instance can
    serve any number of concurrent waits.
    """

    def __init__(
        self,
        interval: float = constants.POLL_INTERVAL,
        timeout: float = constants.POLL_TIMEOUT,
        fetch_retries: int = constants.POLL_FETCH_RETRIES,
        retry_backoff: float = constants.POLL_RETRY_BACKOFF,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize task poller.

        Args:
            interval: Seconds between status reads (constant, no backoff)
            timeout: Wall-clock budget measured from the start of ``wait``
            fetch_retries: Extra attempts for a status read that raised a
                transient API error. 0 lets every fetch error propagate.
            retry_backoff: Base delay for those retries, doubled per attempt
            clock: Monotonic time source
            sleep: Coroutine used for every delay
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if fetch_retries < 0:
            raise ValueError("fetch_retries must be non-negative")

        self.interval = interval
        self.timeout = timeout
        self.fetch_retries = fetch_retries
        self.retry_backoff = retry_backoff
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_config(cls, config, **kwargs) -> "TaskPoller":
        """Build a poller from a PollingConfig."""
        return cls(
            interval=config.interval,
            timeout=config.timeout,
            fetch_retries=config.fetch_retries,
            retry_backoff=config.retry_backoff,
            **kwargs,
        )

    async def wait(
        self,
        task_id: str,
        fetch_status: FetchStatus,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TaskStatusRecord:
        """
        Poll until the task reaches a terminal state.

        Args:
            task_id: Identifier returned by the create-task request
            fetch_status: Coroutine function reading one status snapshot
            cancel_event: Optional event; once set, polling stops at the
                next suspension point

        Returns:
            The SUCCEEDED record, as returned by the backend (``result`` may
            be None; that check belongs to the caller)

        Raises:
            TaskFailedError: Backend reported FAILED
            TaskTimeoutError: Budget exhausted without a terminal status
            TaskCancelledError: ``cancel_event`` was set
            Exception: Anything ``fetch_status`` raises, unchanged
        """
        started = self._clock()
        latest: Optional[TaskStatusRecord] = None
        polls = 0

        while self._clock() - started < self.timeout:
            if cancel_event is not None and cancel_event.is_set():
                raise TaskCancelledError(task_id, record=latest)

            latest = await self._fetch(task_id, fetch_status, started, cancel_event, latest)
            polls += 1
            logger.debug(f"Task {task_id} poll {polls}: {latest.status.value} (progress: {latest.progress})")

            if latest.status == TaskState.SUCCEEDED:
                logger.info(f"Task {task_id} succeeded after {polls} polls")
                return latest

            if latest.status == TaskState.FAILED:
                logger.warning(f"Task {task_id} failed: {latest.error or TaskFailedError.DEFAULT_MESSAGE}")
                raise TaskFailedError(latest)

            remaining = self.timeout - (self._clock() - started)
            if remaining <= 0:
                break

            if await self._pause(min(self.interval, remaining), cancel_event):
                raise TaskCancelledError(task_id, record=latest)

        logger.warning(f"Task {task_id} timed out after {polls} polls ({self.timeout:g}s)")
        raise TaskTimeoutError(task_id, self.timeout, record=latest)

    async def _fetch(
        self,
        task_id: str,
        fetch_status: FetchStatus,
        started: float,
        cancel_event: Optional[asyncio.Event],
        latest: Optional[TaskStatusRecord],
    ) -> TaskStatusRecord:
        """Read one status snapshot, retrying transient failures if enabled.

        The backoff between retries wakes up on ``cancel_event`` like the
        inter-poll sleep does.
        """
        attempt = 0
        while True:
            try:
                return await fetch_status(task_id)
            except TransientApiError as e:
                if attempt >= self.fetch_retries:
                    raise
                delay = self.retry_backoff * (2 ** attempt)
                if self._clock() - started + delay >= self.timeout:
                    raise
                attempt += 1
                logger.warning(
                    f"Status read for task {task_id} failed ({e}); retry {attempt}/{self.fetch_retries} in {delay:g}s"
                )
                if await self._pause(delay, cancel_event):
                    raise TaskCancelledError(task_id, record=latest)

    async def _pause(self, delay: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleep between polls. Returns True if cancellation was requested."""
        if cancel_event is None:
            await self._sleep(delay)
            return False

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for fut in (sleeper, waiter):
                if not fut.done():
                    fut.cancel()
            await asyncio.gather(sleeper, waiter, return_exceptions=True)
        return cancel_event.is_set()


async def poll_task(
    task_id: str,
    fetch_status: FetchStatus,
    interval: float = constants.POLL_INTERVAL,
    timeout: float = constants.POLL_TIMEOUT,
    cancel_event: Optional[asyncio.Event] = None,
) -> TaskStatusRecord:
    """Poll ``task_id`` with a one-off TaskPoller."""
    poller = TaskPoller(interval=interval, timeout=timeout)
    return await poller.wait(task_id, fetch_status, cancel_event=cancel_event)
