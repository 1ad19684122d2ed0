"""Update delivery -- the bounded update queue and the long-polling loop.

:class:`PollingLoop` runs as one background :class:`asyncio.Task`.  Each
iteration checks the stop signal, fetches one batch, advances the offset
past every update it publishes and drops anything below the offset, so an
update is handed to the application at most once per session.  Fetch
failures of any kind are logged and retried after a fixed delay; the
consumer never sees them.

The consumer side is an :class:`UpdateQueue`::

    loop = PollingLoop(client, UpdateConfig(timeout=30))
    async for update in loop.start():
        ...
    # the ``async for`` ends once loop.stop() has been observed
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
from enum import Enum
from typing import Any, Awaitable, Optional, Protocol, Sequence, Union

from botapi.exceptions import QueueClosedError
from botapi.methods import DEFAULT_BUFFER, UpdateConfig
from botapi.models import Update
from core.logger import BotLogger

logger = BotLogger.get_logger()

# Fixed delay between a failed fetch and the next attempt; no jitter, no cap.
RETRY_DELAY: float = 3.0

_CLOSED = object()


class Fetcher(Protocol):
    """Anything that can perform one ``getUpdates`` round trip.

    :class:`~botapi.client.BotClient` is the production implementation
    (blocking, run in a worker thread); coroutine implementations are
    awaited directly.
    """

    def get_updates(
        self, config: UpdateConfig
    ) -> Union[Sequence[Update], Awaitable[Sequence[Update]]]: ...  # noqa: E704


# ── Output queue ─────────────────────────────────────────────────────────────


class UpdateQueue:
    """Bounded, ordered channel of :class:`Update` values.

    * :meth:`put` blocks while *capacity* items are waiting (backpressure);
      nothing is ever dropped.
    * :meth:`close` is a one-time producer operation.  Items published
      before it remain readable in order; afterwards :meth:`get` returns
      ``None`` and ``async for`` ends, for every consumer.
    """

    def __init__(self, capacity: int = DEFAULT_BUFFER) -> None:
        if capacity < 1:
            raise ValueError(f"queue capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        # Capacity is enforced by the semaphore so the close marker never
        # needs a free slot.
        self._slots = asyncio.Semaphore(capacity)
        self._items: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        """Number of updates waiting to be read."""
        size = self._items.qsize()
        return size - 1 if self._closed and size else size

    async def put(self, update: Update) -> None:
        """Publish *update*, waiting for a free slot if the queue is full."""
        if self._closed:
            raise QueueClosedError("cannot publish to a closed update queue")
        await self._slots.acquire()
        if self._closed:
            self._slots.release()
            raise QueueClosedError("update queue was closed while waiting for a slot")
        self._items.put_nowait(update)

    def close(self) -> None:
        """Mark the end of the sequence.  Calling it again has no effect."""
        if self._closed:
            return
        self._closed = True
        self._items.put_nowait(_CLOSED)

    def _take(self, item: Any) -> Optional[Update]:
        if item is _CLOSED:
            # Leave the marker in place for any other consumer.
            self._items.put_nowait(_CLOSED)
            return None
        self._slots.release()
        return item

    async def get(self) -> Optional[Update]:
        """Return the next update, or ``None`` once the queue is closed and drained."""
        return self._take(await self._items.get())

    def get_nowait(self) -> Optional[Update]:
        """Like :meth:`get` but raise :class:`asyncio.QueueEmpty` instead of waiting."""
        return self._take(self._items.get_nowait())

    def __aiter__(self) -> "UpdateQueue":
        return self

    async def __anext__(self) -> Update:
        update = await self.get()
        if update is None:
            raise StopAsyncIteration
        return update


# ── Polling loop ─────────────────────────────────────────────────────────────


class LoopState(str, Enum):
    NEW = "new"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class PollingLoop:
    """Deliver updates from a :class:`Fetcher` into an :class:`UpdateQueue`.

    Args:
        fetcher: Performs the ``getUpdates`` round trips.
        config: Initial offset, batch limit, long-poll timeout and queue
            capacity.
        stop_event: Cancellation token.  Setting it (directly or through
            :meth:`stop`) makes the loop close its queue at the next
            iteration boundary.  A fresh event is created when omitted.
        retry_delay: Seconds to wait after a failed fetch.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        config: Optional[UpdateConfig] = None,
        stop_event: Optional[asyncio.Event] = None,
        retry_delay: float = RETRY_DELAY,
    ) -> None:
        self._fetcher = fetcher
        self._config = config or UpdateConfig()
        self._offset = self._config.offset
        self._stop_event = stop_event if stop_event is not None else asyncio.Event()
        self._retry_delay = retry_delay
        self._queue = UpdateQueue(self._config.buffer)
        self._state = LoopState.NEW
        self._task: Optional[asyncio.Task[None]] = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def offset(self) -> int:
        """The next offset to fetch from: highest published id + 1."""
        return self._offset

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def queue(self) -> UpdateQueue:
        return self._queue

    @property
    def task(self) -> Optional[asyncio.Task[None]]:
        return self._task

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def start(self) -> UpdateQueue:
        """Spawn the polling task and return the queue it publishes into.

        Must be called from a running event loop.

        Raises:
            RuntimeError: If the loop was already started.
        """
        if self._state is not LoopState.NEW:
            raise RuntimeError(f"polling loop already started (state={self._state.value})")
        self._state = LoopState.RUNNING
        self._task = asyncio.create_task(self._run(), name="botapi-polling")
        return self._queue

    def stop(self) -> None:
        """Ask the loop to stop.  An in-flight fetch is allowed to finish."""
        logger.info("Stop requested for polling loop", extra={"offset": self._offset})
        self._stop_event.set()

    async def wait_closed(self) -> None:
        """Wait until the polling task has closed the queue."""
        if self._task is not None:
            await self._task

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        logger.info(
            "Polling for updates",
            extra={
                "offset": self._offset,
                "limit": self._config.limit,
                "timeout": self._config.timeout,
                "buffer": self._config.buffer,
            },
        )
        try:
            while not self._stop_event.is_set():
                try:
                    updates = await self._fetch()
                except Exception as exc:
                    logger.error(
                        "Failed to get updates, retrying",
                        extra={
                            "api_endpoint": UpdateConfig.method,
                            "offset": self._offset,
                            "retry_in": self._retry_delay,
                            "error": str(exc),
                            "error_type": type(exc).__name__,
                        },
                    )
                    await self._backoff()
                    continue

                if updates:
                    logger.debug("Received updates", extra={"count": len(updates), "offset": self._offset})
                for update in updates:
                    if update.update_id < self._offset:
                        logger.debug(
                            "Dropping already delivered update",
                            extra={"update_id": update.update_id, "offset": self._offset},
                        )
                        continue
                    self._offset = update.update_id + 1
                    await self._queue.put(update)
        finally:
            self._state = LoopState.DRAINING
            self._queue.close()
            self._state = LoopState.TERMINATED
            logger.info("Polling stopped, update queue closed", extra={"offset": self._offset})

    async def _fetch(self) -> Sequence[Update]:
        config = dataclasses.replace(self._config, offset=self._offset)
        get_updates = self._fetcher.get_updates
        if inspect.iscoroutinefunction(get_updates):
            return await get_updates(config)
        return await asyncio.to_thread(get_updates, config)

    async def _backoff(self) -> None:
        """Sleep for the retry delay, waking early if a stop is requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._retry_delay)
        except asyncio.TimeoutError:
            pass
