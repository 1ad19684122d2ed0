"""Tests for UpdateQueue and PollingLoop.

Fetchers are in-process fakes; no network access is needed.
"""

import asyncio
import sys
import os
import time
from typing import List

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from botapi.exceptions import QueueClosedError
from botapi.methods import UpdateConfig
from botapi.models import Update
from botapi.updates import RETRY_DELAY, LoopState, PollingLoop, UpdateQueue


def _update(update_id: int) -> Update:
    return Update.model_validate({
        "update_id": update_id,
        "message": {
            "message_id": update_id,
            "date": 1700000000,
            "chat": {"id": 42, "type": "private"},
            "text": f"msg {update_id}",
        },
    })


async def _drain(queue: UpdateQueue) -> List[int]:
    return [update.update_id async for update in queue]


class ScriptedFetcher:
    """Replays *script* one call at a time, then requests a stop.

    Entries are either a list of updates or an exception to raise.
    """

    def __init__(self, script: list, stop_event: asyncio.Event) -> None:
        self.script = list(script)
        self.stop_event = stop_event
        self.configs: List[UpdateConfig] = []

    async def get_updates(self, config: UpdateConfig) -> List[Update]:
        self.configs.append(config)
        if not self.script:
            self.stop_event.set()
            return []
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class TimedFetcher(ScriptedFetcher):
    """ScriptedFetcher that records when each attempt starts."""

    def __init__(self, script: list, stop_event: asyncio.Event) -> None:
        super().__init__(script, stop_event)
        self.started: List[float] = []

    async def get_updates(self, config: UpdateConfig) -> List[Update]:
        self.started.append(time.monotonic())
        return await super().get_updates(config)


class BlockingFetcher:
    """Synchronous fetcher, as BotClient is; run in a worker thread."""

    def __init__(self, batches: list) -> None:
        self.batches = list(batches)
        self.calls = 0

    def get_updates(self, config: UpdateConfig) -> List[Update]:
        self.calls += 1
        if self.batches:
            return self.batches.pop(0)
        return []


class FailingFetcher:
    def __init__(self) -> None:
        self.calls = 0

    async def get_updates(self, config: UpdateConfig) -> List[Update]:
        self.calls += 1
        raise ConnectionError("network down")


# ── UpdateQueue ──────────────────────────────────────────────────────────────


class TestUpdateQueue:
    """Validate ordering, backpressure and closure."""

    @pytest.mark.asyncio
    async def test_fifo(self) -> None:
        queue = UpdateQueue(3)
        for n in (1, 2, 3):
            await queue.put(_update(n))
        assert queue.qsize() == 3
        assert [(await queue.get()).update_id for _ in range(3)] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_put_blocks_when_full(self) -> None:
        queue = UpdateQueue(2)
        await queue.put(_update(1))
        await queue.put(_update(2))
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(queue.put(_update(3)), timeout=0.05)

        assert (await queue.get()).update_id == 1
        await asyncio.wait_for(queue.put(_update(3)), timeout=1)
        assert queue.qsize() == 2

    @pytest.mark.asyncio
    async def test_items_before_close_stay_readable(self) -> None:
        queue = UpdateQueue(5)
        await queue.put(_update(1))
        await queue.put(_update(2))
        queue.close()
        assert queue.closed
        assert queue.qsize() == 2
        assert await _drain(queue) == [1, 2]
        assert await queue.get() is None

    @pytest.mark.asyncio
    async def test_put_after_close_raises(self) -> None:
        queue = UpdateQueue()
        queue.close()
        with pytest.raises(QueueClosedError):
            await queue.put(_update(1))

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        queue = UpdateQueue()
        queue.close()
        queue.close()
        assert await queue.get() is None
        assert await queue.get() is None

    @pytest.mark.asyncio
    async def test_every_consumer_sees_closure(self) -> None:
        queue = UpdateQueue()
        consumers = [asyncio.create_task(_drain(queue)) for _ in range(3)]
        await asyncio.sleep(0)
        await queue.put(_update(1))
        queue.close()
        results = await asyncio.wait_for(asyncio.gather(*consumers), timeout=1)
        assert sorted(sum(results, [])) == [1]

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            UpdateQueue(0)


# ── PollingLoop ──────────────────────────────────────────────────────────────


class TestPollingLoop:
    """Validate offset tracking, retries and shutdown."""

    @pytest.mark.asyncio
    async def test_batch_delivered_in_order_and_offset_advances(self) -> None:
        stop = asyncio.Event()
        fetcher = ScriptedFetcher([[_update(5), _update(6), _update(7)]], stop)
        loop = PollingLoop(fetcher, UpdateConfig(timeout=30), stop_event=stop)

        assert await asyncio.wait_for(_drain(loop.start()), timeout=1) == [5, 6, 7]
        assert loop.offset == 8
        assert fetcher.configs[0].offset == 0
        assert fetcher.configs[1].offset == 8
        assert fetcher.configs[1].timeout == 30

    @pytest.mark.asyncio
    async def test_already_delivered_updates_are_dropped(self) -> None:
        stop = asyncio.Event()
        fetcher = ScriptedFetcher([[_update(5), _update(6)], [_update(6), _update(7)]], stop)
        loop = PollingLoop(fetcher, stop_event=stop)

        assert await asyncio.wait_for(_drain(loop.start()), timeout=1) == [5, 6, 7]
        assert loop.offset == 8

    @pytest.mark.asyncio
    async def test_initial_offset_filters_older_updates(self) -> None:
        stop = asyncio.Event()
        fetcher = ScriptedFetcher([[_update(9), _update(10)]], stop)
        loop = PollingLoop(fetcher, UpdateConfig(offset=10), stop_event=stop)

        assert await asyncio.wait_for(_drain(loop.start()), timeout=1) == [10]
        assert fetcher.configs[0].offset == 10
        assert loop.offset == 11

    @pytest.mark.asyncio
    async def test_empty_batches_change_nothing(self) -> None:
        stop = asyncio.Event()
        fetcher = ScriptedFetcher([[], [_update(3)], []], stop)
        loop = PollingLoop(fetcher, stop_event=stop)

        assert await asyncio.wait_for(_drain(loop.start()), timeout=1) == [3]
        assert [c.offset for c in fetcher.configs] == [0, 0, 4, 4]

    @pytest.mark.asyncio
    async def test_failures_are_retried_and_never_reach_consumer(self) -> None:
        stop = asyncio.Event()
        fetcher = ScriptedFetcher(
            [ConnectionError("down"), ValueError("bad body"), [_update(1)]],
            stop,
        )
        loop = PollingLoop(fetcher, stop_event=stop, retry_delay=0.01)

        assert await asyncio.wait_for(_drain(loop.start()), timeout=1) == [1]
        assert len(fetcher.configs) == 4
        # Failed attempts do not move the offset.
        assert [c.offset for c in fetcher.configs[:3]] == [0, 0, 0]
        assert loop.state is LoopState.TERMINATED

    @pytest.mark.asyncio
    async def test_retry_waits_between_attempts(self) -> None:
        stop = asyncio.Event()
        retry_delay = 0.1
        fetcher = TimedFetcher(
            [ConnectionError("down"), ConnectionError("still down"), [_update(1)]],
            stop,
        )
        loop = PollingLoop(fetcher, stop_event=stop, retry_delay=retry_delay)

        assert await asyncio.wait_for(_drain(loop.start()), timeout=2) == [1]
        assert len(fetcher.started) == 4
        # Only the two failed attempts are followed by a pause.
        gaps = [b - a for a, b in zip(fetcher.started, fetcher.started[1:3])]
        assert all(gap >= retry_delay * 0.9 for gap in gaps), gaps

    def test_default_retry_delay(self) -> None:
        loop = PollingLoop(FailingFetcher())
        assert loop._retry_delay == RETRY_DELAY == 3.0

    @pytest.mark.asyncio
    async def test_stop_during_backoff_is_prompt(self) -> None:
        fetcher = FailingFetcher()
        loop = PollingLoop(fetcher, retry_delay=60)
        queue = loop.start()
        await asyncio.sleep(0.05)

        loop.stop()
        await asyncio.wait_for(loop.wait_closed(), timeout=1)
        assert fetcher.calls == 1
        assert queue.closed
        assert await queue.get() is None

    @pytest.mark.asyncio
    async def test_blocking_fetcher_runs_in_thread(self) -> None:
        fetcher = BlockingFetcher([[_update(1), _update(2)]])
        loop = PollingLoop(fetcher)
        queue = loop.start()

        first = await asyncio.wait_for(queue.get(), timeout=1)
        second = await asyncio.wait_for(queue.get(), timeout=1)
        loop.stop()
        await asyncio.wait_for(loop.wait_closed(), timeout=1)

        assert (first.update_id, second.update_id) == (1, 2)
        assert await queue.get() is None
        assert fetcher.calls >= 1

    @pytest.mark.asyncio
    async def test_stop_before_first_fetch(self) -> None:
        stop = asyncio.Event()
        stop.set()
        fetcher = FailingFetcher()
        loop = PollingLoop(fetcher, stop_event=stop)

        assert await asyncio.wait_for(_drain(loop.start()), timeout=1) == []
        assert fetcher.calls == 0

    @pytest.mark.asyncio
    async def test_slow_consumer_applies_backpressure(self) -> None:
        stop = asyncio.Event()
        fetcher = ScriptedFetcher([[_update(1), _update(2), _update(3)]], stop)
        loop = PollingLoop(fetcher, UpdateConfig(buffer=1), stop_event=stop)
        queue = loop.start()
        await asyncio.sleep(0.05)

        assert queue.qsize() == 1
        assert loop.state is LoopState.RUNNING
        assert len(fetcher.configs) == 1
        assert await asyncio.wait_for(_drain(queue), timeout=1) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_states(self) -> None:
        stop = asyncio.Event()
        loop = PollingLoop(ScriptedFetcher([], stop), stop_event=stop)
        assert loop.state is LoopState.NEW
        assert loop.task is None

        loop.start()
        assert loop.state is LoopState.RUNNING
        await asyncio.wait_for(loop.wait_closed(), timeout=1)
        assert loop.state is LoopState.TERMINATED
        assert loop.queue.closed

    @pytest.mark.asyncio
    async def test_start_twice_raises(self) -> None:
        stop = asyncio.Event()
        loop = PollingLoop(ScriptedFetcher([], stop), stop_event=stop)
        loop.start()
        with pytest.raises(RuntimeError):
            loop.start()
        await asyncio.wait_for(loop.wait_closed(), timeout=1)
