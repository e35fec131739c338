"""Tests for the task status poller."""

import asyncio

import pytest

from flowledger.config import PollingConfig
from flowledger.core.errors import (
    ApiServerError,
    ApiTransportError,
    TaskCancelledError,
    TaskFailedError,
    TaskTimeoutError,
)
from flowledger.tasks.models import TaskState
from flowledger.tasks.poller import TaskPoller, poll_task


@pytest.fixture
def make_poller(fake_clock):
    def factory(**kwargs):
        kwargs.setdefault("interval", 1.5)
        kwargs.setdefault("timeout", 600)
        return TaskPoller(clock=fake_clock, sleep=fake_clock.sleep, **kwargs)

    return factory


class TestTaskPollerInit:
    """Test poller configuration."""

    def test_defaults(self):
        poller = TaskPoller()
        assert poller.interval == 1.5
        assert poller.timeout == 600
        assert poller.fetch_retries == 0

    @pytest.mark.parametrize(
        "kwargs",
        [{"interval": 0}, {"interval": -1}, {"timeout": 0}, {"fetch_retries": -1}],
    )
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            TaskPoller(**kwargs)

    def test_from_config(self):
        config = PollingConfig(interval=2, timeout=30, fetch_retries=3, retry_backoff=0.25)
        poller = TaskPoller.from_config(config)
        assert poller.interval == 2
        assert poller.timeout == 30
        assert poller.fetch_retries == 3
        assert poller.retry_backoff == 0.25


class TestTaskPollerSuccess:
    """Success exits."""

    @pytest.mark.asyncio
    async def test_returns_succeeded_record_after_processing(self, make_poller, scripted_fetch, record, fake_clock):
        """Two processing reads then success: 3 calls, 2 sleeps of one interval."""
        final = record("succeeded", result={"total": 10})
        fetch = scripted_fetch([record("processing"), record("processing"), final])

        result = await make_poller().wait("t-1", fetch)

        assert result is final
        assert len(fetch.calls) == 3
        assert fake_clock.sleeps == [1.5, 1.5]

    @pytest.mark.asyncio
    async def test_end_to_end_import_sequence(self, make_poller, scripted_fetch, record, fake_clock):
        """queued -> processing(40) -> succeeded with import counts."""
        final = record("succeeded", result={"total": 10, "created": 8, "failed": 2})
        fetch = scripted_fetch([record("queued"), record("processing", progress=40), final])

        result = await make_poller().wait("t-1", fetch)

        assert result == final
        assert result.result == {"total": 10, "created": 8, "failed": 2}
        assert fetch.calls == ["t-1", "t-1", "t-1"]
        assert fake_clock.now == pytest.approx(2 * 1.5)

    @pytest.mark.asyncio
    async def test_succeeded_without_result_is_returned_as_is(self, make_poller, scripted_fetch, record):
        fetch = scripted_fetch([record("succeeded")])

        result = await make_poller().wait("t-1", fetch)

        assert result.status == TaskState.SUCCEEDED
        assert result.result is None

    @pytest.mark.asyncio
    async def test_no_fetch_after_success(self, make_poller, scripted_fetch, record):
        fetch = scripted_fetch([record("succeeded", result={}), record("processing")])

        await make_poller().wait("t-1", fetch)

        assert len(fetch.calls) == 1


class TestTaskPollerFailure:
    """Failure exits."""

    @pytest.mark.asyncio
    async def test_failed_raises_with_backend_message(self, make_poller, scripted_fetch, record, fake_clock):
        failed = record("failed", error="bad file")
        fetch = scripted_fetch([failed, record("processing")])

        with pytest.raises(TaskFailedError) as exc_info:
            await make_poller().wait("t-1", fetch)

        assert str(exc_info.value) == "bad file"
        assert exc_info.value.record is failed
        assert fake_clock.sleeps == []
        assert len(fetch.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [None, ""])
    async def test_failed_without_message_uses_fallback(self, make_poller, scripted_fetch, record, error):
        fetch = scripted_fetch([record("failed", error=error)])

        with pytest.raises(TaskFailedError) as exc_info:
            await make_poller().wait("t-1", fetch)

        assert exc_info.value.message == "Task failed"
        assert "None" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_failed_after_processing(self, make_poller, scripted_fetch, record, fake_clock):
        fetch = scripted_fetch([record("processing"), record("failed", error="OCR engine down")])

        with pytest.raises(TaskFailedError, match="OCR engine down"):
            await make_poller().wait("t-1", fetch)

        assert len(fetch.calls) == 2
        assert fake_clock.sleeps == [1.5]


class TestTaskPollerTimeout:
    """Timeout exits."""

    @pytest.mark.asyncio
    async def test_times_out_after_budget(self, make_poller, scripted_fetch, record):
        """5s budget at 1.5s interval allows ceil(5/1.5) = 4 polls."""
        processing = record("processing", progress=10)
        fetch = scripted_fetch([processing])

        with pytest.raises(TaskTimeoutError) as exc_info:
            await make_poller(timeout=5).wait("t-1", fetch)

        assert len(fetch.calls) == 4
        assert exc_info.value.record is processing
        assert exc_info.value.timeout_seconds == 5
        assert exc_info.value.task_id == "t-1"

    @pytest.mark.asyncio
    async def test_last_sleep_clipped_to_deadline(self, make_poller, scripted_fetch, record, fake_clock):
        fetch = scripted_fetch([record("processing")])

        with pytest.raises(TaskTimeoutError):
            await make_poller(timeout=5).wait("t-1", fetch)

        assert fake_clock.sleeps == [1.5, 1.5, 1.5, pytest.approx(0.5)]
        assert fake_clock.now == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_slow_polls_count_against_budget(self, make_poller, scripted_fetch, record):
        """Each read takes 3s; the budget is measured from the start of wait."""
        fetch = scripted_fetch([record("processing")], cost=3.0)

        with pytest.raises(TaskTimeoutError):
            await make_poller(timeout=5).wait("t-1", fetch)

        assert len(fetch.calls) == 2

    @pytest.mark.asyncio
    async def test_timeout_without_any_completed_poll(self, fake_clock, record):
        """A clock already past the deadline never polls; record is None."""
        calls = []

        async def fetch(task_id):
            calls.append(task_id)
            return record("processing")

        def clock():
            value = fake_clock.now
            fake_clock.now += 10
            return value

        poller = TaskPoller(interval=1, timeout=5, clock=clock, sleep=fake_clock.sleep)

        with pytest.raises(TaskTimeoutError) as exc_info:
            await poller.wait("t-9", fetch)

        assert calls == []
        assert exc_info.value.record is None
        assert exc_info.value.task_id == "t-9"


class TestTaskPollerFetchErrors:
    """Errors raised by the status fetcher."""

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate_unchanged_by_default(self, make_poller, scripted_fetch, record):
        error = ApiTransportError("connection refused")
        fetch = scripted_fetch([record("processing"), error])

        with pytest.raises(ApiTransportError) as exc_info:
            await make_poller().wait("t-1", fetch)

        assert exc_info.value is error
        assert len(fetch.calls) == 2

    @pytest.mark.asyncio
    async def test_transient_errors_retried_when_enabled(self, make_poller, scripted_fetch, record, fake_clock):
        final = record("succeeded", result={})
        fetch = scripted_fetch([ApiServerError("bad gateway", status_code=502), final])

        result = await make_poller(fetch_retries=2, retry_backoff=0.5).wait("t-1", fetch)

        assert result is final
        assert len(fetch.calls) == 2
        assert fake_clock.sleeps == [0.5]

    @pytest.mark.asyncio
    async def test_retry_backoff_doubles(self, make_poller, scripted_fetch, record, fake_clock):
        fetch = scripted_fetch(
            [ApiTransportError("reset"), ApiTransportError("reset"), record("succeeded", result={})]
        )

        await make_poller(fetch_retries=3, retry_backoff=0.5).wait("t-1", fetch)

        assert fake_clock.sleeps == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_retries_exhausted_raise_last_error(self, make_poller, scripted_fetch):
        fetch = scripted_fetch([ApiTransportError("down")])

        with pytest.raises(ApiTransportError, match="down"):
            await make_poller(fetch_retries=2).wait("t-1", fetch)

        assert len(fetch.calls) == 3

    @pytest.mark.asyncio
    async def test_non_transient_errors_not_retried(self, make_poller, scripted_fetch):
        fetch = scripted_fetch([ValueError("malformed status")])

        with pytest.raises(ValueError):
            await make_poller(fetch_retries=5).wait("t-1", fetch)

        assert len(fetch.calls) == 1

    @pytest.mark.asyncio
    async def test_retry_never_sleeps_past_deadline(self, make_poller, scripted_fetch):
        fetch = scripted_fetch([ApiTransportError("down")])

        with pytest.raises(ApiTransportError):
            await make_poller(timeout=1, fetch_retries=10, retry_backoff=0.4).wait("t-1", fetch)

        # 0.4 fits, 0.4 + 0.8 does not
        assert len(fetch.calls) == 2


class TestTaskPollerCancellation:
    """Caller-driven cancellation."""

    @pytest.mark.asyncio
    async def test_event_set_before_start(self, make_poller, scripted_fetch, record):
        fetch = scripted_fetch([record("processing")])
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(TaskCancelledError) as exc_info:
            await make_poller().wait("t-1", fetch, cancel_event=cancel)

        assert fetch.calls == []
        assert exc_info.value.record is None

    @pytest.mark.asyncio
    async def test_event_set_between_polls(self, make_poller, record):
        cancel = asyncio.Event()
        processing = record("processing")
        calls = []

        async def fetch(task_id):
            calls.append(task_id)
            if len(calls) == 2:
                cancel.set()
            return processing

        with pytest.raises(TaskCancelledError) as exc_info:
            await make_poller().wait("t-1", fetch, cancel_event=cancel)

        assert len(calls) == 2
        assert exc_info.value.record is processing

    @pytest.mark.asyncio
    async def test_event_interrupts_real_sleep(self, record):
        """Setting the event wakes a long inter-poll sleep immediately."""
        cancel = asyncio.Event()
        fetched = asyncio.Event()

        async def fetch(task_id):
            fetched.set()
            return record("processing")

        poller = TaskPoller(interval=60, timeout=600)
        task = asyncio.ensure_future(poller.wait("t-1", fetch, cancel_event=cancel))
        await fetched.wait()
        cancel.set()

        with pytest.raises(TaskCancelledError):
            await asyncio.wait_for(task, timeout=5)

    @pytest.mark.asyncio
    async def test_task_cancel_stops_loop(self, record):
        fetched = asyncio.Event()
        calls = []

        async def fetch(task_id):
            calls.append(task_id)
            fetched.set()
            return record("processing")

        poller = TaskPoller(interval=60, timeout=600)
        task = asyncio.ensure_future(poller.wait("t-1", fetch))
        await fetched.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(calls) == 1


    @pytest.mark.asyncio
    async def test_event_interrupts_retry_backoff(self):
        """A cancel during the backoff before a retry is honoured immediately."""
        cancel = asyncio.Event()
        failed_once = asyncio.Event()
        calls = []

        async def fetch(task_id):
            calls.append(task_id)
            failed_once.set()
            raise ApiTransportError("connection reset")

        poller = TaskPoller(interval=1, timeout=600, fetch_retries=3, retry_backoff=60)
        task = asyncio.ensure_future(poller.wait("t-1", fetch, cancel_event=cancel))
        await failed_once.wait()
        cancel.set()

        with pytest.raises(TaskCancelledError) as exc_info:
            await asyncio.wait_for(task, timeout=5)

        assert len(calls) == 1
        assert exc_info.value.record is None


class TestTaskPollerIndependence:
    """No state shared between invocations."""

    @pytest.mark.asyncio
    async def test_repeated_waits_behave_identically(self, make_poller, record, fake_clock):
        poller = make_poller()

        def script():
            return iter([record("processing"), record("succeeded", result={"n": 1})])

        outcomes = []
        for _ in range(2):
            responses = script()
            calls = []

            async def fetch(task_id, responses=responses, calls=calls):
                calls.append(task_id)
                return next(responses)

            start = fake_clock.now
            result = await poller.wait("t-1", fetch)
            outcomes.append((result.result, len(calls), fake_clock.now - start))

        assert outcomes[0] == outcomes[1] == ({"n": 1}, 2, 1.5)

    @pytest.mark.asyncio
    async def test_concurrent_waits_issue_separate_requests(self, record):
        poller = TaskPoller(interval=0.01, timeout=5)
        counts = {"a": 0, "b": 0}

        async def fetch(task_id):
            counts[task_id] += 1
            if counts[task_id] < 3:
                return record("processing", task_id=task_id)
            return record("succeeded", task_id=task_id, result={"id": task_id})

        a, b = await asyncio.gather(poller.wait("a", fetch), poller.wait("b", fetch))

        assert a.result == {"id": "a"}
        assert b.result == {"id": "b"}
        assert counts == {"a": 3, "b": 3}


class TestPollTask:
    """Module-level convenience wrapper."""

    @pytest.mark.asyncio
    async def test_poll_task(self, record):
        async def fetch(task_id):
            return record("succeeded", task_id=task_id, result={"ok": True})

        result = await poll_task("t-2", fetch, interval=0.01, timeout=1)

        assert result.task_id == "t-2"
        assert result.result == {"ok": True}
