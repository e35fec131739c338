"""Pytest configuration and fixtures."""

from typing import Any, Dict, List, Optional

import pytest

from flowledger.tasks.models import TaskStatusRecord


class FakeClock:
    """Simulated monotonic clock; ``sleep`` advances it instead of waiting."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


class ScriptedFetch:
    """Status fetcher replaying a script of records; the last one repeats.

    Items may also be exceptions, which are raised instead of returned.
    ``cost`` simulates how long each request takes on the clock.
    """

    def __init__(self, script: List[Any], clock: Optional[FakeClock] = None, cost: float = 0.0):
        self.script = list(script)
        self.clock = clock
        self.cost = cost
        self.calls: List[str] = []

    async def __call__(self, task_id: str) -> TaskStatusRecord:
        index = min(len(self.calls), len(self.script) - 1)
        self.calls.append(task_id)
        if self.clock is not None:
            self.clock.now += self.cost
        item = self.script[index]
        if isinstance(item, BaseException):
            raise item
        return item


def make_record(status: str, task_id: str = "t-1", **fields: Any) -> TaskStatusRecord:
    data: Dict[str, Any] = {"task_id": task_id, "status": status}
    data.update(fields)
    return TaskStatusRecord.model_validate(data)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def record():
    """Factory for task status records."""
    return make_record


@pytest.fixture
def scripted_fetch(fake_clock):
    """Factory for scripted status fetchers bound to the fake clock."""

    def factory(script: List[Any], cost: float = 0.0) -> ScriptedFetch:
        return ScriptedFetch(script, clock=fake_clock, cost=cost)

    return factory


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate FLOWLEDGER_* settings from the developer's environment."""
    for key in (
        "FLOWLEDGER_API_BASE_URL",
        "FLOWLEDGER_HTTP_TIMEOUT",
        "FLOWLEDGER_POLL_INTERVAL",
        "FLOWLEDGER_POLL_TIMEOUT",
        "FLOWLEDGER_POLL_FETCH_RETRIES",
        "FLOWLEDGER_POLL_RETRY_BACKOFF",
        "FLOWLEDGER_DEBUG",
        "FLOWLEDGER_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("FLOWLEDGER_STATE_DIR", str(tmp_path / "state"))
    return tmp_path / "state"
