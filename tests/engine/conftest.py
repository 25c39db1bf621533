"""
Dispatch Engine Test Fixtures.

Base fixtures:
  - Mocked clocks at a fixed time
  - Fake delivery transport with scripted failures
  - Recording notifier (inline notification sink)
  - Manual task factory: ticks only fire when a test says so
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from jetstream.engine import (
    DeliveryError,
    DispatchService,
    JobRequest,
    NotifyResult,
)


FIXED_DATETIME = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
FIXED_LOCAL_DATETIME = datetime(2026, 1, 1, 12, 30, 0)


class MockClock:
    """
    Mock clock for deterministic time control.

    Starts at a fixed epoch and advances only when explicitly ticked.
    """

    def __init__(self, start_time: datetime = FIXED_DATETIME):
        self._current = start_time

    def __call__(self) -> datetime:
        return self._current

    def tick(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def set(self, time: datetime) -> None:
        self._current = time


class FakeTransport:
    """
    Delivery transport recording every payload.

    Positions listed in `fail_positions` (1-based, counted over all
    deliveries) raise DeliveryError.
    """

    def __init__(self, fail_positions: Optional[set] = None, status_code: Optional[int] = 400):
        self.fail_positions = set(fail_positions or ())
        self.status_code = status_code
        self.deliveries: list[tuple[str, str, dict]] = []

    def deliver(self, bundle: str, credential: str, payload: dict) -> None:
        self.deliveries.append((bundle, credential, payload))
        if len(self.deliveries) in self.fail_positions:
            raise DeliveryError(self.status_code, f"rejected record {len(self.deliveries)}")


class BlockingTransport:
    """Transport that blocks inside deliver() until released."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def deliver(self, bundle: str, credential: str, payload: dict) -> None:
        self.calls += 1
        self.entered.set()
        self.release.wait(timeout=5)


class RecordingNotifier:
    """Notifier keeping every text it was asked to send."""

    def __init__(self, result: NotifyResult = NotifyResult.success()):
        self.result = result
        self.texts: list[str] = []

    def send(self, text: str) -> NotifyResult:
        self.texts.append(text)
        return self.result


class ManualTask:
    """RecurringTask stand-in; fire() runs the callback once."""

    def __init__(self, name: str, interval_seconds: float, callback: Callable[[], object]):
        self.name = name
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.cancel_calls = 0

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True
        self.cancel_calls += 1

    def fire(self):
        if self.cancelled:
            return None
        return self.callback()


class ManualTaskFactory:
    """Task factory remembering every task it created, by name."""

    def __init__(self):
        self.tasks: dict[str, ManualTask] = {}

    def __call__(self, name: str, interval_seconds: float, callback: Callable[[], object]) -> ManualTask:
        task = ManualTask(name, interval_seconds, callback)
        self.tasks[name] = task
        return task

    def for_job(self, job_id: str) -> ManualTask:
        return self.tasks[f"job-{job_id}"]

    def run_until_cancelled(self, job_id: str, max_ticks: int = 1000) -> int:
        """Fire a job's task until it cancels itself. Returns ticks fired."""
        task = self.for_job(job_id)
        fired = 0
        while not task.cancelled and fired < max_ticks:
            task.fire()
            fired += 1
        return fired


def make_records(count: int) -> tuple[dict, ...]:
    return tuple(
        {
            "advertising_id": f"adv-{i}",
            "appsflyer_id": f"af-{i}",
            "android_id": "",
            "country": "US",
            "user_ip": f"10.0.0.{i}",
            "eventname": "",
            "eventtime": "",
        }
        for i in range(1, count + 1)
    )


def make_request(count: int = 10, bundle: str = "com.example.app", days: float = 1) -> JobRequest:
    return JobRequest(
        bundle=bundle,
        credential="dev-key-secret",
        days=days,
        records=make_records(count),
        file_name="batch.csv",
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> MockClock:
    return MockClock()


@pytest.fixture
def local_clock() -> MockClock:
    return MockClock(FIXED_LOCAL_DATETIME)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def task_factory() -> ManualTaskFactory:
    return ManualTaskFactory()


@pytest.fixture
def service_factory(notifier, task_factory, clock, local_clock):
    """Build a DispatchService around a given transport."""

    def _create(transport, max_logs: int = 5000) -> DispatchService:
        return DispatchService.create(
            transport=transport,
            notifier=notifier,
            background_notifications=False,
            task_factory=task_factory,
            clock=clock,
            local_clock=local_clock,
            max_logs=max_logs,
        )

    return _create


@pytest.fixture
def service(service_factory, transport) -> DispatchService:
    return service_factory(transport)


@pytest.fixture
def request_factory() -> Callable[..., JobRequest]:
    return make_request


@pytest.fixture
def failing_transport() -> FakeTransport:
    """Deliveries 3 and 7 are rejected."""
    return FakeTransport(fail_positions={3, 7})


@pytest.fixture
def blocking_transport() -> BlockingTransport:
    transport = BlockingTransport()
    yield transport
    transport.release.set()
