import threading
from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """
    Controllable UTC clock. Every call advances by `tick` so commits
    from concurrent threads get strictly increasing timestamps.
    """

    def __init__(self, start: datetime = None, tick: timedelta = timedelta(milliseconds=1)):
        self.now = start or datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
        self.tick = tick
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            current = self.now
            self.now = current + self.tick
            return current

    def advance(self, delta: timedelta):
        with self._lock:
            self.now += delta

    def set(self, value: datetime):
        with self._lock:
            self.now = value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
