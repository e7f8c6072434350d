from __future__ import annotations
import random
import threading
import time

import pytest

from prime_search.channel import TaskChannel
from prime_search.generator import CandidateGenerator
from prime_search.state import CurrentDigits, FoundPrimeSignal, ProgressStore, SearchCounters


class LowerBoundRandom(random.Random):
    """Always draws the smallest value: 1, 10, 100, ... (never prime)."""

    def randint(self, a, b):
        return a


class ObservedSignal(FoundPrimeSignal):
    """FoundPrimeSignal that also lets a test block until a worker sets it."""

    def __init__(self):
        super().__init__()
        self.fired = threading.Event()

    def set(self):
        super().set()
        self.fired.set()


class RecordingSink:
    def __init__(self):
        self._lock = threading.Lock()
        self.records = []

    def emit(self, record):
        with self._lock:
            self.records.append(record)


def wait_until(predicate, timeout=10.0, interval=0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def store(tmp_path):
    return ProgressStore(str(tmp_path / "state.json"))


@pytest.fixture
def parts(store):
    """Fresh shared-state objects, wired the way PrimeSearch wires them."""
    return {
        "channel": TaskChannel(),
        "signal": ObservedSignal(),
        "counters": SearchCounters(),
        "current": CurrentDigits(store.load()),
        "store": store,
        "stop_event": threading.Event(),
    }


@pytest.fixture
def lower_bound_generator():
    return CandidateGenerator(LowerBoundRandom())
