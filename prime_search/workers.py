# prime_search/workers.py
"""
Worker pool: N homogeneous threads draining the task channel.

Each worker computes and reports; it never touches the progress store.
Stop is checked before every blocking receive and right after waking.
"""
from __future__ import annotations
import logging
import threading
import time
from typing import List, Optional, Sequence

from .channel import TaskChannel
from .contracts import ResultRecord, Task
from .primality import is_prime
from .sinks import ResultSink
from .state import FoundPrimeSignal, SearchCounters

logger = logging.getLogger(__name__)


def run_test(worker_id: int, task: Task, rounds: int) -> ResultRecord:
    """Time one primality test and wrap the outcome."""
    t0 = time.perf_counter()
    prime, reason = is_prime(task.candidate, rounds)
    elapsed_ms = (time.perf_counter() - t0) * 1000.0
    return ResultRecord.from_test(worker_id, task, prime, reason, elapsed_ms)


class WorkerPool:
    def __init__(
        self,
        size: int,
        channel: TaskChannel,
        counters: SearchCounters,
        signal: FoundPrimeSignal,
        sinks: Sequence[ResultSink],
        stop_event: threading.Event,
        rounds: int = 10,
    ):
        if size < 1:
            raise ValueError(f"worker pool needs at least one worker, got {size}")
        self.size = size
        self.channel = channel
        self.counters = counters
        self.signal = signal
        self.sinks = list(sinks)
        self.stop_event = stop_event
        self.rounds = rounds
        self._threads: List[threading.Thread] = []

    def worker_loop(self, worker_id: int) -> None:
        while not self.stop_event.is_set():
            task = self.channel.recv()
            if task is None or self.stop_event.is_set():
                break

            record = run_test(worker_id, task, self.rounds)
            self.counters.record(record.elapsed_ms, record.is_prime)
            for sink in self.sinks:
                try:
                    sink.emit(record)
                except Exception:
                    logger.exception("Worker %d: sink %s failed; result not delivered there",
                                     worker_id, type(sink).__name__)
            if record.is_prime:
                self.signal.set()

        logger.debug("Worker %d exiting", worker_id)

    def start(self) -> None:
        for wid in range(self.size):
            t = threading.Thread(
                target=self.worker_loop,
                args=(wid,),
                name=f"prime-worker-{wid}",
                daemon=True,
            )
            t.start()
            self._threads.append(t)

    def join(self, timeout: Optional[float] = None) -> None:
        for t in self._threads:
            t.join(timeout)

    def alive(self) -> int:
        return sum(1 for t in self._threads if t.is_alive())
