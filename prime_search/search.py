# prime_search/search.py
"""
Single control loop / multi-worker prime search.

Architecture invariants:
  1. ONE PRODUCER: only the escalation loop generates tasks and moves the digit length.
  2. LOCK ENFORCEMENT: search.lock prevents two searches sharing a run_dir.
  3. RESUME-SAFE: state.json always holds the digit length to try next.
  4. SIGNAL-SAFE STOP: request_stop() only sets an Event; all file I/O
     happens in shutdown(), on the caller's thread.
"""
from __future__ import annotations
import logging
import os
import threading
from typing import List, Optional, Sequence

from .channel import TaskChannel
from .config import SearchConfig
from .contracts import CounterSnapshot
from .escalation import EscalationLoop
from .generator import CandidateGenerator
from .sinks import ConsoleReporter, CsvResultSink, ResultSink, write_summary
from .state import CurrentDigits, FoundPrimeSignal, ProgressStore, SearchCounters
from .workers import WorkerPool

logger = logging.getLogger(__name__)


class SearchLockedError(RuntimeError):
    """Another search holds the run directory."""


class PrimeSearch:
    """
    Wires the escalation loop, channel and worker pool around shared state.

    Lifecycle: acquire_lock() -> start() -> wait() -> shutdown() -> release_lock(),
    or simply run().
    """

    def __init__(
        self,
        cfg: SearchConfig,
        generator: Optional[CandidateGenerator] = None,
        extra_sinks: Sequence[ResultSink] = (),
    ):
        self.cfg = cfg
        os.makedirs(cfg.run_dir, exist_ok=True)

        self.stop_event = threading.Event()
        self.channel = TaskChannel()
        self.signal = FoundPrimeSignal()
        self.counters = SearchCounters()
        self.store = ProgressStore(cfg.state_path)
        self.current = CurrentDigits(self.store.load())
        self.csv_sink = CsvResultSink(cfg.csv_path)

        sinks: List[ResultSink] = [self.csv_sink]
        if cfg.echo_results:
            sinks.append(ConsoleReporter())
        sinks.extend(extra_sinks)

        self.loop = EscalationLoop(
            generator=generator or CandidateGenerator(),
            channel=self.channel,
            signal=self.signal,
            current=self.current,
            store=self.store,
            stop_event=self.stop_event,
            cooldown=cfg.cooldown,
            max_digits=cfg.max_digits,
        )
        self.pool = WorkerPool(
            size=cfg.workers,
            channel=self.channel,
            counters=self.counters,
            signal=self.signal,
            sinks=sinks,
            stop_event=self.stop_event,
            rounds=cfg.rounds,
        )
        self._producer: Optional[threading.Thread] = None
        self._finished = False

    # ─────────────── locking ───────────────
    def acquire_lock(self) -> None:
        """Acquire exclusive run-directory lock. Raises if already held."""
        try:
            fd = os.open(self.cfg.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            raise SearchLockedError(
                f"Lock exists ({self.cfg.lock_path}). "
                "Another search is running or a previous run crashed. "
                "Delete the lock manually only if you are certain no other instance is active."
            ) from None
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(str(os.getpid()))

    def release_lock(self) -> None:
        try:
            os.remove(self.cfg.lock_path)
        except FileNotFoundError:
            pass

    # ─────────────── lifecycle ───────────────
    def start(self) -> None:
        self.csv_sink.ensure_header()
        self._producer = threading.Thread(
            target=self.loop.run, name="prime-escalation", daemon=True,
        )
        self._producer.start()
        self.pool.start()

    def request_stop(self) -> None:
        """Only flips the stop flag; safe to call from a signal handler."""
        self.stop_event.set()

    def checkpoint(self) -> bool:
        return self.store.save(self.current.get())

    def wait(self, poll: float = 0.5) -> None:
        """Block the caller until stop is requested or the producer dies."""
        while not self.stop_event.wait(poll):
            if self._producer is not None and not self._producer.is_alive():
                logger.error("Escalation loop exited unexpectedly; stopping")
                self.stop_event.set()

    def shutdown(self, join_timeout: Optional[float] = None) -> CounterSnapshot:
        """
        Stop everything, checkpoint, write the summary.
        In-flight tests finish first unless ``join_timeout`` elapses.
        """
        if self._finished:
            return self.counters.snapshot()
        self.stop_event.set()
        self.checkpoint()
        self.channel.close()

        if self._producer is not None:
            self._producer.join(join_timeout)
        self.pool.join(join_timeout)

        self.checkpoint()
        snap = self.counters.snapshot()
        write_summary(self.cfg.summary_path, snap)
        self._finished = True
        logger.info(
            "Search stopped: %d tests, %d primes, next digit length %d",
            snap.tests_run, snap.primes_found, self.current.get(),
        )
        return snap

    def run(self) -> CounterSnapshot:
        """acquire_lock -> start -> wait -> shutdown, always releasing the lock."""
        self.acquire_lock()
        try:
            self.start()
            self.wait()
            return self.shutdown()
        finally:
            self.release_lock()
