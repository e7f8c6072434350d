# prime_search/sinks.py
"""
Result sinks: where completed tests go.

CsvResultSink is the durable log (header row created on first use).
ConsoleReporter echoes each result. write_summary() runs once at shutdown.
Storage failures are logged and skipped; a sink never raises into a worker.
"""
from __future__ import annotations
import csv
import logging
import os
import threading
from typing import List, Protocol

from .contracts import CSV_HEADER, CounterSnapshot, ResultRecord

logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    def emit(self, record: ResultRecord) -> None: ...


class CsvResultSink:
    """Append-only CSV log. Each row is written under the sink's own lock."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def ensure_header(self) -> None:
        with self._lock:
            try:
                if os.path.exists(self.path) and os.path.getsize(self.path) > 0:
                    return
                with open(self.path, "w", encoding="utf-8", newline="") as f:
                    csv.writer(f).writerow(CSV_HEADER)
            except OSError as exc:
                logger.warning("Could not create %s: %s", self.path, exc)

    def emit(self, record: ResultRecord) -> None:
        with self._lock:
            try:
                with open(self.path, "a", encoding="utf-8", newline="") as f:
                    csv.writer(f).writerow(record.as_row())
            except OSError as exc:
                logger.warning("Result row skipped (%s): %s", self.path, exc)


class ConsoleReporter:
    """One line per result, plus its reason."""

    def __init__(self):
        self._lock = threading.Lock()

    def emit(self, record: ResultRecord) -> None:
        with self._lock:
            print(
                f"[Worker {record.worker_id}] {record.verdict}: {record.candidate_display} "
                f"(Digits: {record.digit_length}, Time: {record.elapsed_ms:.3f} ms)",
                flush=True,
            )
            print(f"Reason: {record.reason}", flush=True)


def summary_lines(snap: CounterSnapshot) -> List[str]:
    return [
        f"Total Primes Found: {snap.primes_found}",
        f"Total Tests: {snap.tests_run}",
        f"Average Time: {snap.average_ms:.3f} ms",
    ]


def write_summary(path: str, snap: CounterSnapshot, title: str = "Prime Search Summary") -> bool:
    """Overwrite the summary report. Returns False if it could not be written."""
    body = [title, "=" * len(title), *summary_lines(snap)]
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(body) + "\n")
        return True
    except OSError as exc:
        logger.warning("Summary not written (%s): %s", path, exc)
        return False
