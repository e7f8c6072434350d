# prime_search/contracts.py
"""
Typed contracts for the escalating prime search.
Every value that crosses a thread boundary is one of these records.

Laws:
  - A Task is owned by exactly one worker once received.
  - A ResultRecord is immutable and append-only.
  - Counter snapshots are copies, never live views.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Literal
from datetime import datetime

Verdict = Literal["PRIME", "COMPOSITE"]

CSV_HEADER = ("Timestamp", "ThreadID", "Digits", "Number", "Result", "Reason", "TimeMs")


def now_iso() -> str:
    """Local, offset-aware ISO timestamp, second precision."""
    return datetime.now().astimezone().isoformat(timespec="seconds")


def decimal_length(n: int) -> int:
    """Digit count of ``n >= 0`` without building its decimal string."""
    if n < 10:
        return 1
    length = int(n.bit_length() * 0.30102999566398120)
    while 10 ** length <= n:
        length += 1
    while 10 ** (length - 1) > n:
        length -= 1
    return length


def shorten_number(n: int, max_len: int = 12) -> str:
    """Full decimal text if short, else ``first6...last6 (len:L)``."""
    try:
        s = str(n)
    except ValueError:
        # Past sys.get_int_max_str_digits(): slice the digits arithmetically.
        length = decimal_length(n)
        return f"{n // 10 ** (length - 6)}...{n % 10 ** 6:06d} (len:{length})"
    if len(s) <= max_len:
        return s
    return f"{s[:6]}...{s[-6:]} (len:{len(s)})"


@dataclass(frozen=True)
class Task:
    """One candidate, paired with the digit length it was generated for."""
    candidate: int
    digit_length: int


@dataclass(frozen=True)
class ResultRecord:
    """Outcome of one primality test, as handed to every sink."""
    timestamp: str
    worker_id: int
    digit_length: int
    candidate_display: str
    verdict: Verdict
    reason: str
    elapsed_ms: float

    @staticmethod
    def from_test(
        worker_id: int,
        task: Task,
        is_prime: bool,
        reason: str,
        elapsed_ms: float,
    ) -> "ResultRecord":
        """Factory: stamps the record and shortens the candidate."""
        return ResultRecord(
            timestamp=now_iso(),
            worker_id=worker_id,
            digit_length=task.digit_length,
            candidate_display=shorten_number(task.candidate),
            verdict="PRIME" if is_prime else "COMPOSITE",
            reason=reason,
            elapsed_ms=float(elapsed_ms),
        )

    @property
    def is_prime(self) -> bool:
        return self.verdict == "PRIME"

    def as_row(self) -> tuple:
        """Row in CSV_HEADER order."""
        return (
            self.timestamp,
            self.worker_id,
            self.digit_length,
            self.candidate_display,
            self.verdict,
            self.reason,
            f"{self.elapsed_ms:.3f}",
        )


@dataclass(frozen=True)
class CounterSnapshot:
    """Point-in-time copy of the aggregate counters."""
    tests_run: int = 0
    primes_found: int = 0
    total_time_ms: float = 0.0

    @property
    def average_ms(self) -> float:
        if self.tests_run == 0:
            return 0.0
        return self.total_time_ms / self.tests_run

