# prime_search/state.py
"""
Shared, independently locked state.

  ProgressStore    durable "next digit length" (state.json)
  CurrentDigits    the live digit length, published by the escalation loop
  FoundPrimeSignal one-shot edge trigger from workers to the escalation loop
  SearchCounters   process-wide aggregate statistics

Each object owns its own lock. No method holds more than one of them.
"""
from __future__ import annotations
import json
import logging
import os
import threading
import time
from typing import Any, Dict

from .contracts import CounterSnapshot

logger = logging.getLogger(__name__)

STATE_KEY = "current_digit_length"
DEFAULT_DIGITS = 1


class ProgressStore:
    """JSON checkpoint holding one integer. Missing or garbled -> 1."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def load(self) -> int:
        with self._lock:
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    doc = json.load(f)
            except FileNotFoundError:
                return DEFAULT_DIGITS
            except (OSError, ValueError) as exc:
                logger.warning("Unreadable state %s (%s); starting at %d", self.path, exc, DEFAULT_DIGITS)
                return DEFAULT_DIGITS

        # A bare integer is accepted too (plain-text checkpoints).
        value = doc.get(STATE_KEY) if isinstance(doc, dict) else doc
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            logger.warning("Invalid %s in %s: %r; starting at %d", STATE_KEY, self.path, value, DEFAULT_DIGITS)
            return DEFAULT_DIGITS
        return value

    def save(self, digit_length: int) -> bool:
        """
        Atomic full overwrite. Windows-safe with retry for antivirus locks.
        Write failures are logged and skipped, never raised.
        """
        doc: Dict[str, Any] = {STATE_KEY: int(digit_length)}
        data = json.dumps(doc, indent=2, sort_keys=True)
        tmp = self.path + ".tmp"

        with self._lock:
            try:
                with open(tmp, "w", encoding="utf-8") as f:
                    f.write(data)

                for attempt in range(5):
                    try:
                        os.replace(tmp, self.path)
                        return True
                    except PermissionError:
                        time.sleep(0.05 * (attempt + 1))

                # Fallback: direct write (non-atomic but functional)
                try:
                    os.remove(tmp)
                except OSError:
                    pass
                with open(self.path, "w", encoding="utf-8") as f:
                    f.write(data)
                return True
            except OSError as exc:
                logger.warning("Checkpoint to %s skipped: %s", self.path, exc)
                return False


class CurrentDigits:
    """Externally visible digit length; read by checkpointing."""

    def __init__(self, initial: int = DEFAULT_DIGITS):
        self._lock = threading.Lock()
        self._value = max(1, int(initial))

    def get(self) -> int:
        with self._lock:
            return self._value

    def publish(self, digit_length: int) -> None:
        with self._lock:
            self._value = max(1, int(digit_length))


class FoundPrimeSignal:
    """
    Set by any worker, read-and-cleared by the escalation loop.
    Several sets between two consumes collapse into one True.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._flag = False

    def set(self) -> None:
        with self._lock:
            self._flag = True

    def consume(self) -> bool:
        with self._lock:
            was_set = self._flag
            self._flag = False
            return was_set


class SearchCounters:
    """tests_run, primes_found, total_time_ms; monotonic for the process lifetime."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tests_run = 0
        self._primes_found = 0
        self._total_time_ms = 0.0

    def record(self, elapsed_ms: float, is_prime: bool) -> None:
        with self._lock:
            self._tests_run += 1
            self._total_time_ms += max(0.0, float(elapsed_ms))
            if is_prime:
                self._primes_found += 1

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(
                tests_run=self._tests_run,
                primes_found=self._primes_found,
                total_time_ms=self._total_time_ms,
            )
