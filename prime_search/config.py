# prime_search/config.py
from __future__ import annotations
import os
from pydantic import BaseModel, Field

from .escalation import DEFAULT_COOLDOWN, MAX_DIGITS

VERSION = "2.7"
MAX_WORKERS = 64
FALLBACK_WORKERS = 4


def default_workers() -> int:
    """Host core count, clamped to MAX_WORKERS; FALLBACK_WORKERS if unknown."""
    n = os.cpu_count() or 0
    if n <= 0:
        return FALLBACK_WORKERS
    return min(n, MAX_WORKERS)


class SearchConfig(BaseModel):
    """Everything a PrimeSearch run needs. All artefacts live in run_dir."""
    workers: int = Field(default_factory=default_workers, ge=1, le=MAX_WORKERS)
    # Accepted but unused beyond reporting: one Miller-Rabin witness is run.
    rounds: int = Field(default=10, ge=1)
    run_dir: str = "."
    cooldown: float = Field(default=DEFAULT_COOLDOWN, ge=0.0)
    max_digits: int = Field(default=MAX_DIGITS, ge=1)
    echo_results: bool = True

    state_file: str = "state.json"
    csv_file: str = "primes.csv"
    summary_file: str = "summary.txt"
    lock_file: str = "search.lock"

    def path(self, name: str) -> str:
        return os.path.join(self.run_dir, name)

    @property
    def state_path(self) -> str:
        return self.path(self.state_file)

    @property
    def csv_path(self) -> str:
        return self.path(self.csv_file)

    @property
    def summary_path(self) -> str:
        return self.path(self.summary_file)

    @property
    def lock_path(self) -> str:
        return self.path(self.lock_file)
