# prime_search/generator.py
"""Random candidates with an exact decimal digit count."""
from __future__ import annotations
import os
import random
from typing import Optional

from .contracts import Task


def digit_bounds(digit_length: int) -> tuple[int, int]:
    """Closed range of integers with exactly ``digit_length`` digits (clamped to >= 1)."""
    d = max(1, int(digit_length))
    return 10 ** (d - 1), 10 ** d - 1


class CandidateGenerator:
    """
    One instance per generation session.

    The PRNG is seeded once from os.urandom at construction, not per call.
    Not thread-safe: the escalation loop is its only caller.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.Random(os.urandom(32))

    def generate(self, digit_length: int) -> int:
        lower, upper = digit_bounds(digit_length)
        return self._rng.randint(lower, upper)

    def make_task(self, digit_length: int) -> Task:
        d = max(1, int(digit_length))
        return Task(candidate=self.generate(d), digit_length=d)
