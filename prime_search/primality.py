# prime_search/primality.py
"""
Primality engine: sieve-backed trial division, then one Miller-Rabin witness.

Every rung of the ladder is decisive; nothing raises for integer input.
Verdicts above TRIAL_DIVISION_BOUND are probable, not proven.
"""
from __future__ import annotations
import logging
from typing import Tuple

from .contracts import shorten_number

logger = logging.getLogger(__name__)

SIEVE_LIMIT = 10_000
TRIAL_DIVISION_BOUND = 100_000_000
WITNESS_BASE = 2

# An odd composite below the bound always has a prime factor <= SIEVE_LIMIT.
if SIEVE_LIMIT * SIEVE_LIMIT < TRIAL_DIVISION_BOUND:
    raise RuntimeError(
        f"sieve limit {SIEVE_LIMIT} too small for trial-division bound {TRIAL_DIVISION_BOUND}"
    )


def build_small_primes(limit: int = SIEVE_LIMIT) -> Tuple[int, ...]:
    """Sieve of Eratosthenes: every prime <= ``limit``, ascending."""
    if limit < 2:
        return ()
    sieve = bytearray([1]) * (limit + 1)
    sieve[0] = sieve[1] = 0
    for i in range(2, int(limit ** 0.5) + 1):
        if sieve[i]:
            sieve[i * i :: i] = bytearray(len(range(i * i, limit + 1, i)))
    return tuple(i for i, flag in enumerate(sieve) if flag)


SMALL_PRIMES: Tuple[int, ...] = build_small_primes()


def miller_rabin_witness(n: int, base: int = WITNESS_BASE) -> Tuple[bool, str]:
    """
    Single strong-probable-prime check of odd ``n > 3`` against ``base``.

    Returns (passed, detail). A failure is a proof of compositeness;
    a pass is not a proof of primality.
    """
    d, s = n - 1, 0
    while d & 1 == 0:
        d >>= 1
        s += 1

    x = pow(base, d, n)
    if x == 1 or x == n - 1:
        return True, "witness passed"

    for _ in range(s - 1):
        x = pow(x, 2, n)
        if x == 1:
            return False, "x became 1 during squaring"
        if x == n - 1:
            return True, "witness passed"

    # One more squaring gives base^(n-1); 1 there means x was a nontrivial root of 1.
    if pow(x, 2, n) == 1:
        return False, "x became 1 during squaring"
    return False, "loop ended without reaching n - 1"


def is_prime(n: int, rounds: int = 10) -> Tuple[bool, str]:
    """
    Decide ``n`` and say why.

    ``rounds`` is accepted for interface compatibility; exactly one
    witness (base 2) is run whatever its value.
    """
    if n < 2:
        return False, "Less than 2"
    if n == 2 or n == 3:
        return True, "2 or 3"
    if n % 2 == 0:
        return False, "Even number"

    for p in SMALL_PRIMES:
        if n == p:
            return True, "Small prime"
        if n % p == 0:
            return False, f"Divisible by {p}"

    if n < TRIAL_DIVISION_BOUND:
        return True, "Passed trial division (small number)"

    passed, detail = miller_rabin_witness(n, WITNESS_BASE)
    if not passed:
        logger.debug(
            "Miller-Rabin FAIL (base %d): %s, n=%s",
            WITNESS_BASE, detail, shorten_number(n),
        )
        return False, f"Failed Miller-Rabin (base {WITNESS_BASE}): {detail}"

    return True, "Probably prime"
