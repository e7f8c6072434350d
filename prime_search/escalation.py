# prime_search/escalation.py
"""
Digit-escalation control loop (single owner thread).

Sawtooth pattern: each cycle climbs one digit until any worker reports a
prime, then the search restarts at one digit.

Cycle:
  1. generate a candidate at the current length, send it
  2. wait the cooldown (cut short by a stop request)
  3. read-and-clear the found-prime signal -> reset to 1, else +1 (capped)
  4. publish the new length
On exit the next length is checkpointed.
"""
from __future__ import annotations
import logging
import threading
from typing import Callable, Optional

from .channel import ChannelClosed, TaskChannel
from .generator import CandidateGenerator
from .state import CurrentDigits, FoundPrimeSignal, ProgressStore

logger = logging.getLogger(__name__)

MAX_DIGITS = 1_000_000
DEFAULT_COOLDOWN = 2.0


def next_digit_length(current: int, found_prime: bool, max_digits: int = MAX_DIGITS) -> int:
    """Reset to 1 after a hit, otherwise climb by one up to ``max_digits``."""
    if found_prime:
        return 1
    return min(current + 1, max_digits)


class EscalationLoop:
    def __init__(
        self,
        generator: CandidateGenerator,
        channel: TaskChannel,
        signal: FoundPrimeSignal,
        current: CurrentDigits,
        store: ProgressStore,
        stop_event: threading.Event,
        cooldown: float = DEFAULT_COOLDOWN,
        max_digits: int = MAX_DIGITS,
        wait: Optional[Callable[[float], object]] = None,
    ):
        self.generator = generator
        self.channel = channel
        self.signal = signal
        self.current = current
        self.store = store
        self.stop_event = stop_event
        self.cooldown = cooldown
        self.max_digits = max_digits
        # stop_event.wait returns early once stop is requested
        self._wait = wait if wait is not None else stop_event.wait

    def step(self) -> int:
        """Run one production cycle; return the published next digit length."""
        digits = self.current.get()
        task = self.generator.make_task(digits)
        try:
            self.channel.send(task)
        except ChannelClosed:
            logger.debug("Channel closed; dropping candidate at %d digits", digits)

        self._wait(self.cooldown)

        found = self.signal.consume()
        nxt = next_digit_length(digits, found, self.max_digits)
        if found:
            logger.info("Prime found; resetting search to 1 digit (was %d)", digits)
        self.current.publish(nxt)
        return nxt

    def run(self) -> None:
        """Loop until stop is requested, then checkpoint the next length."""
        self.current.publish(self.store.load())
        logger.info("Escalation loop starting at %d digits", self.current.get())
        try:
            while not self.stop_event.is_set():
                self.step()
        finally:
            final = self.current.get()
            self.store.save(final)
            logger.info("Escalation loop stopped; next digit length %d", final)
