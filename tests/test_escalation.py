import threading

from prime_search.escalation import EscalationLoop, MAX_DIGITS, next_digit_length
from prime_search.generator import CandidateGenerator
from prime_search.workers import WorkerPool

from conftest import RecordingSink, wait_until


def drain(channel):
    tasks = []
    while True:
        task = channel.recv(timeout=0)
        if task is None:
            return tasks
        tasks.append(task)


def make_loop(parts, generator=None, wait=None, max_digits=MAX_DIGITS):
    return EscalationLoop(
        generator=generator or CandidateGenerator(),
        channel=parts["channel"],
        signal=parts["signal"],
        current=parts["current"],
        store=parts["store"],
        stop_event=parts["stop_event"],
        cooldown=2.0,
        max_digits=max_digits,
        wait=wait or (lambda seconds: None),
    )


def test_policy_resets_after_hit():
    for k in (1, 2, 5, 300):
        assert next_digit_length(k, True) == 1


def test_policy_climbs_by_one():
    for k in (1, 2, 5, 300):
        assert next_digit_length(k, False) == k + 1


def test_policy_ceiling():
    assert next_digit_length(10, False, max_digits=10) == 10
    assert next_digit_length(9, False, max_digits=10) == 10


def test_steps_escalate_without_signal(parts):
    loop = make_loop(parts)
    assert [loop.step() for _ in range(4)] == [2, 3, 4, 5]
    assert [t.digit_length for t in drain(parts["channel"])] == [1, 2, 3, 4]
    assert parts["current"].get() == 5


def test_step_waits_the_cooldown(parts):
    waits = []
    loop = make_loop(parts, wait=waits.append)
    loop.step()
    assert waits == [2.0]


def test_signal_during_cooldown_resets_to_one(parts):
    parts["current"].publish(5)

    def worker_finds_prime(seconds):
        parts["signal"].set()
        parts["signal"].set()

    loop = make_loop(parts, wait=worker_finds_prime)
    assert loop.step() == 1

    loop._wait = lambda seconds: None
    assert loop.step() == 2
    assert [t.digit_length for t in drain(parts["channel"])] == [5, 1]


def test_run_checkpoints_next_length_on_stop(parts):
    calls = []

    def wait(seconds):
        calls.append(seconds)
        if len(calls) == 2:
            parts["stop_event"].set()

    loop = make_loop(parts, wait=wait)
    loop.run()

    assert [t.digit_length for t in drain(parts["channel"])] == [1, 2]
    assert parts["store"].load() == 3


def test_run_resumes_from_store(parts):
    parts["store"].save(8)
    parts["stop_event"].set()
    make_loop(parts).run()
    assert parts["current"].get() == 8
    assert parts["store"].load() == 8


def test_closed_channel_does_not_break_the_loop(parts):
    parts["channel"].close()
    assert make_loop(parts).step() == 2


def run_with_one_worker(parts, generator, on_wait):
    sink = RecordingSink()
    pool = WorkerPool(
        size=1,
        channel=parts["channel"],
        counters=parts["counters"],
        signal=parts["signal"],
        sinks=[sink],
        stop_event=parts["stop_event"],
    )
    pool.start()
    loop = make_loop(parts, generator=generator, wait=on_wait)
    return loop, pool, sink


def stop_pool(parts, pool):
    parts["stop_event"].set()
    parts["channel"].close()
    pool.join(timeout=5)
    assert pool.alive() == 0


def test_two_cooldowns_then_interrupt(parts, lower_bound_generator):
    calls = []

    def on_wait(seconds):
        calls.append(seconds)
        assert wait_until(lambda: parts["counters"].snapshot().tests_run == len(calls))
        if len(calls) == 2:
            parts["stop_event"].set()

    loop, pool, sink = run_with_one_worker(parts, lower_bound_generator, on_wait)
    loop.run()
    stop_pool(parts, pool)

    assert [r.digit_length for r in sink.records] == [1, 2]
    assert all(r.verdict == "COMPOSITE" for r in sink.records)
    assert parts["store"].load() == 3


class PrimeAtFive(CandidateGenerator):
    def generate(self, digit_length):
        return 10007 if digit_length == 5 else 10 ** (digit_length - 1)


def test_prime_at_five_digits_resets_next_task(parts):
    parts["current"].publish(5)

    def on_wait(seconds):
        assert parts["signal"].fired.wait(10)

    loop, pool, sink = run_with_one_worker(parts, PrimeAtFive(), on_wait)
    assert loop.step() == 1

    loop._wait = lambda seconds: wait_until(lambda: len(sink.records) >= 2)
    loop.step()
    stop_pool(parts, pool)

    assert [(r.digit_length, r.verdict) for r in sink.records] == [(5, "PRIME"), (1, "COMPOSITE")]
