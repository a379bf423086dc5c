import random

import pytest

from logprobe_harness.backoff import Backoff, retry
from logprobe_harness.errors import DeadlineExceeded
from logprobe_sdk.errors import LogDeadlineExceeded, LogRequestRejected, LogUnavailable


def test_durations_grow_to_cap_without_jitter():
    b = Backoff(jitter=False)
    got = [b.duration() for _ in range(10)]
    assert got[:4] == pytest.approx([0.1, 0.2, 0.4, 0.8])
    assert got[-1] == 10.0
    b.reset()
    assert b.duration() == pytest.approx(0.1)


def test_jitter_stays_in_range():
    b = Backoff(rng=random.Random(3))
    for attempt in range(12):
        cap = min(10.0, 0.1 * 2**attempt)
        assert 0.1 <= b.duration() <= cap


def test_retries_transient_errors_until_success(clock):
    outcomes = [LogUnavailable("busy"), LogDeadlineExceeded("slow"), "ok"]
    timeouts = []

    def fn(timeout):
        timeouts.append(timeout)
        out = outcomes.pop(0)
        if isinstance(out, Exception):
            raise out
        return out

    got = retry(fn, clock() + 30, Backoff(jitter=False), clock=clock, sleep=clock.sleep)
    assert got == "ok"
    assert clock.sleeps == pytest.approx([0.1, 0.2])
    assert timeouts[0] == 30 and timeouts[2] == pytest.approx(29.7)


def test_rejection_is_not_retried(clock):
    calls = []

    def fn(timeout):
        calls.append(timeout)
        raise LogRequestRejected("no", 400)

    with pytest.raises(LogRequestRejected):
        retry(fn, clock() + 30, clock=clock, sleep=clock.sleep)
    assert len(calls) == 1
    assert clock.sleeps == []


def test_deadline_bounds_all_attempts(clock):
    def fn(timeout):
        raise LogUnavailable("down")

    with pytest.raises(DeadlineExceeded, match="giving up") as e:
        retry(fn, clock() + 5, Backoff(jitter=False), clock=clock, sleep=clock.sleep, what="queue leaf 3")
    assert "queue leaf 3" in str(e.value)
    assert isinstance(e.value.__cause__, LogUnavailable)
    assert sum(clock.sleeps) < 5
