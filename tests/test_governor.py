"""Tests for src.provenance.governor covering pacing and rate-limit interception.

Run with coverage:
    pytest tests/test_governor.py --maxfail=1 -v --cov=src.provenance.governor --cov-report=term-missing
"""

import datetime as dt

from src.provenance.governor import RateGovernor
from src.provenance.outcomes import Ok, RateLimited, TransientError


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_call_is_not_delayed():
    clock = FakeClock()
    governor = RateGovernor(0.5, clock=clock, sleeper=clock.sleep)
    assert governor.call(lambda: Ok(1)) == Ok(1)
    assert clock.sleeps == []
    assert governor.calls == 1


def test_pacing_floor_between_consecutive_calls():
    clock = FakeClock()
    governor = RateGovernor(0.5, clock=clock, sleeper=clock.sleep)
    governor.call(lambda: Ok(1))
    clock.now += 0.2
    governor.call(lambda: Ok(2))
    assert len(clock.sleeps) == 1
    assert abs(clock.sleeps[0] - 0.3) < 1e-9

    clock.now += 5
    governor.call(lambda: Ok(3))
    assert len(clock.sleeps) == 1


def test_zero_interval_never_sleeps():
    clock = FakeClock()
    governor = RateGovernor(0, clock=clock, sleeper=clock.sleep)
    for _ in range(3):
        governor.call(lambda: Ok(None))
    assert clock.sleeps == []


def test_call_forwards_arguments():
    governor = RateGovernor(0)
    outcome = governor.call(lambda a, b, c=None: Ok((a, b, c)), 1, 2, c=3)
    assert outcome == Ok((1, 2, 3))


def test_rate_limit_is_surfaced_not_retried(capsys):
    reset = dt.datetime(2024, 1, 1, 12, 0, tzinfo=dt.timezone.utc)
    attempts = []

    def limited():
        attempts.append(1)
        return RateLimited(reset, "API rate limit exceeded")

    governor = RateGovernor(0)
    outcome = governor.call(limited)
    assert isinstance(outcome, RateLimited)
    assert len(attempts) == 1
    assert governor.rate_limited is outcome
    assert "2024-01-01T12:00:00Z" in capsys.readouterr().out


def test_transient_errors_do_not_flag_rate_limit():
    governor = RateGovernor(0)
    outcome = governor.call(lambda: TransientError("boom", 500))
    assert isinstance(outcome, TransientError)
    assert governor.rate_limited is None
