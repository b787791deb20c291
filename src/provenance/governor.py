"""Request pacing and rate-limit interception for gateway calls."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

from .config import PACING_DELAY_SEC
from .outcomes import Outcome, RateLimited, format_reset


class RateGovernor:
    """Enforce a fixed pacing floor between calls and surface rate limits.

    The governor never retries: a ``RateLimited`` outcome is logged, remembered
    in ``rate_limited`` and handed back so the caller can stop the run.
    """

    def __init__(
        self,
        min_interval_sec: float = PACING_DELAY_SEC,
        clock: Callable[[], float] = time.monotonic,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval_sec = max(0.0, float(min_interval_sec))
        self._clock = clock
        self._sleep = sleeper
        self._last_call: Optional[float] = None
        self.calls = 0
        self.rate_limited: Optional[RateLimited] = None

    def pace(self) -> None:
        """Sleep until at least ``min_interval_sec`` has passed since the last call."""
        if self._last_call is None or self.min_interval_sec <= 0:
            return
        remaining = self.min_interval_sec - (self._clock() - self._last_call)
        if remaining > 0:
            self._sleep(remaining)

    def call(self, fn: Callable[..., Outcome], *args: Any, **kwargs: Any) -> Outcome:
        self.pace()
        self._last_call = self._clock()
        self.calls += 1
        outcome = fn(*args, **kwargs)
        if isinstance(outcome, RateLimited):
            self.rate_limited = outcome
            print(f"[rate-limit] {outcome.message}; resets at {format_reset(outcome.reset_at)}")
        return outcome


__all__ = ["RateGovernor"]
