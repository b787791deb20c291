"""Tagged outcomes returned by every gateway call.

Callers match on the concrete type with ``isinstance`` instead of catching
exceptions, so a rate limit or a missing branch is an ordinary value.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    message: str = "not found"


@dataclass(frozen=True)
class RateLimited:
    reset_at: Optional[dt.datetime]
    message: str = "rate limit exceeded"


@dataclass(frozen=True)
class TransientError:
    message: str
    status: Optional[int] = None


Failure = Union[NotFound, RateLimited, TransientError]
Outcome = Union[Ok[Any], NotFound, RateLimited, TransientError]


def format_reset(reset_at: Optional[dt.datetime]) -> str:
    """Render a reset timestamp as an ISO UTC string, or 'unknown'."""
    if reset_at is None:
        return "unknown"
    return reset_at.astimezone(dt.timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


__all__ = [
    "Ok",
    "NotFound",
    "RateLimited",
    "TransientError",
    "Failure",
    "Outcome",
    "format_reset",
]
