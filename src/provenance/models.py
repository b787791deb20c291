"""Value types and the mutable run state for a single branch analysis."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class BranchReference:
    """A branch resolved to its tip commit."""

    owner: str
    repo: str
    branch: str
    tip_sha: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class CommitRecord:
    sha: str
    message: str = ""
    html_url: Optional[str] = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def headline(self) -> str:
        return self.message.splitlines()[0].strip() if self.message else ""


@dataclass(frozen=True)
class PullRequestRef:
    number: int
    title: str = ""
    state: str = ""
    merged_at: Optional[str] = None


class ProvenanceLabel(str, Enum):
    DIRECT = "direct"
    PULL_REQUEST_MERGED = "pr_merged"


@dataclass(frozen=True)
class SkippedDueToError:
    message: str


CommitOutcome = Union[ProvenanceLabel, SkippedDueToError]


class RunState(str, Enum):
    RESOLVING = "resolving"
    PAGINATING = "paginating"
    CLASSIFYING = "classifying"
    COMPLETED = "completed"
    HALTED_BY_RATE_LIMIT = "halted_by_rate_limit"
    HALTED_BY_FATAL_ERROR = "halted_by_fatal_error"
    NOT_FOUND = "not_found"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    RunState.COMPLETED,
    RunState.HALTED_BY_RATE_LIMIT,
    RunState.HALTED_BY_FATAL_ERROR,
    RunState.NOT_FOUND,
})


@dataclass
class AnalysisRun:
    """Aggregate state of one invocation.

    Counters only ever grow and ``processed == direct + pr_merged + skipped``
    holds after every record call. Once a terminal state is reached the run is
    finalized and every mutator raises ``RuntimeError``.
    """

    owner: str
    repo: str
    branch: str
    max_commits: int
    state: RunState = RunState.RESOLVING
    tip_sha: Optional[str] = None
    entries: List[Tuple[CommitRecord, CommitOutcome]] = field(default_factory=list)
    processed: int = 0
    direct: int = 0
    pr_merged: int = 0
    skipped: int = 0
    reset_at: Optional[dt.datetime] = None
    message: Optional[str] = None
    cap_reached: bool = False

    @property
    def finalized(self) -> bool:
        return self.state.is_terminal

    def _ensure_open(self) -> None:
        if self.finalized:
            raise RuntimeError(f"analysis run already finalized as {self.state.value}")

    def advance(self, state: RunState) -> None:
        """Move between the non-terminal phases (resolving, paginating, classifying)."""
        self._ensure_open()
        if state.is_terminal:
            raise ValueError(f"use the halt/complete helpers to enter {state.value}")
        self.state = state

    def resolved(self, branch_ref: BranchReference) -> None:
        self._ensure_open()
        self.tip_sha = branch_ref.tip_sha

    def record_label(self, commit: CommitRecord, label: ProvenanceLabel) -> None:
        self._ensure_open()
        self.entries.append((commit, label))
        if label is ProvenanceLabel.DIRECT:
            self.direct += 1
        else:
            self.pr_merged += 1
        self.processed += 1

    def record_skip(self, commit: CommitRecord, message: str) -> None:
        self._ensure_open()
        self.entries.append((commit, SkippedDueToError(message)))
        self.skipped += 1
        self.processed += 1

    def complete(self, cap_reached: bool = False) -> None:
        self._ensure_open()
        self.cap_reached = cap_reached
        self.state = RunState.COMPLETED

    def halt_rate_limited(self, reset_at: Optional[dt.datetime], message: Optional[str] = None) -> None:
        self._ensure_open()
        self.reset_at = reset_at
        self.message = message
        self.state = RunState.HALTED_BY_RATE_LIMIT

    def halt_fatal(self, message: str) -> None:
        self._ensure_open()
        self.message = message
        self.state = RunState.HALTED_BY_FATAL_ERROR

    def not_found(self, message: str) -> None:
        self._ensure_open()
        self.message = message
        self.state = RunState.NOT_FOUND


__all__ = [
    "BranchReference",
    "CommitRecord",
    "PullRequestRef",
    "ProvenanceLabel",
    "SkippedDueToError",
    "CommitOutcome",
    "RunState",
    "TERMINAL_STATES",
    "AnalysisRun",
]
