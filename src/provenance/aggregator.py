"""Summary counts and the textual report for a finalized analysis run."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from .models import AnalysisRun, RunState
from .outcomes import format_reset


@dataclass(frozen=True)
class AnalysisReport:
    owner: str
    repo: str
    branch: str
    state: RunState
    requested: int
    processed: int
    direct: int
    pr_merged: int
    skipped: int
    direct_percentage: float
    reset_at: Optional[dt.datetime] = None
    message: Optional[str] = None
    cap_reached: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def labelled(self) -> int:
        return self.direct + self.pr_merged


def direct_percentage(direct: int, pr_merged: int) -> float:
    """Share of direct commits among labelled commits, 0.0 when nothing was labelled."""
    denominator = direct + pr_merged
    if denominator <= 0:
        return 0.0
    return round(direct / denominator * 100, 2)


def summarize_run(run: AnalysisRun) -> AnalysisReport:
    if not run.finalized:
        raise RuntimeError(f"cannot summarize a run still in state {run.state.value}")
    return AnalysisReport(
        owner=run.owner,
        repo=run.repo,
        branch=run.branch,
        state=run.state,
        requested=run.max_commits,
        processed=run.processed,
        direct=run.direct,
        pr_merged=run.pr_merged,
        skipped=run.skipped,
        direct_percentage=direct_percentage(run.direct, run.pr_merged),
        reset_at=run.reset_at,
        message=run.message,
        cap_reached=run.cap_reached,
    )


def describe_outcome(report: AnalysisReport) -> str:
    """One line explaining why the run ended."""
    if report.state is RunState.COMPLETED:
        if report.cap_reached:
            return f"completed (commit cap of {report.requested} reached)"
        return "completed (branch history exhausted)"
    if report.state is RunState.HALTED_BY_RATE_LIMIT:
        return f"halted by rate limit (resets at {format_reset(report.reset_at)}); counts are partial"
    if report.state is RunState.HALTED_BY_FATAL_ERROR:
        return f"halted by fatal error: {report.message or 'unknown error'}; counts are partial"
    if report.state is RunState.NOT_FOUND:
        return "repository or branch not found; check the owner, repo, and branch names"
    return report.state.value


def render_report(report: AnalysisReport) -> str:
    lines = [
        "",
        f"=== {report.full_name}@{report.branch} ===",
        f"Outcome: {describe_outcome(report)}",
    ]
    if report.state is RunState.NOT_FOUND:
        if report.message:
            lines.append(f"  -> {report.message}")
        return "\n".join(lines)

    lines.extend([
        f"Total commits analyzed: {report.processed} (requested up to {report.requested})",
        f"Direct commits: {report.direct}",
        f"PR-merged commits: {report.pr_merged}",
        f"Skipped after errors: {report.skipped}",
        f"Percentage of direct commits: {report.direct_percentage:.2f}%",
    ])
    return "\n".join(lines)


__all__ = ["AnalysisReport", "direct_percentage", "summarize_run", "describe_outcome", "render_report"]
