"""Label each commit as a direct push or a pull-request merge."""

from __future__ import annotations

from typing import Callable, Optional

from .governor import RateGovernor
from .http_client import GitHubGateway
from .models import AnalysisRun, CommitRecord, ProvenanceLabel, RunState
from .outcomes import Ok, RateLimited
from .pagination import CommitPager

ProgressCallback = Callable[[int, int], None]


def print_progress(processed: int, cap: int) -> None:
    """Rewrite a single console line with the running count."""
    print(f"\r  processing commits: {processed}/{cap}", end="", flush=True)


def label_for(pull_requests: list) -> ProvenanceLabel:
    return ProvenanceLabel.PULL_REQUEST_MERGED if pull_requests else ProvenanceLabel.DIRECT


def classify_commit(
    run: AnalysisRun,
    commit: CommitRecord,
    gateway: GitHubGateway,
    governor: RateGovernor,
) -> bool:
    """Classify one commit into ``run``; return False when the run must stop."""
    outcome = governor.call(gateway.pull_requests_for_commit, run.owner, run.repo, commit.sha)
    if isinstance(outcome, Ok):
        run.record_label(commit, label_for(outcome.value))
        return True
    if isinstance(outcome, RateLimited):
        run.halt_rate_limited(outcome.reset_at, outcome.message)
        return False
    message = getattr(outcome, "message", "") or type(outcome).__name__
    print(f"\n[warn] skipping commit {commit.short_sha} \"{commit.headline}\" in {run.owner}/{run.repo}: {message}")
    run.record_skip(commit, message)
    return True


def classify_commits(
    run: AnalysisRun,
    commits: CommitPager,
    gateway: GitHubGateway,
    governor: RateGovernor,
    progress: Optional[ProgressCallback] = print_progress,
) -> AnalysisRun:
    """Drain ``commits`` sequentially and finalize ``run`` with its terminal state."""
    run.advance(RunState.PAGINATING)
    for commit in commits:
        if run.state is RunState.PAGINATING:
            run.advance(RunState.CLASSIFYING)
        if not classify_commit(run, commit, gateway, governor):
            return run
        if progress:
            progress(run.processed, run.max_commits)

    failure = commits.failure
    if isinstance(failure, RateLimited):
        run.halt_rate_limited(failure.reset_at, f"commit listing: {failure.message}")
    elif failure is not None:
        run.halt_fatal(f"commit listing failed: {failure.message}")
    else:
        run.complete(cap_reached=commits.cap_reached)
    return run


__all__ = ["ProgressCallback", "print_progress", "label_for", "classify_commit", "classify_commits"]
