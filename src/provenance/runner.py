"""Entry points for classifying the commit history of one branch."""

from __future__ import annotations

import sys
from typing import List, Optional

from .aggregator import AnalysisReport, render_report, summarize_run
from .classifier import ProgressCallback, classify_commits, print_progress
from .config import (
    PER_PAGE,
    TOKEN_HELP,
    AnalysisSettings,
    parse_analysis_args,
    resolve_analysis_settings,
)
from .governor import RateGovernor
from .http_client import GitHubGateway
from .models import AnalysisRun, RunState
from .outcomes import NotFound, Ok, RateLimited, format_reset
from .pagination import CommitPager


def analyze_branch(
    gateway: GitHubGateway,
    owner: str,
    repo: str,
    branch: str,
    max_commits: int,
    *,
    governor: Optional[RateGovernor] = None,
    page_size: int = PER_PAGE,
    progress: Optional[ProgressCallback] = print_progress,
) -> AnalysisReport:
    """Resolve ``branch``, classify up to ``max_commits`` commits, and summarize the run."""
    governor = governor or RateGovernor()
    run = AnalysisRun(owner=owner, repo=repo, branch=branch, max_commits=max(0, int(max_commits)))

    print(f"\nAnalyzing commits for {owner}/{repo} on branch {branch}")
    print("----------------------------------------")

    resolved = governor.call(gateway.resolve_branch, owner, repo, branch)
    if isinstance(resolved, NotFound):
        run.not_found(resolved.message)
    elif isinstance(resolved, RateLimited):
        run.halt_rate_limited(resolved.reset_at, f"branch lookup: {resolved.message}")
    elif not isinstance(resolved, Ok):
        run.halt_fatal(f"branch lookup failed: {resolved.message}")
    else:
        branch_ref = resolved.value
        run.resolved(branch_ref)
        pager = CommitPager(
            gateway,
            governor,
            owner,
            repo,
            branch_ref.tip_sha,
            run.max_commits,
            page_size=page_size,
        )
        classify_commits(run, pager, gateway, governor, progress=progress)

    return summarize_run(run)


def _print_quota(gateway: GitHubGateway, governor: RateGovernor) -> None:
    quota = governor.call(gateway.rate_limit)
    if isinstance(quota, Ok):
        info = quota.value
        print(
            f"[info] core quota {info.get('remaining')}/{info.get('limit')}, "
            f"resets at {format_reset(info.get('reset_at'))}"
        )


def run_analysis(settings: AnalysisSettings) -> AnalysisReport:
    """Build the gateway for ``settings`` and run a single analysis."""
    gateway = GitHubGateway(settings.token, base_url=settings.base_url)
    governor = RateGovernor(settings.pacing_delay_sec)
    _print_quota(gateway, governor)
    return analyze_branch(
        gateway,
        settings.owner,
        settings.repo,
        settings.branch,
        settings.max_commits,
        governor=governor,
        page_size=settings.page_size,
    )


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits non-zero unless the run completed."""
    args = parse_analysis_args(argv)
    try:
        settings = resolve_analysis_settings(args)
    except ValueError as exc:
        print(f"[error] {exc}")
        sys.exit(2)
    if not settings.token:
        print(f"[error] {TOKEN_HELP}")
        sys.exit(1)

    report = run_analysis(settings)
    print(render_report(report))
    if report.state is not RunState.COMPLETED:
        sys.exit(1)


__all__ = ["analyze_branch", "run_analysis", "main"]
