"""Tests for src.provenance.classifier covering labelling, skips, and halts.

Run with coverage:
    pytest tests/test_classifier.py --maxfail=1 -v --cov=src.provenance.classifier --cov-report=term-missing
"""

import datetime as dt
from unittest.mock import MagicMock

from src.provenance import classifier
from src.provenance.governor import RateGovernor
from src.provenance.models import (
    AnalysisRun,
    CommitRecord,
    ProvenanceLabel,
    PullRequestRef,
    RunState,
    SkippedDueToError,
)
from src.provenance.outcomes import NotFound, Ok, RateLimited, TransientError
from src.provenance.pagination import CommitPager

RESET = dt.datetime(2024, 6, 1, 8, 30, tzinfo=dt.timezone.utc)


def _commits(count):
    return [CommitRecord(sha=f"sha{i}", message=f"commit {i}") for i in range(1, count + 1)]


def _setup(commit_pages, pr_outcomes, max_commits=10):
    gateway = MagicMock()
    gateway.list_commits.side_effect = list(commit_pages)
    gateway.pull_requests_for_commit.side_effect = list(pr_outcomes)
    governor = RateGovernor(0)
    run = AnalysisRun(owner="o", repo="r", branch="main", max_commits=max_commits)
    pager = CommitPager(gateway, governor, "o", "r", "tip", max_commits)
    return run, pager, gateway, governor


def _check_invariant(run):
    assert run.processed == run.direct + run.pr_merged + run.skipped


def test_label_for_uses_association_presence():
    assert classifier.label_for([]) is ProvenanceLabel.DIRECT
    assert classifier.label_for([PullRequestRef(number=1)]) is ProvenanceLabel.PULL_REQUEST_MERGED


def test_classify_commits_labels_every_commit():
    pr = Ok([PullRequestRef(number=9)])
    run, pager, gateway, governor = _setup([Ok(_commits(4))], [Ok([]), pr, Ok([]), pr])
    seen = []

    def progress(processed, cap):
        _check_invariant(run)
        seen.append((processed, cap))

    classifier.classify_commits(run, pager, gateway, governor, progress=progress)

    assert run.state is RunState.COMPLETED
    assert (run.processed, run.direct, run.pr_merged, run.skipped) == (4, 2, 2, 0)
    assert [label for _, label in run.entries] == [
        ProvenanceLabel.DIRECT,
        ProvenanceLabel.PULL_REQUEST_MERGED,
        ProvenanceLabel.DIRECT,
        ProvenanceLabel.PULL_REQUEST_MERGED,
    ]
    assert seen == [(1, 10), (2, 10), (3, 10), (4, 10)]
    assert run.cap_reached is False


def test_transient_lookup_error_skips_single_commit(capsys):
    outcomes = [Ok([]), Ok([]), TransientError("server hiccup", 502), Ok([]), Ok([])]
    run, pager, gateway, governor = _setup([Ok(_commits(5))], outcomes)

    classifier.classify_commits(run, pager, gateway, governor, progress=None)

    assert run.state is RunState.COMPLETED
    assert (run.processed, run.direct, run.skipped) == (5, 4, 1)
    skipped_commit, outcome = run.entries[2]
    assert skipped_commit.sha == "sha3"
    assert outcome == SkippedDueToError("server hiccup")
    assert "skipping commit sha3 \"commit 3\"" in capsys.readouterr().out


def test_not_found_lookup_is_treated_as_skip():
    run, pager, gateway, governor = _setup([Ok(_commits(2))], [NotFound("No commit found"), Ok([])])
    classifier.classify_commits(run, pager, gateway, governor, progress=None)
    assert run.skipped == 1 and run.direct == 1
    assert run.state is RunState.COMPLETED


def test_rate_limit_halts_before_remaining_commits():
    outcomes = [Ok([]), Ok([]), RateLimited(RESET, "API rate limit exceeded")]
    run, pager, gateway, governor = _setup([Ok(_commits(5))], outcomes)

    classifier.classify_commits(run, pager, gateway, governor, progress=None)

    assert run.state is RunState.HALTED_BY_RATE_LIMIT
    assert run.processed == 2
    assert run.reset_at == RESET
    assert [commit.sha for commit, _ in run.entries] == ["sha1", "sha2"]
    assert gateway.pull_requests_for_commit.call_count == 3
    _check_invariant(run)


def test_pagination_rate_limit_halts_with_partial_counts():
    run, pager, gateway, governor = _setup(
        [Ok(_commits(2)), RateLimited(RESET)],
        [Ok([]), Ok([])],
    )
    pager.page_size = 2

    classifier.classify_commits(run, pager, gateway, governor, progress=None)

    assert run.state is RunState.HALTED_BY_RATE_LIMIT
    assert run.processed == 2
    assert run.reset_at == RESET


def test_pagination_transient_error_is_fatal():
    run, pager, gateway, governor = _setup([TransientError("upstream broke", 500)], [])

    classifier.classify_commits(run, pager, gateway, governor, progress=None)

    assert run.state is RunState.HALTED_BY_FATAL_ERROR
    assert "upstream broke" in run.message
    assert run.processed == 0
    gateway.pull_requests_for_commit.assert_not_called()


def test_cap_reached_is_a_normal_completion():
    run, pager, gateway, governor = _setup([Ok(_commits(3))], [Ok([])] * 3, max_commits=3)
    classifier.classify_commits(run, pager, gateway, governor, progress=None)
    assert run.state is RunState.COMPLETED
    assert run.cap_reached is True
    assert run.processed == 3


def test_print_progress_rewrites_line(capsys):
    classifier.print_progress(2, 5)
    assert capsys.readouterr().out == "\r  processing commits: 2/5"
