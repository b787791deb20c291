"""Tests for src.provenance.aggregator covering percentages and report rendering.

Run with coverage:
    pytest tests/test_aggregator.py --maxfail=1 -v --cov=src.provenance.aggregator --cov-report=term-missing
"""

import datetime as dt

import pytest

from src.provenance import aggregator
from src.provenance.models import AnalysisRun, CommitRecord, ProvenanceLabel, RunState


def _run(direct=0, merged=0, skipped=0, max_commits=10):
    run = AnalysisRun(owner="apache", repo="hadoop", branch="trunk", max_commits=max_commits)
    index = 0
    for label, count in ((ProvenanceLabel.DIRECT, direct), (ProvenanceLabel.PULL_REQUEST_MERGED, merged)):
        for _ in range(count):
            run.record_label(CommitRecord(sha=f"s{index}"), label)
            index += 1
    for _ in range(skipped):
        run.record_skip(CommitRecord(sha=f"s{index}"), "boom")
        index += 1
    return run


@pytest.mark.parametrize(
    "direct, merged, expected",
    [(0, 0, 0.0), (5, 0, 100.0), (2, 2, 50.0), (1, 2, 33.33), (2, 1, 66.67), (0, 7, 0.0)],
)
def test_direct_percentage(direct, merged, expected):
    value = aggregator.direct_percentage(direct, merged)
    assert value == expected
    assert 0.0 <= value <= 100.0


def test_percentage_ignores_skipped_commits():
    run = _run(direct=1, merged=1, skipped=3)
    run.complete()
    report = aggregator.summarize_run(run)
    assert report.processed == 5
    assert report.labelled == 2
    assert report.direct_percentage == 50.0


def test_summarize_requires_finalized_run():
    with pytest.raises(RuntimeError):
        aggregator.summarize_run(_run(direct=1))


def test_render_completed_report():
    run = _run(direct=3, merged=1)
    run.complete()
    text = aggregator.render_report(aggregator.summarize_run(run))
    assert "apache/hadoop@trunk" in text
    assert "branch history exhausted" in text
    assert "Direct commits: 3" in text
    assert "PR-merged commits: 1" in text
    assert "Percentage of direct commits: 75.00%" in text


def test_render_distinguishes_cap_from_exhaustion():
    run = _run(direct=2, max_commits=2)
    run.complete(cap_reached=True)
    text = aggregator.render_report(aggregator.summarize_run(run))
    assert "commit cap of 2 reached" in text


def test_render_rate_limited_report_keeps_partial_counts():
    run = _run(direct=2)
    run.halt_rate_limited(dt.datetime(2024, 6, 1, 8, 30, tzinfo=dt.timezone.utc))
    text = aggregator.render_report(aggregator.summarize_run(run))
    assert "halted by rate limit (resets at 2024-06-01T08:30:00Z)" in text
    assert "Total commits analyzed: 2" in text


def test_render_fatal_and_not_found_reports():
    run = _run(direct=1)
    run.halt_fatal("commit listing failed: boom")
    assert "halted by fatal error: commit listing failed: boom" in aggregator.render_report(
        aggregator.summarize_run(run)
    )

    missing = AnalysisRun(owner="o", repo="r", branch="nope", max_commits=5)
    missing.not_found("Not Found")
    report = aggregator.summarize_run(missing)
    text = aggregator.render_report(report)
    assert report.state is RunState.NOT_FOUND
    assert "not found" in text
    assert "Direct commits" not in text
