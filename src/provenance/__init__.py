"""Commit provenance analysis: direct pushes versus pull-request merges."""

from .aggregator import AnalysisReport, direct_percentage, render_report
from .runner import analyze_branch, main

__all__ = ["AnalysisReport", "analyze_branch", "direct_percentage", "main", "render_report"]
