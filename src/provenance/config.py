"""Central configuration constants and CLI settings for the provenance workflows."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from src.secrets import load_github_token

USER_AGENT = "commit-provenance-miner/1.0"
BASE_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
PER_PAGE = 100
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "90"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "4"))
BACKOFF_BASE_SEC = 2
PACING_DELAY_SEC = float(os.getenv("PACING_DELAY_SEC", "0.1"))
DEFAULT_MAX_COMMITS = int(os.getenv("DEFAULT_MAX_COMMITS", "1000"))
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "./output")
RESULTS_FILENAME = "repos-results.txt"
DEFAULT_ORG = os.getenv("DEFAULT_ORG", "apache")
SHORTLIST_SIZE = int(os.getenv("SHORTLIST_SIZE", "30"))
SHORTLIST_LANGUAGE = os.getenv("SHORTLIST_LANGUAGE", "Java")
SHORTLIST_WINDOW = int(os.getenv("SHORTLIST_WINDOW", "0"))  # 0 = every candidate

TOKEN_HELP = (
    "A GitHub token is required before running the miner.\n"
    "  1. Create a fine-grained token at https://github.com/settings/personal-access-tokens/new\n"
    "     (read-only access to public repositories is enough).\n"
    "  2. Either export GITHUB_TOKEN=<token> or add {\"github_token\": \"<token>\"}\n"
    "     to local_secrets.json at the repository root."
)


@dataclass(frozen=True)
class AnalysisSettings:
    """Resolved runtime settings for one branch analysis."""

    owner: str
    repo: str
    branch: str
    max_commits: int
    token: Optional[str]
    page_size: int = PER_PAGE
    pacing_delay_sec: float = PACING_DELAY_SEC
    base_url: str = BASE_URL


@dataclass(frozen=True)
class ShortlistSettings:
    """Resolved runtime settings for the organization shortlist."""

    org: str
    language: str
    take: int
    window: int
    output_path: Path
    by_contributors: bool
    token: Optional[str]
    pacing_delay_sec: float = PACING_DELAY_SEC
    base_url: str = BASE_URL


def split_full_name(full_name: str) -> tuple[str, str]:
    """Split ``owner/repo`` into its parts, rejecting anything else."""
    owner, sep, repo = (full_name or "").strip().partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ValueError(f"expected 'owner/repo', got {full_name!r}")
    return owner, repo


def build_analysis_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the branch analysis entry point."""

    parser = argparse.ArgumentParser(
        description="Classify the commits of a branch as direct pushes or pull-request merges.",
    )
    parser.add_argument("repository", help="target repository as owner/repo")
    parser.add_argument("branch", help="branch name, e.g. main or trunk")
    parser.add_argument("--max-commits", type=int, default=DEFAULT_MAX_COMMITS)
    parser.add_argument("--page-size", type=int, default=PER_PAGE)
    parser.add_argument("--pacing-delay", type=float, default=PACING_DELAY_SEC)
    parser.add_argument("--token", default=None, help="overrides local_secrets.json / GITHUB_TOKEN")
    return parser


def build_shortlist_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the repository shortlist entry point."""

    parser = argparse.ArgumentParser(
        description="Rank an organization's repositories and persist a shortlist.",
    )
    parser.add_argument("--org", default=DEFAULT_ORG)
    parser.add_argument("--language", default=SHORTLIST_LANGUAGE)
    parser.add_argument("--take", type=int, default=SHORTLIST_SIZE)
    parser.add_argument("--window", type=int, default=SHORTLIST_WINDOW)
    parser.add_argument("--output", default=os.path.join(OUTPUT_DIR, RESULTS_FILENAME))
    parser.add_argument("--by-contributors", action="store_true")
    parser.add_argument("--pacing-delay", type=float, default=PACING_DELAY_SEC)
    parser.add_argument("--token", default=None, help="overrides local_secrets.json / GITHUB_TOKEN")
    return parser


def parse_analysis_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse analysis arguments; accepts argv overrides for testing."""
    return build_analysis_parser().parse_args(argv)


def parse_shortlist_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse shortlist arguments; accepts argv overrides for testing."""
    return build_shortlist_parser().parse_args(argv)


def resolve_analysis_settings(args: argparse.Namespace) -> AnalysisSettings:
    """Return immutable analysis settings from parsed arguments."""

    owner, repo = split_full_name(args.repository)
    return AnalysisSettings(
        owner=owner,
        repo=repo,
        branch=args.branch,
        max_commits=max(0, int(args.max_commits)),
        token=args.token or load_github_token(),
        page_size=max(1, min(PER_PAGE, int(args.page_size))),
        pacing_delay_sec=max(0.0, float(args.pacing_delay)),
    )


def resolve_shortlist_settings(args: argparse.Namespace) -> ShortlistSettings:
    """Return immutable shortlist settings from parsed arguments."""

    return ShortlistSettings(
        org=args.org,
        language=args.language,
        take=max(0, int(args.take)),
        window=max(0, int(args.window)),
        output_path=Path(args.output),
        by_contributors=bool(args.by_contributors),
        token=args.token or load_github_token(),
        pacing_delay_sec=max(0.0, float(args.pacing_delay)),
    )


__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "API_VERSION",
    "PER_PAGE",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "BACKOFF_BASE_SEC",
    "PACING_DELAY_SEC",
    "DEFAULT_MAX_COMMITS",
    "OUTPUT_DIR",
    "RESULTS_FILENAME",
    "DEFAULT_ORG",
    "SHORTLIST_SIZE",
    "SHORTLIST_LANGUAGE",
    "SHORTLIST_WINDOW",
    "TOKEN_HELP",
    "AnalysisSettings",
    "ShortlistSettings",
    "split_full_name",
    "build_analysis_parser",
    "build_shortlist_parser",
    "parse_analysis_args",
    "parse_shortlist_args",
    "resolve_analysis_settings",
    "resolve_shortlist_settings",
]
