"""Entry point that builds and persists the repository shortlist."""

from __future__ import annotations

import sys
from typing import List, Optional

from src.provenance.config import TOKEN_HELP, ShortlistSettings, parse_shortlist_args, resolve_shortlist_settings
from src.provenance.governor import RateGovernor
from src.provenance.http_client import GitHubGateway
from src.provenance.outcomes import format_reset

from .shortlist import (
    fetch_org_repos,
    filter_candidates,
    full_name,
    print_results,
    rank_by_contributors,
    rank_repositories,
    write_results,
)


def build_shortlist(settings: ShortlistSettings,
                    gateway: Optional[GitHubGateway] = None,
                    governor: Optional[RateGovernor] = None) -> Optional[List[str]]:
    """Run the shortlist workflow and return the persisted ``owner/name`` list.

    Returns None, leaving the results file untouched, when the repository
    listing or the contributor counts could not be completed.
    """
    gateway = gateway or GitHubGateway(settings.token, base_url=settings.base_url)
    governor = governor or RateGovernor(settings.pacing_delay_sec)

    print(f"  fetching repositories for {settings.org}...")
    repos, failure = fetch_org_repos(gateway, governor, settings.org)
    if failure is not None:
        print(f"[error] unable to list repositories for {settings.org} "
              f"({len(repos)} fetched before the failure): {failure.message}")
        print(f"[error] shortlist halted; {settings.output_path} left unchanged")
        return None

    candidates = filter_candidates(repos, settings.language)
    print(f"  {len(candidates)} of {len(repos)} repositories match {settings.language}")
    ranked = rank_repositories(candidates, settings.take, settings.window)

    if settings.by_contributors:
        print("  ranking shortlist by contributor count...")
        counted, limited = rank_by_contributors(gateway, governor, ranked, settings.take)
        if limited is not None:
            print(f"[error] shortlist halted by rate limit (resets at {format_reset(limited.reset_at)}); "
                  f"{settings.output_path} left unchanged")
            return None
        names = [full_name(repo) for repo, _ in counted]
    else:
        names = [full_name(repo) for repo in ranked]

    write_results(settings.output_path, names)
    print(f"  wrote {len(names)} repositories -> {settings.output_path}")
    print_results(names)
    return names


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for the organization shortlist; exits non-zero when halted."""
    settings = resolve_shortlist_settings(parse_shortlist_args(argv))
    if not settings.token:
        print(f"[error] {TOKEN_HELP}")
        sys.exit(1)
    if build_shortlist(settings) is None:
        sys.exit(1)


__all__ = ["build_shortlist", "main"]
