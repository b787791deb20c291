"""Filter, rank, and persist an organization's repository shortlist."""

from __future__ import annotations

import os
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from src.provenance.config import PER_PAGE
from src.provenance.governor import RateGovernor
from src.provenance.http_client import GitHubGateway
from src.provenance.outcomes import Failure, Ok, RateLimited

Repo = Dict[str, Any]


def full_name(repo: Repo) -> str:
    name = repo.get("full_name")
    if name:
        return name
    owner = (repo.get("owner") or {}).get("login") or ""
    return f"{owner}/{repo.get('name') or ''}"


def _subscribers(repo: Repo) -> int:
    # the org listing omits subscribers_count; watchers_count is the closest signal it carries
    value = repo.get("subscribers_count")
    if value is None:
        value = repo.get("watchers_count")
    return int(value or 0)


# (name, sort key, descending); ties are always broken by full name ascending
CRITERIA: List[Tuple[str, Callable[[Repo], Any], bool]] = [
    ("size", lambda r: int(r.get("size") or 0), True),
    ("stars", lambda r: int(r.get("stargazers_count") or 0), True),
    ("subscribers", _subscribers, True),
    ("forks", lambda r: int(r.get("forks_count") or 0), True),
    ("age", lambda r: r.get("created_at") or "9999", False),
]


def fetch_org_repos(gateway: GitHubGateway, governor: RateGovernor, org: str) -> Tuple[List[Repo], Optional[Failure]]:
    """Page through every repository of ``org``; returns what was fetched plus any failure."""
    repos: List[Repo] = []
    page = 1
    while True:
        outcome = governor.call(gateway.list_org_repos, org, page, PER_PAGE)
        if not isinstance(outcome, Ok):
            print(f"[warn] repository listing for {org} stopped at page {page}")
            return repos, outcome
        batch = outcome.value
        repos.extend(batch)
        if len(batch) < PER_PAGE:
            return repos, None
        page += 1


def matches_language(repo: Repo, language: str) -> bool:
    target = (language or "").lower()
    if (repo.get("language") or "").lower() == target:
        return True
    return target in {str(topic).lower() for topic in (repo.get("topics") or [])}


def filter_candidates(repos: Iterable[Repo], language: str) -> List[Repo]:
    """Keep non-archived repositories written in, or tagged with, ``language``."""
    return [repo for repo in repos if not repo.get("archived") and matches_language(repo, language)]


def order_by(repos: List[Repo], key: Callable[[Repo], Any], descending: bool) -> List[Repo]:
    ordered = sorted(repos, key=full_name)
    return sorted(ordered, key=key, reverse=descending)


def rank_repositories(repos: List[Repo], take: int, window: int = 0) -> List[Repo]:
    """Intersect the top ``window`` of every criterion ordering and take the best ``take``.

    Survivors are ordered by the sum of their per-criterion positions, then by
    full name. ``window`` of 0 keeps every candidate in each ordering.
    """
    if not repos or take <= 0:
        return []
    positions: Dict[str, int] = {full_name(repo): 0 for repo in repos}
    surviving: Optional[Set[str]] = None
    for _, key, descending in CRITERIA:
        ordering = order_by(repos, key, descending)
        for index, repo in enumerate(ordering):
            positions[full_name(repo)] += index
        top = {full_name(repo) for repo in (ordering[:window] if window > 0 else ordering)}
        surviving = top if surviving is None else surviving & top

    by_name = {full_name(repo): repo for repo in repos}
    ranked = sorted(surviving or set(), key=lambda name: (positions[name], name))
    return [by_name[name] for name in ranked[:take]]


def count_contributors(gateway: GitHubGateway, governor: RateGovernor, owner: str, repo: str) -> Optional[int]:
    total = 0
    page = 1
    while True:
        outcome = governor.call(gateway.list_contributors, owner, repo, page, PER_PAGE)
        if not isinstance(outcome, Ok):
            return None
        batch = outcome.value
        total += len(batch)
        if len(batch) < PER_PAGE:
            return total
        page += 1


def rank_by_contributors(
    gateway: GitHubGateway,
    governor: RateGovernor,
    repos: List[Repo],
    take: int,
) -> Tuple[List[Tuple[Repo, int]], Optional[RateLimited]]:
    """Order ``repos`` by contributor count (desc, then full name) and keep ``take``.

    A rate limit stops the counting; the partial ranking is returned together
    with the ``RateLimited`` outcome so the caller can refuse to persist it.
    """
    counted: List[Tuple[Repo, int]] = []
    for repo in repos:
        name = full_name(repo)
        owner, _, short = name.partition("/")
        count = count_contributors(gateway, governor, owner, short)
        if governor.rate_limited is not None:
            print(f"[warn] rate limit reached while counting {name}; {len(repos) - len(counted)} repositories uncounted")
            return counted, governor.rate_limited
        if count is None:
            print(f"[warn] contributor lookup failed for {name}; ranking it with 0")
            count = 0
        counted.append((repo, count))
    counted.sort(key=lambda pair: (-pair[1], full_name(pair[0])))
    return counted[:max(0, take)], None


def write_results(path: str | os.PathLike, names: List[str]) -> None:
    """Overwrite ``path`` with one ``owner/name`` per line."""
    directory = os.path.dirname(os.fspath(path))
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        for name in names:
            fh.write(f"{name}\n")


def print_results(names: List[str]) -> None:
    print("\n=== Results ===\n")
    if not names:
        print("No results found.")
        return
    for index, name in enumerate(names, start=1):
        print(f"{index}. {name}")
    print(f"\nTotal items: {len(names)}")


__all__ = [
    "CRITERIA",
    "full_name",
    "fetch_org_repos",
    "matches_language",
    "filter_candidates",
    "order_by",
    "rank_repositories",
    "count_contributors",
    "rank_by_contributors",
    "write_results",
    "print_results",
]
