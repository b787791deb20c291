"""Lazy, capped pagination over the commits reachable from a branch tip."""

from __future__ import annotations

from typing import Iterator, Optional

from .config import PER_PAGE
from .governor import RateGovernor
from .http_client import GitHubGateway
from .models import CommitRecord
from .outcomes import Failure, Ok


class CommitPager:
    """Yield at most ``max_items`` commits, one page request at a time.

    Iteration is single-shot. When a page request fails the iterator stops and
    the failure is left in ``failure`` for the caller to inspect; the partial
    page is never retried.
    """

    def __init__(
        self,
        gateway: GitHubGateway,
        governor: RateGovernor,
        owner: str,
        repo: str,
        tip_sha: str,
        max_items: int,
        page_size: int = PER_PAGE,
    ) -> None:
        self.gateway = gateway
        self.governor = governor
        self.owner = owner
        self.repo = repo
        self.tip_sha = tip_sha
        self.max_items = max(0, int(max_items))
        self.page_size = max(1, min(int(page_size), PER_PAGE, self.max_items or 1))
        self.failure: Optional[Failure] = None
        self.yielded = 0
        self.cap_reached = False
        self._started = False

    def __iter__(self) -> Iterator[CommitRecord]:
        if self._started:
            raise RuntimeError("CommitPager cannot be restarted")
        self._started = True
        return self._iterate()

    def _iterate(self) -> Iterator[CommitRecord]:
        if self.max_items == 0:
            self.cap_reached = True
            return
        page = 1
        while self.yielded < self.max_items:
            outcome = self.governor.call(
                self.gateway.list_commits,
                self.owner,
                self.repo,
                self.tip_sha,
                self.page_size,
                page,
            )
            if not isinstance(outcome, Ok):
                self.failure = outcome
                return

            batch = outcome.value
            for commit in batch:
                yield commit
                self.yielded += 1
                if self.yielded >= self.max_items:
                    self.cap_reached = True
                    return

            if len(batch) < self.page_size:
                return
            page += 1


__all__ = ["CommitPager"]
