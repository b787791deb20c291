"""GitHub REST gateway with transport retry and tagged outcomes.

Every public call returns an :mod:`src.provenance.outcomes` value. Rate limits
are reported, never waited out; only connection errors and 5xx responses are
retried here.
"""

from __future__ import annotations

import datetime as dt
import os
import time
from typing import Any, Dict, Optional

import requests

from .config import (
    API_VERSION,
    BACKOFF_BASE_SEC,
    BASE_URL,
    MAX_RETRIES,
    PER_PAGE,
    REQUEST_TIMEOUT,
    USER_AGENT,
)
from .models import BranchReference, CommitRecord, PullRequestRef
from .outcomes import NotFound, Ok, Outcome, RateLimited, TransientError


def sleep_with_jitter(base: float) -> None:
    """Pause execution with +/- 25% jitter to avoid synchronized retries."""
    jitter = base * 0.25 * (0.5 - (os.urandom(1)[0] / 255.0))
    time.sleep(max(0.0, base + jitter))


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when GitHub returns an error."""
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {error_message(resp)}")


def error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error")
        if msg:
            return str(msg)
    return (resp.text or "")[:300]


def rate_limit_reset(headers: Dict[str, str], now: Optional[float] = None) -> Optional[dt.datetime]:
    """Derive the reset timestamp from X-RateLimit-Reset or Retry-After."""
    reset = headers.get("X-RateLimit-Reset")
    if reset and str(reset).isdigit():
        return dt.datetime.fromtimestamp(int(reset), tz=dt.timezone.utc)
    retry_after = headers.get("Retry-After")
    if retry_after and str(retry_after).isdigit():
        now = time.time() if now is None else now
        return dt.datetime.fromtimestamp(now + int(retry_after), tz=dt.timezone.utc)
    return None


def is_rate_limited(resp: requests.Response) -> bool:
    """True for any 429, and for a 403 that carries a primary or secondary rate-limit signal."""
    if resp.status_code == 429:
        return True
    if resp.status_code != 403:
        return False
    headers = resp.headers or {}
    if headers.get("X-RateLimit-Remaining") == "0":
        return True
    retry_after = headers.get("Retry-After")
    if retry_after and str(retry_after).isdigit():
        return True
    # secondary limits keep quota above zero and only say so in the body
    return "rate limit" in error_message(resp).lower()


def classify_response(resp: requests.Response, url: str) -> Outcome:
    """Map an HTTP response onto a tagged outcome carrying the decoded JSON."""
    if resp.status_code == 204:
        return Ok(None)
    if 200 <= resp.status_code < 300:
        try:
            return Ok(resp.json())
        except ValueError:
            return TransientError(f"invalid JSON from {url}", resp.status_code)

    log_http_error(resp, url)
    if is_rate_limited(resp):
        return RateLimited(rate_limit_reset(resp.headers or {}), error_message(resp))
    if resp.status_code == 404:
        return NotFound(error_message(resp) or f"{url} not found")
    return TransientError(error_message(resp), resp.status_code)


class GitHubGateway:
    """Thin wrapper around the GitHub REST API used by the mining workflows."""

    def __init__(
        self,
        token: Optional[str],
        base_url: str = BASE_URL,
        timeout: int = REQUEST_TIMEOUT,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
                "X-GitHub-Api-Version": API_VERSION,
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path: str) -> str:
        path = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{path}"

    def request_with_backoff(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Outcome:
        """Perform a REST call, retrying connection errors and 5xx with exponential backoff."""
        url = self._url(path)
        last_exc: Optional[Exception] = None
        resp: Optional[requests.Response] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = self.session.request(method, url, params=params, timeout=self.timeout)
            except requests.RequestException as exc:
                last_exc = exc
                resp = None
                if attempt < self.max_retries:
                    delay = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
                    print(f"[retry {attempt}/{self.max_retries}] {exc} -> sleep {delay:.1f}s")
                    sleep_with_jitter(delay)
                continue

            if resp.status_code >= 500 and attempt < self.max_retries:
                delay = BACKOFF_BASE_SEC * (2 ** (attempt - 1))
                print(f"[retry {attempt}/{self.max_retries}] HTTP {resp.status_code} -> sleep {delay:.1f}s")
                sleep_with_jitter(delay)
                continue
            break

        if resp is None:
            return TransientError(f"request to {url} failed after {self.max_retries} attempts: {last_exc}")
        return classify_response(resp, url)

    def resolve_branch(self, owner: str, repo: str, branch: str) -> Outcome:
        """Resolve ``refs/heads/<branch>`` to its tip; Ok(BranchReference) on success."""
        outcome = self.request_with_backoff("GET", f"/repos/{owner}/{repo}/git/ref/heads/{branch}")
        if not isinstance(outcome, Ok):
            return outcome
        payload = outcome.value if isinstance(outcome.value, dict) else {}
        sha = (payload.get("object") or {}).get("sha")
        if not sha:
            return NotFound(f"branch {branch} of {owner}/{repo} has no commit target")
        return Ok(BranchReference(owner=owner, repo=repo, branch=branch, tip_sha=sha))

    def list_commits(self, owner: str, repo: str, sha: str, page_size: int, page: int) -> Outcome:
        """Fetch one page of commits reachable from ``sha``; Ok(list[CommitRecord])."""
        outcome = self.request_with_backoff(
            "GET",
            f"/repos/{owner}/{repo}/commits",
            params={"sha": sha, "per_page": max(1, min(PER_PAGE, page_size)), "page": page},
        )
        if not isinstance(outcome, Ok):
            return outcome
        batch = outcome.value
        if not isinstance(batch, list):
            return TransientError(f"unexpected commit page payload for {owner}/{repo}")
        return Ok([commit_record_from_api(entry) for entry in batch if isinstance(entry, dict) and entry.get("sha")])

    def pull_requests_for_commit(self, owner: str, repo: str, sha: str) -> Outcome:
        """List pull requests associated with a commit; Ok(list[PullRequestRef])."""
        outcome = self.request_with_backoff("GET", f"/repos/{owner}/{repo}/commits/{sha}/pulls")
        if not isinstance(outcome, Ok):
            return outcome
        payload = outcome.value
        if not isinstance(payload, list):
            return TransientError(f"unexpected pull request payload for {sha}")
        return Ok([pull_request_from_api(entry) for entry in payload if isinstance(entry, dict)])

    def list_org_repos(self, org: str, page: int, page_size: int = PER_PAGE) -> Outcome:
        """Fetch one page of an organization's repositories as raw dicts."""
        outcome = self.request_with_backoff(
            "GET",
            f"/orgs/{org}/repos",
            params={"type": "all", "per_page": page_size, "page": page},
        )
        if isinstance(outcome, Ok) and not isinstance(outcome.value, list):
            return TransientError(f"unexpected repository page payload for {org}")
        return outcome

    def list_contributors(self, owner: str, repo: str, page: int, page_size: int = PER_PAGE) -> Outcome:
        """Fetch one page of contributors for a repository as raw dicts."""
        outcome = self.request_with_backoff(
            "GET",
            f"/repos/{owner}/{repo}/contributors",
            params={"per_page": page_size, "page": page},
        )
        # GitHub answers 204 with no body for empty repositories
        if isinstance(outcome, Ok) and outcome.value is None:
            return Ok([])
        if isinstance(outcome, Ok) and not isinstance(outcome.value, list):
            return TransientError(f"unexpected contributor payload for {owner}/{repo}")
        return outcome

    def rate_limit(self) -> Outcome:
        """Return the core quota as Ok({'limit', 'remaining', 'reset_at'})."""
        outcome = self.request_with_backoff("GET", "/rate_limit")
        if not isinstance(outcome, Ok):
            return outcome
        core = ((outcome.value or {}).get("resources") or {}).get("core") or {}
        reset = core.get("reset")
        return Ok({
            "limit": core.get("limit"),
            "remaining": core.get("remaining"),
            "reset_at": dt.datetime.fromtimestamp(int(reset), tz=dt.timezone.utc) if reset else None,
        })


def commit_record_from_api(entry: Dict[str, Any]) -> CommitRecord:
    return CommitRecord(
        sha=entry["sha"],
        message=((entry.get("commit") or {}).get("message")) or "",
        html_url=entry.get("html_url"),
    )


def pull_request_from_api(entry: Dict[str, Any]) -> PullRequestRef:
    return PullRequestRef(
        number=int(entry.get("number") or 0),
        title=entry.get("title") or "",
        state=entry.get("state") or "",
        merged_at=entry.get("merged_at"),
    )


__all__ = [
    "sleep_with_jitter",
    "log_http_error",
    "error_message",
    "rate_limit_reset",
    "is_rate_limited",
    "classify_response",
    "GitHubGateway",
    "commit_record_from_api",
    "pull_request_from_api",
]
