"""
GitHub Pull Request Fetcher

Paginates the repository's pulls endpoint and validates each raw record at
the ingestion boundary. Each page is requested at most once per call; a
failing page stops pagination and the pages already collected are kept.

Usage:
    from contrib_leaderboard.ingestion.github_pulls import fetch_merged_pulls
    result = fetch_merged_pulls(context)
"""

import re
from typing import Any

import requests

from contrib_leaderboard.context import PipelineContext
from contrib_leaderboard.models import PullRequest, RepositoryStats
from contrib_leaderboard.result import ErrorKind, StageResult
from contrib_leaderboard.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

RATE_LIMIT_STATUSES = frozenset({403, 429})
LAST_PAGE_RE = re.compile(r"[?&]page=(\d+)")


class GitHubFetchError(Exception):
    """Raised for a GitHub API response that could not be fetched or decoded."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


def parse_pull_request(raw: Any) -> PullRequest | None:
    """
    Validate one raw pull request object from the API.

    Args:
        raw: Decoded JSON value for a single pull request

    Returns:
        PullRequest, or None if the record has no usable author login
    """
    if not isinstance(raw, dict):
        return None

    user = raw.get("user")
    if not isinstance(user, dict):
        return None
    login = user.get("login")
    if not isinstance(login, str) or not login.strip():
        return None

    merged_at = raw.get("merged_at")
    if not isinstance(merged_at, str) or not merged_at:
        merged_at = None

    labels = []
    raw_labels = raw.get("labels")
    if isinstance(raw_labels, list):
        for label in raw_labels:
            name = label.get("name") if isinstance(label, dict) else None
            if isinstance(name, str) and name:
                labels.append(name)

    number = raw.get("number")
    return PullRequest(
        author_login=login.strip(),
        merged_at=merged_at,
        labels=tuple(labels),
        number=number if isinstance(number, int) else None,
    )


def _get_json(session, url: str, params: dict | None, timeout: float) -> tuple[requests.Response, Any]:
    try:
        response = session.get(url, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise GitHubFetchError(ErrorKind.TRANSPORT, str(e)) from e

    if response.status_code in RATE_LIMIT_STATUSES:
        remaining = response.headers.get("X-RateLimit-Remaining")
        raise GitHubFetchError(
            ErrorKind.RATE_LIMITED,
            f"HTTP {response.status_code}: GitHub API rate limit exceeded (remaining: {remaining})",
        )
    if not response.ok:
        raise GitHubFetchError(ErrorKind.TRANSPORT, f"HTTP {response.status_code}: {response.reason}")

    try:
        return response, response.json()
    except ValueError as e:
        raise GitHubFetchError(ErrorKind.DATA_SHAPE, f"Invalid JSON from {url}: {e}") from e


def fetch_pull_pages(session, url: str, per_page: int, max_pages: int, timeout: float) -> StageResult[list]:
    """
    Fetch raw pull request objects, one page at a time.

    Stops at the first empty page, after max_pages, or at the first failing
    page. A failure keeps the pages accumulated so far.

    Returns:
        StageResult holding the raw records collected
    """
    records: list = []

    for page in range(1, max_pages + 1):
        params = {"state": "all", "per_page": per_page, "page": page}
        try:
            _, data = _get_json(session, url, params, timeout)
            if not isinstance(data, list):
                raise GitHubFetchError(ErrorKind.DATA_SHAPE, "Invalid response format from GitHub API")
        except GitHubFetchError as e:
            logger.warning(f"Failed to fetch page {page} of pull requests: {e}")
            return StageResult.failure(records, e.kind, str(e), partial=page > 1)

        if not data:
            break
        records.extend(data)
        logger.debug(f"Fetched page {page}: {len(data)} pull requests")

    return StageResult.success(records)


def fetch_merged_pulls(context: PipelineContext) -> StageResult[list[PullRequest]]:
    """
    Fetch the repository's merged pull requests.

    Args:
        context: Pipeline context (settings and HTTP session factory)

    Returns:
        StageResult with validated, merged PullRequests in API order.
        On failure the value holds the merged PRs from pages fetched before it,
        and `partial` is set when at least one page was received.
    """
    settings = context.settings
    session = context.new_session()
    try:
        pages = fetch_pull_pages(
            session,
            f"{settings.repo_api_url}/pulls",
            settings.per_page,
            settings.max_pages,
            settings.request_timeout,
        )
    finally:
        session.close()

    pulls = []
    rejected = 0
    for raw in pages.value:
        pr = parse_pull_request(raw)
        if pr is None:
            rejected += 1
            continue
        if pr.is_merged:
            pulls.append(pr)

    if rejected:
        logger.warning(f"Dropped {rejected} pull request records without an author login")
    logger.info(f"Fetched {len(pages.value)} pull requests, {len(pulls)} merged")

    if not pages.ok:
        return StageResult.failure(pulls, pages.error, pages.message, partial=pages.partial)
    return StageResult.success(pulls)


def _last_page_number(response: requests.Response) -> int | None:
    last_url = response.links.get("last", {}).get("url")
    if not last_url:
        return None
    m = LAST_PAGE_RE.search(last_url)
    return int(m.group(1)) if m else None


def fetch_repository_stats(context: PipelineContext) -> StageResult[RepositoryStats]:
    """
    Fetch star/fork counts and the total commit count for the repository.

    The commit total comes from the last page number of a one-per-page
    commits listing.

    Returns:
        StageResult holding RepositoryStats (zeros on failure)
    """
    settings = context.settings
    session = context.new_session()
    try:
        try:
            _, repo = _get_json(session, settings.repo_api_url, None, settings.request_timeout)
        except GitHubFetchError as e:
            logger.warning(f"Failed to fetch repository info: {e}")
            return StageResult.failure(RepositoryStats(), e.kind, str(e))

        if not isinstance(repo, dict):
            return StageResult.failure(RepositoryStats(), ErrorKind.DATA_SHAPE, "Repository info is not an object")

        total_commits = None
        try:
            response, commits = _get_json(
                session, f"{settings.repo_api_url}/commits", {"per_page": 1}, settings.request_timeout
            )
            total_commits = _last_page_number(response)
            if total_commits is None and isinstance(commits, list):
                total_commits = len(commits)
        except GitHubFetchError as e:
            logger.warning(f"Total commit count unavailable: {e}")
    finally:
        session.close()

    stats = RepositoryStats(
        stars=int(repo.get("stargazers_count") or 0),
        forks=int(repo.get("forks_count") or 0),
        total_commits=total_commits,
    )
    return StageResult.success(stats)
