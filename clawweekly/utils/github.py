"""GitHub REST API utilities for collecting one week of repository activity."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from ..models import (
    IssueStats,
    IssueSummary,
    Period,
    PullRequestStats,
    PullRequestSummary,
    Release,
    RepoInfo,
    RepositoryRef,
    RepositorySnapshot,
)
from .dates import is_in_period, to_search_date
from .logging import info, step, warning

GITHUB_API = "https://api.github.com"
USER_AGENT = "OpenClaw-Weekly-Bot"

# Single-page listings; anything past these sizes is not counted.
SEARCH_PAGE_SIZE = 100
RELEASES_PAGE_SIZE = 50


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub API request fails or returns a non-success status."""

    def __init__(self, endpoint: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"GitHub API error for {endpoint}: {message}")
        self.endpoint = endpoint
        self.status_code = status_code


def github_request(endpoint: str, params: Optional[Dict[str, Any]] = None, token: Optional[str] = None) -> Any:
    """GET a GitHub REST endpoint and return the decoded JSON body."""
    url = f"{GITHUB_API}{endpoint}"
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"token {token}"

    query = {key: value for key, value in (params or {}).items() if value is not None}

    try:
        response = requests.get(url, headers=headers, params=query, timeout=30)
    except requests.RequestException as e:
        raise GitHubAPIError(endpoint, str(e)) from e

    if response.status_code == 200:
        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(endpoint, f"invalid JSON body: {e}", response.status_code) from e

    if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
        reset = response.headers.get("X-RateLimit-Reset")
        reset_time = datetime.fromtimestamp(int(reset)) if reset else None
        message = f"rate limit exceeded (resets at {reset_time})" if reset_time else "rate limit exceeded"
        raise GitHubAPIError(endpoint, message, response.status_code)

    raise GitHubAPIError(endpoint, f"HTTP {response.status_code} {response.reason}", response.status_code)


def fetch_repo_info(repo: RepositoryRef, token: Optional[str]) -> Optional[RepoInfo]:
    """Fetch basic repository metadata."""
    try:
        data = github_request(f"/repos/{repo.full_name}", token=token)
    except GitHubAPIError as e:
        warning(str(e))
        return None

    return RepoInfo(
        stars=data.get("stargazers_count", 0),
        forks=data.get("forks_count", 0),
        open_issues=data.get("open_issues_count", 0),
        language=data.get("language"),
        description=data.get("description"),
        updated_at=data.get("updated_at"),
    )


def fetch_commit_count(repo: RepositoryRef, period: Period, token: Optional[str]) -> int:
    """Count commits authored during the period.

    The commit search endpoint reports an exact ``total_count``. When it fails
    the plain commit listing is used instead, which only sees one page, so the
    fallback count is capped at ``SEARCH_PAGE_SIZE``.
    """
    query = f"repo:{repo.full_name} author-date:{to_search_date(period.start)}..{to_search_date(period.end)}"
    try:
        data = github_request("/search/commits", {"q": query, "per_page": 1}, token)
        total = data.get("total_count", 0)
        info(f"📊 {repo.full_name}: 找到 {total} 次提交")
        return total
    except GitHubAPIError as e:
        warning(f"Search API 请求失败，回退到普通 API: {e}")

    params = {
        "since": period.start.isoformat(),
        "until": period.end.isoformat(),
        "per_page": SEARCH_PAGE_SIZE,
    }
    try:
        commits = github_request(f"/repos/{repo.full_name}/commits", params, token)
    except GitHubAPIError as e:
        warning(str(e))
        return 0
    return len(commits)


def format_release(release: Dict[str, Any]) -> Release:
    return Release(
        tag_name=release.get("tag_name", ""),
        name=release.get("name"),
        published_at=release.get("published_at"),
        prerelease=release.get("prerelease", False),
        draft=release.get("draft", False),
        body=release.get("body") or "",
        url=release.get("html_url"),
    )


def filter_releases(releases: List[Dict[str, Any]], period: Period) -> List[Release]:
    """Keep releases published inside the period, in API order."""
    return [
        format_release(release)
        for release in releases
        if release.get("published_at") and is_in_period(release["published_at"], period)
    ]


def fetch_releases(repo: RepositoryRef, period: Period, token: Optional[str]) -> List[Release]:
    """Fetch releases published during the period."""
    try:
        data = github_request(f"/repos/{repo.full_name}/releases", {"per_page": RELEASES_PAGE_SIZE}, token)
    except GitHubAPIError as e:
        warning(str(e))
        return []

    releases = filter_releases(data or [], period)
    if releases:
        info(f"🏷️ {repo.full_name}: 找到 {len(releases)} 个版本发布")
    return releases


def format_pr_entry(item: Dict[str, Any]) -> PullRequestSummary:
    """Format a search result or pulls listing item into a PR summary."""
    merged_at = item.get("merged_at")
    if merged_at is None:
        merged_at = (item.get("pull_request") or {}).get("merged_at")
    user = item.get("user") or {}
    return PullRequestSummary(
        number=item["number"],
        title=item.get("title", ""),
        state=item.get("state", ""),
        user=user.get("login", "ghost"),
        created_at=item.get("created_at"),
        merged_at=merged_at,
        url=item.get("html_url"),
    )


def summarize_pull_requests(items: List[PullRequestSummary], total: Optional[int] = None) -> PullRequestStats:
    return PullRequestStats(
        total=total if total is not None else len(items),
        merged=sum(1 for pr in items if pr.merged_at),
        open=sum(1 for pr in items if pr.state == "open"),
        items=items,
    )


def fetch_pull_requests(repo: RepositoryRef, period: Period, token: Optional[str]) -> PullRequestStats:
    """Fetch pull requests opened during the period.

    Merged and open subtotals are computed from the returned page only.
    """
    query = (
        f"repo:{repo.full_name} created:{to_search_date(period.start)}..{to_search_date(period.end)} type:pr"
    )
    params = {"q": query, "per_page": SEARCH_PAGE_SIZE, "sort": "created", "order": "desc"}
    try:
        data = github_request("/search/issues", params, token)
        items = [format_pr_entry(item) for item in data.get("items", [])]
        stats = summarize_pull_requests(items, data.get("total_count") or len(items))
        info(f"🔀 {repo.full_name}: 找到 {stats.total} 个 PR")
        return stats
    except GitHubAPIError as e:
        warning(f"PR Search API 请求失败，回退到普通 API: {e}")

    params = {"state": "all", "sort": "created", "direction": "desc", "per_page": SEARCH_PAGE_SIZE}
    try:
        pulls = github_request(f"/repos/{repo.full_name}/pulls", params, token)
    except GitHubAPIError as e:
        warning(str(e))
        return PullRequestStats()

    items = [
        format_pr_entry(pull)
        for pull in pulls or []
        if pull.get("created_at") and is_in_period(pull["created_at"], period)
    ]
    return summarize_pull_requests(items)


def format_issue_entry(item: Dict[str, Any]) -> IssueSummary:
    user = item.get("user") or {}
    return IssueSummary(
        number=item["number"],
        title=item.get("title", ""),
        state=item.get("state", ""),
        user=user.get("login", "ghost"),
        reactions=(item.get("reactions") or {}).get("total_count", 0) or 0,
        created_at=item.get("created_at"),
        closed_at=item.get("closed_at"),
        url=item.get("html_url"),
    )


def rank_issues(issues: List[IssueSummary], limit: int) -> List[IssueSummary]:
    """Top ``limit`` issues by reaction count; ties keep their search order."""
    return sorted(issues, key=lambda issue: issue.reactions, reverse=True)[:limit]


def fetch_top_issues(repo: RepositoryRef, period: Period, token: Optional[str], limit: int = 5) -> IssueStats:
    """Fetch the most-reacted issues opened during the period."""
    query = (
        f"repo:{repo.full_name} created:{to_search_date(period.start)}..{to_search_date(period.end)} type:issue"
    )
    params = {"q": query, "per_page": SEARCH_PAGE_SIZE, "sort": "reactions", "order": "desc"}
    try:
        data = github_request("/search/issues", params, token)
    except GitHubAPIError as e:
        warning(f"Issue Search API 请求失败: {e}")
        return IssueStats()

    # The issues search also matches pull requests
    issues_only = [format_issue_entry(item) for item in data.get("items", []) if "pull_request" not in item]
    total = data.get("total_count") or len(issues_only)
    top_issues = rank_issues(issues_only, limit)
    info(f"🔍 {repo.full_name}: 找到 {total} 个 Issue，显示最热门的 {len(top_issues)} 个")
    return IssueStats(total=total, top_issues=top_issues)


def fetch_weekly_data(
    repo: RepositoryRef,
    period: Period,
    token: Optional[str],
    issue_limit: int = 5,
) -> RepositorySnapshot:
    """Collect a repository's activity for the period.

    The five lookups run concurrently; each one falls back to an empty value
    on API errors, so a snapshot is always returned.
    """
    step(f"📊 正在获取 {repo.full_name} 的周数据...")

    with ThreadPoolExecutor(max_workers=5) as executor:
        info_future = executor.submit(fetch_repo_info, repo, token)
        commits_future = executor.submit(fetch_commit_count, repo, period, token)
        releases_future = executor.submit(fetch_releases, repo, period, token)
        prs_future = executor.submit(fetch_pull_requests, repo, period, token)
        issues_future = executor.submit(fetch_top_issues, repo, period, token, issue_limit)

        return RepositorySnapshot(
            repo=repo,
            period=period,
            info=info_future.result(),
            commit_count=commits_future.result(),
            releases=releases_future.result(),
            pull_requests=prs_future.result(),
            issues=issues_future.result(),
        )
