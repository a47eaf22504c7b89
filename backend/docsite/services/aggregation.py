"""
Pure aggregation helpers used by the GitHub source methods.

Nothing here performs I/O; callers pass in already-fetched records.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

import semver

from docsite.schemas.github import ApiModule, LatestUpdate, Repository

# First release whose reference docs live in API.md rather than docs/Reference.md
API_MD_SINCE = semver.Version.parse("8.0.0")


def parse_timestamp(value: str) -> datetime:
    """
    Parse a GitHub ISO 8601 timestamp into an aware datetime.

    Naive timestamps are taken as UTC so that comparisons are always
    between absolute instants.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def latest_update(
    commits: Optional[Sequence[Dict[str, Any]]],
    issues: Optional[Sequence[Dict[str, Any]]],
) -> LatestUpdate:
    """
    Pick the most recent of the newest commit and the newest issue.

    Both lists are expected newest first. The commit wins only when it is
    strictly later than the issue; equal instants go to the issue.
    """
    latest_commit = commits[0] if commits else None
    latest_issue = issues[0] if issues else None

    if latest_commit and (
        not latest_issue
        or parse_timestamp(latest_commit["commit"]["committer"]["date"])
        > parse_timestamp(latest_issue["updated_at"])
    ):
        return LatestUpdate(
            title=latest_commit["commit"]["message"],
            updated=latest_commit["commit"]["committer"]["date"],
            url=latest_commit["html_url"],
        )

    if latest_issue:
        return LatestUpdate(
            title=latest_issue["title"],
            updated=latest_issue["updated_at"],
            url=latest_issue["html_url"],
        )

    return LatestUpdate()


def active_repo_names(repos: Optional[Iterable[Dict[str, Any]]]) -> List[str]:
    """Names of non-archived repositories, in listing order."""
    parsed = [Repository.model_validate(repo) for repo in repos or []]
    return [repo.name for repo in parsed if not repo.archived]


def collect_api_modules(
    names: Sequence[str],
    docs: Sequence[Optional[str]],
    core_repo: str,
) -> List[ApiModule]:
    """
    Pair repository names with their fetched docs.

    Repositories without docs and the core repository itself are dropped;
    the rest are sorted by name (code point order).
    """
    modules = [
        ApiModule(name=name, html=doc)
        for name, doc in zip(names, docs)
        if doc and name != core_repo
    ]
    modules.sort(key=lambda module: module.name)
    return modules


def reference_path(version: str) -> str:
    """
    Repository-relative path of the API reference for a release.

    Raises:
        ValueError: version is not a valid semantic version
    """
    if semver.Version.parse(version) < API_MD_SINCE:
        return "docs/Reference.md"
    return "API.md"


def is_merged(pull_request: Dict[str, Any]) -> bool:
    return bool(pull_request.get("merged_at"))


def is_plain_issue(issue: Dict[str, Any]) -> bool:
    """GitHub lists pull requests as issues carrying a pull_request reference."""
    return not issue.get("pull_request")
