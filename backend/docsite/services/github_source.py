"""
GitHub source methods for the documentation site.

Commits, issues and pull requests come from the snapshot store; the style
guide, repository list, tags and reference docs are downloaded from the
GitHub API. latest_update and api_modules combine results the caller has
already resolved (commits/issues and repos respectively).
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from docsite.core.config import settings
from docsite.schemas.github import ApiModule, LatestUpdate
from docsite.services import aggregation
from docsite.services.downloader import HTML_MEDIA_TYPE, Downloader
from docsite.services.methods import (
    FIFTEEN_MINUTES,
    ONE_DAY,
    ONE_MINUTE,
    ONE_YEAR,
    CachePolicy,
    MethodRegistry,
)
from docsite.services.store_client import RedisStoreClient

logger = logging.getLogger(__name__)

HTML_HEADERS = {"accept": HTML_MEDIA_TYPE}


class GitHubSource:
    """
    Source methods backed by the snapshot store and the GitHub API.

    Args:
        downloader: Fetch capability used for every GitHub API request
        store_factory: Returns a new store client per call
        api_base: GitHub API root
        org: Organization owning the repositories
        core_repo: Core framework repository name
        docs_concurrency: Maximum simultaneous API.md fetches in api_modules
    """

    def __init__(
        self,
        downloader: Downloader,
        store_factory: Callable[[], RedisStoreClient] = RedisStoreClient,
        api_base: Optional[str] = None,
        org: Optional[str] = None,
        core_repo: Optional[str] = None,
        docs_concurrency: Optional[int] = None,
    ):
        self.downloader = downloader
        self.store_factory = store_factory
        self.api_base = api_base or settings.GITHUB_API_BASE
        self.org = org or settings.GITHUB_ORG
        self.core_repo = core_repo or settings.CORE_REPO
        self.docs_concurrency = docs_concurrency or settings.API_DOCS_CONCURRENCY

    # Snapshot store

    async def commits(self) -> List[Dict[str, Any]]:
        logger.debug("commits")
        async with self.store_factory() as store:
            return await store.get_commits()

    async def issues(self) -> List[Dict[str, Any]]:
        async with self.store_factory() as store:
            issues = await store.get_issues()

        logger.debug("return issues")
        return [issue for issue in issues if aggregation.is_plain_issue(issue)]

    async def pull_requests(self) -> List[Dict[str, Any]]:
        async with self.store_factory() as store:
            pull_requests = await store.get_pull_requests()

        logger.debug("return pull requests")
        return [pr for pr in pull_requests if aggregation.is_merged(pr)]

    # GitHub API

    async def style_guide(self) -> Optional[str]:
        url = f"{self.api_base}/repos/{self.org}/assets/contents/STYLE.md"
        result = await self.downloader.download(url, headers=HTML_HEADERS, json=False)
        return result.or_none()

    async def repos(self) -> Optional[List[Dict[str, Any]]]:
        result = await self.downloader.download(f"{self.api_base}/orgs/{self.org}/repos")
        return result.or_none()

    async def tags(self) -> Optional[List[Dict[str, Any]]]:
        result = await self.downloader.download(f"{self.api_base}/repos/{self.org}/{self.core_repo}/tags")
        return result.or_none()

    def reference_url(self, version: str) -> str:
        path = aggregation.reference_path(version)
        return f"{self.api_base}/repos/{self.org}/{self.core_repo}/contents/{path}?ref=v{version}"

    async def reference(self, version: str) -> Optional[str]:
        result = await self.downloader.download(self.reference_url(version), headers=HTML_HEADERS, json=False)
        return result.or_none()

    # Combinations of already-resolved results

    async def latest_update(
        self,
        commits: Optional[Sequence[Dict[str, Any]]],
        issues: Optional[Sequence[Dict[str, Any]]],
    ) -> LatestUpdate:
        return aggregation.latest_update(commits, issues)

    async def api_modules(self, repos: Optional[Sequence[Dict[str, Any]]]) -> List[ApiModule]:
        """
        Fetch API.md for every active repository and keep those that have one.

        All fetches are started together; a failed fetch only drops its own
        repository.
        """
        names = aggregation.active_repo_names(repos)
        semaphore = asyncio.Semaphore(self.docs_concurrency)

        async def fetch_doc(name: str) -> Optional[str]:
            url = f"{self.api_base}/repos/{self.org}/{name}/contents/API.md"
            try:
                async with semaphore:
                    result = await self.downloader.download(url, headers=HTML_HEADERS, json=False)
            except Exception as e:
                logger.warning(f"API docs fetch for {name} raised, treating as absent: {e!r}")
                return None
            return result.or_none()

        docs = await asyncio.gather(*(fetch_doc(name) for name in names))
        modules = aggregation.collect_api_modules(names, docs, self.core_repo)
        logger.info(f"Found API docs for {len(modules)} of {len(names)} active repositories")
        return modules


def register_github_methods(registry: MethodRegistry, source: GitHubSource) -> None:
    """Register every GitHub source method with its cache policy."""
    registry.register("github.commits", source.commits)
    registry.register("github.issues", source.issues)
    registry.register("github.pullRequests", source.pull_requests)
    registry.register(
        "github.styleGuide",
        source.style_guide,
        cache=CachePolicy(expires_in=ONE_DAY, generate_timeout=ONE_MINUTE),
        generate_key=lambda: "github.styleGuide",
    )
    registry.register(
        "github.latestUpdate",
        source.latest_update,
        cache=CachePolicy(expires_in=FIFTEEN_MINUTES, generate_timeout=ONE_MINUTE),
        generate_key=lambda commits, issues: "github.latestUpdate",
    )
    registry.register(
        "github.repos",
        source.repos,
        cache=CachePolicy(expires_in=ONE_DAY, generate_timeout=ONE_MINUTE),
        generate_key=lambda: "github.repos",
    )
    registry.register(
        "github.tags",
        source.tags,
        cache=CachePolicy(expires_in=FIFTEEN_MINUTES, generate_timeout=ONE_MINUTE),
        generate_key=lambda: "github.tags",
    )
    registry.register(
        "github.reference",
        source.reference,
        cache=CachePolicy(expires_in=ONE_YEAR, generate_timeout=ONE_MINUTE),
        generate_key=lambda version: f"github.reference.{version}",
    )
    registry.register("github.apiModules", source.api_modules)
