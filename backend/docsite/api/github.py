"""
GitHub endpoints for the documentation site.

Each endpoint invokes a registered method by name. Endpoints for derived
views resolve the methods they depend on first and pass the results in.
"""
import asyncio
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
import semver

from docsite.api.deps import get_method_registry
from docsite.schemas.github import ApiModule
from docsite.services.methods import MethodRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


def _require(value: Any, what: str) -> Any:
    if value is None:
        raise HTTPException(status_code=404, detail=f"{what} is not available from GitHub")
    return value


@router.get("/commits")
async def get_commits(methods: MethodRegistry = Depends(get_method_registry)) -> List[Dict[str, Any]]:
    return await methods.call("github.commits")


@router.get("/issues")
async def get_issues(methods: MethodRegistry = Depends(get_method_registry)) -> List[Dict[str, Any]]:
    return await methods.call("github.issues")


@router.get("/pull-requests")
async def get_pull_requests(methods: MethodRegistry = Depends(get_method_registry)) -> List[Dict[str, Any]]:
    """Merged pull requests only."""
    return await methods.call("github.pullRequests")


@router.get("/style-guide")
async def get_style_guide(methods: MethodRegistry = Depends(get_method_registry)) -> Dict[str, str]:
    html = _require(await methods.call("github.styleGuide"), "Style guide")
    return {"html": html}


@router.get("/repos")
async def get_repos(methods: MethodRegistry = Depends(get_method_registry)) -> List[Dict[str, Any]]:
    return _require(await methods.call("github.repos"), "Repository list")


@router.get("/tags")
async def get_tags(methods: MethodRegistry = Depends(get_method_registry)) -> List[Dict[str, Any]]:
    return _require(await methods.call("github.tags"), "Tag list")


@router.get("/reference/{version}")
async def get_reference(
    version: str,
    methods: MethodRegistry = Depends(get_method_registry),
) -> Dict[str, str]:
    """
    API reference for a release, rendered as HTML.

    Raises:
        HTTPException: 400 for a malformed version, 404 when GitHub has no docs for it
    """
    try:
        semver.Version.parse(version)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid version: {version}")

    html = _require(await methods.call("github.reference", version), f"Reference for v{version}")
    return {"version": version, "html": html}


@router.get("/latest-update")
async def get_latest_update(methods: MethodRegistry = Depends(get_method_registry)) -> Dict[str, Any]:
    commits, issues = await asyncio.gather(
        methods.call("github.commits"),
        methods.call("github.issues"),
    )
    latest = await methods.call("github.latestUpdate", commits, issues)
    return latest.model_dump(exclude_none=True)


@router.get("/api-modules", response_model=List[ApiModule])
async def get_api_modules(methods: MethodRegistry = Depends(get_method_registry)) -> List[ApiModule]:
    repos = await methods.call("github.repos")
    if repos is None:
        logger.warning("Repository list unavailable, no API modules to aggregate")
    return await methods.call("github.apiModules", repos)
