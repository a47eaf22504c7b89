import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from docsite.api.deps import get_cache_registry, get_method_registry
from docsite.main import app
from docsite.services.cache_registry import CacheRegistry
from docsite.services.github_source import GitHubSource, register_github_methods
from docsite.services.methods import MethodRegistry

API = "https://api.github.test"


@pytest.fixture
def store():
    """Snapshot store double handed out by the source's store factory."""
    store = AsyncMock()
    store.__aenter__.return_value = store
    store.get_commits.return_value = []
    store.get_issues.return_value = []
    store.get_pull_requests.return_value = []
    return store


@pytest.fixture
def downloader():
    return AsyncMock()


@pytest.fixture
def methods(store, downloader):
    registry = MethodRegistry(CacheRegistry())
    source = GitHubSource(
        downloader,
        store_factory=MagicMock(return_value=store),
        api_base=API,
        org="hapijs",
        core_repo="hapi",
    )
    register_github_methods(registry, source)
    return registry


@pytest.fixture
def client(methods):
    """TestClient with the method and cache registries overridden; lifespan is not run."""
    app.dependency_overrides[get_method_registry] = lambda: methods
    app.dependency_overrides[get_cache_registry] = lambda: methods.cache
    yield TestClient(app)
    app.dependency_overrides.clear()
