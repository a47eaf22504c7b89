from fastapi import Request

from docsite.services.cache_registry import CacheRegistry
from docsite.services.methods import MethodRegistry


def get_method_registry(request: Request) -> MethodRegistry:
    """Method registry built during application startup."""
    return request.app.state.methods


def get_cache_registry(request: Request) -> CacheRegistry:
    return request.app.state.cache_registry
