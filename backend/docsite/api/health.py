from typing import Any, Dict

from fastapi import APIRouter, Depends

from docsite.api.deps import get_cache_registry
from docsite.services.cache_registry import CacheRegistry

router = APIRouter()


@router.get("")
async def health_check() -> Dict[str, str]:
    return {"status": "healthy"}


@router.get("/cache")
async def cache_status(cache: CacheRegistry = Depends(get_cache_registry)) -> Dict[str, Any]:
    """Age and generation state of every cache entry. Values are not included."""
    entries = cache.snapshot()
    return {"entries": entries, "count": len(entries)}
