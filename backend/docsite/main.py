from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

import httpx

from docsite.api import github, health
from docsite.core.config import settings
from docsite.services.cache_registry import CacheRegistry, GenerationFailure, GenerationTimeout
from docsite.services.downloader import Downloader
from docsite.services.github_source import GitHubSource, register_github_methods
from docsite.services.methods import MethodRegistry
from docsite.services.store_client import StoreFailure

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    logger.info(f"{settings.PROJECT_NAME} starting up...")
    if not settings.GITHUB_TOKEN:
        logger.warning("GITHUB_TOKEN not set, using unauthenticated GitHub requests")

    cache = CacheRegistry()
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS))
    methods = MethodRegistry(cache)
    register_github_methods(methods, GitHubSource(Downloader(client=http_client)))

    app.state.cache_registry = cache
    app.state.methods = methods
    logger.info(f"Registered methods: {', '.join(methods.names())}")
    yield
    # Shutdown
    logger.info(f"{settings.PROJECT_NAME} shutting down...")
    await cache.close()
    await http_client.aclose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Cached GitHub data for the hapi documentation site",
    version="0.1.0",
    lifespan=lifespan
)


@app.exception_handler(StoreFailure)
async def store_failure_handler(request: Request, exc: StoreFailure):
    logger.error(f"[STORE FAILURE] on {request.url}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Snapshot store unavailable"})


@app.exception_handler(GenerationTimeout)
async def generation_timeout_handler(request: Request, exc: GenerationTimeout):
    logger.error(f"[GENERATION TIMEOUT] on {request.url}: {exc}")
    return JSONResponse(status_code=504, content={"detail": str(exc)})


@app.exception_handler(GenerationFailure)
async def generation_failure_handler(request: Request, exc: GenerationFailure):
    logger.error(f"[GENERATION FAILURE] on {request.url}: {exc} ({exc.__cause__!r})")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


app.include_router(health.router, prefix=f"{settings.API_PREFIX}/health", tags=["health"])
app.include_router(github.router, prefix=f"{settings.API_PREFIX}/github", tags=["github"])
