"""
Redis-backed snapshot store.

The ingestion job keeps the latest commits, issues and pull requests for the
organization in Redis as JSON arrays, newest first. This client opens one
connection per use and reads those snapshots; it is never shared between
calls.

Usage:
    async with RedisStoreClient() as store:
        commits = await store.get_commits()
"""

import json
import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from docsite.core.config import settings

logger = logging.getLogger(__name__)

COMMITS_KEY = "github:commits"
ISSUES_KEY = "github:issues"
PULL_REQUESTS_KEY = "github:pullRequests"


class StoreFailure(Exception):
    """Connection or query failure against the snapshot store."""


class RedisStoreClient:
    """Scoped connection to the snapshot store; call destroy() exactly once."""

    def __init__(self, url: Optional[str] = None):
        self._url = url or settings.REDIS_URL
        self._client: Optional[redis.Redis] = redis.from_url(
            self._url,
            decode_responses=True,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
        )

    async def __aenter__(self) -> "RedisStoreClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.destroy()

    async def get_commits(self) -> List[Dict[str, Any]]:
        return await self._read_list(COMMITS_KEY)

    async def get_issues(self) -> List[Dict[str, Any]]:
        return await self._read_list(ISSUES_KEY)

    async def get_pull_requests(self) -> List[Dict[str, Any]]:
        return await self._read_list(PULL_REQUESTS_KEY)

    async def _read_list(self, key: str) -> List[Dict[str, Any]]:
        if self._client is None:
            raise StoreFailure("Store client has already been destroyed")

        try:
            raw = await self._client.get(key)
        except RedisError as e:
            logger.error(f"Store read failed for {key}: {e}")
            raise StoreFailure(f"Could not read {key}") from e

        if raw is None:
            logger.debug(f"No snapshot stored under {key}")
            return []

        try:
            records = json.loads(raw)
        except ValueError as e:
            raise StoreFailure(f"Snapshot under {key} is not valid JSON") from e

        if not isinstance(records, list):
            raise StoreFailure(f"Snapshot under {key} is not a list")
        return records

    async def destroy(self) -> None:
        """Release the connection. Later calls are no-ops."""
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            await client.aclose()
        except RedisError as e:
            logger.warning(f"Error closing store connection: {e}")
