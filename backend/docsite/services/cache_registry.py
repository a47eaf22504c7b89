"""
Cache Entry Registry

In-process read-through cache keyed by string. Each entry carries its own
expiry and generation timeout, and at most one generation per key runs at
any time: concurrent callers for the same key join the in-flight generation
instead of starting another upstream fetch.

A generation that outlives its timeout is detached from its callers (they
receive the stale value, or GenerationTimeout when there is none) but keeps
running in the background so its result still lands in the cache.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

Generator = Callable[[], Awaitable[Any]]


class CacheError(Exception):
    """Base class for errors surfaced by the cache registry."""

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


class GenerationTimeout(CacheError):
    """Generation exceeded its timeout and no stale value was available."""

    def __init__(self, key: str, timeout: float):
        super().__init__(key, f"Generating '{key}' took longer than {timeout}s")
        self.timeout = timeout


class GenerationFailure(CacheError):
    """Generator raised and no stale value was available."""

    def __init__(self, key: str):
        super().__init__(key, f"Generating '{key}' failed")


@dataclass
class CacheEntry:
    key: str
    value: Any = None
    has_value: bool = False
    computed_at: float = 0.0
    expires_at: float = 0.0
    generation: Optional[asyncio.Task] = None
    # Shared by every caller joining the current generation
    deadline: float = 0.0

    def is_fresh(self, now: float) -> bool:
        return self.has_value and now < self.expires_at


class CacheRegistry:
    """
    Maps cache keys to entries and enforces single-flight generation.

    One instance is created at process start and shared by every method
    that declares caching.

    Usage:
        cache = CacheRegistry()
        repos = await cache.get("github.repos", fetch_repos, expires_in=86400, generate_timeout=60)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    async def get(
        self,
        key: str,
        generator: Generator,
        expires_in: float,
        generate_timeout: float,
    ) -> Any:
        """
        Return the cached value for key, generating it when missing or expired.

        Args:
            key: Cache key; distinct logical queries must use distinct keys
            generator: Zero-argument coroutine function producing the value
            expires_in: Seconds a generated value stays fresh
            generate_timeout: Seconds callers wait on a generation before
                falling back to the stale value

        Returns:
            The fresh value, or the stale value when regeneration times out or fails

        Raises:
            GenerationTimeout: Generation timed out and nothing was cached before
            GenerationFailure: Generator raised and nothing was cached before
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key)
            self._entries[key] = entry

        if entry.is_fresh(self._clock()):
            logger.debug(f"Cache hit for {key}")
            return entry.value

        if entry.generation is None:
            logger.debug(f"Cache miss for {key}, starting generation")
            self._start_generation(entry, generator, expires_in, generate_timeout)
        else:
            logger.debug(f"Joining in-flight generation for {key}")

        task = entry.generation
        remaining = max(0.0, entry.deadline - self._clock())

        try:
            # shield() keeps the generation alive when this caller gives up
            await asyncio.wait_for(asyncio.shield(task), timeout=remaining)
        except asyncio.CancelledError:
            # The caller itself may be cancelled; only a cancelled generation is absorbed here
            if not task.cancelled():
                raise
        except Exception:
            # Outcome is read from the task below; a generator may raise TimeoutError itself
            pass

        if not task.done():
            if entry.has_value:
                logger.warning(f"Generation for {key} timed out after {generate_timeout}s, serving stale value")
                return entry.value
            raise GenerationTimeout(key, generate_timeout)

        if task.cancelled():
            if entry.has_value:
                logger.warning(f"Generation for {key} was cancelled, serving stale value")
                return entry.value
            raise GenerationFailure(key)

        error = task.exception()
        if error is None:
            return task.result()
        if entry.has_value:
            logger.warning(f"Generation for {key} failed ({error!r}), serving stale value")
            return entry.value
        raise GenerationFailure(key) from error

    def _start_generation(
        self,
        entry: CacheEntry,
        generator: Generator,
        expires_in: float,
        generate_timeout: float,
    ) -> None:
        entry.deadline = self._clock() + generate_timeout
        task = asyncio.ensure_future(self._generate(entry, generator, expires_in))
        task.add_done_callback(_consume_result)
        entry.generation = task

    async def _generate(self, entry: CacheEntry, generator: Generator, expires_in: float) -> Any:
        task = asyncio.current_task()
        started = self._clock()
        logger.info(f"Generating {entry.key}")
        try:
            value = await generator()
        except Exception:
            logger.error(f"Generator for {entry.key} raised", exc_info=True)
            raise
        else:
            # A generation dropped by clear()/close() must not overwrite the entry
            if entry.generation is task:
                now = self._clock()
                entry.value = value
                entry.has_value = True
                entry.computed_at = now
                entry.expires_at = now + expires_in
                logger.info(f"Generated {entry.key} in {now - started:.3f}s")
            return value
        finally:
            if entry.generation is task:
                entry.generation = None

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Per-key metadata only; values are never exposed."""
        now = self._clock()
        return {
            key: {
                "cached": entry.has_value,
                "age_s": round(now - entry.computed_at, 1) if entry.has_value else None,
                "expired": not entry.is_fresh(now),
                "generating": entry.generation is not None,
            }
            for key, entry in self._entries.items()
        }

    def clear(self) -> None:
        """Forget every entry; in-flight generations finish without writing back."""
        for entry in self._entries.values():
            entry.generation = None
        self._entries = {}

    async def close(self) -> None:
        """Cancel in-flight generations. Called once at shutdown."""
        tasks = [entry.generation for entry in self._entries.values() if entry.generation is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info(f"Cancelling {len(tasks)} in-flight cache generations")
            await asyncio.gather(*tasks, return_exceptions=True)
        self.clear()


def _consume_result(task: asyncio.Task) -> None:
    # Failures are logged in _generate; retrieving them here silences
    # "exception was never retrieved" when every caller already timed out.
    if not task.cancelled():
        task.exception()
