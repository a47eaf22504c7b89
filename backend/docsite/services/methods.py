"""
Named server methods with optional caching.

A method is registered once under a unique name together with its cache
policy. Calling it by name either runs it directly or routes it through
the shared CacheRegistry under the key produced by its key generator.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from docsite.services.cache_registry import CacheRegistry

logger = logging.getLogger(__name__)

ONE_MINUTE = 60
FIFTEEN_MINUTES = 15 * ONE_MINUTE
ONE_DAY = 24 * 60 * ONE_MINUTE
ONE_YEAR = 365 * ONE_DAY


@dataclass(frozen=True)
class CachePolicy:
    expires_in: float
    generate_timeout: float


@dataclass(frozen=True)
class ServerMethod:
    name: str
    func: Callable[..., Awaitable[Any]]
    cache: Optional[CachePolicy] = None
    generate_key: Optional[Callable[..., str]] = None

    def key_for(self, *args: Any) -> str:
        if self.generate_key is None:
            return self.name
        return self.generate_key(*args)


class MethodRegistry:
    """Registry of server methods, backed by one CacheRegistry."""

    def __init__(self, cache: CacheRegistry):
        self.cache = cache
        self._methods: Dict[str, ServerMethod] = {}

    def register(
        self,
        name: str,
        func: Callable[..., Awaitable[Any]],
        cache: Optional[CachePolicy] = None,
        generate_key: Optional[Callable[..., str]] = None,
    ) -> ServerMethod:
        if name in self._methods:
            raise ValueError(f"Method '{name}' is already registered")
        if generate_key is not None and cache is None:
            raise ValueError(f"Method '{name}' has a key generator but no cache policy")

        method = ServerMethod(name=name, func=func, cache=cache, generate_key=generate_key)
        self._methods[name] = method
        logger.debug(f"Registered method {name} (cached={cache is not None})")
        return method

    def get(self, name: str) -> ServerMethod:
        try:
            return self._methods[name]
        except KeyError:
            raise KeyError(f"Unknown method '{name}'") from None

    def names(self) -> List[str]:
        return sorted(self._methods)

    async def call(self, name: str, *args: Any) -> Any:
        """Invoke a method by name, through the cache when it declares a policy."""
        method = self.get(name)
        if method.cache is None:
            return await method.func(*args)

        return await self.cache.get(
            method.key_for(*args),
            lambda: method.func(*args),
            expires_in=method.cache.expires_in,
            generate_timeout=method.cache.generate_timeout,
        )
