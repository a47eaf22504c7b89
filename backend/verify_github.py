import asyncio
import sys
import os

# Add current directory to path so we can import docsite
sys.path.append(os.getcwd())

from docsite.services.cache_registry import CacheRegistry
from docsite.services.downloader import Downloader
from docsite.services.github_source import GitHubSource, register_github_methods
from docsite.services.methods import MethodRegistry

async def main():
    methods = MethodRegistry(CacheRegistry())
    register_github_methods(methods, GitHubSource(Downloader()))
    try:
        print("Fetching repositories...")
        repos = await methods.call("github.repos")
        if repos is None:
            print("Repository list unavailable (check GITHUB_TOKEN / rate limit)")
            return
        print(f"Total repositories found: {len(repos)}")

        print("\nFetching tags...")
        tags = await methods.call("github.tags") or []
        print(f"Found {len(tags)} tags")
        if tags:
            version = tags[0]["name"].lstrip("v")
            reference = await methods.call("github.reference", version)
            print(f"Reference for v{version}: {len(reference or '')} characters of HTML")

        print("\nAggregating API modules...")
        modules = await methods.call("github.apiModules", repos)
        for module in modules:
            print(f" - {module.name}: {module.html[:50]}...")

        print(f"\nCache entries: {list(methods.cache.snapshot())}")
    except Exception as e:
        print(f"ERROR: {e}")
    finally:
        await methods.cache.close()

if __name__ == "__main__":
    asyncio.run(main())
