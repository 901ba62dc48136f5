"""Dependency injection providers for FastAPI."""

from functools import lru_cache

from reelpost.runtime import Runtime, build_runtime


@lru_cache
def get_runtime() -> Runtime:
    return build_runtime()
