"""Cached public pages and their invalidation.

Rendered public payloads (destination lists, mega menu, ...) are cached
per path. Every path segment prefix carries a generation counter that is
part of the cache key, so invalidating ``/admin/preventivi`` bumps one
counter and every page below it (``/admin/preventivi/stats`` included)
misses on the next read.
"""

from __future__ import annotations

import hashlib
from typing import Callable, Dict, List, TypeVar

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

T = TypeVar("T")


def _digest(value: str) -> str:
    return hashlib.sha1(value.encode("utf-8")).hexdigest()


def _generation_key(prefix: str) -> str:
    return f"pages:gen:{_digest(prefix.rstrip('/') or '/')}"


def _segment_prefixes(path: str) -> List[str]:
    """``/admin/preventivi/stats`` -> ``/admin``, ``/admin/preventivi``, ``/admin/preventivi/stats``."""
    segments = [segment for segment in path.split("/") if segment]
    return ["/" + "/".join(segments[: index + 1]) for index in range(len(segments))] or ["/"]


def _build_cache_key(path: str, params: Dict[str, object] | None = None) -> str:
    params = params or {}
    generation_keys = [_generation_key(prefix) for prefix in _segment_prefixes(path)]
    generations = cache.get_many(generation_keys)
    normalized_parts = [f"{key}={params[key]}" for key in sorted(params)]
    generation_parts = [str(generations.get(key, 0)) for key in generation_keys]
    fingerprint = "|".join([path, *normalized_parts, *generation_parts])
    return f"pages:{_digest(fingerprint)}"


def get_cached_page(path: str, builder: Callable[[], T], params: Dict[str, object] | None = None) -> T:
    """Return the cached payload for ``path`` or build and store it."""
    key = _build_cache_key(path, params)
    cached = cache.get(key)
    if cached is not None:
        return cached

    result = builder()
    cache.set(key, result, getattr(settings, "PAGE_CACHE_TIMEOUT", 300))
    return result


def _bump_generations(prefixes: tuple[str, ...]) -> None:
    for prefix in prefixes:
        key = _generation_key(prefix)
        cache.add(key, 0, None)
        cache.incr(key)


def invalidate_paths(*prefixes: str) -> None:
    """Drop every cached page at or below one of ``prefixes``.

    The generations are bumped right away and once more when the current
    transaction commits, so a page rebuilt from uncommitted state in between
    is dropped as well. Stale entries expire with ``PAGE_CACHE_TIMEOUT``.
    """
    if not prefixes:
        return
    _bump_generations(prefixes)
    transaction.on_commit(lambda: _bump_generations(prefixes))


__all__ = [
    "get_cached_page",
    "invalidate_paths",
]
