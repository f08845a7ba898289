"""
In‑memory LRU cache for hatching results.

Hatching a large polygon with a fine step projects thousands of
planes through pyproj, so identical requests reuse the earlier
:class:`~.hatching.HatchResult`.  A :class:`HatchCacheKey` captures
everything that influences the output: the first ring, ``step``,
``bearing``, ``offset`` and the option flags.

The cache is an ``OrderedDict`` giving least‑recently‑used eviction.
Once more than ``MAX_CACHE_ENTRIES`` results are stored (configurable
with ``HATCH_CACHE_ENTRIES``), the oldest is dropped.  Results are
copied on the way in and out, so callers may modify what they receive
without affecting later hits.

Usage::

    result, cached = compute_hatching_cached(coords, step=50.0, bearing=30.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from collections import OrderedDict
from threading import RLock
from typing import Optional, Sequence, Tuple

from .hatching import HatchResult, compute_hatching


@dataclass(frozen=True)
class HatchCacheKey:
    """Unique identifier for a cached hatching result.

    Attributes:
        ring: First ring as a tuple of coordinate tuples.
        step: Sweep spacing in metres.
        bearing: Hatch bearing in degrees.
        offset: Line extension in metres.
        close_ring: Whether an open ring is closed before hatching.
        pairing: Name of the pairing strategy.
        on_degenerate: Degenerate‑segment policy.
    """

    ring: Tuple[Tuple[float, ...], ...]
    step: float
    bearing: float
    offset: float
    close_ring: bool = True
    pairing: str = "sequential"
    on_degenerate: str = "skip"


_cache: "OrderedDict[HatchCacheKey, HatchResult]" = OrderedDict()
_lock = RLock()
MAX_CACHE_ENTRIES: int = int(os.getenv("HATCH_CACHE_ENTRIES", "32"))


def make_cache_key(
    coordinates: Sequence[Sequence[Sequence[float]]],
    step: float,
    bearing: float,
    offset: float,
    close_ring: bool = True,
    pairing: str = "sequential",
    on_degenerate: str = "skip",
) -> HatchCacheKey:
    ring = tuple(tuple(float(v) for v in coord if v is not None) for coord in coordinates[0])
    return HatchCacheKey(
        ring=ring,
        step=float(step),
        bearing=float(bearing),
        offset=float(offset),
        close_ring=bool(close_ring),
        pairing=pairing,
        on_degenerate=on_degenerate,
    )


def get_hatching_from_cache(key: HatchCacheKey) -> Optional[HatchResult]:
    """Return a copy of the cached result for ``key`` or ``None``."""
    with _lock:
        result = _cache.get(key)
        if result is None:
            return None
        _cache.move_to_end(key)
        return result.copy()


def put_hatching_in_cache(key: HatchCacheKey, result: HatchResult) -> None:
    """Store a copy of ``result`` and evict the least recently used entry if full."""
    with _lock:
        _cache[key] = result.copy()
        _cache.move_to_end(key)
        if len(_cache) > MAX_CACHE_ENTRIES:
            _cache.popitem(last=False)


def clear_hatching_cache() -> None:
    with _lock:
        _cache.clear()


def compute_hatching_cached(
    coordinates: Sequence[Sequence[Sequence[float]]],
    step: float,
    bearing: float,
    offset: float,
    close_ring: bool = True,
    pairing: str = "sequential",
    on_degenerate: str = "skip",
) -> Tuple[HatchResult, bool]:
    """Compute hatching through the cache.

    Inputs are validated by :func:`compute_hatching` before anything is
    stored, so only successful results are cached.

    Returns:
        A tuple ``(result, cached)`` where ``cached`` tells whether the
        result came from the cache.
    """
    options = dict(close_ring=close_ring, pairing=pairing, on_degenerate=on_degenerate)
    key: Optional[HatchCacheKey] = None
    try:
        key = make_cache_key(coordinates, step, bearing, offset, **options)
    except (TypeError, ValueError, IndexError):
        # Malformed input; let compute_hatching report it properly.
        key = None
    if key is not None:
        hit = get_hatching_from_cache(key)
        if hit is not None:
            return hit, True
    result = compute_hatching(coordinates, step, bearing, offset, **options)
    if key is not None:
        put_hatching_in_cache(key, result)
    return result, False
