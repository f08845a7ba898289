"""
Parallel hatching of a polygon on the WGS84 ellipsoid.

The pipeline has four stages:

1. The first ring of the polygon is projected to ECEF coordinates.
2. Starting at the ring's first vertex, a cutting plane is swept along
   the two azimuths perpendicular to the hatch bearing.  Each pass
   moves the plane one ``step`` further; a direction stops at the
   first pass that crosses the boundary fewer than two times.  The
   plane through the start vertex itself is the exception: when it
   only touches the ring at that vertex the sweep carries on.
3. The crossings of each pass are paired into segments by a
   :data:`PairingStrategy` (sequential by default).
4. Each segment is extended by ``offset`` at both ends and projected
   back to longitude/latitude.

Limitations: sequential pairing assumes exactly two crossings per
plane, which only holds for convex rings, and only the first ring of
the input is considered.

Tuning via environment variables:

* ``HATCH_DEBUG`` – emit per‑pass diagnostics at DEBUG level.
* ``HATCH_MAX_SWEEP_STEPS`` – maximum passes per direction before a
  :class:`~.errors.SweepLimitError` is raised.
"""

from __future__ import annotations

import math
import os
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, Tuple, Union

from .errors import DegenerateSegmentError, InputValidationError, SweepLimitError
from .geodesy import GeographicPoint, Geodesy, get_default_geodesy, project_ring
from .hatch_geometry import (
    EdgeSegment,
    HatchPlane,
    Vec3,
    dot,
    extend_segment,
    intersect_plane_with_ring,
    make_hatch_plane,
    normalize,
    ring_edges,
    unique_points,
)

logger = logging.getLogger(__name__)

# Distance used only to obtain a direction vector for the plane normal
# when the sweep distance is zero.
DUMMY_DISTANCE: float = 1.0

MAX_SWEEP_STEPS: int = int(os.getenv("HATCH_MAX_SWEEP_STEPS", "100000"))

DEFAULT_STEP: float = 100.0
DEFAULT_BEARING: float = 0.0
DEFAULT_OFFSET: float = 50.0

DegeneratePolicy = Literal["skip", "raise"]
PairingStrategy = Callable[[List[Vec3], HatchPlane], List[Tuple[Vec3, Vec3]]]


@dataclass(frozen=True)
class HatchLine:
    """A final, extended hatch stroke in geographic coordinates."""

    start: GeographicPoint
    end: GeographicPoint

    def as_lists(self) -> List[List[float]]:
        return [self.start.as_list(), self.end.as_list()]


@dataclass
class SweepStats:
    """Bookkeeping for one directional sweep."""

    azimuth: float
    start_index: int
    passes: int = 0
    segments: int = 0
    skipped_degenerate: int = 0
    dropped_points: int = 0
    merged_points: int = 0
    touching_passes: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "azimuth": self.azimuth,
            "startIndex": self.start_index,
            "passes": self.passes,
            "segments": self.segments,
            "skippedDegenerate": self.skipped_degenerate,
            "droppedPoints": self.dropped_points,
            "mergedPoints": self.merged_points,
            "touchingPasses": self.touching_passes,
        }


@dataclass
class HatchResult:
    """Hatch lines together with per‑direction sweep statistics."""

    lines: List[HatchLine]
    sweeps: List[SweepStats] = field(default_factory=list)

    @property
    def skipped_degenerate(self) -> int:
        return sum(s.skipped_degenerate for s in self.sweeps)

    def copy(self) -> HatchResult:
        """Return a copy whose line list and sweep records can be changed freely."""
        return HatchResult(lines=list(self.lines), sweeps=[replace(s) for s in self.sweeps])


# ---------------------------------------------------------------------------
# Pairing strategies
# ---------------------------------------------------------------------------


def sequential_pairs(points: List[Vec3], plane: HatchPlane) -> List[Tuple[Vec3, Vec3]]:
    """Pair crossings in edge order: 0‑1, 2‑3, …

    A trailing unpaired point is dropped.  Correct for convex rings only.
    """
    return [(points[j], points[j + 1]) for j in range(0, len(points) - 1, 2)]


def axis_sorted_pairs(points: List[Vec3], plane: HatchPlane) -> List[Tuple[Vec3, Vec3]]:
    """Sort crossings along the hatch axis, then pair them sequentially.

    The hatch axis is the horizontal direction inside the plane: the
    cross product of the plane normal with the local vertical at the
    plane's anchor.  Sorting makes consecutive crossings alternate
    between entering and leaving the ring, which keeps simple concave
    shapes from being mis‑paired.  Repeated crossings, such as a vertex
    reported by both of its edges, are merged first so they cannot end
    up next to each other and pair into a zero‑length segment.
    """
    points = unique_points(points)
    up = normalize(plane.point)
    n = plane.normal
    axis = (
        n[1] * up[2] - n[2] * up[1],
        n[2] * up[0] - n[0] * up[2],
        n[0] * up[1] - n[1] * up[0],
    )
    ordered = sorted(points, key=lambda p: dot(p, axis))
    return sequential_pairs(ordered, plane)


PAIRING_STRATEGIES: Dict[str, PairingStrategy] = {
    "sequential": sequential_pairs,
    "axis": axis_sorted_pairs,
}


def resolve_pairing(pairing: Union[str, PairingStrategy]) -> PairingStrategy:
    if callable(pairing):
        return pairing
    key = (pairing or "sequential").strip().lower()
    strategy = PAIRING_STRATEGIES.get(key)
    if strategy is None:
        raise InputValidationError(
            f"Unknown pairing strategy '{pairing}'. Must be one of {sorted(PAIRING_STRATEGIES)}."
        )
    return strategy


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def _is_sequence(value: Any) -> bool:
    return hasattr(value, "__len__") and hasattr(value, "__getitem__") and not isinstance(value, (str, bytes))


def _finite(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputValidationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise InputValidationError(f"{name} must be finite, got {value!r}")
    return number


def parse_ring(coordinates: Sequence[Sequence[Sequence[float]]]) -> List[GeographicPoint]:
    """Validate the polygon coordinates and return its first ring.

    Raises:
        InputValidationError: For an empty polygon, a ring with fewer
            than two vertices, a vertex or ring that is not a list,
            or out‑of‑range / non‑numeric values.
    """
    if not _is_sequence(coordinates) or len(coordinates) == 0:
        raise InputValidationError("coordinates must contain at least one ring")
    ring = coordinates[0]
    if not _is_sequence(ring):
        raise InputValidationError("coordinates must be a list of rings, each a list of [lon, lat] pairs")
    if len(ring) < 2:
        raise InputValidationError("the first ring must contain at least 2 points")
    points: List[GeographicPoint] = []
    for idx, coord in enumerate(ring):
        if not _is_sequence(coord) or len(coord) < 2:
            raise InputValidationError(f"vertex {idx} must have at least longitude and latitude")
        lon = _finite(coord[0], f"longitude of vertex {idx}")
        lat = _finite(coord[1], f"latitude of vertex {idx}")
        alt = None
        if len(coord) > 2 and coord[2] is not None:
            alt = _finite(coord[2], f"altitude of vertex {idx}")
        if not -180.0 <= lon <= 180.0:
            raise InputValidationError(f"longitude of vertex {idx} out of range: {lon}")
        if not -90.0 <= lat <= 90.0:
            raise InputValidationError(f"latitude of vertex {idx} out of range: {lat}")
        points.append(GeographicPoint(longitude=lon, latitude=lat, altitude=alt))
    return points


def close_ring_points(points: List[GeographicPoint]) -> List[GeographicPoint]:
    """Append the first vertex when the ring is not already closed."""
    first, last = points[0], points[-1]
    if first.longitude == last.longitude and first.latitude == last.latitude:
        return points
    return points + [first]


# ---------------------------------------------------------------------------
# Sweep
# ---------------------------------------------------------------------------


def hatch_plane_at(
    start: GeographicPoint,
    start_cartesian: Vec3,
    azimuth: float,
    distance: float,
    geodesy: Geodesy,
) -> HatchPlane:
    """Build the cutting plane ``distance`` metres from ``start`` along ``azimuth``.

    The normal is the chord direction from the start point to the
    geodesic destination.  At distance zero the destination is taken
    ``DUMMY_DISTANCE`` away purely to obtain that direction; the plane
    is still anchored at the start point.
    """
    reach = distance if distance != 0 else DUMMY_DISTANCE
    destination = geodesy.direct(start, azimuth, reach)
    destination_cartesian = geodesy.to_cartesian([destination])[0]
    anchor = start_cartesian if distance == 0 else destination_cartesian
    return make_hatch_plane(
        anchor,
        start_cartesian,
        destination_cartesian,
        azimuth=azimuth,
        distance=distance,
    )


def sweep_direction(
    start: GeographicPoint,
    start_cartesian: Vec3,
    azimuth: float,
    step: float,
    first_index: int,
    edges: Sequence[EdgeSegment],
    geodesy: Geodesy,
    pairing: PairingStrategy = sequential_pairs,
    max_steps: int = MAX_SWEEP_STEPS,
) -> Tuple[List[Tuple[Vec3, Vec3]], SweepStats]:
    """Step a cutting plane along one azimuth until it leaves the ring.

    Crossings that repeat an earlier one (a vertex reached by both of
    its edges) are merged before pairing.  A pass with fewer than two
    crossings ends the sweep, except the pass at distance zero: that
    plane goes through the start vertex and, when the vertex is a
    corner lying at the far side of the ring, merely touches it.  Such
    a pass is counted in ``touching_passes`` and the sweep goes on.

    Returns:
        The Cartesian segment pairs in pass order and a
        :class:`SweepStats` record.

    Raises:
        SweepLimitError: If more than ``max_steps`` planes are placed.
    """
    stats = SweepStats(azimuth=azimuth, start_index=first_index)
    pairs: List[Tuple[Vec3, Vec3]] = []
    i = first_index
    planes = 0
    while True:
        if planes >= max_steps:
            raise SweepLimitError(
                f"sweep along azimuth {azimuth} exceeded {max_steps} passes; "
                f"step {step} is too small for this polygon"
            )
        distance = step * i
        i += 1
        planes += 1
        plane = hatch_plane_at(start, start_cartesian, azimuth, distance, geodesy)
        hits = intersect_plane_with_ring(plane, edges)
        points = unique_points(hits)
        stats.merged_points += len(hits) - len(points)
        if len(points) < 2:
            if distance == 0:
                stats.touching_passes += 1
                logger.debug("sweep azimuth=%s: plane through the start vertex only touches the ring", azimuth)
                continue
            break
        found = pairing(points, plane)
        stats.passes += 1
        stats.dropped_points += len(points) - 2 * len(found)
        pairs.extend(found)
    stats.segments = len(pairs)
    if stats.dropped_points:
        logger.debug(
            "sweep azimuth=%s dropped %d unpaired intersection point(s)",
            azimuth,
            stats.dropped_points,
        )
    if os.getenv("HATCH_DEBUG"):
        logger.debug(
            "sweep azimuth=%s start_index=%d passes=%d segments=%d",
            azimuth,
            first_index,
            stats.passes,
            stats.segments,
        )
    return pairs, stats


def _extend_and_unproject(
    pairs: Sequence[Tuple[Vec3, Vec3]],
    offset: float,
    geodesy: Geodesy,
    on_degenerate: DegeneratePolicy,
    stats: SweepStats,
) -> List[HatchLine]:
    extended: List[Vec3] = []
    for a, b in pairs:
        try:
            new_a, new_b = extend_segment(a, b, offset)
        except DegenerateSegmentError:
            if on_degenerate == "raise":
                raise
            stats.skipped_degenerate += 1
            logger.debug("skipping degenerate hatch segment at azimuth %s", stats.azimuth)
            continue
        extended.extend((new_a, new_b))
    geographic = geodesy.to_geographic(extended)
    return [HatchLine(geographic[k], geographic[k + 1]) for k in range(0, len(geographic), 2)]


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def compute_hatching(
    coordinates: Sequence[Sequence[Sequence[float]]],
    step: float = DEFAULT_STEP,
    bearing: float = DEFAULT_BEARING,
    offset: float = DEFAULT_OFFSET,
    *,
    close_ring: bool = True,
    pairing: Union[str, PairingStrategy] = "sequential",
    on_degenerate: DegeneratePolicy = "skip",
    geodesy: Optional[Geodesy] = None,
    max_sweep_steps: Optional[int] = None,
) -> HatchResult:
    """Hatch the first ring of ``coordinates`` and report sweep statistics.

    Args:
        coordinates: Polygon rings as ``[[[lon, lat, alt?], ...], ...]``.
            Only the first ring is used.
        step: Spacing between successive cutting planes in metres.
        bearing: Hatch bearing in degrees.  Planes sweep along
            ``bearing + 90`` and then ``bearing + 270``.
        offset: Distance in metres each segment is extended past both of
            its crossing points.
        close_ring: Append the first vertex when the ring is open.
        pairing: Name of a registered strategy or a callable.
        on_degenerate: ``"skip"`` drops zero‑length segments, ``"raise"``
            propagates :class:`DegenerateSegmentError`.
        geodesy: Ellipsoid model; WGS84 via pyproj by default.
        max_sweep_steps: Pass limit per direction.

    Returns:
        A :class:`HatchResult`.
    """
    points = parse_ring(coordinates)
    step = _finite(step, "step")
    if step <= 0.0:
        raise InputValidationError(f"step must be positive, got {step}")
    bearing = _finite(bearing, "bearing")
    offset = _finite(offset, "offset")
    if offset < 0.0:
        raise InputValidationError(f"offset must not be negative, got {offset}")
    if on_degenerate not in ("skip", "raise"):
        raise InputValidationError(f"on_degenerate must be 'skip' or 'raise', got {on_degenerate!r}")
    strategy = resolve_pairing(pairing)
    limit = MAX_SWEEP_STEPS if max_sweep_steps is None else int(max_sweep_steps)
    geo = geodesy or get_default_geodesy()

    if close_ring:
        points = close_ring_points(points)
    ring_cartesian = project_ring(points, geo)
    edges = ring_edges(ring_cartesian)

    start = GeographicPoint(points[0].longitude, points[0].latitude)
    start_cartesian = ring_cartesian[0]

    perpendicular = (bearing + 90.0) % 360.0
    reverse = (perpendicular + 180.0) % 360.0

    lines: List[HatchLine] = []
    sweeps: List[SweepStats] = []
    for azimuth, first_index in ((perpendicular, 0), (reverse, 1)):
        pairs, stats = sweep_direction(
            start,
            start_cartesian,
            azimuth,
            step,
            first_index,
            edges,
            geo,
            pairing=strategy,
            max_steps=limit,
        )
        lines.extend(_extend_and_unproject(pairs, offset, geo, on_degenerate, stats))
        sweeps.append(stats)

    result = HatchResult(lines=lines, sweeps=sweeps)
    logger.info(
        "hatching: vertices=%d step=%s bearing=%s offset=%s lines=%d skipped=%d",
        len(points),
        step,
        bearing,
        offset,
        len(lines),
        result.skipped_degenerate,
    )
    return result


def create_parallel_hatching(
    coordinates: Sequence[Sequence[Sequence[float]]],
    step: float = DEFAULT_STEP,
    bearing: float = DEFAULT_BEARING,
    offset: float = DEFAULT_OFFSET,
    **options: Any,
) -> List[HatchLine]:
    """Return the hatch lines for a polygon.

    Convenience wrapper around :func:`compute_hatching` that discards
    the sweep statistics.  Keyword options are passed through.
    """
    return compute_hatching(coordinates, step, bearing, offset, **options).lines
