"""
Vector, plane and segment primitives for hatching.

Vectors are plain 3‑tuples of floats expressed in the ECEF frame
(metres).  A :class:`HatchPlane` is defined by a point and a unit
normal; it is the cutting plane perpendicular to the sweep direction.
:class:`EdgeSegment` is an ordered pair of Cartesian points used both
for polygon edges and for hatch lines before they are extended.

The functions here have no knowledge of geography.  They are kept
free of pyproj so the intersection and extension maths can be tested
with hand‑built coordinates.
"""

from __future__ import annotations

import math
import os
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import DegenerateSegmentError

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]

# Edges whose direction is this close to perpendicular to the plane
# normal are treated as parallel to the plane and never intersected.
PARALLEL_EPS: float = 1e-8

# Segments shorter than this (in metres) have no usable direction.
DEGENERATE_LENGTH_EPS: float = 1e-6


__all__ = [
    "Vec3",
    "PARALLEL_EPS",
    "DEGENERATE_LENGTH_EPS",
    "HatchPlane",
    "EdgeSegment",
    "dot",
    "sub",
    "add",
    "scale",
    "norm",
    "normalize",
    "signed_distance_to_plane",
    "make_hatch_plane",
    "ring_edges",
    "intersect_plane_with_edge",
    "intersect_plane_with_ring",
    "unique_points",
    "extend_segment",
]


@dataclass(frozen=True)
class HatchPlane:
    """A cutting plane used by the directional sweep.

    Attributes:
        point: A point lying on the plane.
        normal: Unit vector perpendicular to the plane, pointing along
            the sweep direction.
        azimuth: Sweep azimuth in degrees the plane was built for.
        distance: Sweep distance in metres from the start point.
    """

    point: Vec3
    normal: Vec3
    azimuth: float = 0.0
    distance: float = 0.0


@dataclass(frozen=True)
class EdgeSegment:
    """An ordered pair of Cartesian points."""

    p0: Vec3
    p1: Vec3

    @property
    def direction(self) -> Vec3:
        return sub(self.p1, self.p0)

    @property
    def length(self) -> float:
        return norm(self.direction)


def dot(a: Vec3, b: Vec3) -> float:
    """Compute the dot product of two 3D vectors."""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def sub(a: Vec3, b: Vec3) -> Vec3:
    """Subtract two 3D vectors (a - b)."""
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def add(a: Vec3, b: Vec3) -> Vec3:
    """Add two 3D vectors."""
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale(a: Vec3, s: float) -> Vec3:
    """Scale a 3D vector by ``s``."""
    return (a[0] * s, a[1] * s, a[2] * s)


def norm(a: Vec3) -> float:
    """Euclidean length of a 3D vector."""
    return math.sqrt(dot(a, a))


def normalize(a: Vec3) -> Vec3:
    """Return ``a`` scaled to unit length.

    Raises:
        ValueError: If ``a`` is the zero vector.
    """
    length = norm(a)
    if length == 0.0:
        raise ValueError("cannot normalise a zero-length vector")
    return (a[0] / length, a[1] / length, a[2] / length)


def signed_distance_to_plane(p: Vec3, plane: HatchPlane) -> float:
    """Signed distance from ``p`` to ``plane``, positive along the normal."""
    return dot(sub(p, plane.point), plane.normal)


def make_hatch_plane(
    anchor: Vec3,
    direction_from: Vec3,
    direction_to: Vec3,
    azimuth: float = 0.0,
    distance: float = 0.0,
) -> HatchPlane:
    """Build a plane through ``anchor`` whose normal points from
    ``direction_from`` towards ``direction_to``.

    The two direction points must be distinct; the sweep guarantees this
    by never requesting a zero distance for the direction vector.
    """
    normal = normalize(sub(direction_to, direction_from))
    return HatchPlane(point=anchor, normal=normal, azimuth=azimuth, distance=distance)


def ring_edges(ring: Sequence[Vec3]) -> List[EdgeSegment]:
    """Return the edges ``(v0,v1) … (v[n-2],v[n-1])`` of a ring.

    No closing edge from the last vertex back to the first is added;
    callers that want one must close the ring beforehand.
    """
    return [EdgeSegment(ring[i], ring[i + 1]) for i in range(len(ring) - 1)]


def intersect_plane_with_edge(
    plane: HatchPlane,
    edge: EdgeSegment,
    eps: float = PARALLEL_EPS,
) -> Optional[Vec3]:
    """Intersect a plane with a line segment.

    Args:
        plane: The cutting plane.
        edge: The segment to intersect.
        eps: Threshold on ``|normal · direction|`` below which the edge
            is considered parallel to the plane.

    Returns:
        The intersection point, or ``None`` if the edge is parallel to
        the plane or the crossing lies outside the segment.
    """
    line_dir = edge.direction
    denom = dot(plane.normal, line_dir)
    if abs(denom) < eps:
        return None
    t = dot(plane.normal, sub(plane.point, edge.p0)) / denom
    if 0.0 <= t <= 1.0:
        return (
            edge.p0[0] + t * line_dir[0],
            edge.p0[1] + t * line_dir[1],
            edge.p0[2] + t * line_dir[2],
        )
    return None


def intersect_plane_with_ring(
    plane: HatchPlane,
    edges: Sequence[EdgeSegment],
    eps: float = PARALLEL_EPS,
) -> List[Vec3]:
    """Collect plane crossings over all edges, preserving edge order."""
    points: List[Vec3] = []
    parallel = 0
    for edge in edges:
        if abs(dot(plane.normal, edge.direction)) < eps:
            parallel += 1
            continue
        hit = intersect_plane_with_edge(plane, edge, eps=eps)
        if hit is not None:
            points.append(hit)
    if os.getenv("HATCH_DEBUG"):
        logger.debug(
            "intersect_plane_with_ring: azimuth=%s distance=%s edges=%d hits=%d parallel=%d",
            plane.azimuth,
            plane.distance,
            len(edges),
            len(points),
            parallel,
        )
    return points


def unique_points(points: Sequence[Vec3], eps: float = DEGENERATE_LENGTH_EPS) -> List[Vec3]:
    """Drop points lying within ``eps`` metres of an earlier point.

    A plane passing through a ring vertex crosses both edges that meet
    there and reports the vertex twice.  Order of first occurrence is
    preserved.
    """
    kept: List[Vec3] = []
    for p in points:
        if all(norm(sub(p, q)) > eps for q in kept):
            kept.append(p)
    return kept


def extend_segment(a: Vec3, b: Vec3, offset: float) -> Tuple[Vec3, Vec3]:
    """Push both ends of segment ``a``–``b`` outward by ``offset``.

    The returned points lie on the line through ``a`` and ``b``; the
    new length is the original length plus ``2 * offset``.

    Raises:
        DegenerateSegmentError: If ``a`` and ``b`` coincide.
    """
    direction = sub(b, a)
    length = norm(direction)
    if length <= DEGENERATE_LENGTH_EPS:
        raise DegenerateSegmentError(
            f"segment endpoints coincide (length={length:.3g} m); cannot extend line"
        )
    unit = scale(direction, 1.0 / length)
    return sub(a, scale(unit, offset)), add(b, scale(unit, offset))
