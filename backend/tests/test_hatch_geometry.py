"""
Tests for the vector, plane and segment helpers in hatch_geometry.py.

These tests use hand‑built Cartesian coordinates only and therefore do
not depend on pyproj.
"""

from __future__ import annotations

import sys
from pathlib import Path
import math
import pytest

# Make the backend package importable when running tests directly via pytest
sys.path.append(str(Path(__file__).resolve().parents[1]))

from geohatch.services.errors import DegenerateSegmentError, HatchingError
from geohatch.services.hatch_geometry import (
    EdgeSegment,
    HatchPlane,
    extend_segment,
    intersect_plane_with_edge,
    intersect_plane_with_ring,
    make_hatch_plane,
    norm,
    normalize,
    ring_edges,
    signed_distance_to_plane,
    sub,
    unique_points,
)


def _unit_square_ring() -> list[tuple[float, float, float]]:
    """Closed unit square in the z=0 plane, counter‑clockwise."""
    return [
        (0.0, 0.0, 0.0),
        (1.0, 0.0, 0.0),
        (1.0, 1.0, 0.0),
        (0.0, 1.0, 0.0),
        (0.0, 0.0, 0.0),
    ]


def test_edge_crossing_is_found() -> None:
    plane = HatchPlane(point=(0.0, 0.0, 0.0), normal=(1.0, 0.0, 0.0))
    edge = EdgeSegment((-1.0, 0.0, 0.0), (1.0, 2.0, 0.0))
    hit = intersect_plane_with_edge(plane, edge)
    assert hit is not None
    assert hit == pytest.approx((0.0, 1.0, 0.0))


def test_crossing_beyond_segment_is_discarded() -> None:
    plane = HatchPlane(point=(5.0, 0.0, 0.0), normal=(1.0, 0.0, 0.0))
    edge = EdgeSegment((-1.0, 0.0, 0.0), (1.0, 2.0, 0.0))
    assert intersect_plane_with_edge(plane, edge) is None


@pytest.mark.parametrize("drift", [0.0, 1e-9])
def test_near_parallel_edge_is_skipped(drift: float) -> None:
    """Edges with |normal · direction| below 1e-8 never intersect."""
    plane = HatchPlane(point=(0.0, 0.0, 0.0), normal=(1.0, 0.0, 0.0))
    edge = EdgeSegment((0.0, -1.0, 0.0), (drift, 1.0, 0.0))
    assert intersect_plane_with_edge(plane, edge) is None


def test_endpoints_of_segment_are_included() -> None:
    """t = 0 and t = 1 both count as crossings."""
    plane = HatchPlane(point=(1.0, 0.0, 0.0), normal=(1.0, 0.0, 0.0))
    assert intersect_plane_with_edge(plane, EdgeSegment((1.0, 0.0, 0.0), (2.0, 0.0, 0.0))) == (1.0, 0.0, 0.0)
    assert intersect_plane_with_edge(plane, EdgeSegment((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))) == (1.0, 0.0, 0.0)


def test_ring_edges_do_not_close_the_ring() -> None:
    open_ring = _unit_square_ring()[:-1]
    edges = ring_edges(open_ring)
    assert len(edges) == 3
    assert edges[0].p0 == open_ring[0]
    assert edges[-1].p1 == open_ring[-1]


def test_plane_crosses_square_in_edge_order() -> None:
    plane = HatchPlane(point=(0.5, 0.0, 0.0), normal=(1.0, 0.0, 0.0))
    points = intersect_plane_with_ring(plane, ring_edges(_unit_square_ring()))
    # Bottom edge is walked before the top edge; the vertical edges are parallel.
    assert len(points) == 2
    assert points[0] == pytest.approx((0.5, 0.0, 0.0))
    assert points[1] == pytest.approx((0.5, 1.0, 0.0))
    for p in points:
        assert math.isclose(signed_distance_to_plane(p, plane), 0.0, abs_tol=1e-12)


def test_plane_outside_ring_has_no_crossings() -> None:
    plane = HatchPlane(point=(2.0, 0.0, 0.0), normal=(1.0, 0.0, 0.0))
    assert intersect_plane_with_ring(plane, ring_edges(_unit_square_ring())) == []


def test_make_hatch_plane_normalises_direction() -> None:
    plane = make_hatch_plane((3.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.0, 4.0, 3.0), azimuth=90.0, distance=5.0)
    assert plane.point == (3.0, 0.0, 0.0)
    assert plane.normal == pytest.approx((0.0, 0.8, 0.6))
    assert math.isclose(norm(plane.normal), 1.0)
    assert plane.azimuth == 90.0
    assert plane.distance == 5.0


def test_normalize_zero_vector_raises() -> None:
    with pytest.raises(ValueError):
        normalize((0.0, 0.0, 0.0))


@pytest.mark.parametrize("offset", [0.0, 0.25, 10.0])
def test_extend_segment_adds_offset_at_both_ends(offset: float) -> None:
    a = (1.0, 2.0, 3.0)
    b = (4.0, 6.0, 3.0)
    original = norm(sub(b, a))
    new_a, new_b = extend_segment(a, b, offset)
    assert math.isclose(norm(sub(new_b, new_a)), original + 2 * offset, rel_tol=1e-12)
    # The direction of the segment is preserved
    assert normalize(sub(new_b, new_a)) == pytest.approx(normalize(sub(b, a)))
    # Each end moved exactly ``offset`` outward
    assert math.isclose(norm(sub(a, new_a)), offset, abs_tol=1e-12)
    assert math.isclose(norm(sub(new_b, b)), offset, abs_tol=1e-12)


def test_extend_segment_on_ecef_scale_coordinates() -> None:
    a = (6378137.0, 0.0, 0.0)
    b = (6378137.0, 1000.0, 0.0)
    new_a, new_b = extend_segment(a, b, 50.0)
    assert new_a == pytest.approx((6378137.0, -50.0, 0.0))
    assert new_b == pytest.approx((6378137.0, 1050.0, 0.0))


def test_extend_segment_with_coincident_points_raises() -> None:
    p = (6378137.0, 0.0, 0.0)
    with pytest.raises(DegenerateSegmentError):
        extend_segment(p, p, 50.0)
    # Degenerate errors are part of the hatching error hierarchy
    with pytest.raises(HatchingError):
        extend_segment(p, (p[0], p[1] + 1e-9, p[2]), 1.0)


def test_plane_through_vertex_reports_it_from_both_edges() -> None:
    diamond = [(0.0, -1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (-1.0, 0.0, 0.0), (0.0, -1.0, 0.0)]
    plane = HatchPlane(point=(1.0, 0.0, 0.0), normal=(1.0, 0.0, 0.0))
    hits = intersect_plane_with_ring(plane, ring_edges(diamond))
    # The tip ends the first edge and starts the second
    assert hits == [(1.0, 0.0, 0.0), (1.0, 0.0, 0.0)]
    assert unique_points(hits) == [(1.0, 0.0, 0.0)]


def test_unique_points_keeps_first_occurrence() -> None:
    a = (6378137.0, 0.0, 0.0)
    b = (6378137.0, 500.0, 0.0)
    near_a = (6378137.0, 1e-9, 0.0)
    assert unique_points([a, b, near_a]) == [a, b]
    assert unique_points([near_a, a, b]) == [near_a, b]
    assert unique_points([]) == []
