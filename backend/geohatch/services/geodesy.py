"""
Ellipsoid geodesy used by the hatching pipeline.

The hatching core never talks to pyproj directly.  It depends on the
small :class:`Geodesy` protocol defined here, which bundles the three
operations the algorithm needs:

* ``direct`` – the forward geodesic problem (start point, azimuth,
  distance → destination point);
* ``to_cartesian`` – geographic (lon, lat) to Earth‑centred,
  Earth‑fixed (ECEF) Cartesian coordinates in metres;
* ``to_geographic`` – the inverse of ``to_cartesian``.

:class:`Wgs84Geodesy` implements the protocol on top of
``pyproj.Geod`` and two ``pyproj.Transformer`` objects converting
between EPSG:4979 (WGS84 3D geographic) and EPSG:4978 (WGS84
geocentric).  Tests may substitute any object providing the same
methods.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np
from pyproj import Geod, Transformer

logger = logging.getLogger(__name__)

CartesianPoint = Tuple[float, float, float]

# WGS84 3D geographic (lon, lat, ellipsoidal height) and geocentric frames.
GEOGRAPHIC_CRS = "EPSG:4979"
GEOCENTRIC_CRS = "EPSG:4978"


@dataclass(frozen=True)
class GeographicPoint:
    """A longitude/latitude pair in degrees with an optional altitude.

    Attributes:
        longitude: Longitude in degrees, positive east.
        latitude: Latitude in degrees, positive north.
        altitude: Ellipsoidal height in metres, or ``None`` when unknown.
    """

    longitude: float
    latitude: float
    altitude: Optional[float] = None

    def as_list(self) -> List[float]:
        """Return ``[lon, lat]`` or ``[lon, lat, alt]`` for JSON output."""
        if self.altitude is None:
            return [self.longitude, self.latitude]
        return [self.longitude, self.latitude, self.altitude]


class Geodesy(Protocol):
    """Capabilities the hatching pipeline requires from an ellipsoid model."""

    def direct(self, start: GeographicPoint, azimuth: float, distance: float) -> GeographicPoint:
        ...

    def to_cartesian(self, points: Sequence[GeographicPoint]) -> List[CartesianPoint]:
        ...

    def to_geographic(self, points: Sequence[CartesianPoint]) -> List[GeographicPoint]:
        ...


class Wgs84Geodesy:
    """WGS84 geodesy backed by pyproj.

    :meth:`to_cartesian` places points without an altitude on the
    ellipsoid surface (height 0).  The inverse conversion reports the
    ellipsoidal height of each Cartesian point, which is slightly
    negative for points on a chord between two surface points.
    """

    def __init__(self) -> None:
        self._geod = Geod(ellps="WGS84")
        self._forward = Transformer.from_crs(GEOGRAPHIC_CRS, GEOCENTRIC_CRS, always_xy=True)
        self._inverse = Transformer.from_crs(GEOCENTRIC_CRS, GEOGRAPHIC_CRS, always_xy=True)

    def direct(self, start: GeographicPoint, azimuth: float, distance: float) -> GeographicPoint:
        lon, lat, _back_azimuth = self._geod.fwd(start.longitude, start.latitude, azimuth, distance)
        return GeographicPoint(longitude=float(lon), latitude=float(lat))

    def to_cartesian(self, points: Sequence[GeographicPoint]) -> List[CartesianPoint]:
        if not points:
            return []
        lons = np.array([p.longitude for p in points], dtype=float)
        lats = np.array([p.latitude for p in points], dtype=float)
        heights = np.array([p.altitude or 0.0 for p in points], dtype=float)
        xs, ys, zs = self._forward.transform(lons, lats, heights)
        return [(float(x), float(y), float(z)) for x, y, z in zip(xs, ys, zs)]

    def to_geographic(self, points: Sequence[CartesianPoint]) -> List[GeographicPoint]:
        if not points:
            return []
        arr = np.asarray(points, dtype=float).reshape(-1, 3)
        lons, lats, heights = self._inverse.transform(arr[:, 0], arr[:, 1], arr[:, 2])
        return [
            GeographicPoint(longitude=float(lon), latitude=float(lat), altitude=float(h))
            for lon, lat, h in zip(lons, lats, heights)
        ]


@lru_cache(maxsize=1)
def get_default_geodesy() -> Wgs84Geodesy:
    """Return a shared :class:`Wgs84Geodesy` instance.

    Building pyproj transformers is comparatively slow, so the default
    instance is created once and reused.  It holds no mutable state.
    """
    logger.debug("Initialising WGS84 geodesy (%s <-> %s)", GEOGRAPHIC_CRS, GEOCENTRIC_CRS)
    return Wgs84Geodesy()


def project_ring(points: Sequence[GeographicPoint], geodesy: Optional[Geodesy] = None) -> List[CartesianPoint]:
    """Project a ring of geographic points into the ECEF frame.

    Vertex altitudes are ignored; the ring is hatched on the ellipsoid
    surface.

    Args:
        points: Ring vertices in traversal order.
        geodesy: Ellipsoid model to use.  Defaults to WGS84.

    Returns:
        Cartesian points in the same order and of the same length.
    """
    geo = geodesy or get_default_geodesy()
    return geo.to_cartesian([GeographicPoint(p.longitude, p.latitude) for p in points])
