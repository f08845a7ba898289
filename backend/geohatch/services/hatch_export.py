"""
Serialisers for hatch lines.

Two formats are supported: a GeoJSON ``Feature`` whose geometry is a
``MultiLineString`` (one line string per hatch stroke), and a flat CSV
with one row per endpoint.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, List, Optional, Sequence

from .hatching import HatchLine

CSV_HEADER = ["line", "point", "lon", "lat", "alt"]


def hatch_lines_to_geojson(
    lines: Sequence[HatchLine],
    properties: Optional[Dict[str, Any]] = None,
    include_altitude: bool = False,
) -> Dict[str, Any]:
    """Build a GeoJSON Feature holding all hatch lines.

    GeoJSON positions are ``[lon, lat]``; the ellipsoidal height is
    appended only when ``include_altitude`` is set.
    """
    coords: List[List[List[float]]] = []
    for line in lines:
        pair = []
        for p in (line.start, line.end):
            if include_altitude and p.altitude is not None:
                pair.append([p.longitude, p.latitude, p.altitude])
            else:
                pair.append([p.longitude, p.latitude])
        coords.append(pair)
    return {
        "type": "Feature",
        "geometry": {"type": "MultiLineString", "coordinates": coords},
        "properties": dict(properties or {}),
    }


def hatch_lines_to_csv(lines: Sequence[HatchLine]) -> str:
    """Render hatch lines as CSV text (``line,point,lon,lat,alt``)."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for idx, line in enumerate(lines):
        for point_idx, p in enumerate((line.start, line.end)):
            alt = "" if p.altitude is None else f"{p.altitude:.3f}"
            writer.writerow([idx, point_idx, f"{p.longitude:.9f}", f"{p.latitude:.9f}", alt])
    return output.getvalue()
