"""
Pydantic data models for the hatching API.

These models define the request and response shapes of the backend.
Defaults mirror those of :func:`geohatch.services.hatching.compute_hatching`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class HatchRequest(BaseModel):
    """Request body for computing a parallel hatching."""

    coordinates: List[List[List[Optional[float]]]] = Field(
        ...,
        description="Polygon rings as [[[lon, lat, alt?], ...], ...]; only the first ring is hatched",
    )
    step: float = Field(
        default=100.0,
        description="Spacing between successive hatch planes in metres",
    )
    bearing: float = Field(
        default=0.0,
        description="Hatch bearing in degrees; planes sweep along bearing+90 and bearing+270",
    )
    offset: float = Field(
        default=50.0,
        description="Distance in metres each hatch line is extended past the polygon edges",
    )
    # Open rings are closed by repeating the first vertex.  Set to false
    # to hatch against exactly the edges given.
    closeRing: bool = Field(
        default=True,
        description="Append the first vertex when the ring is not already closed",
    )
    pairing: Literal["sequential", "axis"] = Field(
        default="sequential",
        description="How intersection points are paired into segments ('sequential' or 'axis')",
    )
    onDegenerate: Literal["skip", "raise"] = Field(
        default="skip",
        description="Whether zero-length segments are dropped or fail the request",
    )


class GeoPoint(BaseModel):
    """Single geographic point."""

    lon: float
    lat: float
    alt: float | None = None


class HatchLineModel(BaseModel):
    """One extended hatch stroke."""

    start: GeoPoint
    end: GeoPoint


class HatchResponse(BaseModel):
    """Response returned after hatching a polygon."""

    lines: List[HatchLineModel] = Field(..., description="Hatch lines in sweep order")
    metadata: Dict[str, Any] = Field(
        ..., description="Sweep statistics and the parameters used"
    )
