"""
API routes for polygon hatching.

The endpoints accept a :class:`HatchRequest` and return the hatch
lines either as JSON (with sweep statistics), as a GeoJSON feature or
as CSV.  All three go through the in‑memory result cache so repeated
requests for the same polygon are cheap.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Response

from .models import GeoPoint, HatchLineModel, HatchRequest, HatchResponse
from ..services.errors import DegenerateSegmentError, InputValidationError, SweepLimitError
from ..services.hatch_cache import compute_hatching_cached
from ..services.hatch_export import hatch_lines_to_csv, hatch_lines_to_geojson
from ..services.hatching import HatchResult

logger = logging.getLogger(__name__)

router = APIRouter()


def _run_hatching(body: HatchRequest) -> tuple[HatchResult, bool]:
    """Compute hatching for ``body`` and translate failures to HTTP errors."""
    try:
        return compute_hatching_cached(
            body.coordinates,
            step=body.step,
            bearing=body.bearing,
            offset=body.offset,
            close_ring=body.closeRing,
            pairing=body.pairing,
            on_degenerate=body.onDegenerate,
        )
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (DegenerateSegmentError, SweepLimitError) as exc:
        logger.warning("hatching rejected: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception as exc:
        logger.exception("hatching failed: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to compute hatching: {exc}")


def _parameters(body: HatchRequest) -> Dict[str, Any]:
    return {
        "step": body.step,
        "bearing": body.bearing,
        "offset": body.offset,
        "closeRing": body.closeRing,
        "pairing": body.pairing,
        "onDegenerate": body.onDegenerate,
    }


@router.post("/hatching", response_model=HatchResponse)
async def create_hatching(body: HatchRequest) -> HatchResponse:
    """Hatch the first ring of the polygon in ``body``.

    Returns:
        The extended hatch lines in sweep order and a metadata object
        with per‑direction statistics.
    """
    result, cached = _run_hatching(body)
    lines = [
        HatchLineModel(
            start=GeoPoint(lon=ln.start.longitude, lat=ln.start.latitude, alt=ln.start.altitude),
            end=GeoPoint(lon=ln.end.longitude, lat=ln.end.latitude, alt=ln.end.altitude),
        )
        for ln in result.lines
    ]
    metadata = {
        "lineCount": len(lines),
        "skippedDegenerate": result.skipped_degenerate,
        "sweeps": [s.as_dict() for s in result.sweeps],
        "parameters": _parameters(body),
        "cached": cached,
    }
    return HatchResponse(lines=lines, metadata=metadata)


@router.post("/hatching/geojson")
async def create_hatching_geojson(body: HatchRequest) -> Dict[str, Any]:
    """Return the hatch lines as a GeoJSON ``MultiLineString`` feature."""
    result, _cached = _run_hatching(body)
    properties = _parameters(body)
    properties["lineCount"] = len(result.lines)
    return hatch_lines_to_geojson(result.lines, properties=properties)


@router.post("/hatching/export")
async def export_hatching(body: HatchRequest) -> Response:
    """Return the hatch lines as CSV, one row per endpoint."""
    result, _cached = _run_hatching(body)
    return Response(content=hatch_lines_to_csv(result.lines), media_type="text/csv")
