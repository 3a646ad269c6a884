"""FastAPI service exposing the topology validation core."""

from __future__ import annotations

import io
import logging
import xml.etree.ElementTree as ET
import zipfile
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import Field

from . import sequencer
from .catalog import FacilityCatalog
from .endpoints import SegmentEndpoints, resolve_endpoints
from .errors import ReferentialError
from .geodesy import path_length_km
from .issues import FieldError, ValidationResult
from .kml_reader import read_kmz
from .models import Coordinate, Facility, PathMetadata, Segment, TopologyModel
from .positions import validate_segment
from .reader import read_shapefile
from .routes import RouteResult, assemble_route

logger = logging.getLogger(__name__)

app = FastAPI(title="Pipeline Topology", version="0.1.0")

COMPANION_EXTS = {".shp", ".shx", ".dbf", ".prj"}


class SegmentCheck(TopologyModel):
    valid: bool
    length: float | None
    errors: list[FieldError]


class RouteRequest(TopologyModel):
    segments: list[Segment]
    known_gaps: list[tuple[int, int]] = Field(default_factory=list)


class EndpointRequest(TopologyModel):
    segment: Segment
    facilities: list[Facility]


class PathRequest(TopologyModel):
    points: list[Coordinate]
    finalized: bool = False


class ReorderRequest(TopologyModel):
    points: list[Coordinate]
    moved_id: int
    new_index: int


class ReorderResponse(TopologyModel):
    points: list[Coordinate]
    changed: list[Coordinate]


class ImportedPath(TopologyModel):
    metadata: PathMetadata
    points: list[Coordinate]
    length_km: float
    validation: ValidationResult


@app.exception_handler(ReferentialError)
async def _referential_error(request: Request, exc: ReferentialError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": str(exc)})


@app.post("/segments/validate", response_model=SegmentCheck)
async def check_segment(segment: Segment):
    """Run every field and position rule on a segment draft."""
    errors = validate_segment(segment)
    return SegmentCheck(valid=not errors, length=segment.length, errors=errors)


@app.post("/segments/endpoints", response_model=SegmentEndpoints)
async def check_endpoints(body: EndpointRequest):
    """Resolve a segment's endpoints against the facility list sent by the caller."""
    return resolve_endpoints(body.segment, FacilityCatalog(body.facilities))


@app.post("/routes/assemble", response_model=RouteResult)
async def check_route(body: RouteRequest):
    """Order a pipeline's segments and report overlaps, gaps and endpoint mismatches."""
    try:
        route = assemble_route(body.segments, known_gaps=body.known_gaps)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return route


@app.post("/coordinates/validate", response_model=ValidationResult)
async def check_path(body: PathRequest):
    return sequencer.validate(body.points, finalized=body.finalized)


@app.post("/coordinates/reorder", response_model=ReorderResponse)
async def reorder_path(body: ReorderRequest):
    try:
        points = sequencer.reorder(body.points, body.moved_id, body.new_index)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0])) from exc
    return ReorderResponse(points=points, changed=sequencer.changed(body.points, points))


@app.post("/paths/import", response_model=ImportedPath)
async def import_path(files: list[UploadFile], owner_id: int | None = Query(None, alias="ownerId")):
    """Turn an uploaded KMZ/KML, zipped shapefile or shapefile components into a path.

    Accepts:
    - A single .kmz or .kml file
    - A single .zip containing shapefile components
    - Multiple files (.shp, .shx, .dbf, and optionally .prj)
    """
    filename = (files[0].filename or "").lower() if len(files) == 1 else ""

    try:
        if filename.endswith((".kmz", ".kml")):
            points, metadata = read_kmz(await files[0].read(), owner_id=owner_id)
        elif filename.endswith(".zip"):
            points, metadata = _read_zip(await files[0].read(), owner_id)
        else:
            points, metadata = await _read_components(files, owner_id)
    except (ValueError, zipfile.BadZipFile, ET.ParseError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info("Imported %d path points from %s", len(points), metadata.source_type)
    return ImportedPath(
        metadata=metadata,
        points=points,
        length_km=path_length_km(points),
        validation=sequencer.validate(points),
    )


def _read_zip(content: bytes, owner_id: int | None):
    """Read shapefile components straight out of a zip archive."""
    members: dict[str, bytes] = {}
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        for name in zf.namelist():
            ext = Path(name).suffix.lower()
            if ext in COMPANION_EXTS and ext not in members:
                members[ext] = zf.read(name)
    if ".shp" not in members:
        raise HTTPException(status_code=400, detail="No .shp file found in zip archive")
    return _read_members(members, owner_id)


async def _read_components(files: list[UploadFile], owner_id: int | None):
    members: dict[str, bytes] = {}
    for f in files:
        ext = Path(f.filename or "").suffix.lower()
        if ext in COMPANION_EXTS:
            members[ext] = await f.read()
    if ".shp" not in members:
        raise HTTPException(status_code=400, detail="Missing required .shp file")
    return _read_members(members, owner_id)


def _read_members(members: dict[str, bytes], owner_id: int | None):
    return read_shapefile(
        shp_file=io.BytesIO(members[".shp"]),
        shx_file=io.BytesIO(members[".shx"]) if ".shx" in members else None,
        dbf_file=io.BytesIO(members[".dbf"]) if ".dbf" in members else None,
        prj_wkt=members[".prj"].decode("utf-8", errors="replace") if ".prj" in members else None,
        owner_id=owner_id,
    )
