"""Import a segment path from an ESRI shapefile, reprojecting to WGS84."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

import shapefile
from pyproj import CRS, Transformer

from .models import Coordinate, PathMetadata

WGS84_EPSG = 4326


def detect_crs(prj_source: str | Path | None) -> tuple[int | None, str | None, bool | None]:
    """Parse CRS from a .prj WKT string or file path.

    Returns (epsg_code, crs_name, is_projected) or (None, None, None) on failure.
    """
    if prj_source is None:
        return None, None, None

    wkt = prj_source if isinstance(prj_source, str) else ""
    if isinstance(prj_source, Path):
        if not prj_source.exists():
            return None, None, None
        wkt = prj_source.read_text()

    if not wkt.strip():
        return None, None, None

    try:
        crs = CRS.from_wkt(wkt)
    except Exception:
        return None, None, None

    return crs.to_epsg(), crs.name, crs.is_projected


def read_shapefile(
    shp_path: str | Path | None = None,
    *,
    shp_file: BinaryIO | None = None,
    shx_file: BinaryIO | None = None,
    dbf_file: BinaryIO | None = None,
    prj_wkt: str | None = None,
    owner_id: int | None = None,
) -> tuple[list[Coordinate], PathMetadata]:
    """Read a POINT or POLYLINE shapefile into a sequenced path.

    Supports two modes:
    - File path: pass ``shp_path`` (the .prj is auto-discovered)
    - File objects: pass ``shp_file``, ``shx_file``, ``dbf_file``, and optionally ``prj_wkt``

    Without a .prj the vertices are taken to be WGS84 longitude/latitude.

    Raises:
        ValueError: for polygon or unknown shape types, a projected CRS with no
            EPSG code, or vertices outside the WGS84 range.
    """
    if shp_path is not None:
        shp_path = Path(shp_path)
        sf = shapefile.Reader(str(shp_path))
        prj_path = shp_path.with_suffix(".prj")
        if not prj_path.exists():
            # pyshp accepts paths without the extension
            prj_path = Path(str(shp_path) + ".prj")
        epsg, crs_name, is_projected = detect_crs(prj_path if prj_path.exists() else None)
    elif shp_file is not None:
        sf = shapefile.Reader(shp=shp_file, shx=shx_file, dbf=dbf_file)
        epsg, crs_name, is_projected = detect_crs(prj_wkt)
    else:
        raise ValueError("Provide either shp_path or shp_file")

    shape_type_name = sf.shapeTypeName
    upper = shape_type_name.upper()
    if "POLYGON" in upper:
        raise ValueError(f"Unsupported shape type: {shape_type_name}. POLYGON shapes are not supported.")

    has_z = "Z" in upper
    vertices = _extract_vertices(sf, upper, has_z)
    if epsg is not None and epsg != WGS84_EPSG:
        vertices = _to_wgs84(vertices, epsg)
    elif is_projected:
        raise ValueError(f"Projected CRS {crs_name!r} has no EPSG code; cannot convert to WGS84")

    points = [
        Coordinate(sequence=i, longitude=x, latitude=y, elevation=z, owner_id=owner_id)
        for i, (x, y, z) in enumerate(vertices, start=1)
    ]
    metadata = PathMetadata(
        source_type=shape_type_name,
        crs_epsg=epsg,
        crs_name=crs_name,
        is_projected=is_projected,
        num_points=len(points),
        has_z=has_z,
        fields=[f[0] for f in sf.fields[1:]],  # skip DeletionFlag
    )
    return points, metadata


def _extract_vertices(
    sf: shapefile.Reader, upper_type: str, has_z: bool
) -> list[tuple[float, float, float | None]]:
    vertices: list[tuple[float, float, float | None]] = []

    if "POINT" in upper_type and "POLY" not in upper_type:
        for shape in sf.shapes():
            x, y = shape.points[0]
            vertices.append((x, y, shape.z[0] if has_z else None))
    elif "POLYLINE" in upper_type or upper_type in ("ARC", "ARCZ", "ARCM"):
        # All parts of all records are concatenated into one path
        for shape in sf.shapes():
            for v, (x, y) in enumerate(shape.points):
                z = shape.z[v] if has_z and len(getattr(shape, "z", [])) > v else None
                vertices.append((x, y, z))
    else:
        raise ValueError(f"Unsupported shape type: {upper_type}")

    return vertices


def _to_wgs84(
    vertices: list[tuple[float, float, float | None]], source_epsg: int
) -> list[tuple[float, float, float | None]]:
    transformer = Transformer.from_crs(f"EPSG:{source_epsg}", f"EPSG:{WGS84_EPSG}", always_xy=True)
    lons, lats = transformer.transform([v[0] for v in vertices], [v[1] for v in vertices])
    return [(lon, lat, v[2]) for lon, lat, v in zip(lons, lats, vertices)]
