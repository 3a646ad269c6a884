"""Import a segment path from KMZ/KML.

KMZ is a ZIP archive holding a KML document. KML coordinates are always WGS84
(EPSG:4326) ``longitude,latitude[,altitude]`` tuples, so they map straight onto
``Coordinate`` without reprojection.
"""

from __future__ import annotations

import io
import xml.etree.ElementTree as ET
import zipfile
from typing import BinaryIO

from .models import Coordinate, PathMetadata

KML_NS = "{http://www.opengis.net/kml/2.2}"
PATH_TAGS = ("LineString", "LinearRing", "Point")


def read_kmz(
    file: str | bytes | BinaryIO, owner_id: int | None = None
) -> tuple[list[Coordinate], PathMetadata]:
    """Read a KMZ (or plain KML) file into a sequenced path.

    Args:
        file: Path to a .kmz/.kml file, raw bytes, or a binary file object.
        owner_id: Segment the imported points will belong to.

    Raises:
        ValueError: if the archive holds no KML or a coordinate is out of range.
    """
    data = _read_bytes(file)
    if data[:4] == b"PK\x03\x04":
        kml_text = _extract_kml_from_kmz(data)
    else:
        kml_text = data.decode("utf-8", errors="replace")

    root = ET.fromstring(kml_text)
    tuples, geometry_type = _collect_tuples(root)

    points = [
        Coordinate(sequence=i, longitude=lon, latitude=lat, elevation=alt, owner_id=owner_id)
        for i, (lon, lat, alt) in enumerate(tuples, start=1)
    ]
    metadata = PathMetadata(
        source_type=f"KML_{geometry_type}",
        crs_epsg=4326,
        crs_name="WGS 84",
        is_projected=False,
        num_points=len(points),
        has_z=any(p.elevation is not None for p in points),
    )
    return points, metadata


def _read_bytes(file: str | bytes | BinaryIO) -> bytes:
    if isinstance(file, bytes):
        return file
    if isinstance(file, str):
        with open(file, "rb") as f:
            return f.read()
    return file.read()


def _extract_kml_from_kmz(data: bytes) -> str:
    """Return ``doc.kml`` from the archive, or the first ``.kml`` entry."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        names = zf.namelist()
        kml_name = next((n for n in names if n.lower() == "doc.kml"), None)
        if kml_name is None:
            kml_name = next((n for n in names if n.lower().endswith(".kml")), None)
        if kml_name is None:
            raise ValueError("No .kml file found in KMZ archive")
        return zf.read(kml_name).decode("utf-8", errors="replace")


def _collect_tuples(root: ET.Element) -> tuple[list[tuple[float, float, float | None]], str]:
    tuples: list[tuple[float, float, float | None]] = []
    geometry_type = "UNKNOWN"

    for elem in root.iter():
        tag = elem.tag.replace(KML_NS, "")
        if tag not in PATH_TAGS:
            continue
        if tag == "LineString":
            geometry_type = "LINESTRING"
        elif tag == "Point" and geometry_type == "UNKNOWN":
            geometry_type = "POINT"

        coords_elem = elem.find(f"{KML_NS}coordinates")
        if coords_elem is not None and coords_elem.text:
            tuples.extend(_parse_coordinates_text(coords_elem.text))

    if geometry_type == "UNKNOWN" and tuples:
        geometry_type = "MIXED"
    return tuples, geometry_type


def _parse_coordinates_text(text: str) -> list[tuple[float, float, float | None]]:
    """Parse ``lon,lat[,alt] lon,lat[,alt] ...``; malformed tuples are skipped."""
    tuples = []
    for token in text.strip().split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        alt = float(parts[2]) if len(parts) >= 3 else None
        tuples.append((float(parts[0]), float(parts[1]), alt))
    return tuples
