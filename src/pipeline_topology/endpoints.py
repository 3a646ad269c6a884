"""Resolve a segment's departure/arrival facility references."""

from pydantic import BaseModel

from .catalog import FacilityCatalog
from .errors import UnknownFacility
from .models import Facility, Segment


class SegmentEndpoints(BaseModel):
    departure: Facility
    arrival: Facility


def resolve_endpoints(segment: Segment, catalog: FacilityCatalog) -> SegmentEndpoints:
    """Look up both endpoint facilities in a catalog snapshot.

    Raises:
        UnknownFacility: naming every endpoint that is absent from ``catalog``.
    """
    departure = catalog.get(segment.departure_facility_id)
    arrival = catalog.get(segment.arrival_facility_id)

    missing: dict[str, int | None] = {}
    if departure is None:
        missing["departure"] = segment.departure_facility_id
    if arrival is None:
        missing["arrival"] = segment.arrival_facility_id
    if missing:
        raise UnknownFacility(missing)

    return SegmentEndpoints(departure=departure, arrival=arrival)
