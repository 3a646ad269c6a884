"""Assemble a pipeline's segments into a single ordered route."""

import math
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field, computed_field

from .errors import IncompleteSegmentError
from .issues import EndpointMismatchWarning, GapWarning, OverlapError, RouteWarning
from .models import Segment


class RouteResult(BaseModel):
    """Ordered route with blocking errors and non-blocking warnings."""

    total_length: float
    ordered_segments: list[Segment]
    errors: list[OverlapError] = Field(default_factory=list)
    warnings: list[RouteWarning] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def departure_facility_id(self) -> int | None:
        return self.ordered_segments[0].departure_facility_id if self.ordered_segments else None

    @property
    def arrival_facility_id(self) -> int | None:
        return self.ordered_segments[-1].arrival_facility_id if self.ordered_segments else None

    @property
    def facility_chain(self) -> list[int | None]:
        """Facilities visited along the route, collapsing shared endpoints."""
        chain: list[int | None] = []
        for seg in self.ordered_segments:
            if not chain or chain[-1] != seg.departure_facility_id:
                chain.append(seg.departure_facility_id)
            chain.append(seg.arrival_facility_id)
        return chain


def _route_order(segment: Segment) -> tuple[float, bool, int]:
    return (segment.start_point, segment.id is None, segment.id or 0)


def assemble_route(
    segments: Sequence[Segment],
    known_gaps: Iterable[tuple[int, int]] = (),
    tolerance: float = 1e-9,
) -> RouteResult:
    """Sort segments by start point and check each consecutive pair.

    Args:
        segments: The full sibling set of one pipeline.
        known_gaps: ``(first_id, second_id)`` pairs whose gap is a documented
            discontinuity and is not reported.
        tolerance: Distance (km) under which two offsets are considered equal.

    Raises:
        IncompleteSegmentError: if any segment is missing an offset.
    """
    for seg in segments:
        if seg.start_point is None or seg.end_point is None:
            raise IncompleteSegmentError(seg)

    accepted_gaps = set(known_gaps)
    ordered = sorted(segments, key=_route_order)
    errors: list[OverlapError] = []
    warnings: list[RouteWarning] = []

    for a, b in zip(ordered, ordered[1:]):
        if math.isclose(a.end_point, b.start_point, abs_tol=tolerance):
            if a.arrival_facility_id != b.departure_facility_id:
                warnings.append(EndpointMismatchWarning(first=a, second=b))
        elif a.end_point > b.start_point:
            errors.append(OverlapError(first=a, second=b, amount=a.end_point - b.start_point))
        elif (a.id, b.id) not in accepted_gaps:
            warnings.append(GapWarning(first=a, second=b, amount=b.start_point - a.end_point))

    total_length = sum(seg.length for seg in ordered)
    return RouteResult(
        total_length=total_length,
        ordered_segments=ordered,
        errors=errors,
        warnings=warnings,
    )
