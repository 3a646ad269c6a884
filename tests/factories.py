"""Builders for test records."""

from pipeline_topology.models import Coordinate, Facility, FacilityKind, Segment

TERMINAL_A, STATION_B, PLANT_C = 1, 2, 3
PIPELINE_ID = 10


def make_segment(id=None, start=0.0, end=10.0, departure=TERMINAL_A, arrival=STATION_B, **overrides) -> Segment:
    values = dict(
        id=id,
        code=f"SEG-{id}" if id is not None else "SEG-NEW",
        name=f"Segment {id}" if id is not None else "New segment",
        diameter=0.5,
        thickness=0.0127,
        roughness=0.045,
        start_point=start,
        end_point=end,
        operational_status_id=1,
        construction_material_id=1,
        departure_facility_id=departure,
        arrival_facility_id=arrival,
        pipeline_id=PIPELINE_ID,
    )
    values.update(overrides)
    return Segment(**values)


def make_point(id, sequence, owner_id=100, latitude=31.0, longitude=5.0) -> Coordinate:
    return Coordinate(
        id=id,
        sequence=sequence,
        latitude=latitude + sequence * 0.01,
        longitude=longitude + sequence * 0.01,
        owner_id=owner_id,
    )


def make_facilities() -> list[Facility]:
    return [
        Facility(id=TERMINAL_A, code="TA", name="Terminal A", kind=FacilityKind.TERMINAL),
        Facility(id=STATION_B, code="SB", name="Station B", kind=FacilityKind.STATION),
        Facility(id=PLANT_C, code="PC", name="Plant C", kind=FacilityKind.PROCESSING_PLANT),
    ]
