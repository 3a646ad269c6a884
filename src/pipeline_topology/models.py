"""Pydantic data models for the pipeline topology core.

Field names are snake_case in Python and camelCase on the wire, matching the
remote CRUD API. Relationship identifiers are normalised on ingestion: ``0``,
``None`` and a missing key all mean "no relationship".
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def _normalize_id(value: Any) -> Any:
    if value is None or value == 0 or value == "":
        return None
    return value


OptionalId = Annotated[Annotated[int, Field(ge=1)] | None, BeforeValidator(_normalize_id)]


class TopologyModel(BaseModel):
    """Base model: camelCase aliases on the wire, snake_case attributes in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialise for the remote API (camelCase keys, ISO dates, explicit nulls)."""
        return self.model_dump(mode="json", by_alias=True)


class Coordinate(TopologyModel):
    """A single sequenced point on a segment's geographic path."""

    id: OptionalId = None
    sequence: int = Field(gt=0)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    elevation: float | None = None
    owner_id: OptionalId = Field(default=None, alias="infrastructureId")


class Segment(TopologyModel):
    """A bounded section of a pipeline between two position offsets (km).

    Drafts may hold missing values; :func:`pipeline_topology.positions.validate_segment`
    reports them. ``length`` is derived and any incoming value is ignored.
    """

    id: OptionalId = None
    code: str = ""
    name: str = ""

    installation_date: date | None = None
    commissioning_date: date | None = None
    decommissioning_date: date | None = None

    diameter: float | None = None
    thickness: float | None = None
    roughness: float | None = None

    start_point: float | None = None
    end_point: float | None = None

    operational_status_id: OptionalId = None
    owner_id: OptionalId = None
    construction_material_id: OptionalId = None
    exterior_coating_id: OptionalId = None
    interior_coating_id: OptionalId = None
    pipeline_id: OptionalId = None

    departure_facility_id: OptionalId = None
    arrival_facility_id: OptionalId = None

    coordinate_ids: list[int] = Field(default_factory=list)

    @computed_field
    @property
    def length(self) -> float | None:
        if self.start_point is None or self.end_point is None:
            return None
        return self.end_point - self.start_point

    @property
    def label(self) -> str:
        """Human-readable reference used in messages."""
        if self.code:
            return self.code
        if self.id is not None:
            return f"#{self.id}"
        return "<new segment>"


class FacilityKind(str, Enum):
    TERMINAL = "terminal"
    STATION = "station"
    PROCESSING_PLANT = "processing_plant"
    PRODUCTION_FIELD = "production_field"


class Facility(TopologyModel):
    """A named physical asset that can terminate a segment."""

    id: int
    code: str
    name: str
    kind: FacilityKind
    location_id: OptionalId = None
    operational_status_id: OptionalId = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Pipeline(TopologyModel):
    """A pipeline and the ordered references to its segments."""

    id: OptionalId = None
    code: str
    name: str
    pipeline_system_id: OptionalId = None
    departure_facility_id: OptionalId = None
    arrival_facility_id: OptionalId = None
    segment_ids: list[int] = Field(default_factory=list)


class PathMetadata(BaseModel):
    """Where an imported segment path came from."""

    source_type: str
    crs_epsg: int | None = None
    crs_name: str | None = None
    is_projected: bool | None = None
    num_points: int
    has_z: bool
    fields: list[str] = Field(default_factory=list)


class Pageable(BaseModel):
    """Request parameters for a paginated query (zero-based page index)."""

    page: int = Field(default=0, ge=0)
    size: int = Field(default=20, gt=0)
    sort: str | None = None

    def as_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"page": self.page, "size": self.size}
        if self.sort:
            params["sort"] = self.sort
        return params


T = TypeVar("T")


class Page(TopologyModel, Generic[T]):
    """One page of results from the remote API."""

    content: list[T]
    total_elements: int = 0
    total_pages: int = 0
    size: int = 0
    number: int = 0
