"""Pipeline network topology: segment positions, coordinate paths and route integrity."""

from .catalog import FacilityCatalog, ReferenceCache
from .client import TopologyClient
from .coordinator import CommitReport, EditState, TopologyChangeCoordinator
from .endpoints import SegmentEndpoints, resolve_endpoints
from .errors import (
    FieldValidationError,
    IncompleteSegmentError,
    PartialCommitError,
    ReferentialError,
    RemoteError,
    TopologyCoreError,
    TopologyError,
    UnknownFacility,
)
from .issues import (
    EndpointMismatchWarning,
    FieldError,
    GapWarning,
    IssueCode,
    OverlapError,
    SequenceIssue,
    ValidationResult,
)
from .models import Coordinate, Facility, FacilityKind, Page, Pageable, Pipeline, Segment
from .positions import validate_segment
from .routes import RouteResult, assemble_route

__all__ = [
    "CommitReport",
    "Coordinate",
    "EditState",
    "EndpointMismatchWarning",
    "Facility",
    "FacilityCatalog",
    "FacilityKind",
    "FieldError",
    "FieldValidationError",
    "IncompleteSegmentError",
    "GapWarning",
    "IssueCode",
    "OverlapError",
    "Page",
    "Pageable",
    "PartialCommitError",
    "Pipeline",
    "ReferenceCache",
    "ReferentialError",
    "RemoteError",
    "RouteResult",
    "Segment",
    "SegmentEndpoints",
    "SequenceIssue",
    "TopologyChangeCoordinator",
    "TopologyClient",
    "TopologyCoreError",
    "TopologyError",
    "UnknownFacility",
    "ValidationResult",
    "assemble_route",
    "resolve_endpoints",
    "validate_segment",
]
