"""Validation and topology issue records.

These are plain data, not exceptions: validators and the route assembler return
lists of them and the caller decides whether they block a commit.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, computed_field

from .models import Segment


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCode(str, Enum):
    REQUIRED = "Required"
    INVALID_LENGTH = "InvalidLength"
    NEGATIVE = "Negative"
    INVALID_RANGE = "InvalidRange"
    INVALID_DATE_ORDER = "InvalidDateOrder"
    DUPLICATE_SEQUENCE = "DuplicateSequence"
    EMPTY_PATH = "EmptyPath"
    INCOMPLETE_PATH = "IncompletePath"
    SEQUENCE_GAP = "SequenceGap"
    OVERLAP = "Overlap"
    GAP = "Gap"
    ENDPOINT_MISMATCH = "EndpointMismatch"


class FieldError(BaseModel):
    """A single field-level problem on a record."""

    field: str
    code: IssueCode
    message: str

    def __str__(self) -> str:
        return self.message


class SequenceIssue(BaseModel):
    """A problem with the ordering of a coordinate path."""

    code: IssueCode
    severity: Severity
    message: str
    sequences: list[int] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Outcome of validating a coordinate path."""

    issues: list[SequenceIssue] = Field(default_factory=list)

    @property
    def errors(self) -> list[SequenceIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[SequenceIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @computed_field
    @property
    def valid(self) -> bool:
        return not self.errors

    def has(self, code: IssueCode) -> bool:
        return any(i.code is code for i in self.issues)


class OverlapError(BaseModel):
    """Two consecutive segments whose position ranges intersect. Blocks commit."""

    first: Segment
    second: Segment
    amount: float

    @computed_field
    @property
    def code(self) -> IssueCode:
        return IssueCode.OVERLAP

    @computed_field
    @property
    def message(self) -> str:
        return (
            f"Segment {self.first.label} ends at {self.first.end_point} km, "
            f"{self.amount:g} km past the start of {self.second.label}"
        )


class GapWarning(BaseModel):
    """Positive distance between one segment's end and the next segment's start."""

    first: Segment
    second: Segment
    amount: float

    @computed_field
    @property
    def code(self) -> IssueCode:
        return IssueCode.GAP

    @computed_field
    @property
    def message(self) -> str:
        return (
            f"Gap of {self.amount:g} km between {self.first.label} "
            f"and {self.second.label}"
        )


class EndpointMismatchWarning(BaseModel):
    """Adjacent segments that do not meet at the same facility (possible branch)."""

    first: Segment
    second: Segment

    @computed_field
    @property
    def code(self) -> IssueCode:
        return IssueCode.ENDPOINT_MISMATCH

    @computed_field
    @property
    def message(self) -> str:
        return (
            f"{self.first.label} arrives at facility {self.first.arrival_facility_id} "
            f"but {self.second.label} departs from facility "
            f"{self.second.departure_facility_id}"
        )


RouteWarning = GapWarning | EndpointMismatchWarning
