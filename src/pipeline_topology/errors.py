"""Exception taxonomy for the topology core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from .issues import FieldError, OverlapError

if TYPE_CHECKING:
    from .models import Segment
    from .saga import Saga, StepOutcome


class TopologyCoreError(Exception):
    """Base class for every error raised by this package."""


class FieldValidationError(TopologyCoreError):
    """Local, pre-submission field errors. The user corrects and resubmits."""

    def __init__(self, errors: Sequence[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(e.message for e in self.errors))


class ReferentialError(TopologyCoreError):
    """A record references an entity that is not in the loaded catalog."""


class UnknownFacility(ReferentialError):
    """Departure and/or arrival facility is missing from the catalog snapshot.

    ``missing`` maps the role (``"departure"`` / ``"arrival"``) to the offending
    identifier, which is ``None`` when the segment carries no reference at all.
    """

    def __init__(self, missing: dict[str, int | None]):
        self.missing = dict(missing)
        parts = [
            f"{role} facility {facility_id}" if facility_id is not None else f"{role} facility (none)"
            for role, facility_id in self.missing.items()
        ]
        super().__init__("Unknown " + ", ".join(parts))


class TopologyError(TopologyCoreError):
    """The route has overlapping segments and cannot be committed."""

    def __init__(self, errors: Sequence[OverlapError]):
        self.errors = list(errors)
        super().__init__("; ".join(e.message for e in self.errors))


class IncompleteSegmentError(TopologyCoreError, ValueError):
    """A segment in a route has no start or end point, so it cannot be placed."""

    def __init__(self, segment: Segment):
        self.segment = segment
        super().__init__(f"Segment {segment.label} has no start/end point")


class PartialCommitError(TopologyCoreError):
    """Some dependent entities failed to persist after others succeeded.

    Nothing is rolled back. ``succeeded`` and ``failed`` list the affected
    entities so the caller can show them and retry just the failures through
    ``saga.retry_failed()``.
    """

    def __init__(self, outcomes: Sequence[StepOutcome], saga: Saga | None = None):
        self.outcomes = list(outcomes)
        self.saga = saga
        succeeded = ", ".join(o.reference for o in self.succeeded) or "none"
        failed = "; ".join(f"{o.reference}: {o.error}" for o in self.failed)
        super().__init__(f"Partial commit. Succeeded: {succeeded}. Failed: {failed}")

    @property
    def succeeded(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if not o.succeeded]


class RemoteError(TopologyCoreError):
    """The remote CRUD API rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        self.message = message
        prefix = f"HTTP {status_code}: " if status_code is not None else ""
        super().__init__(prefix + message)
