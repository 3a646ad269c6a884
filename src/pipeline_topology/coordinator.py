"""Multi-entity topology edits that keep route invariants after every mutation.

Each public operation is one edit session: ``IDLE -> VALIDATING`` while the pure
validators run over a just-fetched snapshot, then ``COMMITTED`` once every saga
step persisted, or ``REJECTED`` with the reason. Validation failures are raised
before any write is attempted; persistence failures surface as
``PartialCommitError`` and nothing is rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError

from . import sequencer
from .catalog import FacilityCatalog, ReferenceCache
from .client import TopologyClient
from .config import get_settings
from .endpoints import resolve_endpoints
from .errors import FieldValidationError, PartialCommitError, TopologyCoreError, TopologyError
from .issues import FieldError, IssueCode, ValidationResult
from .models import Coordinate, Segment
from .positions import validate_segment
from .routes import RouteResult, assemble_route
from .saga import Saga, StepOutcome

logger = logging.getLogger(__name__)

FACILITY_CATALOG_KEY = "facilities"


class EditState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass
class EditSession:
    operation: str
    state: EditState = EditState.IDLE
    reason: str | None = None

    def begin(self) -> None:
        self.state = EditState.VALIDATING

    def commit(self) -> None:
        self.state = EditState.COMMITTED
        logger.info("%s committed", self.operation)

    def reject(self, exc: Exception) -> None:
        self.state = EditState.REJECTED
        self.reason = str(exc)
        logger.warning("%s rejected: %s", self.operation, exc)


@dataclass
class CommitReport:
    session: EditSession
    entity: Any = None
    route: RouteResult | None = None
    previous_route: RouteResult | None = None
    path: ValidationResult | None = None
    outcomes: list[StepOutcome] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        messages = []
        for route in (self.route, self.previous_route):
            if route is not None:
                messages += [w.message for w in route.warnings]
        if self.path is not None:
            messages += [w.message for w in self.path.warnings]
        return messages


def _path_errors(result: ValidationResult) -> list[FieldError]:
    return [FieldError(field="coordinates", code=i.code, message=i.message) for i in result.errors]


def _replace_sibling(siblings: Iterable[Segment], edited: Segment) -> list[Segment]:
    others = [s for s in siblings if edited.id is None or s.id != edited.id]
    return [*others, edited]


class TopologyChangeCoordinator:
    """Runs validated edits against the remote API through a ``TopologyClient``.

    Args:
        client: Remote collaborator.
        cache: Read-through cache for the facility catalog. Owned by the caller so
            it can be shared across sessions or refreshed after a referential error.
            Defaults to one that expires after the configured ``catalog_ttl``.
        known_gaps: ``(first_id, second_id)`` segment pairs whose gap is documented.
    """

    def __init__(
        self,
        client: TopologyClient,
        cache: ReferenceCache | None = None,
        known_gaps: Iterable[tuple[int, int]] = (),
    ):
        self.client = client
        self.cache = cache if cache is not None else ReferenceCache(ttl=get_settings().catalog_ttl)
        self.known_gaps = set(known_gaps)

    async def facility_catalog(self) -> FacilityCatalog:
        return await self.cache.get(FACILITY_CATALOG_KEY, self.client.load_facility_catalog)

    def refresh_catalog(self) -> None:
        self.cache.invalidate(FACILITY_CATALOG_KEY)

    async def load_route(self, pipeline_id: int) -> RouteResult:
        """Assemble the stored route of a pipeline without changing anything."""
        return assemble_route(await self.client.segments.by_pipeline(pipeline_id), self.known_gaps)

    # Segments

    async def save_segment(self, segment: Segment) -> CommitReport:
        """Create or update a segment after field, endpoint and route checks.

        On update the stored ``coordinate_ids`` are kept; the path is owned by the
        coordinate operations. A segment moved to another pipeline is also taken
        out of the old pipeline, whose remaining route is reported as
        ``previous_route``.
        """
        session = EditSession(f"save segment {segment.label}")
        session.begin()
        previous_route: RouteResult | None = None
        try:
            errors = validate_segment(segment)
            if errors:
                raise FieldValidationError(errors)
            resolve_endpoints(segment, await self.facility_catalog())
            stored = None
            if segment.id is not None:
                stored = await self.client.segments.get_by_id(segment.id)
                segment = segment.model_copy(update={"coordinate_ids": stored.coordinate_ids})
            siblings = await self.client.segments.by_pipeline(segment.pipeline_id)
            route = assemble_route(_replace_sibling(siblings, segment), self.known_gaps)
            if route.errors:
                raise TopologyError(route.errors)
            moved_from = stored.pipeline_id if stored is not None else None
            if moved_from is not None and moved_from != segment.pipeline_id:
                previous = await self.client.segments.by_pipeline(moved_from)
                previous_route = assemble_route(
                    [s for s in previous if s.id != segment.id], self.known_gaps
                )
        except TopologyCoreError as exc:
            session.reject(exc)
            raise
        self._log_warnings(session, route)
        if previous_route is not None:
            self._log_warnings(session, previous_route)

        saved: dict[str, Segment] = {}

        async def persist() -> Segment:
            if segment.id is None:
                saved["segment"] = await self.client.segments.create(segment)
            else:
                saved["segment"] = await self.client.segments.update(segment.id, segment)
            return saved["segment"]

        async def sync_pipeline() -> Any:
            ids = [saved["segment"].id if s.id is None else s.id for s in route.ordered_segments]
            return await self._sync_pipeline(segment.pipeline_id, ids)

        saga = Saga(session.operation)
        saga.add("segment", "create" if segment.id is None else "update", segment.id, persist, stop_on_failure=True)
        saga.add("pipeline", "update", segment.pipeline_id, sync_pipeline)
        if previous_route is not None:
            saga.add(
                "pipeline", "update", moved_from,
                lambda: self._sync_pipeline(moved_from, [s.id for s in previous_route.ordered_segments]),
            )
        outcomes = await self._run(session, saga)
        return CommitReport(
            session,
            entity=saved["segment"],
            route=route,
            previous_route=previous_route,
            outcomes=outcomes,
        )

    async def delete_segment(self, segment_id: int) -> CommitReport:
        """Delete a segment and its path, surfacing gaps left in the route."""
        session = EditSession(f"delete segment #{segment_id}")
        session.begin()
        try:
            segment = await self.client.segments.get_by_id(segment_id)
            siblings = await self.client.segments.by_pipeline(segment.pipeline_id)
            points = await self.client.coordinates.by_infrastructure(segment_id)
            remaining = [s for s in siblings if s.id != segment_id]
            route = assemble_route(remaining, self.known_gaps)
        except TopologyCoreError as exc:
            session.reject(exc)
            raise
        self._log_warnings(session, route)

        saga = Saga(session.operation)
        saga.add("segment", "delete", segment_id, lambda: self.client.segments.delete(segment_id), stop_on_failure=True)
        for point in points:
            saga.add("coordinate", "delete", point.id, self._deleter(point.id))
        saga.add(
            "pipeline", "update", segment.pipeline_id,
            lambda: self._sync_pipeline(segment.pipeline_id, [s.id for s in route.ordered_segments]),
        )
        outcomes = await self._run(session, saga)
        return CommitReport(session, entity=segment, route=route, outcomes=outcomes)

    # Coordinates

    async def add_coordinate(
        self,
        segment_id: int,
        latitude: float,
        longitude: float,
        elevation: float | None = None,
        index: int | None = None,
    ) -> CommitReport:
        """Add a path point, appended by default or inserted at ``index``."""
        session = EditSession(f"add coordinate to segment #{segment_id}")
        session.begin()
        try:
            points = await self.client.coordinates.by_infrastructure(segment_id)
            point = self._new_point(
                sequence=sequencer.next_sequence(points),
                latitude=latitude,
                longitude=longitude,
                elevation=elevation,
                owner_id=segment_id,
            )
            working = sequencer.insert(points, point, index)
            path = self._check_path(working)
        except TopologyCoreError as exc:
            session.reject(exc)
            raise

        created: dict[str, Coordinate] = {}
        saga = Saga(session.operation)
        for p in sequencer.changed(points, working):
            if p.id is None:
                saga.add("coordinate", "create", None, self._creator(p, created), stop_on_failure=True)
            else:
                saga.add("coordinate", "update", p.id, self._updater(p))
        saga.add(
            "segment", "update", segment_id,
            lambda: self._sync_segment_path(
                segment_id, [created["point"].id if p.id is None else p.id for p in working]
            ),
        )
        outcomes = await self._run(session, saga)
        return CommitReport(session, entity=created.get("point"), path=path, outcomes=outcomes)

    async def remove_coordinate(self, segment_id: int, coordinate_id: int) -> CommitReport:
        """Delete one path point and renumber the ones after it."""
        session = EditSession(f"remove coordinate #{coordinate_id} from segment #{segment_id}")
        session.begin()
        try:
            points = await self.client.coordinates.by_infrastructure(segment_id)
            try:
                working = sequencer.remove(points, coordinate_id)
            except KeyError as exc:
                raise FieldValidationError(
                    [FieldError(field="coordinates", code=IssueCode.REQUIRED, message=str(exc.args[0]))]
                ) from exc
            path = self._check_path(working)
        except TopologyCoreError as exc:
            session.reject(exc)
            raise

        saga = Saga(session.operation)
        saga.add("coordinate", "delete", coordinate_id, self._deleter(coordinate_id), stop_on_failure=True)
        for p in sequencer.changed(points, working):
            saga.add("coordinate", "update", p.id, self._updater(p))
        saga.add("segment", "update", segment_id, lambda: self._sync_segment_path(segment_id, [p.id for p in working]))
        outcomes = await self._run(session, saga)
        return CommitReport(session, path=path, outcomes=outcomes)

    async def reorder_coordinate(self, segment_id: int, coordinate_id: int, new_index: int) -> CommitReport:
        """Move one path point to ``new_index`` and persist the renumbered points."""
        session = EditSession(f"reorder coordinate #{coordinate_id} in segment #{segment_id}")
        session.begin()
        try:
            points = await self.client.coordinates.by_infrastructure(segment_id)
            try:
                working = sequencer.reorder(points, coordinate_id, new_index)
            except KeyError as exc:
                raise FieldValidationError(
                    [FieldError(field="coordinates", code=IssueCode.REQUIRED, message=str(exc.args[0]))]
                ) from exc
            path = self._check_path(working)
        except TopologyCoreError as exc:
            session.reject(exc)
            raise

        saga = Saga(session.operation)
        for p in sequencer.changed(points, working):
            saga.add("coordinate", "update", p.id, self._updater(p))
        saga.add("segment", "update", segment_id, lambda: self._sync_segment_path(segment_id, [p.id for p in working]))
        outcomes = await self._run(session, saga)
        return CommitReport(session, path=path, outcomes=outcomes)

    async def finalize_segment(self, segment_id: int) -> CommitReport:
        """Require a complete path: at least two points numbered densely from 1."""
        session = EditSession(f"finalize segment #{segment_id}")
        session.begin()
        try:
            points = await self.client.coordinates.by_infrastructure(segment_id)
            path = sequencer.validate(points, finalized=True)
            if path.errors:
                raise FieldValidationError(_path_errors(path))
        except TopologyCoreError as exc:
            session.reject(exc)
            raise
        session.commit()
        return CommitReport(session, path=path)

    # Helpers

    async def _run(self, session: EditSession, saga: Saga) -> list[StepOutcome]:
        try:
            outcomes = await saga.run()
        except PartialCommitError as exc:
            session.reject(exc)
            raise
        session.commit()
        return outcomes

    def _log_warnings(self, session: EditSession, route: RouteResult) -> None:
        for warning in route.warnings:
            logger.warning("%s: %s", session.operation, warning.message)

    @staticmethod
    def _new_point(**values: Any) -> Coordinate:
        try:
            return Coordinate(**values)
        except ValidationError as exc:
            raise FieldValidationError(
                [
                    FieldError(
                        field=str(err["loc"][0]) if err["loc"] else "coordinate",
                        code=IssueCode.INVALID_RANGE,
                        message=f"{err['loc'][0] if err['loc'] else 'coordinate'}: {err['msg']}",
                    )
                    for err in exc.errors()
                ]
            ) from exc

    @staticmethod
    def _check_path(points: Sequence[Coordinate]) -> ValidationResult:
        path = sequencer.validate(points)
        if path.errors:
            raise FieldValidationError(_path_errors(path))
        return path

    def _creator(self, point: Coordinate, created: dict[str, Coordinate]):
        async def create() -> Coordinate:
            created["point"] = await self.client.coordinates.create(point)
            return created["point"]

        return create

    def _updater(self, point: Coordinate):
        return lambda: self.client.coordinates.update(point.id, point)

    def _deleter(self, coordinate_id: int):
        return lambda: self.client.coordinates.delete(coordinate_id)

    async def _sync_segment_path(self, segment_id: int, coordinate_ids: list[int]) -> Segment:
        segment = await self.client.segments.get_by_id(segment_id)
        if segment.coordinate_ids == coordinate_ids:
            return segment
        return await self.client.segments.update(
            segment_id, segment.model_copy(update={"coordinate_ids": coordinate_ids})
        )

    async def _sync_pipeline(self, pipeline_id: int, segment_ids: list[int]) -> Any:
        pipeline = await self.client.pipelines.get_by_id(pipeline_id)
        if pipeline.segment_ids == segment_ids:
            return pipeline
        return await self.client.pipelines.update(
            pipeline_id, pipeline.model_copy(update={"segment_ids": segment_ids})
        )
