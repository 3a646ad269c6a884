"""Async client for the remote tabular CRUD API that stores the topology.

Every resource exposes the same contract (paged and unpaged listing, lookup by
id, create, update, delete, search) plus a few entity-specific filters.
Transport and HTTP failures surface as ``RemoteError``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, TypeVar

import httpx
from pydantic import ValidationError

from .catalog import FacilityCatalog
from .config import Settings, get_settings
from .errors import RemoteError
from .models import (
    Coordinate,
    Facility,
    FacilityKind,
    Page,
    Pageable,
    Pipeline,
    Segment,
    TopologyModel,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=TopologyModel)

PIPELINES_PATH = "/api/network/core/pipelines"
SEGMENTS_PATH = "/api/network/core/pipeline-segments"
COORDINATES_PATH = "/general/localization/coordinate"
FACILITY_PATHS = {
    FacilityKind.TERMINAL: "/api/network/core/terminals",
    FacilityKind.STATION: "/network/core/station",
    FacilityKind.PROCESSING_PLANT: "/network/core/processingPlant",
    FacilityKind.PRODUCTION_FIELD: "/network/core/productionField",
}


def _error_message(response: httpx.Response) -> str:
    """Best message the backend gave: its ``errors`` list, ``message``, or raw body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict):
        if isinstance(data.get("errors"), list) and data["errors"]:
            return ", ".join(str(e) for e in data["errors"])
        if data.get("message"):
            return str(data["message"])
    if isinstance(data, str) and data:
        return data
    return response.text or response.reason_phrase


class CrudResource(Generic[M]):
    """One remote collection, e.g. ``/api/network/core/pipeline-segments``."""

    def __init__(self, http: httpx.AsyncClient, path: str, model: type[M]):
        self._http = http
        self.path = path.rstrip("/")
        self.model = model

    def _parse(self, data: dict[str, Any]) -> M:
        return self.model.model_validate(data)

    def _load(self, data: Any) -> M:
        try:
            return self._parse(data)
        except ValidationError as exc:
            raise RemoteError(f"Unexpected {self.model.__name__} payload from {self.path}: {exc}") from exc

    def _dump(self, entity: M) -> dict[str, Any]:
        return entity.to_wire()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, url)
        try:
            response = await self._http.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RemoteError(_error_message(exc.response), exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"{method} {url} failed: {exc!r}") from exc
        return response

    async def _list(self, url: str, **kwargs: Any) -> list[M]:
        response = await self._request("GET", url, **kwargs)
        return [self._load(item) for item in response.json()]

    async def _page(self, url: str, params: dict[str, Any]) -> Page[M]:
        response = await self._request("GET", url, params=params)
        data = response.json()
        data["content"] = [self._load(item) for item in data.get("content", [])]
        return Page[self.model].model_validate(data)

    async def get_all(self, pageable: Pageable | None = None) -> Page[M]:
        return await self._page(self.path, (pageable or Pageable()).as_params())

    async def get_all_unpaged(self) -> list[M]:
        return await self._list(f"{self.path}/all")

    async def get_by_id(self, entity_id: int) -> M:
        response = await self._request("GET", f"{self.path}/{entity_id}")
        return self._load(response.json())

    async def create(self, entity: M) -> M:
        response = await self._request("POST", self.path, json=self._dump(entity))
        return self._load(response.json())

    async def update(self, entity_id: int, entity: M) -> M:
        response = await self._request("PUT", f"{self.path}/{entity_id}", json=self._dump(entity))
        return self._load(response.json())

    async def delete(self, entity_id: int) -> None:
        await self._request("DELETE", f"{self.path}/{entity_id}")

    async def search(self, term: str, pageable: Pageable | None = None) -> Page[M]:
        params = {"q": term, **(pageable or Pageable()).as_params()}
        return await self._page(f"{self.path}/search", params)


class PipelineResource(CrudResource[Pipeline]):
    async def by_pipeline_system(self, system_id: int) -> list[Pipeline]:
        return await self._list(f"{self.path}/by-pipeline-system/{system_id}")


class SegmentResource(CrudResource[Segment]):
    async def by_pipeline(self, pipeline_id: int) -> list[Segment]:
        return await self._list(f"{self.path}/by-pipeline/{pipeline_id}")

    async def by_facility(self, facility_id: int) -> list[Segment]:
        return await self._list(f"{self.path}/by-facility/{facility_id}")


class CoordinateResource(CrudResource[Coordinate]):
    async def by_infrastructure(self, infrastructure_id: int) -> list[Coordinate]:
        return await self._list(f"{self.path}/infrastructure/{infrastructure_id}")


class FacilityResource(CrudResource[Facility]):
    """Facilities of one kind. The kind is implied by the endpoint, not sent."""

    def __init__(self, http: httpx.AsyncClient, path: str, kind: FacilityKind):
        super().__init__(http, path, Facility)
        self.kind = kind

    def _parse(self, data: dict[str, Any]) -> Facility:
        return Facility.model_validate({**data, "kind": self.kind})

    def _dump(self, entity: Facility) -> dict[str, Any]:
        data = entity.to_wire()
        data.pop("kind", None)
        return data


class TopologyClient:
    """All topology resources behind one ``httpx.AsyncClient``."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http
        self.pipelines = PipelineResource(http, PIPELINES_PATH, Pipeline)
        self.segments = SegmentResource(http, SEGMENTS_PATH, Segment)
        self.coordinates = CoordinateResource(http, COORDINATES_PATH, Coordinate)
        self.facilities = {
            kind: FacilityResource(http, path, kind) for kind, path in FACILITY_PATHS.items()
        }

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TopologyClient:
        settings = settings or get_settings()
        http = httpx.AsyncClient(base_url=settings.api_base_url, timeout=settings.request_timeout)
        return cls(http)

    async def load_facility_catalog(self) -> FacilityCatalog:
        """Fetch every facility kind concurrently and merge them into one snapshot."""
        lists = await asyncio.gather(
            *(resource.get_all_unpaged() for resource in self.facilities.values())
        )
        catalog = FacilityCatalog(f for facilities in lists for f in facilities)
        logger.info("Loaded facility catalog with %d entries", len(catalog))
        return catalog

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> TopologyClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
