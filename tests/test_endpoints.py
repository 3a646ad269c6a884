"""Tests for endpoint resolution and the facility catalog cache."""

import pytest

from factories import PLANT_C, STATION_B, TERMINAL_A, make_facilities, make_segment
from pipeline_topology.catalog import FacilityCatalog, ReferenceCache
from pipeline_topology.endpoints import resolve_endpoints
from pipeline_topology.errors import ReferentialError, UnknownFacility
from pipeline_topology.models import FacilityKind


class TestResolveEndpoints:
    def setup_method(self):
        self.catalog = FacilityCatalog(make_facilities())

    def test_resolves_both_facilities(self):
        endpoints = resolve_endpoints(make_segment(1, departure=TERMINAL_A, arrival=PLANT_C), self.catalog)
        assert endpoints.departure.name == "Terminal A"
        assert endpoints.arrival.kind is FacilityKind.PROCESSING_PLANT

    def test_unknown_arrival(self):
        with pytest.raises(UnknownFacility) as excinfo:
            resolve_endpoints(make_segment(1, departure=TERMINAL_A, arrival=99), self.catalog)
        assert excinfo.value.missing == {"arrival": 99}
        assert "arrival facility 99" in str(excinfo.value)

    def test_both_unknown_are_reported_together(self):
        with pytest.raises(ReferentialError) as excinfo:
            resolve_endpoints(make_segment(1, departure=77, arrival=None), self.catalog)
        assert excinfo.value.missing == {"departure": 77, "arrival": None}

    def test_empty_catalog(self):
        with pytest.raises(UnknownFacility):
            resolve_endpoints(make_segment(1), FacilityCatalog())


class TestFacilityCatalog:
    def test_lookup_and_filters(self):
        catalog = FacilityCatalog(make_facilities())
        assert len(catalog) == 3
        assert STATION_B in catalog
        assert catalog.get(None) is None
        assert [f.id for f in catalog.by_kind(FacilityKind.TERMINAL)] == [TERMINAL_A]


@pytest.mark.asyncio
class TestReferenceCache:
    async def test_loads_once_within_ttl(self):
        now = [0.0]
        cache = ReferenceCache(ttl=10, clock=lambda: now[0])
        calls = []

        async def loader():
            calls.append(now[0])
            return len(calls)

        assert await cache.get("facilities", loader) == 1
        now[0] = 5
        assert await cache.get("facilities", loader) == 1
        now[0] = 11
        assert await cache.get("facilities", loader) == 2
        assert calls == [0.0, 11]

    async def test_invalidate_forces_reload(self):
        cache = ReferenceCache()
        values = iter(["first", "second"])

        async def loader():
            return next(values)

        assert await cache.get("k", loader) == "first"
        assert await cache.get("k", loader) == "first"
        cache.invalidate("k")
        assert await cache.get("k", loader) == "second"
