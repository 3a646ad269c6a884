import pytest
from httpx import ASGITransport, AsyncClient

from fake_backend import FakeBackend, build_app
from factories import PIPELINE_ID, make_facilities, make_point, make_segment
from pipeline_topology.client import TopologyClient
from pipeline_topology.coordinator import TopologyChangeCoordinator


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def network(backend):
    """Terminal A -> Station B -> Plant C over segments 100 [0,10] and 101 [10,25]."""
    for facility in make_facilities():
        backend.seed(facility.kind.value, facility.to_wire())
    backend.seed(
        "pipeline",
        {"id": PIPELINE_ID, "code": "GR1", "name": "Main line", "segmentIds": [100, 101]},
    )
    backend.seed("segment", make_segment(100, 0, 10, coordinateIds=[200, 201, 202]).to_wire())
    backend.seed("segment", make_segment(101, 10, 25, departure=2, arrival=3).to_wire())
    for point_id, seq in ((200, 1), (201, 2), (202, 3)):
        backend.seed("coordinate", make_point(point_id, seq).to_wire())
    return backend


@pytest.fixture
def client(backend):
    transport = ASGITransport(app=build_app(backend))
    return TopologyClient(AsyncClient(transport=transport, base_url="http://test"))


@pytest.fixture
def coordinator(client):
    return TopologyChangeCoordinator(client)
