"""Tests for environment-driven settings and the objects built from them."""

import pytest

from pipeline_topology.client import TopologyClient
from pipeline_topology.config import Settings, get_settings
from pipeline_topology.coordinator import TopologyChangeCoordinator


@pytest.fixture
def env(monkeypatch):
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self, env):
        env.delenv("TOPOLOGY_CATALOG_TTL", raising=False)
        settings = Settings(_env_file=None)
        assert settings.api_base_url == "http://localhost:8080"
        assert settings.catalog_ttl == 300.0

    def test_environment_overrides(self, env):
        env.setenv("TOPOLOGY_API_BASE_URL", "http://topology.internal:9000")
        env.setenv("TOPOLOGY_REQUEST_TIMEOUT", "5")
        settings = get_settings()
        assert settings.api_base_url == "http://topology.internal:9000"
        assert settings.request_timeout == 5.0
        assert get_settings() is settings


@pytest.mark.asyncio
class TestWiring:
    async def test_client_from_settings(self):
        settings = Settings(_env_file=None, api_base_url="http://topology.internal:9000", request_timeout=7)
        async with TopologyClient.from_settings(settings) as client:
            assert client.http.base_url.host == "topology.internal"
            assert client.http.base_url.port == 9000
            assert client.http.timeout.read == 7

    async def test_coordinator_cache_uses_catalog_ttl(self, env):
        env.setenv("TOPOLOGY_CATALOG_TTL", "42")
        async with TopologyClient.from_settings() as client:
            coordinator = TopologyChangeCoordinator(client)
            assert coordinator.cache.ttl == 42.0
