import pytest

from graph_connector.core.config import Settings
from tests.utils.graph import FakeGraph, FakeTokenEndpoint


@pytest.fixture
def settings() -> Settings:
    """Settings with fixed credentials, isolated from any local .env file."""
    return Settings(
        _env_file=None,
        TENANT_ID="tenant-123",
        CLIENT_ID="client-123",
        CLIENT_SECRET="secret-123",
        HTTP_TIMEOUT_SECONDS=5.0,
        FETCH_TIMEOUT_SECONDS=5.0,
    )


@pytest.fixture
def partial_settings(settings: Settings) -> Settings:
    return settings.model_copy(update={"FETCH_FAILURE_POLICY": "partial"})


@pytest.fixture
def fake_graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
def token_endpoint() -> FakeTokenEndpoint:
    return FakeTokenEndpoint()
