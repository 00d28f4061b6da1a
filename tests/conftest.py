"""Shared fixtures: test settings, an in-memory bucket and an API client."""

import pytest
from fastapi.testclient import TestClient

from s3_proxy.api.dependencies import get_storage_client
from s3_proxy.config.settings import Settings
from s3_proxy.infrastructure.storage.client import MockStorageClient
from s3_proxy.main import create_app
from tests.helpers import SCENARIO_KEYS, TEST_API_KEY, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient.from_keys(SCENARIO_KEYS)


@pytest.fixture
def app(settings, storage):
    app = create_app(settings)
    app.dependency_overrides[get_storage_client] = lambda: storage
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-API-Key": TEST_API_KEY}
