from __future__ import annotations

import pytest

from s3store.common.config import Settings, get_settings
from s3store.services.json_store import JsonDocumentStore
from s3store.services.object_store import ObjectStoreClient
from tests.services.mock_storage import MockStorageTransport

TEST_BUCKET = "s3store-test-bucket"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def settings() -> Settings:
    return Settings(S3_BUCKET=TEST_BUCKET, ENABLE_METRICS=True)


@pytest.fixture()
def transport() -> MockStorageTransport:
    return MockStorageTransport()


@pytest.fixture()
def store(transport, settings) -> ObjectStoreClient:
    return ObjectStoreClient(TEST_BUCKET, transport=transport, settings=settings)


@pytest.fixture()
def json_store(store) -> JsonDocumentStore:
    return JsonDocumentStore(store)
