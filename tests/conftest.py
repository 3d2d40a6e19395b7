from __future__ import annotations

import pytest

from spillway.common.config import Settings, get_settings
from tests.sink.mock_store import MockObjectStoreClient


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def spill_dir(tmp_path):
    return tmp_path / "spill"


@pytest.fixture()
def settings(spill_dir):
    return Settings(
        SPILL_DIR=str(spill_dir),
        SEGMENT_THRESHOLD_BYTES=10,
        WRITE_BUFFER_BYTES=4096,
        S3_BUCKET="test-bucket",
    )


@pytest.fixture()
def mock_store():
    return MockObjectStoreClient()
