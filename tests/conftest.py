import os

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    os.environ["ENV"] = "test"
    os.environ["OBSERVABILITY_ENABLED"] = "false"
    os.environ["BLUESKY_AUTH_MODE"] = "bearer_token"
    os.environ["BLUESKY_SERVICE_URL"] = "https://bsky.example"
    os.environ["TIMELINE_LIMIT"] = "40"
    os.environ.pop("BLUESKY_IDENTIFIER", None)
    os.environ.pop("BLUESKY_PASSWORD", None)
    os.environ.pop("PORT", None)
    os.environ.pop("UPSTREAM_MAX_RETRIES", None)

    from timeline_rss.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client(setup_test_env):
    from timeline_rss.main import app

    with TestClient(app) as test_client:
        yield test_client
