import sys
from pathlib import Path

import pytest

# Add the app and library src directories to the path for imports
app_src = Path(__file__).parent.parent / "src"
lib_src = Path(__file__).parents[3] / "lib" / "repodata" / "src"
sys.path.insert(0, str(lib_src))
sys.path.insert(0, str(app_src))

from fastapi.testclient import TestClient  # noqa: E402

from repodata.cache import MemoryCache  # noqa: E402
from repodata.clients import GitHubContentClient  # noqa: E402
from repodata.config import CacheSettings, GitHubDataSettings  # noqa: E402
from repodata.provider import GitHubDataProvider  # noqa: E402
from repodata.testing import TEST_SECRET, FakeContentsAPI, clear_settings_env  # noqa: E402


@pytest.fixture
def data_settings(monkeypatch) -> GitHubDataSettings:
    clear_settings_env(monkeypatch, GitHubDataSettings, CacheSettings)
    return GitHubDataSettings(
        owner="acme",
        repo="data",
        token="test-token",
        read_retries=1,
        retry_backoff=0,
        conflict_retries=1,
        webhook_enabled=True,
        webhook_secret=TEST_SECRET,
    )


@pytest.fixture
def fake_github() -> FakeContentsAPI:
    return FakeContentsAPI(owner="acme", repo="data")


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def provider(data_settings, fake_github, cache) -> GitHubDataProvider:
    client = GitHubContentClient(
        data_settings, transport=fake_github.transport(), sleep=lambda _: None
    )
    return GitHubDataProvider(client, cache, data_settings)


@pytest.fixture
def client(provider) -> TestClient:
    from hookserver.main import create_app

    with TestClient(create_app(provider=provider)) as test_client:
        yield test_client
