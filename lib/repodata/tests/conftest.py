import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add the src directory to the path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from repodata.cache import MemoryCache  # noqa: E402
from repodata.clients import GitHubContentClient  # noqa: E402
from repodata.config import CacheSettings, GitHubDataSettings  # noqa: E402
from repodata.provider import GitHubDataProvider  # noqa: E402
from repodata.testing import TEST_SECRET, FakeContentsAPI, clear_settings_env  # noqa: E402

class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def data_settings(monkeypatch) -> GitHubDataSettings:
    clear_settings_env(monkeypatch, GitHubDataSettings, CacheSettings)
    return GitHubDataSettings(
        owner="acme",
        repo="data",
        branch="main",
        token="test-token",
        cache_ttl=60,
        read_retries=2,
        retry_backoff=0.5,
        conflict_retries=3,
        webhook_enabled=True,
        webhook_secret=TEST_SECRET,
    )

@pytest.fixture
def fake_github() -> FakeContentsAPI:
    return FakeContentsAPI(owner="acme", repo="data")

@pytest.fixture
def sleeps() -> list:
    return []

@pytest.fixture
def content_client(data_settings, fake_github, sleeps) -> GitHubContentClient:
    client = GitHubContentClient(
        data_settings, transport=fake_github.transport(), sleep=sleeps.append
    )
    yield client
    client.close()

@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()

@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc))

@pytest.fixture
def provider(content_client, memory_cache, data_settings, clock) -> GitHubDataProvider:
    return GitHubDataProvider(content_client, memory_cache, data_settings, clock=clock)
