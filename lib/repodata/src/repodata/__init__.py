"""
repodata: a data layer that stores every entity as a JSON file in a GitHub repository.

Records are grouped into buckets (one directory per entity type, partitioned by
organization for scoped entities). Reads go through a short-lived bucket cache; every
write is one commit through the repository contents API and evicts the bucket's cache
key. Webhook deliveries evict buckets touched by edits made outside the application.

The main entry points are:
- GitHubContentClient: contents API wrapper (repodata.clients).
- GitHubDataProvider: bucket-level CRUD (repodata.provider).
- GitHubModel and the concrete entities (repodata.models).
- WebhookInvalidator: push-driven cache eviction (repodata.webhook).
"""

from . import constants  # noqa: F401
from .cache import CacheStore, MemoryCache, SqliteCache, build_cache  # noqa: F401
from .clients import GitHubContentClient  # noqa: F401
from .config import (  # noqa: F401
    AppSettings,
    CacheSettings,
    GitHubDataSettings,
    HookServerSettings,
    get_settings,
)
from .provider import GitHubDataProvider  # noqa: F401
from .webhook import WebhookInvalidator, WebhookResponse  # noqa: F401
