# region Docstring
"""
repodata.webhook
Cache invalidation driven by repository webhook deliveries.
Overview:
- Authenticates deliveries with the shared-secret HMAC (`X-Hub-Signature-256`).
- For `push` events, maps every changed JSON file back to the bucket cache key the
    provider would have used for it and evicts each key once.
- Answers `ping` so the hook can be verified from the repository settings page.
Contents:
- WebhookResponse: status code plus JSON body, independent of any web framework.
- sign_payload(body, secret): the header value a sender would compute.
- WebhookInvalidator:
    - verify_signature(body, header)
    - cache_key_for_path(path)
    - handle(event, delivery, body, signature)
Design Notes:
- Checks run in a fixed order: enabled (403), signature (401), payload (400), then the
    event. A push whose repository, commits or per-commit path lists have the wrong shape
    is an invalid payload (400). A rejected delivery never evicts anything.
- With no secret configured every delivery is trusted and a warning is logged each time;
    this mode is meant for local development only.
- Eviction is idempotent: forgetting an absent key is a no-op, so re-deliveries are safe.
"""
# endregion
# region Imports
import hashlib
import hmac
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from repodata.cache import CacheStore
from repodata.config import GitHubDataSettings
from repodata.constants import JSON_SUFFIX, SCHEMAS_PREFIX
from repodata.errors import (
    InvalidPayloadError,
    RepositoryMismatchError,
    SignatureInvalidError,
    WebhookDisabledError,
    WebhookError,
)
from repodata.utils import bucket_cache_key

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="

# endregion
# region Models


class WebhookResponse(BaseModel):
    """Outcome of a webhook delivery."""

    status_code: int = Field(200, description="HTTP status to answer with")
    body: Dict[str, Any] = Field(default_factory=dict, description="JSON response body")


def sign_payload(body: bytes, secret: str) -> str:
    """`X-Hub-Signature-256` header value for a body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


# endregion
# region WebhookInvalidator


class WebhookInvalidator:
    """
    Evicts bucket cache entries for files changed outside the application.

    Attributes:
        settings (GitHubDataSettings): Repository identity, entity table, webhook switch
            and secret.
        cache (CacheStore): The cache shared with the data provider.
    """

    def __init__(self, settings: GitHubDataSettings, cache: CacheStore) -> None:
        self.settings = settings
        self.cache = cache

    def verify_signature(self, body: bytes, header: Optional[str]) -> bool:
        secret = self.settings.webhook_secret
        if not secret:
            logger.warning("Webhook secret not configured, trusting every delivery")
            return True
        if not header:
            return False
        return hmac.compare_digest(sign_payload(body, secret), header)

    def cache_key_for_path(self, path: str) -> Optional[str]:
        """
        Bucket cache key for a changed repository path, or None when no bucket holds it.

        Example:
            >>> invalidator.cache_key_for_path("clients/org-42/acme.json")
            'github_data:clients/org-42'
            >>> invalidator.cache_key_for_path("schemas/client.json") is None
            True
        """
        if not path.endswith(JSON_SUFFIX) or path.startswith(SCHEMAS_PREFIX):
            return None
        segments = path.split("/")
        if len(segments) < 2:
            return None
        entity_type = self.settings.entity_for_directory(segments[0])
        if entity_type is None:
            return None
        if self.settings.is_scoped(entity_type):
            return bucket_cache_key(entity_type, segments[1])
        return bucket_cache_key(entity_type)

    # region Handling

    def _authorize(self, body: bytes, signature: Optional[str]) -> None:
        if not self.settings.webhook_enabled:
            raise WebhookDisabledError()
        if not self.verify_signature(body, signature):
            logger.warning("Webhook signature verification failed")
            raise SignatureInvalidError()

    def _decode(self, body: bytes) -> Dict[str, Any]:
        try:
            payload = json.loads(body or b"{}")
        except ValueError as e:
            raise InvalidPayloadError() from e
        if not isinstance(payload, dict):
            raise InvalidPayloadError()
        return payload

    def handle(
        self,
        event: Optional[str],
        delivery: Optional[str],
        body: bytes,
        signature: Optional[str],
    ) -> WebhookResponse:
        """Process one delivery and describe the response to send."""
        try:
            self._authorize(body, signature)
            payload = self._decode(body)
            logger.info(f"Webhook received: event={event} delivery={delivery}")
            if event == "push":
                return self._handle_push(payload)
            if event == "ping":
                return self._handle_ping(payload)
        except WebhookError as e:
            return WebhookResponse(status_code=e.status_code, body={"error": e.error})
        return WebhookResponse(body={"message": "Event ignored"})

    @staticmethod
    def _changed_files(payload: Dict[str, Any]) -> List[str]:
        """Unique added, modified and removed paths across the push's commits."""
        commits = payload.get("commits") or []
        if not isinstance(commits, list):
            raise InvalidPayloadError("commits is not a list")
        files: List[str] = []
        for commit in commits:
            if not isinstance(commit, dict):
                raise InvalidPayloadError("commit is not an object")
            for group in ("added", "modified", "removed"):
                paths = commit.get(group) or []
                if not isinstance(paths, list) or not all(
                    isinstance(path, str) for path in paths
                ):
                    raise InvalidPayloadError(f"commit {group} is not a list of paths")
                for path in paths:
                    if path not in files:
                        files.append(path)
        return files

    def _handle_push(self, payload: Dict[str, Any]) -> WebhookResponse:
        repository = payload.get("repository") or {}
        if not isinstance(repository, dict):
            raise InvalidPayloadError("repository is not an object")
        expected = self.settings.full_name
        actual = repository.get("full_name", "")
        if actual != expected:
            logger.warning(
                f"Webhook from unexpected repository: expected={expected} actual={actual}"
            )
            raise RepositoryMismatchError()

        files = self._changed_files(payload)
        logger.info(f"Webhook processing {len(files)} changed files: {files[:10]}")

        cleared: List[str] = []
        for path in files:
            key = self.cache_key_for_path(path)
            if key is None or key in cleared:
                continue
            self.cache.forget(key)
            cleared.append(key)
            logger.debug(f"Cleared cache for {key}")

        return WebhookResponse(
            body={
                "message": "Cache cleared",
                "files_processed": len(files),
                "cache_keys_cleared": len(cleared),
                "keys": cleared,
            }
        )

    def _handle_ping(self, payload: Dict[str, Any]) -> WebhookResponse:
        logger.info(
            f"Webhook ping received: zen={payload.get('zen', 'No zen')} "
            f"hook_id={payload.get('hook_id')}"
        )
        return WebhookResponse(body={"message": "Pong!", "zen": payload.get("zen")})

    # endregion


# endregion
