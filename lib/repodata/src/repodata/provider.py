# region Docstring
"""
repodata.provider
Entity-type and tenant-aware CRUD over JSON files in a GitHub repository.
Overview:
- Maps an entity type plus an optional organization id to a bucket: one repository
    directory and one cache key.
- Reads whole buckets through the cache (get_all, find, query); writes go straight to the
    contents API and evict the bucket's cache key before returning.
- Identity is the `id` inside each file, never the filename. Updates and deletes locate
    their target from a fresh listing, never from the cache, because files may be edited
    out-of-band at any time.
Contents:
- Record: type alias for a decoded entity (JSON object).
- LocatedRecord: a record with the repository path and content hash it was read from.
- decode_record(path, body): JSON object decoding with DecodeError on failure.
- GitHubDataProvider:
    - bucket_path / cache_key: network-free bucket derivation.
    - get_all, find, query: cached reads.
    - create, update, delete: commit-per-write mutations.
    - refresh, forget: explicit eviction.
Design Notes:
- Conflict policy: when a put or delete fails its content hash precondition the provider
    re-locates the record, re-merges the caller's partial data over the fresh content and
    retries, up to `conflict_retries` extra attempts. Exhausted retries raise
    ConflictError. A create whose derived filename already exists is retried once with
    the record id appended to the filename.
- Files that fail to decode are skipped, logged, and counted in `decode_failures`.
- Writes to an organization-scoped entity type without an organization id raise
    ScopeRequiredError before touching the remote.
- RemoteUnavailableError propagates; it is never turned into an empty bucket.
- `updated_at` is strictly increasing per record even when the clock is coarse.
"""
# endregion
# region Imports
import json
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from pydantic import BaseModel, Field

from repodata import utils
from repodata.cache import CacheStore
from repodata.clients.github_client import GitHubContentClient
from repodata.config import GitHubDataSettings
from repodata.constants import JSON_SUFFIX, TIMESTAMP_FIELDS
from repodata.errors import ConflictError, DecodeError, NotFoundError, ScopeRequiredError
from repodata.utils import get_time, parse_time, slugify

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

# endregion
# region Helpers


class LocatedRecord(BaseModel):
    """A decoded record together with where it was read from."""

    path: str = Field(..., description="Repository path of the file")
    sha: str = Field(..., description="Content hash of the file when it was read")
    record: Record = Field(..., description="Decoded file content")


def decode_record(path: str, body: bytes) -> Record:
    """Decode a file body into a record; anything but a JSON object is a DecodeError."""
    try:
        data = json.loads(body)
    except ValueError as e:
        raise DecodeError(f"Invalid JSON: {e}", path) from e
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object, got {type(data).__name__}", path)
    return data


def encode_record(record: Mapping[str, Any]) -> bytes:
    """Serialize a record the way files in the data repository are laid out."""
    return (json.dumps(record, indent=4) + "\n").encode("utf-8")


# endregion
# region GitHubDataProvider


class GitHubDataProvider:
    """
    Data access for entities stored as JSON files in a GitHub repository.

    Attributes:
        client (GitHubContentClient): Contents API wrapper.
        cache (CacheStore): Bucket cache shared with the webhook invalidator.
        settings (GitHubDataSettings): Entity table, TTL and retry budget.
        decode_failures (int): Files skipped so far because they did not decode.
        validation_failures (int): Decoded records the entity models skipped because
            they did not validate.
    """

    def __init__(
        self,
        client: GitHubContentClient,
        cache: CacheStore,
        settings: GitHubDataSettings,
        clock: Callable[[], datetime] = get_time,
    ) -> None:
        self.client = client
        self.cache = cache
        self.settings = settings
        self._clock = clock
        self.decode_failures = 0
        self.validation_failures = 0

    # region Buckets

    def bucket_path(
        self, entity_type: str, organization_id: Optional[str] = None
    ) -> str:
        return utils.bucket_path(self.settings.entity_path(entity_type), organization_id)

    def cache_key(self, entity_type: str, organization_id: Optional[str] = None) -> str:
        return utils.bucket_cache_key(entity_type, organization_id)

    def filename_for(
        self, entity_type: str, record: Mapping[str, Any], disambiguate: bool = False
    ) -> str:
        """
        Derive `{entity_type}-{slug}.json` from the record name, falling back to its id.
        With `disambiguate`, the id is appended so two records with equal names do not
        share a file.
        """
        record_id = str(record["id"])
        slug = slugify(str(record.get("name") or "")) or slugify(record_id)
        if disambiguate and slug != slugify(record_id):
            slug = f"{slug}-{slugify(record_id)}"
        return f"{entity_type}-{slug}{JSON_SUFFIX}"

    def forget(self, entity_type: str, organization_id: Optional[str] = None) -> None:
        """Evict a bucket's cache entry."""
        self.cache.forget(self.cache_key(entity_type, organization_id))

    # endregion
    # region Reads

    def _iter_bucket(
        self, entity_type: str, organization_id: Optional[str] = None
    ) -> Iterator[LocatedRecord]:
        """Yield every decodable record of a bucket straight from the remote."""
        directory = self.bucket_path(entity_type, organization_id)
        for entry in self.client.list_directory(directory):
            if entry.type != "file" or not entry.name.endswith(JSON_SUFFIX):
                continue
            body = self.client.get_file(entry.path)
            if body is None:
                logger.debug(f"{entry.path} vanished between listing and fetch")
                continue
            try:
                record = decode_record(entry.path, body)
            except DecodeError as e:
                self.decode_failures += 1
                logger.warning(f"Skipping undecodable file: {e}")
                continue
            yield LocatedRecord(path=entry.path, sha=entry.sha, record=record)

    def get_all(
        self, entity_type: str, organization_id: Optional[str] = None
    ) -> List[Record]:
        """All records of a bucket, in remote listing order."""
        key = self.cache_key(entity_type, organization_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        records = [
            located.record
            for located in self._iter_bucket(entity_type, organization_id)
        ]
        if self.settings.cache_ttl > 0:
            self.cache.set(key, records, self.settings.cache_ttl)
        logger.debug(f"Loaded {len(records)} records into {key}")
        return records

    def find(
        self, entity_type: str, id: str, organization_id: Optional[str] = None
    ) -> Optional[Record]:
        for record in self.get_all(entity_type, organization_id):
            if record.get("id") == id:
                return record
        return None

    def query(
        self,
        entity_type: str,
        filters: Optional[Mapping[str, Any]] = None,
        organization_id: Optional[str] = None,
    ) -> List[Record]:
        """Records whose fields equal every filter value (AND), order preserved."""
        filters = dict(filters or {})
        return [
            record
            for record in self.get_all(entity_type, organization_id)
            if all(record.get(field) == value for field, value in filters.items())
        ]

    def refresh(
        self, entity_type: str, organization_id: Optional[str] = None
    ) -> List[Record]:
        """Evict the bucket, then reload it."""
        self.forget(entity_type, organization_id)
        return self.get_all(entity_type, organization_id)

    def locate(
        self, entity_type: str, id: str, organization_id: Optional[str] = None
    ) -> Optional[LocatedRecord]:
        """Find a record's file and content hash from a fresh listing."""
        for located in self._iter_bucket(entity_type, organization_id):
            if located.record.get("id") == id:
                return located
        return None

    # endregion
    # region Writes

    def _now(self) -> str:
        return self._clock().isoformat()

    def _next_updated_at(self, previous: Any) -> str:
        now = self._clock()
        if isinstance(previous, str):
            try:
                before = parse_time(previous)
            except ValueError:
                before = None
            if before is not None and now <= before:
                now = before + timedelta(microseconds=1)
        return now.isoformat()

    def _require_scope(self, entity_type: str, organization_id: Optional[str]) -> None:
        if self.settings.is_scoped(entity_type) and not organization_id:
            raise ScopeRequiredError(
                f"{entity_type} is organization scoped; an organization_id is required",
                self.settings.entity_path(entity_type),
            )

    def create(
        self,
        entity_type: str,
        data: Mapping[str, Any],
        organization_id: Optional[str] = None,
    ) -> Record:
        """
        Write a new record file and return the stamped record.

        Raises:
            ScopeRequiredError: `entity_type` is scoped and no organization_id was given.
        """
        self._require_scope(entity_type, organization_id)
        record: Record = dict(data)
        now = self._now()
        record["id"] = record.get("id") or str(uuid.uuid4())
        if organization_id and self.settings.is_scoped(entity_type):
            record["organization_id"] = record.get("organization_id") or organization_id
        record["created_at"] = record.get("created_at") or now
        record["updated_at"] = now

        directory = self.bucket_path(entity_type, organization_id)
        message = f"Create {entity_type}: {record.get('name') or record['id']}"
        path = f"{directory}/{self.filename_for(entity_type, record)}"
        try:
            try:
                self.client.put_file(path, encode_record(record), message)
            except ConflictError:
                taken = path
                path = f"{directory}/{self.filename_for(entity_type, record, disambiguate=True)}"
                if path == taken:
                    raise
                logger.warning(f"{taken} already exists, writing {path} instead")
                self.client.put_file(path, encode_record(record), message)
        finally:
            self.forget(entity_type, organization_id)

        logger.info(f"Created {entity_type} {record['id']} at {path}")
        return record

    def update(
        self,
        entity_type: str,
        id: str,
        data: Mapping[str, Any],
        organization_id: Optional[str] = None,
    ) -> Optional[Record]:
        """
        Merge `data` over the stored record and rewrite its file in place.
        `created_at` and `updated_at` in `data` are ignored; the stored creation time is
        kept and `updated_at` is stamped.

        Returns:
            Optional[Record]: The merged record, or None when no record has this id.

        Raises:
            ConflictError: The file kept changing underneath every retry.
            ScopeRequiredError: `entity_type` is scoped and no organization_id was given.
        """
        self._require_scope(entity_type, organization_id)
        changes = {
            key: value for key, value in data.items() if key not in TIMESTAMP_FIELDS
        }
        attempts = self.settings.conflict_retries + 1
        try:
            for attempt in range(attempts):
                located = self.locate(entity_type, id, organization_id)
                if located is None:
                    return None

                updated: Record = {**located.record, **changes}
                updated["updated_at"] = self._next_updated_at(
                    located.record.get("updated_at")
                )
                message = f"Update {entity_type}: {updated.get('name') or id}"
                try:
                    self.client.put_file(
                        located.path, encode_record(updated), message, sha=located.sha
                    )
                except ConflictError:
                    if attempt == attempts - 1:
                        raise
                    logger.warning(
                        f"Conflict updating {entity_type} {id} at {located.path}, "
                        f"retrying with fresh state ({attempt + 1}/{attempts - 1})"
                    )
                    continue

                logger.info(f"Updated {entity_type} {id} at {located.path}")
                return updated
        finally:
            self.forget(entity_type, organization_id)
        return None

    def delete(
        self, entity_type: str, id: str, organization_id: Optional[str] = None
    ) -> bool:
        """
        Remove a record's file. False, with no remote write, when the id is unknown.

        Raises:
            ScopeRequiredError: `entity_type` is scoped and no organization_id was given.
        """
        self._require_scope(entity_type, organization_id)
        attempts = self.settings.conflict_retries + 1
        located = self.locate(entity_type, id, organization_id)
        if located is None:
            return False

        try:
            for attempt in range(attempts):
                try:
                    self.client.delete_file(
                        located.path, located.sha, f"Delete {entity_type}: {id}"
                    )
                except NotFoundError:
                    logger.info(f"{located.path} was already removed")
                    return False
                except ConflictError:
                    if attempt == attempts - 1:
                        raise
                    logger.warning(
                        f"Conflict deleting {entity_type} {id} at {located.path}, "
                        f"retrying with fresh state ({attempt + 1}/{attempts - 1})"
                    )
                    located = self.locate(entity_type, id, organization_id)
                    if located is None:
                        return False
                    continue

                logger.info(f"Deleted {entity_type} {id} at {located.path}")
                return True
        finally:
            self.forget(entity_type, organization_id)
        return False

    # endregion


# endregion
