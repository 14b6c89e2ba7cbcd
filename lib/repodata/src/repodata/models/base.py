# region Docstring
"""
repodata.models.base
Active-record style base classes for entities stored as JSON files.
Overview:
- Wraps provider records in Pydantic models so entity code reads and writes typed
    attributes while unknown JSON fields are kept and written back untouched.
- Class-level finders (find, find_or_fail, all, where) and instance persistence
    (save, update, delete, refresh) delegate to an explicitly passed GitHubDataProvider;
    there is no global provider.
- Tracks a snapshot of the last persisted attributes for dirty checking.
Contents:
- ModelState: transient -> persisted -> deleted lifecycle states.
- GitHubModel: base for every entity (id, created_at, updated_at).
- OrganizationScopedModel: adds organization_id; provider calls use it as the bucket scope.
Design Notes:
- `save()` on a persisted instance sends the whole attribute set, so fields edited
    out-of-band since the instance was loaded are overwritten by the loaded values.
- A record that vanished remotely makes `save()` return False; the instance keeps its
    persisted state locally.
- `delete()` is terminal once a file was actually removed: a deleted instance never
    writes again.
- Records that fail validation are skipped by the finders, logged, and counted in the
    provider's `validation_failures`.
- Timestamps stay ISO-8601 strings exactly as stored; use `repodata.utils.parse_time`
    for arithmetic.
"""
# endregion
# region Imports
import json
import logging
from enum import Enum
from typing import (
    Any,
    ClassVar,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from repodata.errors import NotFoundError, RepoDataError
from repodata.provider import GitHubDataProvider, Record

logger = logging.getLogger(__name__)

M = TypeVar("M", bound="GitHubModel")
Number = Union[int, float]

# endregion
# region States


class ModelState(str, Enum):
    TRANSIENT = "transient"
    PERSISTED = "persisted"
    DELETED = "deleted"


# endregion
# region GitHubModel


class GitHubModel(BaseModel):
    """
    Base class for entities persisted as one JSON file each.

    Subclasses set `entity_type` (the provider entity type) and `scoped`.

    Attributes:
        id (Optional[str]): Record identity; assigned by the provider on create.
        created_at (Optional[str]): ISO-8601 creation time, stamped by the provider.
        updated_at (Optional[str]): ISO-8601 time of the last write, stamped by the provider.
    """

    model_config = ConfigDict(extra="allow")

    entity_type: ClassVar[str] = ""
    scoped: ClassVar[bool] = False

    id: Optional[str] = Field(default=None, description="Record identity")
    created_at: Optional[str] = Field(default=None, description="ISO-8601 creation time")
    updated_at: Optional[str] = Field(default=None, description="ISO-8601 last write time")

    _provider: Optional[GitHubDataProvider] = PrivateAttr(default=None)
    _original: Dict[str, Any] = PrivateAttr(default_factory=dict)
    _state: ModelState = PrivateAttr(default=ModelState.TRANSIENT)

    # region Construction

    @classmethod
    def _scope(cls, organization_id: Optional[str]) -> Optional[str]:
        return organization_id if cls.scoped else None

    @classmethod
    def from_record(
        cls: Type[M], provider: GitHubDataProvider, record: Mapping[str, Any]
    ) -> M:
        """Wrap a provider record as a persisted instance with a synced snapshot."""
        instance = cls.model_validate(dict(record))
        instance._provider = provider
        instance._state = ModelState.PERSISTED
        instance.sync_original()
        return instance

    @classmethod
    def _wrap(
        cls: Type[M], provider: GitHubDataProvider, record: Mapping[str, Any]
    ) -> Optional[M]:
        """from_record, or None (logged and counted) when the record fails validation."""
        try:
            return cls.from_record(provider, record)
        except ValidationError as e:
            provider.validation_failures += 1
            fields = ", ".join(
                ".".join(str(part) for part in error["loc"]) for error in e.errors()
            )
            logger.warning(
                f"Skipping invalid {cls.entity_type} record {record.get('id')}: {fields}"
            )
            return None

    @classmethod
    def _wrap_all(
        cls: Type[M], provider: GitHubDataProvider, records: Iterable[Mapping[str, Any]]
    ) -> List[M]:
        wrapped = (cls._wrap(provider, record) for record in records)
        return [instance for instance in wrapped if instance is not None]

    def bind(self: M, provider: GitHubDataProvider) -> M:
        """Attach a provider to an instance built directly from attributes."""
        self._provider = provider
        return self

    def _require_provider(self) -> GitHubDataProvider:
        if self._provider is None:
            raise RepoDataError(
                f"{type(self).__name__} is not bound to a GitHubDataProvider"
            )
        return self._provider

    @property
    def provider(self) -> Optional[GitHubDataProvider]:
        return self._provider

    @property
    def organization_scope(self) -> Optional[str]:
        """Organization id used for provider calls; None for unscoped entities."""
        return None

    # endregion
    # region Finders

    @classmethod
    def find(
        cls: Type[M],
        provider: GitHubDataProvider,
        id: str,
        organization_id: Optional[str] = None,
    ) -> Optional[M]:
        record = provider.find(cls.entity_type, id, cls._scope(organization_id))
        return cls._wrap(provider, record) if record is not None else None

    @classmethod
    def find_or_fail(
        cls: Type[M],
        provider: GitHubDataProvider,
        id: str,
        organization_id: Optional[str] = None,
    ) -> M:
        instance = cls.find(provider, id, organization_id)
        if instance is None:
            raise NotFoundError(
                f"{cls.__name__} {id} not found",
                provider.bucket_path(cls.entity_type, cls._scope(organization_id)),
            )
        return instance

    @classmethod
    def all(
        cls: Type[M],
        provider: GitHubDataProvider,
        organization_id: Optional[str] = None,
    ) -> List[M]:
        records = provider.get_all(cls.entity_type, cls._scope(organization_id))
        return cls._wrap_all(provider, records)

    @classmethod
    def where(
        cls: Type[M],
        provider: GitHubDataProvider,
        column_or_filters: Union[str, Mapping[str, Any]],
        value: Any = None,
        organization_id: Optional[str] = None,
    ) -> List[M]:
        """
        Records matching either one `column == value` pair or a mapping of filters.

        Example:
            >>> Task.where(provider, "project_id", "p-1", organization_id="org-1")
            >>> Task.where(provider, {"project_id": "p-1", "is_done": False}, organization_id="org-1")
        """
        if isinstance(column_or_filters, Mapping):
            filters = dict(column_or_filters)
        else:
            filters = {column_or_filters: value}
        records = provider.query(cls.entity_type, filters, cls._scope(organization_id))
        return cls._wrap_all(provider, records)

    @classmethod
    def create(
        cls: Type[M], provider: GitHubDataProvider, attributes: Mapping[str, Any]
    ) -> M:
        instance = cls.model_validate(dict(attributes)).bind(provider)
        instance.save()
        return instance

    # endregion
    # region State

    @property
    def exists(self) -> bool:
        return self._state == ModelState.PERSISTED

    @property
    def is_deleted(self) -> bool:
        return self._state == ModelState.DELETED

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def original(self) -> Dict[str, Any]:
        return dict(self._original)

    def attributes(self) -> Dict[str, Any]:
        """
        JSON-ready attribute map, extension fields included.
        Unset optional fields are omitted unless they were set explicitly or stored before.
        """
        data = self.model_dump(mode="json")
        return {
            key: value
            for key, value in data.items()
            if value is not None
            or key in self.model_fields_set
            or key in self._original
        }

    def to_json(self) -> str:
        return json.dumps(self.attributes())

    def sync_original(self) -> None:
        self._original = self.attributes()

    def get_dirty(self) -> Dict[str, Any]:
        """Attributes absent from the snapshot or different from it."""
        return {
            key: value
            for key, value in self.attributes().items()
            if key not in self._original or self._original[key] != value
        }

    def is_dirty(self, fields: Optional[Union[str, Iterable[str]]] = None) -> bool:
        dirty = self.get_dirty()
        if fields is None:
            return bool(dirty)
        if isinstance(fields, str):
            fields = [fields]
        return any(field in dirty for field in fields)

    def fill(self: M, attributes: Mapping[str, Any]) -> M:
        for key, value in attributes.items():
            setattr(self, key, value)
        return self

    def _replace_with(self, record: Record) -> None:
        fresh = type(self).model_validate(dict(record))
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))
        object.__setattr__(self, "__pydantic_extra__", dict(fresh.__pydantic_extra__ or {}))
        object.__setattr__(self, "__pydantic_fields_set__", set(fresh.model_fields_set))

    # endregion
    # region Persistence

    def save(self) -> bool:
        """
        Persist the instance.

        Returns:
            bool: True when written. False for deleted instances and for persisted
                instances whose record no longer exists remotely.
        """
        if self._state == ModelState.DELETED:
            return False
        provider = self._require_provider()
        attributes = self.attributes()

        if self._state == ModelState.PERSISTED:
            record = provider.update(
                self.entity_type, self.id, attributes, self.organization_scope
            )
            if record is None:
                logger.warning(
                    f"{type(self).__name__} {self.id} no longer exists; nothing saved"
                )
                return False
        else:
            record = provider.create(self.entity_type, attributes, self.organization_scope)
            self._state = ModelState.PERSISTED

        self.fill(record)
        self.sync_original()
        return True

    def update(self, attributes: Mapping[str, Any]) -> bool:
        """Fill then save."""
        return self.fill(attributes).save()

    def delete(self) -> bool:
        """
        Remove the record. True only when a file was deleted; an instance whose record
        had already vanished stays persisted and returns False.
        """
        if self._state != ModelState.PERSISTED:
            return False
        provider = self._require_provider()
        if not provider.delete(self.entity_type, self.id, self.organization_scope):
            logger.warning(
                f"{type(self).__name__} {self.id} no longer exists; nothing deleted"
            )
            return False
        self._state = ModelState.DELETED
        return True

    def refresh(self) -> bool:
        """Reload attributes and snapshot from a fresh remote read."""
        if self._state != ModelState.PERSISTED:
            return False
        provider = self._require_provider()
        located = provider.locate(self.entity_type, self.id, self.organization_scope)
        if located is None:
            return False
        try:
            self._replace_with(located.record)
        except ValidationError:
            provider.validation_failures += 1
            logger.warning(f"{located.path} no longer validates as {type(self).__name__}")
            return False
        self.sync_original()
        return True

    # endregion


# endregion
# region OrganizationScopedModel


class OrganizationScopedModel(GitHubModel):
    """Base class for entities partitioned by organization."""

    scoped: ClassVar[bool] = True

    organization_id: Optional[str] = Field(
        default=None, description="Owning organization; selects the bucket"
    )

    @property
    def organization_scope(self) -> Optional[str]:
        return self.organization_id


# endregion
