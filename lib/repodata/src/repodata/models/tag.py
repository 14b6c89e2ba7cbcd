from typing import ClassVar, List, Optional

from pydantic import Field

from repodata.constants import EntityType
from repodata.models.base import OrganizationScopedModel
from repodata.models.time_entry import TimeEntry
from repodata.provider import GitHubDataProvider


class Tag(OrganizationScopedModel):
    entity_type: ClassVar[str] = EntityType.TAGS.value

    name: Optional[str] = Field(default=None, description="Tag label")

    @classmethod
    def find_or_create_by_name(
        cls, provider: GitHubDataProvider, name: str, organization_id: str
    ) -> "Tag":
        existing = cls.where(provider, "name", name, organization_id)
        if existing:
            return existing[0]
        return cls.create(provider, {"organization_id": organization_id, "name": name})

    def time_entries(self) -> List[TimeEntry]:
        """Time entries carrying this tag id."""
        return [
            entry
            for entry in TimeEntry.all(self._require_provider(), self.organization_id)
            if self.id in (entry.tags or [])
        ]
