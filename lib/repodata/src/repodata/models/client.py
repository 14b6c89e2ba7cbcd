# region Imports
from typing import ClassVar, List, Optional

from pydantic import Field

from repodata.constants import EntityType
from repodata.models.base import OrganizationScopedModel
from repodata.provider import GitHubDataProvider
from repodata.utils import get_time_iso

# endregion
# region Client


class Client(OrganizationScopedModel):
    """A customer whose projects are tracked."""

    entity_type: ClassVar[str] = EntityType.CLIENTS.value

    name: Optional[str] = Field(default=None, description="Client name")
    archived_at: Optional[str] = Field(default=None, description="ISO-8601 archive time")

    def is_archived(self) -> bool:
        return self.archived_at is not None

    def archive(self) -> bool:
        self.archived_at = get_time_iso()
        return self.save()

    def unarchive(self) -> bool:
        self.archived_at = None
        return self.save()

    def projects(self) -> List["Project"]:
        from repodata.models.project import Project

        return Project.where(
            self._require_provider(), "client_id", self.id, self.organization_id
        )

    @classmethod
    def visible_by_employee(
        cls, provider: GitHubDataProvider, user_id: str, organization_id: str
    ) -> List["Client"]:
        """Clients owning at least one project the user can see."""
        from repodata.models.project import Project

        client_ids = {
            project.client_id
            for project in Project.visible_by_employee(provider, user_id, organization_id)
            if project.client_id
        }
        return [
            client
            for client in cls.all(provider, organization_id)
            if client.id in client_ids
        ]


# endregion
