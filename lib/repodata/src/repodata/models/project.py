# region Docstring
"""
repodata.models.project
Projects and the project membership pivot.
Contents:
- Project: billable work for a client; archival, task and time entry lookups, spent time,
    and visibility for an employee (public projects or projects they are a member of).
- ProjectMember: links a user to a project with an optional per-member billable rate.
Design Notes:
- Spent time only counts stopped time entries.
"""
# endregion
# region Imports
from typing import TYPE_CHECKING, ClassVar, List, Optional

from pydantic import Field

from repodata.constants import EntityType
from repodata.models.base import Number, OrganizationScopedModel
from repodata.models.client import Client
from repodata.provider import GitHubDataProvider
from repodata.utils import get_time_iso

if TYPE_CHECKING:
    from repodata.models.task import Task
    from repodata.models.time_entry import TimeEntry

# endregion
# region Project


class Project(OrganizationScopedModel):
    entity_type: ClassVar[str] = EntityType.PROJECTS.value

    client_id: Optional[str] = Field(default=None, description="Owning client id")
    name: Optional[str] = Field(default=None, description="Project name")
    color: Optional[str] = Field(default=None, description="Display color, e.g. #ef5350")
    is_billable: Optional[bool] = Field(default=False, description="Time on this project is billable")
    billable_rate: Optional[Number] = Field(default=None, description="Rate per hour")
    estimated_time: Optional[Number] = Field(default=None, description="Estimate (seconds)")
    is_archived: Optional[bool] = Field(default=False, description="Archived flag")
    is_public: Optional[bool] = Field(default=False, description="Visible to every employee")
    archived_at: Optional[str] = Field(default=None, description="ISO-8601 archive time")

    def archived(self) -> bool:
        """Archived by flag or by timestamp."""
        return bool(self.is_archived) or self.archived_at is not None

    def archive(self) -> bool:
        self.is_archived = True
        self.archived_at = get_time_iso()
        return self.save()

    def unarchive(self) -> bool:
        self.is_archived = False
        self.archived_at = None
        return self.save()

    def client(self) -> Optional[Client]:
        if self.client_id is None:
            return None
        return Client.find(self._require_provider(), self.client_id, self.organization_id)

    def tasks(self) -> List["Task"]:
        from repodata.models.task import Task

        return Task.where(
            self._require_provider(), "project_id", self.id, self.organization_id
        )

    def time_entries(self) -> List["TimeEntry"]:
        from repodata.models.time_entry import TimeEntry

        return TimeEntry.where(
            self._require_provider(), "project_id", self.id, self.organization_id
        )

    def spent_time(self) -> int:
        """Seconds recorded by stopped time entries."""
        return sum(
            entry.duration or 0
            for entry in self.time_entries()
            if not entry.is_running()
        )

    @classmethod
    def visible_by_employee(
        cls, provider: GitHubDataProvider, user_id: str, organization_id: str
    ) -> List["Project"]:
        visible = []
        for project in cls.all(provider, organization_id):
            if project.is_public:
                visible.append(project)
            elif ProjectMember.is_member(provider, user_id, project.id, organization_id):
                visible.append(project)
        return visible


# endregion
# region ProjectMember


class ProjectMember(OrganizationScopedModel):
    entity_type: ClassVar[str] = EntityType.PROJECT_MEMBERS.value

    project_id: Optional[str] = Field(default=None, description="Project id")
    user_id: Optional[str] = Field(default=None, description="Member user id")
    billable_rate: Optional[Number] = Field(default=None, description="Member rate per hour")

    def project(self) -> Optional[Project]:
        if self.project_id is None:
            return None
        return Project.find(self._require_provider(), self.project_id, self.organization_id)

    @classmethod
    def for_project(
        cls, provider: GitHubDataProvider, project_id: str, organization_id: str
    ) -> List["ProjectMember"]:
        return cls.where(provider, "project_id", project_id, organization_id)

    @classmethod
    def for_user(
        cls, provider: GitHubDataProvider, user_id: str, organization_id: str
    ) -> List["ProjectMember"]:
        return cls.where(provider, "user_id", user_id, organization_id)

    @classmethod
    def _membership(
        cls,
        provider: GitHubDataProvider,
        user_id: str,
        project_id: str,
        organization_id: str,
    ) -> Optional["ProjectMember"]:
        for member in cls.for_project(provider, project_id, organization_id):
            if member.user_id == user_id:
                return member
        return None

    @classmethod
    def is_member(
        cls,
        provider: GitHubDataProvider,
        user_id: str,
        project_id: str,
        organization_id: str,
    ) -> bool:
        return cls._membership(provider, user_id, project_id, organization_id) is not None

    @classmethod
    def add_to_project(
        cls,
        provider: GitHubDataProvider,
        user_id: str,
        project_id: str,
        organization_id: str,
        billable_rate: Optional[Number] = None,
    ) -> "ProjectMember":
        """Return the existing membership, or create one."""
        existing = cls._membership(provider, user_id, project_id, organization_id)
        if existing is not None:
            return existing
        return cls.create(
            provider,
            {
                "organization_id": organization_id,
                "project_id": project_id,
                "user_id": user_id,
                "billable_rate": billable_rate,
            },
        )

    @classmethod
    def remove_from_project(
        cls,
        provider: GitHubDataProvider,
        user_id: str,
        project_id: str,
        organization_id: str,
    ) -> bool:
        member = cls._membership(provider, user_id, project_id, organization_id)
        if member is None:
            return False
        return member.delete()


# endregion
