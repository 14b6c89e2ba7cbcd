# region Imports
from typing import TYPE_CHECKING, ClassVar, List, Optional

from pydantic import Field

from repodata.constants import EntityType
from repodata.models.base import Number, OrganizationScopedModel
from repodata.models.project import Project
from repodata.provider import GitHubDataProvider

if TYPE_CHECKING:
    from repodata.models.time_entry import TimeEntry

# endregion
# region Task


class Task(OrganizationScopedModel):
    """A unit of work inside a project."""

    entity_type: ClassVar[str] = EntityType.TASKS.value

    project_id: Optional[str] = Field(default=None, description="Owning project id")
    name: Optional[str] = Field(default=None, description="Task name")
    is_done: Optional[bool] = Field(default=False, description="Completion flag")
    estimated_time: Optional[Number] = Field(default=None, description="Estimate (seconds)")

    def mark_as_done(self) -> bool:
        self.is_done = True
        return self.save()

    def mark_as_not_done(self) -> bool:
        self.is_done = False
        return self.save()

    def project(self) -> Optional[Project]:
        if self.project_id is None:
            return None
        return Project.find(self._require_provider(), self.project_id, self.organization_id)

    def time_entries(self) -> List["TimeEntry"]:
        from repodata.models.time_entry import TimeEntry

        return TimeEntry.where(
            self._require_provider(), "task_id", self.id, self.organization_id
        )

    def spent_time(self) -> int:
        return sum(
            entry.duration or 0
            for entry in self.time_entries()
            if not entry.is_running()
        )

    @classmethod
    def for_project(
        cls, provider: GitHubDataProvider, project_id: str, organization_id: str
    ) -> List["Task"]:
        return cls.where(provider, "project_id", project_id, organization_id)

    @classmethod
    def incomplete(
        cls, provider: GitHubDataProvider, organization_id: str
    ) -> List["Task"]:
        return [task for task in cls.all(provider, organization_id) if not task.is_done]

    @classmethod
    def completed(
        cls, provider: GitHubDataProvider, organization_id: str
    ) -> List["Task"]:
        return [task for task in cls.all(provider, organization_id) if task.is_done]


# endregion
