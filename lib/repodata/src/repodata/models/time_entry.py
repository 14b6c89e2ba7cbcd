# region Docstring
"""
repodata.models.time_entry
Tracked time, stored under the `timelogs` entity type.
Overview:
- A time entry is running while `end` is unset; stopping it stamps `end` and the
    duration in whole seconds.
- Range queries (for_date_range, today, this_week) filter an organization's entries
    by start time, optionally for one member.
- running_longer_than finds entries someone forgot to stop (eight hours by default).
Design Notes:
- Helpers that depend on the current time accept an optional `now` so callers and tests
    can pin the clock; it defaults to repodata.utils.get_time().
- Days and weeks are computed in UTC. Weeks start on Monday.
- Naive datetime bounds are taken as UTC.
"""
# endregion
# region Imports
from datetime import datetime, time, timedelta, timezone
from typing import ClassVar, List, Optional, Union

from pydantic import Field

from repodata.constants import EntityType
from repodata.models.base import Number, OrganizationScopedModel
from repodata.models.project import Project
from repodata.models.task import Task
from repodata.provider import GitHubDataProvider
from repodata.utils import get_time, parse_time

Moment = Union[str, datetime]

# endregion
# region Helpers


def _as_datetime(value: Moment) -> datetime:
    """Parse string bounds; naive datetimes are taken as UTC, like stored timestamps."""
    if isinstance(value, str):
        return parse_time(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# endregion
# region TimeEntry


class TimeEntry(OrganizationScopedModel):
    entity_type: ClassVar[str] = EntityType.TIMELOGS.value

    member_id: Optional[str] = Field(default=None, description="Member who tracked the time")
    project_id: Optional[str] = Field(default=None, description="Project id")
    task_id: Optional[str] = Field(default=None, description="Task id")
    description: Optional[str] = Field(default=None, description="What was worked on")
    start: Optional[str] = Field(default=None, description="ISO-8601 start time")
    end: Optional[str] = Field(default=None, description="ISO-8601 end time; None while running")
    duration: Optional[int] = Field(default=None, description="Tracked time (seconds)")
    is_billable: Optional[bool] = Field(default=False, description="Billable flag")
    billable_rate: Optional[Number] = Field(default=None, description="Rate per hour")
    tags: Optional[List[str]] = Field(default_factory=list, description="Tag ids")

    # region Relations

    def project(self) -> Optional[Project]:
        if self.project_id is None:
            return None
        return Project.find(self._require_provider(), self.project_id, self.organization_id)

    def task(self) -> Optional[Task]:
        if self.task_id is None:
            return None
        return Task.find(self._require_provider(), self.task_id, self.organization_id)

    # endregion
    # region Timing

    def is_running(self) -> bool:
        return self.end is None

    def stop(self, now: Optional[datetime] = None) -> bool:
        """Stamp `end` and `duration` and save. False when already stopped."""
        if not self.is_running():
            return False
        end = now or get_time()
        self.end = end.isoformat()
        if self.start is not None:
            self.duration = int((end - parse_time(self.start)).total_seconds())
        return self.save()

    def calculate_duration(self, now: Optional[datetime] = None) -> int:
        """Stored duration, else seconds from start to end (or to now while running)."""
        if self.duration is not None:
            return self.duration
        if self.start is None:
            return 0
        end = parse_time(self.end) if self.end is not None else (now or get_time())
        return int((end - parse_time(self.start)).total_seconds())

    def billable_amount(self, now: Optional[datetime] = None) -> float:
        if not self.is_billable:
            return 0.0
        return self.calculate_duration(now) / 3600 * (self.billable_rate or 0)

    # endregion
    # region Queries

    @classmethod
    def for_date_range(
        cls,
        provider: GitHubDataProvider,
        organization_id: str,
        start_date: Moment,
        end_date: Moment,
        member_id: Optional[str] = None,
    ) -> List["TimeEntry"]:
        """Entries whose start lies within [start_date, end_date]."""
        lower, upper = _as_datetime(start_date), _as_datetime(end_date)
        entries = []
        for entry in cls.all(provider, organization_id):
            if member_id is not None and entry.member_id != member_id:
                continue
            if entry.start is None:
                continue
            if lower <= parse_time(entry.start) <= upper:
                entries.append(entry)
        return entries

    @classmethod
    def running(
        cls,
        provider: GitHubDataProvider,
        organization_id: str,
        member_id: Optional[str] = None,
    ) -> List["TimeEntry"]:
        return [
            entry
            for entry in cls.all(provider, organization_id)
            if entry.is_running() and (member_id is None or entry.member_id == member_id)
        ]

    @classmethod
    def today(
        cls,
        provider: GitHubDataProvider,
        organization_id: str,
        member_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List["TimeEntry"]:
        now = now or get_time()
        start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        end = datetime.combine(now.date(), time.max, tzinfo=now.tzinfo)
        return cls.for_date_range(provider, organization_id, start, end, member_id)

    @classmethod
    def this_week(
        cls,
        provider: GitHubDataProvider,
        organization_id: str,
        member_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List["TimeEntry"]:
        now = now or get_time()
        monday = now.date() - timedelta(days=now.weekday())
        start = datetime.combine(monday, time.min, tzinfo=now.tzinfo)
        end = datetime.combine(monday + timedelta(days=6), time.max, tzinfo=now.tzinfo)
        return cls.for_date_range(provider, organization_id, start, end, member_id)

    @classmethod
    def running_longer_than(
        cls,
        provider: GitHubDataProvider,
        organization_id: str,
        hours: float = 8,
        now: Optional[datetime] = None,
    ) -> List["TimeEntry"]:
        """Running entries started more than `hours` ago."""
        cutoff = _as_datetime(now or get_time()) - timedelta(hours=hours)
        return [
            entry
            for entry in cls.running(provider, organization_id)
            if entry.start is not None and parse_time(entry.start) < cutoff
        ]

    # endregion


# endregion
