# region Docstring
"""
repodata.models.organization
Tenancy entities: organizations, users, and the memberships linking them.
Contents:
- Organization: unscoped tenant record; `members()` lists its memberships.
- User: unscoped person record; `memberships()` walks every organization.
- Member: organization-scoped membership of a user, with an optional role label.
"""
# endregion
# region Imports
from typing import ClassVar, List, Optional

from pydantic import Field

from repodata.constants import EntityType
from repodata.models.base import GitHubModel, OrganizationScopedModel
from repodata.provider import GitHubDataProvider

# endregion
# region Models


class Organization(GitHubModel):
    entity_type: ClassVar[str] = EntityType.ORGANIZATIONS.value
    scoped: ClassVar[bool] = False

    name: Optional[str] = Field(default=None, description="Display name")

    def members(self) -> List["Member"]:
        return Member.all(self._require_provider(), self.id)


class User(GitHubModel):
    entity_type: ClassVar[str] = EntityType.USERS.value
    scoped: ClassVar[bool] = False

    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Login email address")

    def memberships(self) -> List["Member"]:
        """Memberships of this user across all organizations."""
        provider = self._require_provider()
        memberships: List[Member] = []
        for organization in Organization.all(provider):
            memberships.extend(
                Member.where(provider, "user_id", self.id, organization.id)
            )
        return memberships


class Member(OrganizationScopedModel):
    entity_type: ClassVar[str] = EntityType.MEMBERS.value

    user_id: Optional[str] = Field(default=None, description="Member user id")
    role: Optional[str] = Field(default=None, description="Role label, e.g. admin")

    @classmethod
    def for_user(
        cls, provider: GitHubDataProvider, user_id: str, organization_id: str
    ) -> Optional["Member"]:
        members = cls.where(provider, "user_id", user_id, organization_id)
        return members[0] if members else None


# endregion
