# region Docstring
"""
repodata.models
Centralized imports for the entity models stored in the data repository.

Overview:
- Provides a single import point for the active-record base classes and every concrete
    entity, plus a registry mapping entity types to their model class.

Contents:
- Base classes:
        - GitHubModel, OrganizationScopedModel, ModelState
- Tenancy:
        - Organization, User, Member
- Work tracking:
        - Client, Project, ProjectMember, Task, TimeEntry, Tag

Exports:
- MODEL_REGISTRY: entity_type -> model class
- models: List of model class names
- __all__: Combined export list

Design Notes:
- Concrete entities only add fields and helpers; persistence lives in GitHubModel.
- All imports use noqa: F401 to suppress unused import warnings in this aggregation module
"""
# endregion
# region Imports
from typing import Dict, Type

from .base import GitHubModel, ModelState, OrganizationScopedModel  # noqa: F401
from .client import Client  # noqa: F401
from .organization import Member, Organization, User  # noqa: F401
from .project import Project, ProjectMember  # noqa: F401
from .tag import Tag  # noqa: F401
from .task import Task  # noqa: F401
from .time_entry import TimeEntry  # noqa: F401

# endregion

MODEL_REGISTRY: Dict[str, Type[GitHubModel]] = {
    model.entity_type: model
    for model in (
        Organization,
        User,
        Member,
        Client,
        Project,
        ProjectMember,
        Task,
        TimeEntry,
        Tag,
    )
}

models = [
    "Client",
    "Member",
    "Organization",
    "Project",
    "ProjectMember",
    "Tag",
    "Task",
    "TimeEntry",
    "User",
]

__all__ = ["GitHubModel", "OrganizationScopedModel", "ModelState", "MODEL_REGISTRY"] + models
