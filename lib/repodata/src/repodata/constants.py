# region Docstring
"""
repodata.constants
Shared constants and enumerations for the repository-backed data layer.
Overview:
- Cache key layout, reserved repository prefixes and file naming constants used by the
    provider and the webhook invalidator so both derive identical bucket keys.
- Entity type enumeration for the entity directories of the data repository; the default
    entity table and the model classes are keyed by its values.
Contents:
- CACHE_KEY_PREFIX: prefix of every bucket cache key ("github_data").
- JSON_SUFFIX: suffix of record files; anything else in a directory is ignored.
- SCHEMAS_PREFIX: reserved top-level directory for JSON schemas, never a bucket.
- TIMESTAMP_FIELDS: provider-managed timestamp fields; updates never overwrite them.
- EntityType: Enum of the entity directories (inherits from str for direct comparison).
"""
# endregion
# region Imports
from enum import Enum

# endregion
# region Constants

CACHE_KEY_PREFIX = "github_data"
JSON_SUFFIX = ".json"
SCHEMAS_PREFIX = "schemas/"
TIMESTAMP_FIELDS = ("created_at", "updated_at")

# endregion
# region Enumerations


class EntityType(str, Enum):
    ORGANIZATIONS = "organizations"
    USERS = "users"
    MEMBERS = "members"
    CLIENTS = "clients"
    PROJECTS = "projects"
    TASKS = "tasks"
    TIMELOGS = "timelogs"
    TAGS = "tags"
    PROJECT_MEMBERS = "project_members"


# endregion
