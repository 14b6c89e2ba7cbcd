import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional

from repodata.constants import CACHE_KEY_PREFIX


def get_time() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def get_time_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return get_time().isoformat()


def parse_time(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Example:
        >>> parse_time("2026-01-05T09:00:00Z").hour
        9
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def slugify(value: str, separator: str = "-") -> str:
    """
    Convert a display name into a filename-safe slug.

    Args:
        value (str): Any text, e.g. a client name.
        separator (str): Character placed between words.

    Returns:
        str: Lowercase ASCII words joined by the separator.

    Example:
        >>> slugify("Acme Corp. (EU)")
        'acme-corp-eu'
        >>> slugify("Café Müller")
        'cafe-muller'
    """
    value = unicodedata.normalize("NFKD", str(value)).encode("ascii", "ignore").decode()
    value = value.replace("@", f"{separator}at{separator}")
    value = re.sub(r"[^\w\s-]", "", value.lower()).replace("_", separator)
    value = re.sub(rf"[{re.escape(separator)}\s]+", separator, value)
    return value.strip(separator)


def bucket_path(directory: str, organization_id: Optional[str] = None) -> str:
    """Repository directory of a bucket: `{directory}` or `{directory}/{organization_id}`."""
    return f"{directory}/{organization_id}" if organization_id else directory


def bucket_cache_key(entity_type: str, organization_id: Optional[str] = None) -> str:
    """
    Cache key of a bucket.

    Example:
        >>> bucket_cache_key("clients", "org-42")
        'github_data:clients/org-42'
        >>> bucket_cache_key("organizations")
        'github_data:organizations'
    """
    return f"{CACHE_KEY_PREFIX}:{bucket_path(entity_type, organization_id)}"
