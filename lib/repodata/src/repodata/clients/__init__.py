"""HTTP clients for remote collaborators."""

from .github_client import ContentEntry, GitHubContentClient, WriteResult  # noqa: F401
