"""
Configuration settings for the Hookserver application.

This module provides the settings instances shared by the logger, the routes, and the
application factory.

Attributes:
    app_settings: Application-wide settings instance (root and environment).
    api_settings: Hookserver API settings (HOST, PORT, LOG_LEVEL).
    data_settings: Data repository settings (owner/repo/branch, entities, webhook).
    cache_settings: Bucket cache backend settings.
    app_root: Root directory under which logs are written.
"""

from pathlib import Path

from repodata.config import (
    AppSettings,
    CacheSettings,
    GitHubDataSettings,
    HookServerSettings,
    get_settings,
)

app_settings: AppSettings = get_settings(AppSettings)
"""Application-wide settings instance."""
api_settings: HookServerSettings = get_settings(HookServerSettings)
"""Hookserver API-specific settings instance: ('PORT', 'HOST', and 'LOG_LEVEL')."""
data_settings: GitHubDataSettings = get_settings(GitHubDataSettings)
"""Data repository settings instance."""
cache_settings: CacheSettings = get_settings(CacheSettings)
"""Bucket cache settings instance."""

app_root: Path = app_settings.app_root
"""The root directory of the Hookserver application."""
