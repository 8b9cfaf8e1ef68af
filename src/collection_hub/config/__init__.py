"""Configuration management for collection_hub.

This module provides centralized configuration loaded from environment variables
with validation using Pydantic BaseSettings.

Usage:
    >>> from collection_hub.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.users_table)
"""

from collection_hub.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
