"""
Configuration Module

Configuration loaded from environment variables.

Usage:
======
    from pgrepo.config.settings import settings

    config = settings.to_connection_config()
"""

from pgrepo.config.settings import settings, get_settings, Settings

__all__ = [
    "settings",
    "get_settings",
    "Settings",
]
