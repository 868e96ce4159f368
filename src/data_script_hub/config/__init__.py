"""Configuration management for Data Script Hub.

Usage:
    >>> from data_script_hub.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.default_progress_gap)
"""

from data_script_hub.config.settings import ScriptOptions, Settings, get_settings

__all__ = [
    "Settings",
    "ScriptOptions",
    "get_settings",
]
