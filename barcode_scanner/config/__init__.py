"""
==============================================================================
Configuration Package
==============================================================================

Centralized configuration management using Pydantic Settings.

Usage:
------
    from barcode_scanner.config import get_settings, Settings

    settings = get_settings()
    print(settings.scan_threshold)
    print(settings.remote_base_url)

==============================================================================
"""

from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
