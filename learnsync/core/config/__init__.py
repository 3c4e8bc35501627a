# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for LearnSync.

Example:
    >>> from learnsync.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from learnsync.core.config.settings import (
    APISettings,
    CORSSettings,
    DatabaseSettings,
    DataManagerSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "DataManagerSettings",
    "CORSSettings",
    "APISettings",
]
