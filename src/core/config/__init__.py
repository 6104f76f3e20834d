# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Service configuration, loaded from the environment."""

from src.core.config.settings import (
    AttendanceSettings,
    CORSSettings,
    DatabaseSettings,
    JWTSettings,
    RateLimitSettings,
    RedisSettings,
    ReminderSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "AttendanceSettings",
    "CORSSettings",
    "DatabaseSettings",
    "JWTSettings",
    "RateLimitSettings",
    "RedisSettings",
    "ReminderSettings",
    "Settings",
    "clear_settings_cache",
    "get_settings",
]
