# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for LearnSync.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from learnsync.utils.datetime import ensure_utc, utc_now
from learnsync.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    log_context,
    reset_logging,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "log_context",
    "reset_logging",
    # Datetime
    "utc_now",
    "ensure_utc",
]
