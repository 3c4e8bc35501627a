# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware."""

from learnsync.api.middleware.auth import (
    CurrentUser,
    PrincipalMiddleware,
    get_current_user,
)

__all__ = [
    "CurrentUser",
    "PrincipalMiddleware",
    "get_current_user",
]
