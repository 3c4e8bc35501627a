# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    enrollments: Enrollment, unenrollment, sync and progress endpoints.
    requests: Access request filing and review endpoints.
    admin: Consistency check and repair endpoints.
"""

from fastapi import APIRouter

from learnsync.api.v1 import admin, enrollments, requests

router = APIRouter(prefix="/api/v1")

router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])
router.include_router(requests.router, prefix="/requests", tags=["Access Requests"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])

__all__ = ["router"]
