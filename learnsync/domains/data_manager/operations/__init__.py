# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""State-mutating operations run by the data manager.

Each operation takes a UnitOfWork with an open transaction and raises a
DataManagerError when an in-transaction re-check fails.
"""

from learnsync.domains.data_manager.operations.enrollment import (
    clamp_progress,
    enroll_student,
    unenroll_student,
    update_progress,
    verify_enrollment_exists,
)
from learnsync.domains.data_manager.operations.requests import (
    approve_request,
    create_request,
    reject_request,
    repair_stuck_requests,
)
from learnsync.domains.data_manager.operations.sync import sync_enrollment_state
from learnsync.domains.data_manager.operations.transitions import (
    close_pending_requests,
    discard_processed_request,
    mark_request_processed,
)

__all__ = [
    # Enrollment
    "enroll_student",
    "unenroll_student",
    "update_progress",
    "verify_enrollment_exists",
    "clamp_progress",
    "sync_enrollment_state",
    # Requests
    "create_request",
    "approve_request",
    "reject_request",
    "repair_stuck_requests",
    # Request transitions
    "mark_request_processed",
    "discard_processed_request",
    "close_pending_requests",
]
