# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data manager domain: dual-table enrollment and access request workflow.

This package keeps ``enrollments`` and ``student_progress`` in agreement,
drives the access request approval workflow and enrolls students into
course question banks.

Public entry points are the helpers (enroll_student, approve_request, ...),
each returning an OperationResult. Maintenance jobs check and repair
divergence that predates the data manager.

Example:
    from learnsync.domains.data_manager import enroll_student
    from learnsync.models import EnrollmentParams

    result = await enroll_student(EnrollmentParams(student_id=6, course_id=10))
    if not result.success:
        print(result.error, result.message)
"""

from learnsync.domains.data_manager.core import (
    DataManager,
    PendingEvent,
    UnitOfWork,
    get_data_manager,
    init_data_manager,
    reset_data_manager,
)
from learnsync.domains.data_manager.exceptions import (
    AlreadyEnrolledError,
    DataManagerError,
    DuplicateRequestError,
    EnrollmentVerificationError,
    InvalidStateError,
    NotEnrolledError,
    NotFoundError,
    RequestNotFoundError,
)
from learnsync.domains.data_manager.helpers import (
    approve_request,
    create_request,
    enroll_student,
    reject_request,
    sync_enrollment_state,
    unenroll_student,
    update_progress,
)
from learnsync.domains.data_manager.maintenance import (
    find_inconsistencies,
    repair_inconsistencies,
    repair_stuck_requests,
)
from learnsync.domains.data_manager.qbank import auto_enroll
from learnsync.domains.data_manager.queries import get_student_enrollment_state

__all__ = [
    # Executor
    "DataManager",
    "UnitOfWork",
    "PendingEvent",
    "init_data_manager",
    "get_data_manager",
    "reset_data_manager",
    # Helpers
    "enroll_student",
    "unenroll_student",
    "sync_enrollment_state",
    "update_progress",
    "create_request",
    "approve_request",
    "reject_request",
    # Collaborators
    "auto_enroll",
    # Maintenance
    "find_inconsistencies",
    "repair_inconsistencies",
    "repair_stuck_requests",
    # Queries
    "get_student_enrollment_state",
    # Exceptions
    "DataManagerError",
    "AlreadyEnrolledError",
    "NotEnrolledError",
    "DuplicateRequestError",
    "InvalidStateError",
    "NotFoundError",
    "RequestNotFoundError",
    "EnrollmentVerificationError",
]
