# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic models exchanged with the data manager."""

from learnsync.models.enrollment import (
    CourseAccessState,
    CourseEnrollmentState,
    EnrollStudentRequest,
    EnrollmentOutcome,
    EnrollmentParams,
    EnrollmentSource,
    EnrollmentVerification,
    ProgressUpdateOutcome,
    ProgressUpdateParams,
    ProgressUpdateRequest,
    QBankEnrollResult,
    SyncParams,
    SyncResult,
    SyncSource,
    UnenrollmentOutcome,
    UnenrollmentParams,
)
from learnsync.models.maintenance import (
    InconsistencyReport,
    PairRef,
    RepairError,
    RepairReport,
    StuckRequestRepairReport,
    SyncCheckResponse,
)
from learnsync.models.requests import (
    AccessRequestCreateRequest,
    ApprovalOutcome,
    RejectionOutcome,
    RequestActionParams,
    RequestCreatedOutcome,
    RequestCreateParams,
    ReviewRequest,
)
from learnsync.models.results import (
    ErrorCategory,
    ErrorKind,
    OperationResult,
    ValidationResult,
)

__all__ = [
    # Results
    "ErrorKind",
    "ErrorCategory",
    "ValidationResult",
    "OperationResult",
    # Enrollment
    "EnrollmentSource",
    "EnrollmentParams",
    "EnrollmentOutcome",
    "UnenrollmentParams",
    "UnenrollmentOutcome",
    "SyncSource",
    "SyncParams",
    "SyncResult",
    "ProgressUpdateParams",
    "ProgressUpdateOutcome",
    "QBankEnrollResult",
    "EnrollmentVerification",
    "CourseAccessState",
    "CourseEnrollmentState",
    "EnrollStudentRequest",
    "ProgressUpdateRequest",
    # Requests
    "RequestCreateParams",
    "RequestCreatedOutcome",
    "RequestActionParams",
    "ApprovalOutcome",
    "RejectionOutcome",
    "AccessRequestCreateRequest",
    "ReviewRequest",
    # Maintenance
    "PairRef",
    "InconsistencyReport",
    "RepairError",
    "RepairReport",
    "StuckRequestRepairReport",
    "SyncCheckResponse",
]
