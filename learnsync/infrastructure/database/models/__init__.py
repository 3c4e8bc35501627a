# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the LMS tables touched by the data manager."""

from learnsync.infrastructure.database.models.access_request import (
    PENDING_REQUEST_UNIQUE_INDEX,
    AccessRequest,
    RequestStatus,
)
from learnsync.infrastructure.database.models.base import Base
from learnsync.infrastructure.database.models.enrollment import (
    ENROLLMENT_UNIQUE_CONSTRAINT,
    PROGRESS_UNIQUE_CONSTRAINT,
    Enrollment,
    EnrollmentStatus,
    ProgressRecord,
)
from learnsync.infrastructure.database.models.question_bank import (
    QBANK_ENROLLMENT_UNIQUE_CONSTRAINT,
    QuestionBank,
    QuestionBankEnrollment,
)
from learnsync.infrastructure.database.models.user import (
    ENROLLABLE_COURSE_STATUSES,
    Course,
    CourseStatus,
    User,
    UserRole,
)

__all__ = [
    "Base",
    # Accounts and catalogue
    "User",
    "UserRole",
    "Course",
    "CourseStatus",
    "ENROLLABLE_COURSE_STATUSES",
    # Enrollment tables
    "Enrollment",
    "EnrollmentStatus",
    "ProgressRecord",
    "ENROLLMENT_UNIQUE_CONSTRAINT",
    "PROGRESS_UNIQUE_CONSTRAINT",
    # Access requests
    "AccessRequest",
    "RequestStatus",
    "PENDING_REQUEST_UNIQUE_INDEX",
    # Question banks
    "QuestionBank",
    "QuestionBankEnrollment",
    "QBANK_ENROLLMENT_UNIQUE_CONSTRAINT",
]
