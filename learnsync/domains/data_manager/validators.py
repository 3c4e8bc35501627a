# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read-only precondition checks run before an operation's transaction.

Validators never write. They run on their own session with read-committed
semantics, so a concurrent writer can still invalidate their answer; the
operations re-check the critical conditions inside the transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.domains.data_manager.repository import (
    get_course,
    get_enrollment,
    get_pending_request,
    get_progress_record,
    get_request,
    get_user,
    is_enrolled,
)
from learnsync.infrastructure.database.models import RequestStatus, UserRole
from learnsync.models.enrollment import (
    EnrollmentParams,
    ProgressUpdateParams,
    UnenrollmentParams,
)
from learnsync.models.requests import RequestActionParams, RequestCreateParams
from learnsync.models.results import ErrorKind, ValidationResult

logger = logging.getLogger(__name__)


async def _student_is_enrolled(session: AsyncSession, student_id: int, course_id: int) -> bool:
    enrollment = await get_enrollment(session, student_id, course_id)
    record = await get_progress_record(session, student_id, course_id)
    return is_enrolled(enrollment, record)


async def validate_enrollment(session: AsyncSession, params: EnrollmentParams) -> ValidationResult:
    """Check that a student can be enrolled in a course.

    Rules:
        - course exists (NOT_FOUND) and is published or active (INVALID_STATE)
        - student exists and is active (NOT_FOUND)
        - student has the student role (FORBIDDEN)
        - no enrollment or progress record for the pair (ALREADY_ENROLLED)
    """
    course = await get_course(session, params.course_id)
    if course is None:
        return ValidationResult.fail(ErrorKind.NOT_FOUND, "Course not found")
    if not course.is_enrollable:
        return ValidationResult.fail(
            ErrorKind.INVALID_STATE,
            f"Course is not open for enrollment (status: {course.status})",
        )

    student = await get_user(session, params.student_id)
    if student is None or not student.is_active:
        return ValidationResult.fail(ErrorKind.NOT_FOUND, "Student not found or inactive")
    if student.role != UserRole.STUDENT.value:
        return ValidationResult.fail(
            ErrorKind.FORBIDDEN, "Only students can be enrolled in courses"
        )

    if await _student_is_enrolled(session, params.student_id, params.course_id):
        return ValidationResult.fail(
            ErrorKind.ALREADY_ENROLLED, "Student is already enrolled in this course"
        )

    pending = await get_pending_request(session, params.student_id, params.course_id)
    if pending is not None:
        logger.info(
            "Enrolling student %s in course %s closes pending request %s",
            params.student_id,
            params.course_id,
            pending.id,
        )

    return ValidationResult.ok()


async def validate_unenrollment(
    session: AsyncSession, params: UnenrollmentParams
) -> ValidationResult:
    """Check that the pair is currently enrolled."""
    if not await _student_is_enrolled(session, params.user_id, params.course_id):
        return ValidationResult.fail(
            ErrorKind.NOT_ENROLLED, "Student is not enrolled in this course"
        )
    return ValidationResult.ok()


async def validate_request_creation(
    session: AsyncSession, params: RequestCreateParams
) -> ValidationResult:
    """Check that a student may ask for access to a course."""
    student = await get_user(session, params.student_id)
    if student is None or not student.is_active or student.role != UserRole.STUDENT.value:
        return ValidationResult.fail(ErrorKind.NOT_FOUND, "Student not found")

    course = await get_course(session, params.course_id)
    if course is None:
        return ValidationResult.fail(ErrorKind.NOT_FOUND, "Course not found")
    if not course.is_requestable:
        return ValidationResult.fail(
            ErrorKind.INVALID_STATE, "Course does not accept access requests"
        )

    if await _student_is_enrolled(session, params.student_id, params.course_id):
        return ValidationResult.fail(
            ErrorKind.ALREADY_ENROLLED, "Student is already enrolled in this course"
        )

    if await get_pending_request(session, params.student_id, params.course_id) is not None:
        return ValidationResult.fail(
            ErrorKind.DUPLICATE_REQUEST, "A pending request for this course already exists"
        )

    return ValidationResult.ok()


async def validate_request_action(
    session: AsyncSession, params: RequestActionParams
) -> ValidationResult:
    """Check that an admin may approve or reject a request."""
    admin = await get_user(session, params.admin_id)
    if admin is None or not admin.is_active or admin.role != UserRole.ADMIN.value:
        return ValidationResult.fail(ErrorKind.FORBIDDEN, "Admin access required")

    request = await get_request(session, params.request_id)
    if request is None:
        return ValidationResult.fail(ErrorKind.NOT_FOUND, "Request not found")
    if request.status != RequestStatus.PENDING.value:
        return ValidationResult.fail(
            ErrorKind.INVALID_STATE, f"Request has already been {request.status}"
        )

    return ValidationResult.ok()


async def validate_request_approval(
    session: AsyncSession, params: RequestActionParams
) -> ValidationResult:
    """validate_request_action plus the enrollment precondition."""
    result = await validate_request_action(session, params)
    if not result.valid:
        return result

    request = await get_request(session, params.request_id)
    if await _student_is_enrolled(session, request.student_id, request.course_id):
        return ValidationResult.fail(
            ErrorKind.ALREADY_ENROLLED, "Student is already enrolled in this course"
        )
    return ValidationResult.ok()


async def validate_progress_update(
    session: AsyncSession, params: ProgressUpdateParams
) -> ValidationResult:
    """Check that there is an enrollment whose progress can be updated."""
    if not await _student_is_enrolled(session, params.user_id, params.course_id):
        return ValidationResult.fail(
            ErrorKind.NOT_ENROLLED, "Student is not enrolled in this course"
        )
    return ValidationResult.ok()
