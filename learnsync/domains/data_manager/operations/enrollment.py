# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment operations writing both enrollment tables.

Each operation runs inside the executor's transaction and writes
``enrollments`` and ``student_progress`` together, so the two tables agree
as soon as the transaction commits.
"""

import json
import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.domains.data_manager.core import UnitOfWork
from learnsync.domains.data_manager.exceptions import AlreadyEnrolledError, NotEnrolledError
from learnsync.domains.data_manager.operations.transitions import close_pending_requests
from learnsync.domains.data_manager.qbank import auto_enroll
from learnsync.domains.data_manager.repository import (
    get_enrollment,
    get_progress_record,
    is_enrolled,
)
from learnsync.infrastructure.database.models import (
    Enrollment,
    EnrollmentStatus,
    ProgressRecord,
)
from learnsync.infrastructure.events import EventTypes
from learnsync.models.enrollment import (
    EnrollmentOutcome,
    EnrollmentParams,
    EnrollmentVerification,
    ProgressUpdateOutcome,
    ProgressUpdateParams,
    UnenrollmentOutcome,
    UnenrollmentParams,
)
from learnsync.utils.datetime import utc_now

logger = logging.getLogger(__name__)

MAX_PROGRESS = 100


def clamp_progress(value: float) -> int:
    """Round and clamp a progress value to 0-100."""
    return max(0, min(MAX_PROGRESS, int(round(value))))


async def enroll_student(tx: UnitOfWork, params: EnrollmentParams) -> EnrollmentOutcome:
    """Enroll a student in a course.

    Creates (or reactivates) the enrollment and creates (or aligns) the
    progress record so both carry the same progress, closes pending access
    requests for the pair and enrolls the student in the course's question
    bank.

    Raises:
        AlreadyEnrolledError: If the pair is enrolled in either table.
    """
    session = tx.session
    enrollment = await get_enrollment(session, params.student_id, params.course_id, for_update=True)
    record = await get_progress_record(session, params.student_id, params.course_id, for_update=True)

    if is_enrolled(enrollment, record):
        raise AlreadyEnrolledError("Student is already enrolled in this course")

    now = utc_now()
    progress = max(
        enrollment.progress if enrollment is not None else 0,
        record.total_progress if record is not None else 0,
    )
    reactivated = enrollment is not None

    if enrollment is None:
        enrollment = Enrollment(
            user_id=params.student_id,
            course_id=params.course_id,
            status=EnrollmentStatus.ACTIVE.value,
            progress=progress,
            enrolled_at=now,
            updated_at=now,
        )
        session.add(enrollment)
    else:
        enrollment.status = EnrollmentStatus.ACTIVE.value
        enrollment.progress = progress
        enrollment.enrolled_at = now
        enrollment.completed_at = None

    if record is None:
        record = ProgressRecord(
            student_id=params.student_id,
            course_id=params.course_id,
            total_progress=progress,
            last_accessed=now,
        )
        session.add(record)
    else:
        record.total_progress = progress
        record.last_accessed = now

    await session.flush()

    closed = await close_pending_requests(tx, params.student_id, params.course_id, params.admin_id)
    qbank = await auto_enroll(session, params.student_id, params.course_id)

    logger.info(
        "Enrolled student %s in course %s (source=%s, reactivated=%s, qbank=%s)",
        params.student_id,
        params.course_id,
        params.source.value,
        reactivated,
        qbank.enrolled,
    )

    tx.emit(
        EventTypes.Enrollment.CREATED,
        {
            "student_id": params.student_id,
            "course_id": params.course_id,
            "enrollment_id": enrollment.id,
            "progress_record_id": record.id,
            "source": params.source.value,
            "reactivated": reactivated,
            "closed_request_ids": closed,
            "qbank_enrolled": qbank.enrolled,
            "qbank_id": qbank.qbank_id,
        },
        actor_id=params.admin_id,
    )

    return EnrollmentOutcome(
        enrollment_id=enrollment.id,
        progress_record_id=record.id,
        progress=progress,
        qbank_enrolled=qbank.enrolled,
        qbank_id=qbank.qbank_id,
    )


async def unenroll_student(tx: UnitOfWork, params: UnenrollmentParams) -> UnenrollmentOutcome:
    """Remove a student from a course in both tables.

    Raises:
        NotEnrolledError: If the pair is not enrolled (no rows, or a
            suspended enrollment). Nothing is written and no event is queued.
    """
    session = tx.session
    enrollment = await get_enrollment(session, params.user_id, params.course_id, for_update=True)
    record = await get_progress_record(session, params.user_id, params.course_id, for_update=True)

    if not is_enrolled(enrollment, record):
        raise NotEnrolledError("Student is not enrolled in this course")

    await session.execute(
        delete(Enrollment).where(
            Enrollment.user_id == params.user_id, Enrollment.course_id == params.course_id
        )
    )
    await session.execute(
        delete(ProgressRecord).where(
            ProgressRecord.student_id == params.user_id,
            ProgressRecord.course_id == params.course_id,
        )
    )

    logger.info("Unenrolled student %s from course %s", params.user_id, params.course_id)

    tx.emit(
        EventTypes.Enrollment.REMOVED,
        {
            "student_id": params.user_id,
            "course_id": params.course_id,
            "had_enrollment": enrollment is not None,
            "had_progress_record": record is not None,
            "reason": params.reason,
        },
        actor_id=params.admin_id,
    )
    return UnenrollmentOutcome(deleted=True)


async def update_progress(tx: UnitOfWork, params: ProgressUpdateParams) -> ProgressUpdateOutcome:
    """Write a new progress value to both tables.

    A missing row on either side is recreated. Reaching 100 marks the
    enrollment completed.

    Raises:
        NotEnrolledError: If neither table holds the pair.
    """
    session = tx.session
    enrollment = await get_enrollment(session, params.user_id, params.course_id, for_update=True)
    record = await get_progress_record(session, params.user_id, params.course_id, for_update=True)

    if enrollment is None and record is None:
        raise NotEnrolledError("Student is not enrolled in this course")

    progress = clamp_progress(params.progress)
    previous = enrollment.progress if enrollment is not None else record.total_progress
    completed = progress >= MAX_PROGRESS
    now = utc_now()
    enrollment_created = enrollment is None

    if enrollment is None:
        enrollment = Enrollment(
            user_id=params.user_id,
            course_id=params.course_id,
            status=EnrollmentStatus.ACTIVE.value,
            enrolled_at=now,
        )
        session.add(enrollment)
    enrollment.progress = progress
    enrollment.updated_at = now
    if completed and enrollment.completed_at is None:
        enrollment.status = EnrollmentStatus.COMPLETED.value
        enrollment.completed_at = now

    if record is None:
        record = ProgressRecord(student_id=params.user_id, course_id=params.course_id)
        session.add(record)
    record.total_progress = progress
    record.last_accessed = now
    if params.completed_chapters is not None:
        record.completed_chapters = json.dumps(sorted(set(params.completed_chapters)))

    await session.flush()

    tx.emit(
        EventTypes.Progress.UPDATED,
        {
            "student_id": params.user_id,
            "course_id": params.course_id,
            "progress": progress,
            "previous_progress": previous,
            "completed": completed,
        },
        actor_id=params.user_id,
    )
    return ProgressUpdateOutcome(
        progress=progress,
        previous_progress=previous,
        completed=completed,
        enrollment_created=enrollment_created,
    )


async def verify_enrollment_exists(
    session: AsyncSession, user_id: int, course_id: int
) -> EnrollmentVerification:
    """Report whether each enrollment table holds the pair."""
    enrollment = await get_enrollment(session, user_id, course_id)
    record = await get_progress_record(session, user_id, course_id)
    return EnrollmentVerification(
        user_id=user_id,
        course_id=course_id,
        in_enrollments=enrollment is not None,
        in_student_progress=record is not None,
        enrollment_status=enrollment.status if enrollment is not None else None,
    )
