# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read-side view of a student's courses.

Merges both enrollment tables and pending requests into one state per
course, so the student portal shows the same answer whichever table a
legacy writer updated.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.domains.data_manager.repository import is_enrolled
from learnsync.infrastructure.database.models import (
    ENROLLABLE_COURSE_STATUSES,
    AccessRequest,
    Course,
    Enrollment,
    ProgressRecord,
    RequestStatus,
)
from learnsync.models.enrollment import CourseAccessState, CourseEnrollmentState
from learnsync.utils.datetime import ensure_utc


async def get_student_enrollment_state(
    session: AsyncSession, student_id: int
) -> list[CourseEnrollmentState]:
    """List every open course with the student's relation to it.

    Courses the student is enrolled in are included even when they are no
    longer open for enrollment.

    Args:
        session: Session to read with.
        student_id: Student to describe.

    Returns:
        One CourseEnrollmentState per course, ordered by course id.
    """
    enrollments = {
        e.course_id: e
        for e in (
            await session.execute(select(Enrollment).where(Enrollment.user_id == student_id))
        ).scalars()
    }
    records = {
        r.course_id: r
        for r in (
            await session.execute(
                select(ProgressRecord).where(ProgressRecord.student_id == student_id)
            )
        ).scalars()
    }
    pending = {
        r.course_id: r
        for r in (
            await session.execute(
                select(AccessRequest).where(
                    AccessRequest.student_id == student_id,
                    AccessRequest.status == RequestStatus.PENDING.value,
                )
            )
        ).scalars()
    }

    course_ids = set(enrollments) | set(records)
    courses = (
        await session.execute(
            select(Course)
            .where(
                Course.status.in_(ENROLLABLE_COURSE_STATUSES) | Course.id.in_(course_ids)
            )
            .order_by(Course.id)
        )
    ).scalars()

    states: list[CourseEnrollmentState] = []
    for course in courses:
        enrollment = enrollments.get(course.id)
        record = records.get(course.id)
        request = pending.get(course.id)

        if is_enrolled(enrollment, record):
            progress = max(
                enrollment.progress if enrollment is not None else 0,
                record.total_progress if record is not None else 0,
            )
            states.append(
                CourseEnrollmentState(
                    course_id=course.id,
                    title=course.title,
                    state=CourseAccessState.ENROLLED,
                    progress=progress,
                    enrolled_at=ensure_utc(enrollment.enrolled_at) if enrollment else None,
                )
            )
        elif request is not None:
            states.append(
                CourseEnrollmentState(
                    course_id=course.id,
                    title=course.title,
                    state=CourseAccessState.REQUESTED,
                    requested_at=ensure_utc(request.requested_at),
                    request_id=request.id,
                )
            )
        elif course.is_enrollable:
            states.append(
                CourseEnrollmentState(
                    course_id=course.id,
                    title=course.title,
                    state=CourseAccessState.AVAILABLE,
                )
            )
    return states
