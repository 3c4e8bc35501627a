# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reconciliation of the two enrollment tables for one pair.

Policy:
    - only one table has the pair: create the missing row from it
    - both have it with different progress: the higher progress wins and
      the other row is raised to match (progress never moves backwards)
    - neither has it: NotEnrolledError
"""

import logging

from learnsync.domains.data_manager.core import UnitOfWork
from learnsync.domains.data_manager.exceptions import NotEnrolledError
from learnsync.domains.data_manager.repository import get_enrollment, get_progress_record
from learnsync.infrastructure.database.models import (
    Enrollment,
    EnrollmentStatus,
    ProgressRecord,
)
from learnsync.infrastructure.events import EventTypes
from learnsync.models.enrollment import SyncResult, SyncSource
from learnsync.utils.datetime import utc_now

logger = logging.getLogger(__name__)


def _mark_completed(enrollment: Enrollment) -> None:
    if enrollment.progress >= 100 and enrollment.completed_at is None:
        enrollment.status = EnrollmentStatus.COMPLETED.value
        enrollment.completed_at = utc_now()


async def sync_enrollment_state(tx: UnitOfWork, user_id: int, course_id: int) -> SyncResult:
    """Make both enrollment tables agree for (user_id, course_id).

    Returns:
        SyncResult naming the source table and the rows that changed.

    Raises:
        NotEnrolledError: If neither table holds the pair.
    """
    session = tx.session
    enrollment = await get_enrollment(session, user_id, course_id, for_update=True)
    record = await get_progress_record(session, user_id, course_id, for_update=True)

    if enrollment is None and record is None:
        raise NotEnrolledError("Student is not enrolled in this course")

    now = utc_now()

    if record is None:
        result = SyncResult(
            user_id=user_id,
            course_id=course_id,
            source=SyncSource.ENROLLMENTS,
            corrected=True,
            diverged=True,
            progress_record_created=True,
            progress=enrollment.progress,
        )
        session.add(
            ProgressRecord(
                student_id=user_id,
                course_id=course_id,
                total_progress=enrollment.progress,
                last_accessed=now,
            )
        )
    elif enrollment is None:
        result = SyncResult(
            user_id=user_id,
            course_id=course_id,
            source=SyncSource.STUDENT_PROGRESS,
            corrected=True,
            diverged=True,
            enrollment_created=True,
            progress=record.total_progress,
        )
        enrollment = Enrollment(
            user_id=user_id,
            course_id=course_id,
            status=EnrollmentStatus.ACTIVE.value,
            progress=record.total_progress,
            enrolled_at=now,
            updated_at=now,
        )
        _mark_completed(enrollment)
        session.add(enrollment)
    elif enrollment.progress > record.total_progress:
        result = SyncResult(
            user_id=user_id,
            course_id=course_id,
            source=SyncSource.ENROLLMENTS,
            corrected=True,
            diverged=True,
            progress_record_updated=True,
            progress=enrollment.progress,
        )
        record.total_progress = enrollment.progress
    elif enrollment.progress < record.total_progress:
        result = SyncResult(
            user_id=user_id,
            course_id=course_id,
            source=SyncSource.STUDENT_PROGRESS,
            corrected=True,
            diverged=True,
            enrollment_updated=True,
            progress=record.total_progress,
        )
        enrollment.progress = record.total_progress
        enrollment.updated_at = now
        _mark_completed(enrollment)
    else:
        return SyncResult(
            user_id=user_id,
            course_id=course_id,
            source=SyncSource.BOTH,
            progress=enrollment.progress,
        )

    await session.flush()

    logger.info(
        "Synced enrollment state for student %s, course %s from %s (progress=%s)",
        user_id,
        course_id,
        result.source.value,
        result.progress,
    )
    changes = result.model_dump(mode="json", exclude={"user_id", "course_id"})
    tx.emit(
        EventTypes.Enrollment.SYNCED,
        {"student_id": user_id, "course_id": course_id, **changes},
    )
    return result
