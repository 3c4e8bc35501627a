# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Row lookups shared by validators and operations.

Operations pass ``for_update=True`` so the rows they re-check stay locked
until commit on PostgreSQL. SQLite ignores the clause.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.infrastructure.database.models import (
    AccessRequest,
    Course,
    Enrollment,
    EnrollmentStatus,
    ProgressRecord,
    RequestStatus,
    User,
)


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    return await session.get(User, user_id)


async def get_course(session: AsyncSession, course_id: int) -> Course | None:
    return await session.get(Course, course_id)


async def get_enrollment(
    session: AsyncSession,
    user_id: int,
    course_id: int,
    for_update: bool = False,
) -> Enrollment | None:
    stmt = select(Enrollment).where(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id,
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_progress_record(
    session: AsyncSession,
    student_id: int,
    course_id: int,
    for_update: bool = False,
) -> ProgressRecord | None:
    stmt = select(ProgressRecord).where(
        ProgressRecord.student_id == student_id,
        ProgressRecord.course_id == course_id,
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_request(
    session: AsyncSession,
    request_id: int,
    for_update: bool = False,
) -> AccessRequest | None:
    stmt = select(AccessRequest).where(AccessRequest.id == request_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_pending_request(
    session: AsyncSession,
    student_id: int,
    course_id: int,
) -> AccessRequest | None:
    """Get the pending request for a pair, if any.

    Processed requests are never returned, whether retained or deleted.
    """
    result = await session.execute(
        select(AccessRequest).where(
            AccessRequest.student_id == student_id,
            AccessRequest.course_id == course_id,
            AccessRequest.status == RequestStatus.PENDING.value,
        )
    )
    return result.scalar_one_or_none()


def is_enrolled(enrollment: Enrollment | None, record: ProgressRecord | None) -> bool:
    """Decide enrollment from the rows of both tables.

    An enrollment row is authoritative for its status: a suspended
    enrollment means not enrolled even when a progress record remains.
    Without an enrollment row the progress record alone counts.
    """
    if enrollment is not None:
        return enrollment.status != EnrollmentStatus.SUSPENDED.value
    return record is not None
