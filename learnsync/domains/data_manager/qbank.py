# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Best-effort question bank enrollment.

When a student joins a course they also get access to the course's
published question bank. The step runs in a SAVEPOINT inside the course
enrollment transaction: if it fails only the savepoint is rolled back and
the course enrollment still commits.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.infrastructure.database.models import QuestionBank, QuestionBankEnrollment
from learnsync.models.enrollment import QBankEnrollResult
from learnsync.utils.datetime import utc_now

logger = logging.getLogger(__name__)

PUBLISHED_QBANK_STATUS = "published"


async def find_course_qbank(session: AsyncSession, course_id: int) -> int | None:
    """Get the id of the published, active question bank linked to a course."""
    result = await session.execute(
        select(QuestionBank.id)
        .where(
            QuestionBank.course_id == course_id,
            QuestionBank.is_active.is_(True),
            QuestionBank.status == PUBLISHED_QBANK_STATUS,
        )
        .order_by(QuestionBank.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def auto_enroll(session: AsyncSession, student_id: int, course_id: int) -> QBankEnrollResult:
    """Enroll a student in the course's question bank, if it has one.

    Idempotent: an existing enrollment row is reported as enrolled and not
    duplicated. The lookups and the insert share one SAVEPOINT, so a failed
    statement never aborts the caller's transaction. Database, driver and
    timeout errors are logged and reported, never raised.

    Args:
        session: Session with an open transaction.
        student_id: Student being enrolled.
        course_id: Course the student just joined.

    Returns:
        QBankEnrollResult. ``enrolled`` is False when the course has no
        published question bank or any step failed.
    """
    # Pending course enrollment writes must fail in the caller, not in here.
    await session.flush()

    qbank_id: int | None = None
    created = False
    try:
        async with session.begin_nested():
            qbank_id = await find_course_qbank(session, course_id)
            if qbank_id is None:
                return QBankEnrollResult(enrolled=False)

            existing = await session.execute(
                select(QuestionBankEnrollment.id).where(
                    QuestionBankEnrollment.student_id == student_id,
                    QuestionBankEnrollment.qbank_id == qbank_id,
                )
            )
            if existing.scalar_one_or_none() is None:
                now = utc_now()
                session.add(
                    QuestionBankEnrollment(
                        student_id=student_id,
                        qbank_id=qbank_id,
                        enrolled_at=now,
                        last_accessed_at=now,
                    )
                )
                await session.flush()
                created = True

    except (SQLAlchemyError, OSError) as e:
        logger.warning(
            "Question bank enrollment failed for student %s, course %s: %s",
            student_id,
            course_id,
            f"{type(e).__name__}: {e}",
            exc_info=True,
        )
        return QBankEnrollResult(
            enrolled=False, qbank_id=qbank_id, error=str(e) or type(e).__name__
        )

    if created:
        logger.info(
            "Auto-enrolled student %s in question bank %s (course %s)",
            student_id,
            qbank_id,
            course_id,
        )
    return QBankEnrollResult(enrolled=True, qbank_id=qbank_id, created=created)
