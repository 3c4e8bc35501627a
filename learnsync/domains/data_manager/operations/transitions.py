# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access request state transitions.

A request's ``status`` and its review stamp (``reviewed_at``,
``reviewed_by``) are only ever written together by a single UPDATE, guarded
by ``status = 'pending'``. A reviewed request that is still pending cannot
be produced by these functions.
"""

from sqlalchemy import delete, update

from learnsync.domains.data_manager.core import UnitOfWork
from learnsync.infrastructure.database.models import AccessRequest, RequestStatus
from learnsync.utils.datetime import utc_now


async def mark_request_processed(
    tx: UnitOfWork,
    request_id: int,
    status: RequestStatus,
    admin_id: int | None,
    note: str | None = None,
) -> bool:
    """Move one pending request to a terminal status.

    Returns:
        False when the request was no longer pending.
    """
    result = await tx.session.execute(
        update(AccessRequest)
        .where(
            AccessRequest.id == request_id,
            AccessRequest.status == RequestStatus.PENDING.value,
        )
        .values(
            status=status.value,
            reviewed_at=utc_now(),
            reviewed_by=admin_id,
            review_note=note,
        )
        .returning(AccessRequest.id)
    )
    return result.scalar_one_or_none() is not None


async def discard_processed_request(tx: UnitOfWork, request_id: int) -> bool:
    """Delete a processed request unless processed requests are retained.

    Returns:
        True when the row was deleted.
    """
    if tx.settings.retain_processed_requests:
        return False
    result = await tx.session.execute(
        delete(AccessRequest)
        .where(
            AccessRequest.id == request_id,
            AccessRequest.status != RequestStatus.PENDING.value,
        )
        .returning(AccessRequest.id)
    )
    return result.scalar_one_or_none() is not None


async def close_pending_requests(
    tx: UnitOfWork,
    student_id: int,
    course_id: int,
    admin_id: int | None = None,
) -> list[int]:
    """Approve every pending request for a pair that is now enrolled.

    Returns:
        Ids of the requests that were closed.
    """
    stmt = (
        update(AccessRequest)
        .where(
            AccessRequest.student_id == student_id,
            AccessRequest.course_id == course_id,
            AccessRequest.status == RequestStatus.PENDING.value,
        )
        .values(
            status=RequestStatus.APPROVED.value,
            reviewed_at=utc_now(),
            reviewed_by=admin_id,
        )
        .returning(AccessRequest.id)
    )
    result = await tx.session.execute(stmt)
    closed = list(result.scalars().all())

    if closed and not tx.settings.retain_processed_requests:
        await tx.session.execute(delete(AccessRequest).where(AccessRequest.id.in_(closed)))
    return closed
