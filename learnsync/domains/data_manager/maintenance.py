# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Consistency checks and repairs across enrollment and request tables.

``find_inconsistencies`` is read-only and reports every pair that breaks
the dual-table or request invariants. ``repair_inconsistencies`` fixes them
pair by pair through the regular helpers, so each repair is its own
transaction with the usual retries and events.
"""

import logging

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.domains.data_manager import helpers
from learnsync.domains.data_manager import operations as ops
from learnsync.domains.data_manager.core import DataManager, UnitOfWork, get_data_manager
from learnsync.infrastructure.database.models import (
    AccessRequest,
    Enrollment,
    EnrollmentStatus,
    ProgressRecord,
    RequestStatus,
)
from learnsync.models.enrollment import EnrollmentParams, EnrollmentSource, SyncParams
from learnsync.models.maintenance import (
    InconsistencyReport,
    PairRef,
    RepairError,
    RepairReport,
    StuckRequestRepairReport,
)
from learnsync.models.results import ErrorKind, OperationResult

logger = logging.getLogger(__name__)

_same_pair = and_(
    Enrollment.user_id == ProgressRecord.student_id,
    Enrollment.course_id == ProgressRecord.course_id,
)
_request_enrollment = and_(
    Enrollment.user_id == AccessRequest.student_id,
    Enrollment.course_id == AccessRequest.course_id,
)
_not_suspended = Enrollment.status != EnrollmentStatus.SUSPENDED.value


async def find_inconsistencies(
    session: AsyncSession,
    retain_processed_requests: bool = True,
) -> InconsistencyReport:
    """Report every pair that violates the enrollment invariants.

    Args:
        session: Session to read with.
        retain_processed_requests: When approved requests are kept as
            history, a student unenrolled after approval is legitimate and
            approved requests are not checked.
    """
    report = InconsistencyReport()

    rows = await session.execute(
        select(ProgressRecord.student_id, ProgressRecord.course_id, ProgressRecord.total_progress)
        .outerjoin(Enrollment, _same_pair)
        .where(Enrollment.id.is_(None))
        .order_by(ProgressRecord.student_id, ProgressRecord.course_id)
    )
    report.progress_only = [
        PairRef(user_id=s, course_id=c, record_progress=p) for s, c, p in rows.all()
    ]

    rows = await session.execute(
        select(Enrollment.user_id, Enrollment.course_id, Enrollment.progress)
        .outerjoin(ProgressRecord, _same_pair)
        .where(ProgressRecord.id.is_(None), _not_suspended)
        .order_by(Enrollment.user_id, Enrollment.course_id)
    )
    report.enrollments_only = [
        PairRef(user_id=u, course_id=c, enrollment_progress=p) for u, c, p in rows.all()
    ]

    rows = await session.execute(
        select(
            Enrollment.user_id,
            Enrollment.course_id,
            Enrollment.progress,
            ProgressRecord.total_progress,
        )
        .join(ProgressRecord, _same_pair)
        .where(Enrollment.progress != ProgressRecord.total_progress)
        .order_by(Enrollment.user_id, Enrollment.course_id)
    )
    report.progress_mismatch = [
        PairRef(user_id=u, course_id=c, enrollment_progress=ep, record_progress=rp)
        for u, c, ep, rp in rows.all()
    ]

    if not retain_processed_requests:
        rows = await session.execute(
            select(AccessRequest.id, AccessRequest.student_id, AccessRequest.course_id)
            .outerjoin(Enrollment, _request_enrollment)
            .where(
                AccessRequest.status == RequestStatus.APPROVED.value,
                Enrollment.id.is_(None),
            )
            .order_by(AccessRequest.id)
        )
        report.approved_without_enrollment = [
            PairRef(user_id=s, course_id=c, request_id=r) for r, s, c in rows.all()
        ]

    rows = await session.execute(
        select(AccessRequest.id, AccessRequest.student_id, AccessRequest.course_id)
        .join(Enrollment, _request_enrollment)
        .where(AccessRequest.status == RequestStatus.PENDING.value, _not_suspended)
        .order_by(AccessRequest.id)
    )
    report.pending_for_enrolled = [
        PairRef(user_id=s, course_id=c, request_id=r) for r, s, c in rows.all()
    ]

    rows = await session.execute(
        select(AccessRequest.id, AccessRequest.student_id, AccessRequest.course_id)
        .where(
            AccessRequest.status == RequestStatus.PENDING.value,
            AccessRequest.reviewed_at.is_not(None),
        )
        .order_by(AccessRequest.id)
    )
    report.stuck_requests = [
        PairRef(user_id=s, course_id=c, request_id=r) for r, s, c in rows.all()
    ]

    return report


async def _close_requests_for_pair(tx: UnitOfWork, params: SyncParams) -> list[int]:
    return await ops.close_pending_requests(tx, params.user_id, params.course_id)


def _record_error(report: RepairReport, pair: PairRef, result: OperationResult) -> None:
    report.errors.append(
        RepairError(
            user_id=pair.user_id,
            course_id=pair.course_id,
            error=result.error.value if result.error else ErrorKind.OPERATION_FAILED.value,
            message=result.message,
        )
    )


async def repair_inconsistencies(manager: DataManager | None = None) -> RepairReport:
    """Fix every divergence reported by find_inconsistencies.

    Stuck requests are left to repair_stuck_requests.
    """
    manager = manager or get_data_manager()
    async with manager.read_session() as session:
        found = await find_inconsistencies(session, manager.settings.retain_processed_requests)

    report = RepairReport()

    divergent = found.progress_only + found.enrollments_only + found.progress_mismatch
    for pair in divergent:
        result = await helpers.sync_enrollment_state(pair.user_id, pair.course_id, manager=manager)
        if result.success:
            report.synced += 1
        else:
            _record_error(report, pair, result)

    for pair in found.approved_without_enrollment:
        result = await helpers.enroll_student(
            EnrollmentParams(
                student_id=pair.user_id,
                course_id=pair.course_id,
                source=EnrollmentSource.SYNC,
            ),
            manager=manager,
        )
        if result.success:
            report.enrolled_from_approved += 1
        elif result.error is not ErrorKind.ALREADY_ENROLLED:
            _record_error(report, pair, result)

    for pair in found.pending_for_enrolled:
        result = await manager.execute_operation(
            "close_pending_requests",
            SyncParams(user_id=pair.user_id, course_id=pair.course_id),
            executor=_close_requests_for_pair,
        )
        if result.success:
            report.closed_pending_requests += len(result.data)
        else:
            _record_error(report, pair, result)

    logger.info(
        "Sync repair finished: synced=%d, enrolled=%d, closed=%d, errors=%d",
        report.synced,
        report.enrolled_from_approved,
        report.closed_pending_requests,
        len(report.errors),
    )
    return report


async def repair_stuck_requests(
    manager: DataManager | None = None,
) -> OperationResult[StuckRequestRepairReport]:
    """Restore ``reviewed_at IS NOT NULL => status != pending`` for all requests."""
    manager = manager or get_data_manager()
    return await manager.execute_operation(
        "repair_stuck_requests",
        None,
        executor=ops.repair_stuck_requests,
    )
