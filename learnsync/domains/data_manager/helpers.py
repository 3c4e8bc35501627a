# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed entry points for enrollment and access request writes.

Route handlers and jobs call these instead of touching the tables. Each
helper pairs an operation with its validator and retry policy and runs it
through the data manager.

Example:
    from learnsync.domains.data_manager import create_request, approve_request

    created = await create_request(6, 10)
    approved = await approve_request(
        RequestActionParams(request_id=created.data.request_id, admin_id=1)
    )
"""

from learnsync.domains.data_manager import operations as ops
from learnsync.domains.data_manager import validators
from learnsync.domains.data_manager.core import DataManager, UnitOfWork, get_data_manager
from learnsync.models.enrollment import (
    EnrollmentOutcome,
    EnrollmentParams,
    ProgressUpdateOutcome,
    ProgressUpdateParams,
    SyncParams,
    SyncResult,
    UnenrollmentOutcome,
    UnenrollmentParams,
)
from learnsync.models.requests import (
    ApprovalOutcome,
    RejectionOutcome,
    RequestActionParams,
    RequestCreatedOutcome,
    RequestCreateParams,
)
from learnsync.models.results import OperationResult


async def _sync_pair(tx: UnitOfWork, params: SyncParams) -> SyncResult:
    return await ops.sync_enrollment_state(tx, params.user_id, params.course_id)


async def enroll_student(
    params: EnrollmentParams,
    manager: DataManager | None = None,
) -> OperationResult[EnrollmentOutcome]:
    """Enroll a student in a course (both tables, plus question bank)."""
    manager = manager or get_data_manager()
    return await manager.execute_operation(
        "enroll_student",
        params,
        executor=ops.enroll_student,
        validator=validators.validate_enrollment,
    )


async def unenroll_student(
    params: UnenrollmentParams,
    manager: DataManager | None = None,
) -> OperationResult[UnenrollmentOutcome]:
    """Remove a student from a course in both tables."""
    manager = manager or get_data_manager()
    return await manager.execute_operation(
        "unenroll_student",
        params,
        executor=ops.unenroll_student,
        validator=validators.validate_unenrollment,
    )


async def sync_enrollment_state(
    user_id: int,
    course_id: int,
    manager: DataManager | None = None,
) -> OperationResult[SyncResult]:
    """Reconcile the two enrollment tables for one pair."""
    manager = manager or get_data_manager()
    return await manager.execute_operation(
        "sync_enrollment_state",
        SyncParams(user_id=user_id, course_id=course_id),
        executor=_sync_pair,
    )


async def update_progress(
    params: ProgressUpdateParams,
    manager: DataManager | None = None,
) -> OperationResult[ProgressUpdateOutcome]:
    """Record course progress in both tables."""
    manager = manager or get_data_manager()
    return await manager.execute_operation(
        "update_progress",
        params,
        executor=ops.update_progress,
        validator=validators.validate_progress_update,
    )


async def create_request(
    student_id: int,
    course_id: int,
    reason: str | None = None,
    manager: DataManager | None = None,
) -> OperationResult[RequestCreatedOutcome]:
    """File a pending access request for a course."""
    manager = manager or get_data_manager()
    return await manager.execute_operation(
        "create_request",
        RequestCreateParams(student_id=student_id, course_id=course_id, reason=reason),
        executor=ops.create_request,
        validator=validators.validate_request_creation,
    )


async def approve_request(
    params: RequestActionParams,
    manager: DataManager | None = None,
) -> OperationResult[ApprovalOutcome]:
    """Approve a pending request and enroll the student."""
    manager = manager or get_data_manager()
    return await manager.execute_operation(
        "approve_request",
        params,
        executor=ops.approve_request,
        validator=validators.validate_request_approval,
    )


async def reject_request(
    params: RequestActionParams,
    manager: DataManager | None = None,
) -> OperationResult[RejectionOutcome]:
    """Reject a pending request. Never retried."""
    manager = manager or get_data_manager()
    return await manager.execute_operation(
        "reject_request",
        params,
        executor=ops.reject_request,
        validator=validators.validate_request_action,
        retryable=False,
    )
