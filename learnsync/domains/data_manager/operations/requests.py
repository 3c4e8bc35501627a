# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access request operations: create, approve, reject, repair."""

import logging

from sqlalchemy import select, update

from learnsync.domains.data_manager.core import UnitOfWork
from learnsync.domains.data_manager.exceptions import (
    AlreadyEnrolledError,
    DuplicateRequestError,
    EnrollmentVerificationError,
    InvalidStateError,
    RequestNotFoundError,
)
from learnsync.domains.data_manager.operations.enrollment import (
    enroll_student,
    verify_enrollment_exists,
)
from learnsync.domains.data_manager.operations.transitions import (
    discard_processed_request,
    mark_request_processed,
)
from learnsync.domains.data_manager.repository import (
    get_enrollment,
    get_pending_request,
    get_progress_record,
    get_request,
    is_enrolled,
)
from learnsync.infrastructure.database.models import AccessRequest, RequestStatus
from learnsync.infrastructure.events import EventTypes
from learnsync.models.enrollment import EnrollmentParams, EnrollmentSource
from learnsync.models.maintenance import StuckRequestRepairReport
from learnsync.models.requests import (
    ApprovalOutcome,
    RejectionOutcome,
    RequestActionParams,
    RequestCreatedOutcome,
    RequestCreateParams,
)
from learnsync.utils.datetime import utc_now

logger = logging.getLogger(__name__)


async def _get_pending_for_review(tx: UnitOfWork, request_id: int) -> AccessRequest:
    request = await get_request(tx.session, request_id, for_update=True)
    if request is None:
        raise RequestNotFoundError("Request not found")
    if request.status != RequestStatus.PENDING.value:
        raise InvalidStateError(f"Request has already been {request.status}")
    return request


async def create_request(tx: UnitOfWork, params: RequestCreateParams) -> RequestCreatedOutcome:
    """Insert a pending access request.

    Raises:
        AlreadyEnrolledError: If the student is already enrolled.
        DuplicateRequestError: If a pending request exists for the pair.
    """
    session = tx.session
    enrollment = await get_enrollment(session, params.student_id, params.course_id)
    record = await get_progress_record(session, params.student_id, params.course_id)
    if is_enrolled(enrollment, record):
        raise AlreadyEnrolledError("Student is already enrolled in this course")

    if await get_pending_request(session, params.student_id, params.course_id) is not None:
        raise DuplicateRequestError("A pending request for this course already exists")

    request = AccessRequest(
        student_id=params.student_id,
        course_id=params.course_id,
        status=RequestStatus.PENDING.value,
        reason=params.reason,
        requested_at=utc_now(),
    )
    session.add(request)
    await session.flush()

    logger.info(
        "Access request %s created: student=%s, course=%s",
        request.id,
        params.student_id,
        params.course_id,
    )
    tx.emit(
        EventTypes.Request.CREATED,
        {
            "request_id": request.id,
            "student_id": params.student_id,
            "course_id": params.course_id,
            "reason": params.reason,
        },
        actor_id=params.student_id,
    )
    return RequestCreatedOutcome(request_id=request.id)


async def approve_request(tx: UnitOfWork, params: RequestActionParams) -> ApprovalOutcome:
    """Approve a pending request and enroll the student.

    The request is stamped approved in one UPDATE, the student is enrolled
    in both tables and the enrollment is verified before the transaction
    commits. Unless processed requests are retained, the row is then
    deleted.

    Raises:
        RequestNotFoundError: If the request does not exist.
        InvalidStateError: If the request is no longer pending.
        AlreadyEnrolledError: If the student got enrolled meanwhile.
        EnrollmentVerificationError: If either table lacks the pair after
            enrolling.
    """
    request = await _get_pending_for_review(tx, params.request_id)
    request_id, student_id, course_id = request.id, request.student_id, request.course_id

    if not await mark_request_processed(tx, request_id, RequestStatus.APPROVED, params.admin_id):
        raise InvalidStateError("Request is no longer pending")

    outcome = await enroll_student(
        tx,
        EnrollmentParams(
            student_id=student_id,
            course_id=course_id,
            source=EnrollmentSource.REQUEST_APPROVAL,
            admin_id=params.admin_id,
        ),
    )

    verification = await verify_enrollment_exists(tx.session, student_id, course_id)
    if not verification.enrolled:
        raise EnrollmentVerificationError(
            "Enrollment could not be verified in both enrollment tables"
        )

    deleted = await discard_processed_request(tx, request_id)

    logger.info(
        "Request %s approved by admin %s (student=%s, course=%s)",
        request_id,
        params.admin_id,
        student_id,
        course_id,
    )
    tx.emit(
        EventTypes.Request.APPROVED,
        {
            "request_id": request_id,
            "student_id": student_id,
            "course_id": course_id,
            "enrollment_id": outcome.enrollment_id,
            "qbank_enrolled": outcome.qbank_enrolled,
            "request_deleted": deleted,
        },
        actor_id=params.admin_id,
    )
    return ApprovalOutcome(
        approved=True,
        enrollment_created=True,
        qbank_enrolled=outcome.qbank_enrolled,
        enrollment_id=outcome.enrollment_id,
    )


async def reject_request(tx: UnitOfWork, params: RequestActionParams) -> RejectionOutcome:
    """Reject a pending request.

    Raises:
        RequestNotFoundError: If the request does not exist.
        InvalidStateError: If the request is no longer pending.
    """
    request = await _get_pending_for_review(tx, params.request_id)
    request_id, student_id, course_id = request.id, request.student_id, request.course_id

    if not await mark_request_processed(
        tx, request_id, RequestStatus.REJECTED, params.admin_id, note=params.reason
    ):
        raise InvalidStateError("Request is no longer pending")

    deleted = await discard_processed_request(tx, request_id)

    logger.info("Request %s rejected by admin %s", request_id, params.admin_id)
    tx.emit(
        EventTypes.Request.REJECTED,
        {
            "request_id": request_id,
            "student_id": student_id,
            "course_id": course_id,
            "reason": params.reason,
            "request_deleted": deleted,
        },
        actor_id=params.admin_id,
    )
    return RejectionOutcome(rejected=True)


async def repair_stuck_requests(tx: UnitOfWork, _params: None = None) -> StuckRequestRepairReport:
    """Fix pending requests that carry a review stamp.

    A stuck request whose student is enrolled is marked approved. Otherwise
    its review stamp is cleared so it returns to the review queue.
    """
    session = tx.session
    result = await session.execute(
        select(AccessRequest.id, AccessRequest.student_id, AccessRequest.course_id)
        .where(
            AccessRequest.status == RequestStatus.PENDING.value,
            AccessRequest.reviewed_at.is_not(None),
        )
        .order_by(AccessRequest.id)
        .with_for_update()
    )
    stuck = result.all()
    report = StuckRequestRepairReport()

    for request_id, student_id, course_id in stuck:
        enrollment = await get_enrollment(session, student_id, course_id)
        record = await get_progress_record(session, student_id, course_id)

        if is_enrolled(enrollment, record):
            values = {"status": RequestStatus.APPROVED.value}
            report.marked_approved += 1
            action = "approved"
        else:
            values = {"reviewed_at": None, "reviewed_by": None}
            report.returned_to_queue += 1
            action = "returned_to_queue"

        await session.execute(
            update(AccessRequest).where(AccessRequest.id == request_id).values(**values)
        )
        if action == "approved":
            await discard_processed_request(tx, request_id)

        report.request_ids.append(request_id)
        tx.emit(
            EventTypes.Request.REPAIRED,
            {
                "request_id": request_id,
                "student_id": student_id,
                "course_id": course_id,
                "action": action,
            },
        )

    if stuck:
        logger.warning(
            "Repaired %d stuck request(s): %d approved, %d returned to queue",
            len(stuck),
            report.marked_approved,
            report.returned_to_queue,
        )
    return report
