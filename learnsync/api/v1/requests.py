# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access request API endpoints.

This module provides the request/approval workflow:
- POST / - File an access request for a course
- POST /{request_id}/approve - Approve and enroll the student (admin)
- POST /{request_id}/reject - Reject the request (admin)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from learnsync.api.dependencies import get_manager, require_admin, require_auth
from learnsync.api.middleware.auth import CurrentUser
from learnsync.api.v1.responses import unwrap_result
from learnsync.domains.data_manager import (
    DataManager,
    approve_request,
    create_request,
    reject_request,
)
from learnsync.models.requests import (
    AccessRequestCreateRequest,
    ApprovalOutcome,
    RejectionOutcome,
    RequestActionParams,
    RequestCreatedOutcome,
    ReviewRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=RequestCreatedOutcome,
    status_code=status.HTTP_201_CREATED,
    summary="Request access to a course",
)
async def file_request(
    body: AccessRequestCreateRequest,
    current_user: Annotated[CurrentUser, Depends(require_auth)],
    manager: Annotated[DataManager, Depends(get_manager)],
) -> RequestCreatedOutcome:
    """File a pending request.

    Students file for themselves; a student_id in the body must match the
    caller. Admins file on behalf of the named student.
    """
    if current_user.is_admin:
        if body.student_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="student_id is required",
            )
        student_id = body.student_id
    else:
        if body.student_id is not None and body.student_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Students can only request access for themselves",
            )
        student_id = current_user.id

    result = await create_request(student_id, body.course_id, body.reason, manager=manager)
    return unwrap_result(result)


@router.post(
    "/{request_id}/approve",
    response_model=ApprovalOutcome,
    summary="Approve a pending request",
)
async def approve(
    request_id: int,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    manager: Annotated[DataManager, Depends(get_manager)],
) -> ApprovalOutcome:
    result = await approve_request(
        RequestActionParams(request_id=request_id, admin_id=current_user.id),
        manager=manager,
    )
    return unwrap_result(result)


@router.post(
    "/{request_id}/reject",
    response_model=RejectionOutcome,
    summary="Reject a pending request",
)
async def reject(
    request_id: int,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    manager: Annotated[DataManager, Depends(get_manager)],
    body: ReviewRequest | None = None,
) -> RejectionOutcome:
    result = await reject_request(
        RequestActionParams(
            request_id=request_id,
            admin_id=current_user.id,
            reason=body.reason if body else None,
        ),
        manager=manager,
    )
    return unwrap_result(result)
