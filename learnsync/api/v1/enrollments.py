# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API endpoints.

This module provides endpoints for the dual-table enrollment state:
- POST / - Enroll a student (admin)
- DELETE /{user_id}/{course_id} - Unenroll a student (admin)
- POST /{user_id}/{course_id}/sync - Reconcile both tables for a pair (admin)
- PUT /{user_id}/{course_id}/progress - Record course progress
- GET /students/{student_id}/state - Merged course list for a student

Students may only update and read their own progress.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.api.dependencies import (
    ensure_can_act_for,
    get_db,
    get_manager,
    require_admin,
    require_auth,
)
from learnsync.api.middleware.auth import CurrentUser
from learnsync.api.v1.responses import unwrap_result
from learnsync.domains.data_manager import (
    DataManager,
    enroll_student,
    get_student_enrollment_state,
    sync_enrollment_state,
    unenroll_student,
    update_progress,
)
from learnsync.models.enrollment import (
    CourseEnrollmentState,
    EnrollmentOutcome,
    EnrollmentParams,
    EnrollmentSource,
    EnrollStudentRequest,
    ProgressUpdateOutcome,
    ProgressUpdateParams,
    ProgressUpdateRequest,
    SyncResult,
    UnenrollmentOutcome,
    UnenrollmentParams,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=EnrollmentOutcome,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a student in a course",
)
async def enroll(
    body: EnrollStudentRequest,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    manager: Annotated[DataManager, Depends(get_manager)],
) -> EnrollmentOutcome:
    """Write the student into both enrollment tables and the course question bank."""
    result = await enroll_student(
        EnrollmentParams(
            student_id=body.student_id,
            course_id=body.course_id,
            source=EnrollmentSource.MANUAL,
            admin_id=current_user.id,
        ),
        manager=manager,
    )
    return unwrap_result(result)


@router.delete(
    "/{user_id}/{course_id}",
    response_model=UnenrollmentOutcome,
    summary="Unenroll a student from a course",
)
async def unenroll(
    user_id: int,
    course_id: int,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    manager: Annotated[DataManager, Depends(get_manager)],
    reason: Annotated[str | None, Query(max_length=2000)] = None,
) -> UnenrollmentOutcome:
    result = await unenroll_student(
        UnenrollmentParams(
            user_id=user_id,
            course_id=course_id,
            admin_id=current_user.id,
            reason=reason,
        ),
        manager=manager,
    )
    return unwrap_result(result)


@router.post(
    "/{user_id}/{course_id}/sync",
    response_model=SyncResult,
    summary="Reconcile both enrollment tables for one pair",
)
async def sync(
    user_id: int,
    course_id: int,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    manager: Annotated[DataManager, Depends(get_manager)],
) -> SyncResult:
    result = await sync_enrollment_state(user_id, course_id, manager=manager)
    return unwrap_result(result)


@router.put(
    "/{user_id}/{course_id}/progress",
    response_model=ProgressUpdateOutcome,
    summary="Record course progress",
)
async def put_progress(
    user_id: int,
    course_id: int,
    body: ProgressUpdateRequest,
    current_user: Annotated[CurrentUser, Depends(require_auth)],
    manager: Annotated[DataManager, Depends(get_manager)],
) -> ProgressUpdateOutcome:
    """Write progress to both tables. Values are clamped to 0-100."""
    ensure_can_act_for(current_user, user_id)
    result = await update_progress(
        ProgressUpdateParams(
            user_id=user_id,
            course_id=course_id,
            progress=body.progress,
            completed_chapters=body.completed_chapters,
        ),
        manager=manager,
    )
    return unwrap_result(result)


@router.get(
    "/students/{student_id}/state",
    response_model=list[CourseEnrollmentState],
    summary="Get a student's merged course state",
)
async def student_state(
    student_id: int,
    current_user: Annotated[CurrentUser, Depends(require_auth)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[CourseEnrollmentState]:
    ensure_can_act_for(current_user, student_id)
    return await get_student_enrollment_state(db, student_id)
