# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parameter and outcome models for enrollment operations."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class EnrollmentSource(str, Enum):
    """What caused an enrollment."""

    MANUAL = "manual"
    REQUEST_APPROVAL = "request_approval"
    SYNC = "sync"


class SyncSource(str, Enum):
    """Table treated as the source of truth by a sync."""

    ENROLLMENTS = "enrollments"
    STUDENT_PROGRESS = "student_progress"
    BOTH = "both"


class EnrollmentParams(BaseModel):
    """Input for enroll_student."""

    student_id: int
    course_id: int
    source: EnrollmentSource = EnrollmentSource.MANUAL
    admin_id: int | None = None


class EnrollmentOutcome(BaseModel):
    """Rows written by enroll_student.

    ``qbank_enrolled`` is False when the course has no published question
    bank or the best-effort question bank enrollment failed.
    """

    enrollment_id: int
    progress_record_id: int
    progress: int = 0
    qbank_enrolled: bool = False
    qbank_id: int | None = None


class UnenrollmentParams(BaseModel):
    """Input for unenroll_student."""

    user_id: int
    course_id: int
    admin_id: int | None = None
    reason: str | None = None


class UnenrollmentOutcome(BaseModel):
    deleted: bool


class SyncParams(BaseModel):
    """Pair to reconcile."""

    user_id: int
    course_id: int


class SyncResult(BaseModel):
    """What sync_enrollment_state found and changed for one pair.

    Attributes:
        source: Table whose values were kept.
        corrected: True when any row was created or updated.
        diverged: True when the tables disagreed before the sync.
        progress: Progress both tables now hold.
    """

    user_id: int
    course_id: int
    source: SyncSource
    corrected: bool = False
    diverged: bool = False
    enrollment_created: bool = False
    progress_record_created: bool = False
    enrollment_updated: bool = False
    progress_record_updated: bool = False
    progress: int = 0


class ProgressUpdateParams(BaseModel):
    """Input for update_progress. Values outside 0-100 are clamped."""

    user_id: int
    course_id: int
    progress: float
    completed_chapters: list[int] | None = None


class ProgressUpdateOutcome(BaseModel):
    progress: int
    previous_progress: int
    completed: bool = False
    enrollment_created: bool = False


class QBankEnrollResult(BaseModel):
    """Result of the best-effort question bank enrollment.

    Attributes:
        enrolled: Student has access to the course's question bank.
        qbank_id: The question bank, when one was found.
        created: A new qbank_enrollments row was written.
        error: Failure description when the step was swallowed.
    """

    enrolled: bool = False
    qbank_id: int | None = None
    created: bool = False
    error: str | None = None


class EnrollmentVerification(BaseModel):
    """Presence of a pair in each enrollment table."""

    user_id: int
    course_id: int
    in_enrollments: bool
    in_student_progress: bool
    enrollment_status: str | None = None

    @property
    def consistent(self) -> bool:
        return self.in_enrollments == self.in_student_progress

    @property
    def enrolled(self) -> bool:
        return self.in_enrollments and self.in_student_progress


class CourseAccessState(str, Enum):
    ENROLLED = "enrolled"
    REQUESTED = "requested"
    AVAILABLE = "available"


class CourseEnrollmentState(BaseModel):
    """A student's relation to one course, merged across both tables."""

    course_id: int
    title: str
    state: CourseAccessState
    progress: int = 0
    enrolled_at: datetime | None = None
    requested_at: datetime | None = None
    request_id: int | None = Field(default=None)


class EnrollStudentRequest(BaseModel):
    """Body of POST /enrollments."""

    student_id: int = Field(gt=0)
    course_id: int = Field(gt=0)


class ProgressUpdateRequest(BaseModel):
    """Body of PUT /enrollments/{user_id}/{course_id}/progress."""

    progress: float
    completed_chapters: list[int] | None = None
