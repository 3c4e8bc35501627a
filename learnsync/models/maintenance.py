# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reports produced by the consistency check and repair jobs."""

from pydantic import BaseModel, Field


class PairRef(BaseModel):
    """A (student, course) pair with the values found in each table."""

    user_id: int
    course_id: int
    enrollment_progress: int | None = None
    record_progress: int | None = None
    request_id: int | None = None


class InconsistencyReport(BaseModel):
    """Everything the dual-table and request invariants currently violate.

    Attributes:
        progress_only: Pairs with a progress record but no enrollment.
        enrollments_only: Pairs with an active enrollment but no progress record.
        progress_mismatch: Pairs present in both tables with different progress.
        approved_without_enrollment: Approved requests whose pair is not enrolled.
        pending_for_enrolled: Pending requests for pairs that are already enrolled.
        stuck_requests: Pending requests with reviewed_at set.
    """

    progress_only: list[PairRef] = Field(default_factory=list)
    enrollments_only: list[PairRef] = Field(default_factory=list)
    progress_mismatch: list[PairRef] = Field(default_factory=list)
    approved_without_enrollment: list[PairRef] = Field(default_factory=list)
    pending_for_enrolled: list[PairRef] = Field(default_factory=list)
    stuck_requests: list[PairRef] = Field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return (
            len(self.progress_only)
            + len(self.enrollments_only)
            + len(self.progress_mismatch)
            + len(self.approved_without_enrollment)
            + len(self.pending_for_enrolled)
            + len(self.stuck_requests)
        )

    @property
    def is_consistent(self) -> bool:
        return self.total_issues == 0


class RepairError(BaseModel):
    user_id: int
    course_id: int
    error: str
    message: str | None = None


class RepairReport(BaseModel):
    """Counts of rows fixed by repair_inconsistencies."""

    synced: int = 0
    enrolled_from_approved: int = 0
    closed_pending_requests: int = 0
    errors: list[RepairError] = Field(default_factory=list)


class StuckRequestRepairReport(BaseModel):
    """Counts of stuck requests fixed by repair_stuck_requests.

    Attributes:
        marked_approved: Stuck rows whose student was already enrolled.
        returned_to_queue: Stuck rows reset to an unreviewed pending state.
    """

    marked_approved: int = 0
    returned_to_queue: int = 0
    request_ids: list[int] = Field(default_factory=list)


class SyncCheckResponse(BaseModel):
    consistent: bool
    total_issues: int
    report: InconsistencyReport
