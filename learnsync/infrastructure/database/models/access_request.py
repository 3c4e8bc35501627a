# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student access requests awaiting admin review."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from learnsync.infrastructure.database.models.base import Base
from learnsync.utils.datetime import utc_now

PENDING_REQUEST_UNIQUE_INDEX = "uq_access_requests_pending"


class RequestStatus(str, Enum):
    """Access request states.

    Transitions are one-way: pending -> approved or pending -> rejected.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AccessRequest(Base):
    """A student's request to join a course.

    At most one pending request may exist per (student, course); the
    partial unique index enforces it at the database level.

    Attributes:
        id: Serial primary key.
        student_id: Requesting student.
        course_id: Requested course.
        status: pending, approved or rejected.
        reason: Optional note from the student.
        requested_at: Creation time.
        reviewed_at: Review time. Never set while status is pending.
        reviewed_by: Reviewing admin.
        review_note: Optional note from the admin (rejection reason).
    """

    __tablename__ = "access_requests"
    __table_args__ = (
        Index(
            PENDING_REQUEST_UNIQUE_INDEX,
            "student_id",
            "course_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequestStatus.PENDING.value
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    review_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<AccessRequest(id={self.id}, status={self.status})>"
