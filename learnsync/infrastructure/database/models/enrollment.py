# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""The two tables that both record course enrollment.

``enrollments`` and ``student_progress`` evolved independently and each one
can claim that a student is in a course. The data manager writes both in the
same transaction and ``sync_enrollment_state`` reconciles them when they
drift apart.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from learnsync.infrastructure.database.models.base import Base
from learnsync.utils.datetime import utc_now

ENROLLMENT_UNIQUE_CONSTRAINT = "uq_enrollments_user_course"
PROGRESS_UNIQUE_CONSTRAINT = "uq_student_progress_student_course"


class EnrollmentStatus(str, Enum):
    """Enrollment row states."""

    ACTIVE = "active"
    COMPLETED = "completed"
    SUSPENDED = "suspended"


class Enrollment(Base):
    """Course enrollment (table A).

    Attributes:
        id: Serial primary key.
        user_id: Enrolled student.
        course_id: Course the student is enrolled in.
        status: active, completed or suspended.
        progress: Course progress, 0-100.
        enrolled_at: First enrollment time.
        updated_at: Last write time.
        completed_at: Set when progress reaches 100.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name=ENROLLMENT_UNIQUE_CONSTRAINT),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EnrollmentStatus.ACTIVE.value
    )
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, user_id={self.user_id}, "
            f"course_id={self.course_id}, status={self.status})>"
        )


class ProgressRecord(Base):
    """Student progress (table B).

    Attributes:
        id: Serial primary key.
        student_id: Student the record belongs to.
        course_id: Course being tracked.
        total_progress: Course progress, 0-100.
        completed_chapters: JSON array of completed chapter ids.
        last_accessed: Last time the student opened the course.
    """

    __tablename__ = "student_progress"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name=PROGRESS_UNIQUE_CONSTRAINT),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    total_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_chapters: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    last_accessed: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    def __repr__(self) -> str:
        return (
            f"<ProgressRecord(id={self.id}, student_id={self.student_id}, "
            f"course_id={self.course_id}, total_progress={self.total_progress})>"
        )
