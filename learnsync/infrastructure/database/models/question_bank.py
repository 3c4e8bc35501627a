# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Question banks and their per-student enrollments."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from learnsync.infrastructure.database.models.base import Base
from learnsync.utils.datetime import utc_now

QBANK_ENROLLMENT_UNIQUE_CONSTRAINT = "uq_qbank_enrollments_student_qbank"


class QuestionBank(Base):
    """Practice-question pool, optionally linked to a course."""

    __tablename__ = "question_banks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="published")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )


class QuestionBankEnrollment(Base):
    """A student's access to a question bank and their aggregated test stats."""

    __tablename__ = "qbank_enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "qbank_id", name=QBANK_ENROLLMENT_UNIQUE_CONSTRAINT),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    qbank_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("question_banks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    last_accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    questions_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    questions_correct: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_time_spent_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tests_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tutorial_tests_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timed_tests_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assessment_tests_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    highest_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    lowest_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    readiness_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
