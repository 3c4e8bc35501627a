# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User and course tables.

Both are owned by the wider LMS; the enrollment engine only reads them to
validate operations.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from learnsync.infrastructure.database.models.base import Base
from learnsync.utils.datetime import utc_now


class UserRole(str, Enum):
    """Roles recognised by the enrollment engine."""

    STUDENT = "student"
    ADMIN = "admin"


class CourseStatus(str, Enum):
    """Course publication states."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ACTIVE = "active"
    ARCHIVED = "archived"


ENROLLABLE_COURSE_STATUSES = (CourseStatus.PUBLISHED.value, CourseStatus.ACTIVE.value)


class User(Base):
    """LMS account.

    Attributes:
        id: Serial primary key.
        name: Display name.
        email: Unique login email.
        role: "student" or "admin".
        is_active: Deactivated accounts cannot be enrolled.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.STUDENT.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"


class Course(Base):
    """Course catalogue entry.

    Attributes:
        id: Serial primary key.
        title: Course title.
        status: Publication state. Only published and active courses accept
            enrollments.
        is_requestable: Whether students may ask for access to the course.
    """

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CourseStatus.DRAFT.value)
    is_requestable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    @property
    def is_enrollable(self) -> bool:
        """Check whether the course currently accepts enrollments."""
        return self.status in ENROLLABLE_COURSE_STATUSES

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, status={self.status})>"
