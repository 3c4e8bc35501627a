# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Failure classification for the operation executor.

Retry decisions come from SQLSTATE codes and exception types only (see
``learnsync.infrastructure.database.errors``). Constraint violations are
mapped back to the validation vocabulary so a race lost at commit reads the
same to callers as one caught by a validator.
"""

import re

from learnsync.domains.data_manager.exceptions import DataManagerError
from learnsync.infrastructure.database.errors import (
    get_constraint_name,
    get_sqlstate,
    is_constraint_violation,
    is_transient_error,
)
from learnsync.infrastructure.database.models import (
    ENROLLMENT_UNIQUE_CONSTRAINT,
    PENDING_REQUEST_UNIQUE_INDEX,
    PROGRESS_UNIQUE_CONSTRAINT,
)
from learnsync.models.results import ErrorCategory, ErrorKind

FOREIGN_KEY_VIOLATION = "23503"

CONSTRAINT_KINDS: dict[str, ErrorKind] = {
    ENROLLMENT_UNIQUE_CONSTRAINT: ErrorKind.ALREADY_ENROLLED,
    PROGRESS_UNIQUE_CONSTRAINT: ErrorKind.ALREADY_ENROLLED,
    PENDING_REQUEST_UNIQUE_INDEX: ErrorKind.DUPLICATE_REQUEST,
}

# Used when the driver does not report a constraint name (SQLite).
TABLE_KINDS: dict[str, ErrorKind] = {
    "enrollments": ErrorKind.ALREADY_ENROLLED,
    "student_progress": ErrorKind.ALREADY_ENROLLED,
    "access_requests": ErrorKind.DUPLICATE_REQUEST,
}

_SQLITE_UNIQUE_TABLE = re.compile(r"UNIQUE constraint failed: (\w+)\.")

KIND_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.ALREADY_ENROLLED: "Student is already enrolled in this course",
    ErrorKind.DUPLICATE_REQUEST: "A pending request for this course already exists",
    ErrorKind.NOT_FOUND: "Referenced student or course does not exist",
    ErrorKind.OPERATION_FAILED: "The operation could not be completed, please try again",
}


def classify_error(error: BaseException) -> ErrorCategory:
    """Assign a failure raised inside a transaction to an ErrorCategory."""
    if isinstance(error, DataManagerError):
        return ErrorCategory.VALIDATION
    if is_constraint_violation(error):
        return ErrorCategory.CONSTRAINT
    if is_transient_error(error):
        return ErrorCategory.TRANSIENT
    return ErrorCategory.INTERNAL


def map_constraint_violation(error: BaseException) -> ErrorKind:
    """Translate a constraint violation into the matching ErrorKind.

    Unknown constraints map to OPERATION_FAILED.
    """
    name = get_constraint_name(error)
    if name in CONSTRAINT_KINDS:
        return CONSTRAINT_KINDS[name]

    if get_sqlstate(error) == FOREIGN_KEY_VIOLATION:
        return ErrorKind.NOT_FOUND

    match = _SQLITE_UNIQUE_TABLE.search(str(getattr(error, "orig", error)))
    if match and match.group(1) in TABLE_KINDS:
        return TABLE_KINDS[match.group(1)]

    return ErrorKind.OPERATION_FAILED
