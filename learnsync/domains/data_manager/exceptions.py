# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by data manager operations.

Operations raise these from inside the transaction when an in-transaction
re-check fails. The executor rolls back and turns them into an
OperationResult carrying ``kind``; they never reach helper callers.
"""

from learnsync.models.results import ErrorKind


class DataManagerError(Exception):
    """Base exception for data manager operations.

    Attributes:
        kind: ErrorKind reported to the caller.
        message: Human-readable error description.
    """

    kind: ErrorKind = ErrorKind.OPERATION_FAILED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AlreadyEnrolledError(DataManagerError):
    """Raised when the student is already enrolled in the course."""

    kind = ErrorKind.ALREADY_ENROLLED


class NotEnrolledError(DataManagerError):
    """Raised when neither enrollment table holds the pair."""

    kind = ErrorKind.NOT_ENROLLED


class DuplicateRequestError(DataManagerError):
    """Raised when a pending request already exists for the pair."""

    kind = ErrorKind.DUPLICATE_REQUEST


class InvalidStateError(DataManagerError):
    """Raised when a request has already been reviewed."""

    kind = ErrorKind.INVALID_STATE


class NotFoundError(DataManagerError):
    """Raised when a referenced row does not exist."""

    kind = ErrorKind.NOT_FOUND


class RequestNotFoundError(NotFoundError):
    """Raised when an access request is not found."""

    pass


class EnrollmentVerificationError(DataManagerError):
    """Raised when an enrollment write is not visible in both tables."""

    pass
