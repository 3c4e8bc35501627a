# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Translation of operation results to HTTP responses."""

from typing import TypeVar

from fastapi import HTTPException, status

from learnsync.models.results import ErrorKind, OperationResult

T = TypeVar("T")

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_ENROLLED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_ENROLLED: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_REQUEST: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.OPERATION_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def unwrap_result(result: OperationResult[T]) -> T:
    """Return the operation's data, or raise the matching HTTPException.

    The error body carries the machine-readable kind so clients can branch
    on it without parsing the message.
    """
    if result.success:
        return result.data

    kind = result.error or ErrorKind.OPERATION_FAILED
    detail = {"error": kind.value, "message": result.message}
    if result.details:
        detail["details"] = result.details
    raise HTTPException(
        status_code=ERROR_STATUS.get(kind, status.HTTP_503_SERVICE_UNAVAILABLE),
        detail=detail,
    )
