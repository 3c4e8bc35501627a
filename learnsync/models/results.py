# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Result envelopes returned by validators and the operation executor.

Callers never receive exceptions from the data manager. Every helper
returns an ``OperationResult`` whose ``error`` is a stable machine-readable
``ErrorKind`` that routes can map to an HTTP status.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Machine-readable failure reasons."""

    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    NOT_ENROLLED = "NOT_ENROLLED"
    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    INVALID_STATE = "INVALID_STATE"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    OPERATION_FAILED = "OPERATION_FAILED"


class ErrorCategory(str, Enum):
    """How the executor treats a failure.

    - VALIDATION: precondition not met. Surfaced, never retried.
    - TRANSIENT: connection, deadlock or timeout. Retried within budget.
    - CONSTRAINT: unique or foreign-key violation at write time. Mapped
      back to a validation kind, never retried.
    - COLLABORATOR: optional side step failed. Reported as a flag only.
    - INTERNAL: anything else. Surfaced as OPERATION_FAILED.
    """

    VALIDATION = "validation"
    TRANSIENT = "transient"
    CONSTRAINT = "constraint"
    COLLABORATOR = "collaborator"
    INTERNAL = "internal"


class ValidationResult(BaseModel):
    """Outcome of a read-only precondition check."""

    valid: bool
    reason: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, reason: ErrorKind, message: str) -> "ValidationResult":
        return cls(valid=False, reason=reason, message=message)


class OperationResult(BaseModel, Generic[T]):
    """Discriminated result of one logical operation.

    Attributes:
        success: True when the operation committed.
        data: Operation outcome on success.
        error: Failure kind on failure.
        message: Human-readable failure message.
        details: Internal error detail. Only populated in debug mode.
        attempts: Number of transaction attempts made.
    """

    success: bool
    data: T | None = None
    error: ErrorKind | None = None
    message: str | None = None
    details: str | None = None
    attempts: int = Field(default=0, ge=0)

    @classmethod
    def ok(cls, data: Any, attempts: int = 1) -> "OperationResult[Any]":
        return cls(success=True, data=data, attempts=attempts)

    @classmethod
    def fail(
        cls,
        error: ErrorKind,
        message: str,
        details: str | None = None,
        attempts: int = 0,
    ) -> "OperationResult[Any]":
        return cls(
            success=False,
            error=error,
            message=message,
            details=details,
            attempts=attempts,
        )
