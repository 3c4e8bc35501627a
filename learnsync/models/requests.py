# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parameter and outcome models for access request operations."""

from pydantic import BaseModel, Field


class RequestCreateParams(BaseModel):
    student_id: int
    course_id: int
    reason: str | None = Field(default=None, max_length=2000)


class RequestCreatedOutcome(BaseModel):
    request_id: int


class RequestActionParams(BaseModel):
    """Input for approve_request and reject_request.

    ``reason`` is only recorded on rejection.
    """

    request_id: int
    admin_id: int
    reason: str | None = Field(default=None, max_length=2000)


class ApprovalOutcome(BaseModel):
    approved: bool
    enrollment_created: bool
    qbank_enrolled: bool = False
    enrollment_id: int | None = None


class RejectionOutcome(BaseModel):
    rejected: bool


class AccessRequestCreateRequest(BaseModel):
    """Body of POST /requests.

    Students always file for themselves. Admins must name the student.
    """

    course_id: int = Field(gt=0)
    student_id: int | None = Field(default=None, gt=0)
    reason: str | None = Field(default=None, max_length=2000)


class ReviewRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)
