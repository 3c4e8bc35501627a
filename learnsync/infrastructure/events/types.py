# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event type definitions for LearnSync.

Every event carries ``student_id`` and ``course_id`` in its payload, so
subscribers can correlate enrollment and request events for a pair.
"""


class EventTypes:
    """All event types organized by domain."""

    class Enrollment:
        """Course enrollment events."""

        CREATED = "enrollment.created"
        REMOVED = "enrollment.removed"
        SYNCED = "enrollment.synced"

    class Request:
        """Access request events."""

        CREATED = "request.created"
        APPROVED = "request.approved"
        REJECTED = "request.rejected"
        REPAIRED = "request.repaired"

    class Progress:
        """Course progress events."""

        UPDATED = "progress.updated"


class EventPatterns:
    """Wildcard patterns for subscribing to groups of events."""

    ALL_ENROLLMENT = "enrollment.*"
    ALL_REQUEST = "request.*"
    ALL_PROGRESS = "progress.*"
    ALL = "*"
