# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Default event subscribers.

Processed access requests may be deleted from storage (see
``DATA_MANAGER_RETAIN_PROCESSED_REQUESTS``), so the audit log written here
is the durable trail of who approved, rejected or changed what.
"""

from learnsync.infrastructure.events.bus import EventBus, EventData
from learnsync.infrastructure.events.types import EventPatterns
from learnsync.utils.logging import get_logger

audit_logger = get_logger("learnsync.audit")


async def audit_log_handler(event: EventData) -> None:
    """Write one structured audit line per domain event."""
    audit_logger.info(
        "domain_event",
        event_type=event.event_type,
        event_id=event.event_id,
        actor_id=event.actor_id,
        occurred_at=event.timestamp.isoformat(),
        **event.payload,
    )


def register_default_handlers(bus: EventBus) -> None:
    """Subscribe the audit logger to every event type.

    Safe to call more than once per bus.
    """
    bus.unsubscribe(EventPatterns.ALL, audit_log_handler)
    bus.subscribe(EventPatterns.ALL, audit_log_handler)
