# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure for LearnSync.

Components:
- EventBus: In-memory pub/sub with pattern matching
- EventTypes: Event type constants
- register_default_handlers: Audit logging subscriber

Quick Start:
    from learnsync.infrastructure.events import get_event_bus, EventTypes

    bus = get_event_bus()
    bus.subscribe(EventTypes.Request.APPROVED, notify_student)
"""

from learnsync.infrastructure.events.bus import (
    EventBus,
    EventData,
    EventHandler,
    get_event_bus,
    reset_event_bus,
)
from learnsync.infrastructure.events.handlers import (
    audit_log_handler,
    register_default_handlers,
)
from learnsync.infrastructure.events.types import EventPatterns, EventTypes

__all__ = [
    # Event Bus
    "EventBus",
    "EventData",
    "EventHandler",
    "get_event_bus",
    "reset_event_bus",
    # Event Types
    "EventTypes",
    "EventPatterns",
    # Handlers
    "audit_log_handler",
    "register_default_handlers",
]
