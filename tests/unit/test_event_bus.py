# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the in-memory event bus."""

import pytest
from structlog.testing import capture_logs

from learnsync.infrastructure.events import (
    EventBus,
    EventPatterns,
    EventTypes,
    get_event_bus,
    register_default_handlers,
    reset_event_bus,
)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


class TestSubscriptions:
    """Tests for exact and pattern subscriptions."""

    @pytest.mark.asyncio
    async def test_exact_subscription(self, bus: EventBus) -> None:
        received = []

        async def handler(event) -> None:
            received.append(event)

        bus.subscribe(EventTypes.Request.APPROVED, handler)
        event = await bus.publish(
            EventTypes.Request.APPROVED,
            {"request_id": 3, "student_id": 6, "course_id": 10},
            actor_id=1,
        )

        assert received == [event]
        assert event.actor_id == 1
        assert event.payload["request_id"] == 3

    @pytest.mark.asyncio
    async def test_pattern_subscription(self, bus: EventBus) -> None:
        received = []

        async def handler(event) -> None:
            received.append(event.event_type)

        bus.subscribe(EventPatterns.ALL_ENROLLMENT, handler)
        await bus.publish(EventTypes.Enrollment.CREATED, {"student_id": 6, "course_id": 10})
        await bus.publish(EventTypes.Request.CREATED, {"student_id": 6, "course_id": 10})
        await bus.publish(EventTypes.Enrollment.SYNCED, {"student_id": 6, "course_id": 10})

        assert received == ["enrollment.created", "enrollment.synced"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, bus: EventBus) -> None:
        received = []

        async def handler(event) -> None:
            received.append(event)

        bus.subscribe(EventPatterns.ALL, handler)
        assert bus.unsubscribe(EventPatterns.ALL, handler) is True
        assert bus.unsubscribe(EventPatterns.ALL, handler) is False

        await bus.publish(EventTypes.Progress.UPDATED, {"student_id": 6, "course_id": 10})

        assert received == []

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_others(self, bus: EventBus) -> None:
        received = []

        async def broken(event) -> None:
            raise RuntimeError("subscriber bug")

        async def healthy(event) -> None:
            received.append(event.event_type)

        bus.subscribe(EventPatterns.ALL, broken)
        bus.subscribe(EventTypes.Enrollment.REMOVED, healthy)

        await bus.publish(EventTypes.Enrollment.REMOVED, {"student_id": 6, "course_id": 10})

        assert received == ["enrollment.removed"]


class TestEventData:
    """Tests for event serialization."""

    @pytest.mark.asyncio
    async def test_to_dict(self, bus: EventBus) -> None:
        event = await bus.publish(EventTypes.Request.CREATED, {"request_id": 1}, actor_id=6)

        data = event.to_dict()

        assert data["event_type"] == "request.created"
        assert data["actor_id"] == 6
        assert data["payload"] == {"request_id": 1}
        assert data["event_id"]
        assert data["timestamp"].endswith("+00:00")


class TestStatsAndSingleton:
    """Tests for stats, default handlers and the singleton."""

    @pytest.mark.asyncio
    async def test_stats(self, bus: EventBus) -> None:
        async def handler(event) -> None:
            pass

        bus.subscribe(EventTypes.Request.CREATED, handler)
        bus.subscribe(EventPatterns.ALL_REQUEST, handler)
        await bus.publish(EventTypes.Request.CREATED, {})

        stats = bus.get_stats()

        assert stats["total_handlers"] == 2
        assert stats["events_published"] == 1
        assert stats["event_types"] == ["request.created"]
        assert stats["patterns"] == ["request.*"]

    def test_default_handlers_registered_once(self, bus: EventBus) -> None:
        register_default_handlers(bus)
        register_default_handlers(bus)

        assert bus.get_stats()["total_handlers"] == 1

    @pytest.mark.asyncio
    async def test_audit_handler_logs_event(self, bus: EventBus) -> None:
        register_default_handlers(bus)

        with capture_logs() as logs:
            await bus.publish(
                EventTypes.Request.REJECTED,
                {"request_id": 4, "student_id": 6, "course_id": 10},
                actor_id=1,
            )

        assert len(logs) == 1
        assert logs[0]["event"] == "domain_event"
        assert logs[0]["event_type"] == "request.rejected"
        assert logs[0]["actor_id"] == 1
        assert logs[0]["request_id"] == 4

    def test_singleton_reset(self) -> None:
        first = get_event_bus()
        assert get_event_bus() is first

        reset_event_bus()

        assert get_event_bus() is not first
