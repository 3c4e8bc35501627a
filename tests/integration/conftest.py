# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for data manager integration tests.

Each test gets a fresh SQLite database file with a small seeded LMS:

    users:    1 admin, 6 and 7 students, 8 inactive student
    courses:  10 published (question bank 100)
              11 draft
              12 active, not requestable
              13 published, no question bank
"""

from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from learnsync.core.config.settings import DataManagerSettings, Settings
from learnsync.domains.data_manager import DataManager
from learnsync.infrastructure.database.connection import (
    build_engine,
    build_sessionmaker,
    create_schema,
)
from learnsync.infrastructure.database.models import (
    Course,
    CourseStatus,
    QuestionBank,
    User,
    UserRole,
)
from learnsync.infrastructure.events import EventBus, EventData, EventPatterns


def make_settings(retain_processed_requests: bool = True) -> Settings:
    return Settings(
        debug=True,
        data_manager=DataManagerSettings(
            max_retries=2,
            retry_base_delay=0,
            retry_max_delay=0,
            retain_processed_requests=retain_processed_requests,
        ),
    )


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a SQLite engine with every table created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'learnsync.db'}")
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def db_session(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding and assertions outside the data manager."""
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def published() -> list[EventData]:
    return []


@pytest.fixture
def event_bus(published: list[EventData]) -> EventBus:
    """Event bus recording every published event."""
    bus = EventBus()

    async def record(event: EventData) -> None:
        published.append(event)

    bus.subscribe(EventPatterns.ALL, record)
    return bus


@pytest.fixture
def manager(sessionmaker: async_sessionmaker[AsyncSession], event_bus: EventBus) -> DataManager:
    """Data manager retaining processed requests."""
    return DataManager(sessionmaker, settings=make_settings(), event_bus=event_bus)


@pytest.fixture
def delete_mode_manager(
    sessionmaker: async_sessionmaker[AsyncSession], event_bus: EventBus
) -> DataManager:
    """Data manager deleting processed requests."""
    return DataManager(
        sessionmaker,
        settings=make_settings(retain_processed_requests=False),
        event_bus=event_bus,
    )


@pytest_asyncio.fixture
async def lms(sessionmaker: async_sessionmaker[AsyncSession]) -> SimpleNamespace:
    """Seed users, courses and question banks."""
    async with sessionmaker() as session:
        async with session.begin():
            session.add_all(
                [
                    User(id=1, name="Admin", email="admin@lms.test", role=UserRole.ADMIN.value),
                    User(id=6, name="Student Six", email="six@lms.test"),
                    User(id=7, name="Student Seven", email="seven@lms.test"),
                    User(id=8, name="Former Student", email="former@lms.test", is_active=False),
                    Course(id=10, title="Anatomy", status=CourseStatus.PUBLISHED.value),
                    Course(id=11, title="Physiology", status=CourseStatus.DRAFT.value),
                    Course(
                        id=12,
                        title="Pathology",
                        status=CourseStatus.ACTIVE.value,
                        is_requestable=False,
                    ),
                    Course(id=13, title="Microbiology", status=CourseStatus.PUBLISHED.value),
                ]
            )
            await session.flush()
            session.add(QuestionBank(id=100, course_id=10, name="Anatomy QBank"))

    return SimpleNamespace(
        admin_id=1,
        student_id=6,
        other_student_id=7,
        inactive_student_id=8,
        course_id=10,
        qbank_id=100,
        draft_course_id=11,
        closed_course_id=12,
        plain_course_id=13,
    )
