# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the data manager operation executor."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from learnsync.core.config.settings import DataManagerSettings, Settings
from learnsync.domains.data_manager.core import DataManager, UnitOfWork
from learnsync.domains.data_manager.exceptions import NotEnrolledError
from learnsync.infrastructure.events import EventBus
from learnsync.models.results import ErrorKind, ValidationResult


class DriverError(Exception):
    """Stand-in for an asyncpg error carrying SQLSTATE details."""

    def __init__(self, message: str, sqlstate: str, constraint_name: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate
        self.constraint_name = constraint_name


def serialization_failure() -> OperationalError:
    return OperationalError(
        "UPDATE access_requests SET status=$1",
        {},
        DriverError("could not serialize access", "40001"),
    )


def duplicate_enrollment() -> IntegrityError:
    return IntegrityError(
        "INSERT INTO enrollments",
        {},
        DriverError(
            "duplicate key value violates unique constraint",
            "23505",
            constraint_name="uq_enrollments_user_course",
        ),
    )


class FakeDatabase:
    """Sessionmaker double that records transaction boundaries."""

    def __init__(self) -> None:
        self.log: list[str] = []
        self.sessions_opened = 0
        self.session = AsyncMock()
        self.session.add = MagicMock()
        self.session.begin = MagicMock(side_effect=self._begin)

    @asynccontextmanager
    async def _begin(self):
        self.log.append("begin")
        try:
            yield
        except BaseException:
            self.log.append("rollback")
            raise
        self.log.append("commit")

    @asynccontextmanager
    async def _open(self):
        self.sessions_opened += 1
        yield self.session

    def __call__(self):
        return self._open()


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


def make_manager(
    database: FakeDatabase,
    event_bus: EventBus,
    sleep: AsyncMock,
    debug: bool = True,
    **overrides,
) -> DataManager:
    dm_settings = DataManagerSettings(
        max_retries=overrides.pop("max_retries", 3),
        retry_base_delay=overrides.pop("retry_base_delay", 0.1),
        retry_max_delay=overrides.pop("retry_max_delay", 2.0),
    )
    settings = Settings(environment="development", debug=debug, data_manager=dm_settings)
    return DataManager(database, settings=settings, event_bus=event_bus, sleep=sleep)


@pytest.fixture
def manager(database, event_bus, sleep) -> DataManager:
    return make_manager(database, event_bus, sleep)


class TestExecuteOperationSuccess:
    """Tests for committed operations."""

    @pytest.mark.asyncio
    async def test_returns_executor_data(self, manager: DataManager) -> None:
        """Test that the executor's return value is the result data."""

        async def executor(tx: UnitOfWork, params: dict) -> int:
            return params["value"] * 2

        result = await manager.execute_operation("double", {"value": 21}, executor=executor)

        assert result.success is True
        assert result.data == 42
        assert result.error is None
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_events_published_after_commit(
        self, manager: DataManager, database: FakeDatabase, event_bus: EventBus
    ) -> None:
        """Test that queued events reach subscribers only after commit."""

        async def on_event(event) -> None:
            database.log.append(f"event:{event.event_type}")

        event_bus.subscribe("enrollment.*", on_event)

        async def executor(tx: UnitOfWork, params: None) -> None:
            tx.emit("enrollment.created", {"student_id": 6, "course_id": 10}, actor_id=1)
            database.log.append("executor")

        result = await manager.execute_operation("enroll", None, executor=executor)

        assert result.success is True
        assert database.log == ["begin", "executor", "commit", "event:enrollment.created"]

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_fail_operation(
        self, database: FakeDatabase, sleep: AsyncMock
    ) -> None:
        """Test that a broken event bus is logged, not surfaced."""
        bus = MagicMock()
        bus.publish = AsyncMock(side_effect=RuntimeError("bus down"))
        manager = make_manager(database, bus, sleep)

        async def executor(tx: UnitOfWork, params: None) -> str:
            tx.emit("request.created", {"request_id": 1})
            return "done"

        result = await manager.execute_operation("create", None, executor=executor)

        assert result.success is True
        assert result.data == "done"
        bus.publish.assert_awaited_once()


class TestExecuteOperationValidation:
    """Tests for the validator step."""

    @pytest.mark.asyncio
    async def test_validation_failure_skips_transaction(
        self, manager: DataManager, database: FakeDatabase
    ) -> None:
        """Test that a failed validator stops before any transaction."""
        executor = AsyncMock()
        validator = AsyncMock(
            return_value=ValidationResult.fail(ErrorKind.ALREADY_ENROLLED, "Already enrolled")
        )

        result = await manager.execute_operation(
            "enroll", {"student_id": 6}, executor=executor, validator=validator
        )

        assert result.success is False
        assert result.error is ErrorKind.ALREADY_ENROLLED
        assert result.message == "Already enrolled"
        assert result.attempts == 0
        executor.assert_not_awaited()
        assert "begin" not in database.log
        assert database.sessions_opened == 1

    @pytest.mark.asyncio
    async def test_validator_receives_params(
        self, manager: DataManager, database: FakeDatabase
    ) -> None:
        """Test that the validator runs on its own session with the params."""
        validator = AsyncMock(return_value=ValidationResult.ok())

        async def executor(tx: UnitOfWork, params: dict) -> bool:
            return True

        params = {"student_id": 6}
        result = await manager.execute_operation(
            "enroll", params, executor=executor, validator=validator
        )

        assert result.success is True
        validator.assert_awaited_once_with(database.session, params)
        assert database.sessions_opened == 2

    @pytest.mark.asyncio
    async def test_validator_database_error_is_operation_failed(
        self, manager: DataManager
    ) -> None:
        """Test that a validator that cannot reach the database fails cleanly."""
        validator = AsyncMock(side_effect=serialization_failure())
        executor = AsyncMock()

        result = await manager.execute_operation(
            "enroll", None, executor=executor, validator=validator
        )

        assert result.success is False
        assert result.error is ErrorKind.OPERATION_FAILED
        assert result.attempts == 0
        executor.assert_not_awaited()


class TestExecuteOperationFailures:
    """Tests for failure classification and retries."""

    @pytest.mark.asyncio
    async def test_domain_error_is_not_retried(
        self, manager: DataManager, sleep: AsyncMock
    ) -> None:
        """Test that a DataManagerError surfaces its kind after one attempt."""
        executor = AsyncMock(side_effect=NotEnrolledError("Student is not enrolled"))

        result = await manager.execute_operation("unenroll", None, executor=executor)

        assert result.success is False
        assert result.error is ErrorKind.NOT_ENROLLED
        assert result.message == "Student is not enrolled"
        assert result.attempts == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unique_violation_is_not_retried(
        self, manager: DataManager, database: FakeDatabase, sleep: AsyncMock
    ) -> None:
        """Test that a duplicate key maps to ALREADY_ENROLLED without retry."""
        executor = AsyncMock(side_effect=duplicate_enrollment())

        result = await manager.execute_operation("enroll", None, executor=executor)

        assert result.success is False
        assert result.error is ErrorKind.ALREADY_ENROLLED
        assert result.attempts == 1
        assert executor.await_count == 1
        sleep.assert_not_awaited()
        assert database.log == ["begin", "rollback"]

    @pytest.mark.asyncio
    async def test_transient_error_is_retried_with_backoff(
        self, manager: DataManager, database: FakeDatabase, sleep: AsyncMock
    ) -> None:
        """Test that serialization failures restart the transaction."""
        executor = AsyncMock(side_effect=[serialization_failure(), serialization_failure(), "ok"])

        result = await manager.execute_operation("approve", None, executor=executor)

        assert result.success is True
        assert result.data == "ok"
        assert result.attempts == 3
        assert [c.args[0] for c in sleep.await_args_list] == [0.1, 0.2]
        assert database.log == [
            "begin", "rollback",
            "begin", "rollback",
            "begin", "commit",
        ]

    @pytest.mark.asyncio
    async def test_transient_error_exhausts_budget(
        self, database: FakeDatabase, event_bus: EventBus, sleep: AsyncMock
    ) -> None:
        """Test that attempts are bounded by 1 + max_retries."""
        manager = make_manager(database, event_bus, sleep, max_retries=2)
        executor = AsyncMock(side_effect=serialization_failure())

        result = await manager.execute_operation("approve", None, executor=executor)

        assert result.success is False
        assert result.error is ErrorKind.OPERATION_FAILED
        assert "please try again" in result.message
        assert result.attempts == 3
        assert executor.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_operation_fails_on_first_transient_error(
        self, manager: DataManager, sleep: AsyncMock
    ) -> None:
        """Test that retryable=False disables retries."""
        executor = AsyncMock(side_effect=serialization_failure())

        result = await manager.execute_operation(
            "reject", None, executor=executor, retryable=False
        )

        assert result.success is False
        assert result.error is ErrorKind.OPERATION_FAILED
        assert result.attempts == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_operation_failed(
        self, manager: DataManager, sleep: AsyncMock
    ) -> None:
        """Test that programming errors are not retried."""
        executor = AsyncMock(side_effect=KeyError("student_id"))

        result = await manager.execute_operation("enroll", None, executor=executor)

        assert result.error is ErrorKind.OPERATION_FAILED
        assert result.attempts == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rolled_back_attempt_publishes_nothing(
        self, manager: DataManager, event_bus: EventBus
    ) -> None:
        """Test that only events from the committed attempt are published."""
        received = []

        async def on_event(event) -> None:
            received.append(event.payload["attempt"])

        event_bus.subscribe("*", on_event)
        attempts = []

        async def executor(tx: UnitOfWork, params: None) -> None:
            attempts.append(len(attempts) + 1)
            tx.emit("request.approved", {"attempt": attempts[-1]})
            if len(attempts) == 1:
                raise serialization_failure()

        result = await manager.execute_operation("approve", None, executor=executor)

        assert result.success is True
        assert received == [2]

    @pytest.mark.asyncio
    async def test_failed_operation_publishes_nothing(
        self, manager: DataManager, event_bus: EventBus
    ) -> None:
        """Test that a domain error discards queued events."""
        received = []

        async def on_event(event) -> None:
            received.append(event)

        event_bus.subscribe("*", on_event)

        async def executor(tx: UnitOfWork, params: None) -> None:
            tx.emit("enrollment.removed", {"student_id": 6, "course_id": 10})
            raise NotEnrolledError("Student is not enrolled")

        await manager.execute_operation("unenroll", None, executor=executor)

        assert received == []


class TestErrorDetails:
    """Tests for debug-only error details."""

    @pytest.mark.asyncio
    async def test_details_included_in_debug(self, manager: DataManager) -> None:
        executor = AsyncMock(side_effect=KeyError("student_id"))

        result = await manager.execute_operation("enroll", None, executor=executor)

        assert result.details is not None
        assert "KeyError" in result.details

    @pytest.mark.asyncio
    async def test_details_hidden_outside_debug(
        self, database: FakeDatabase, event_bus: EventBus, sleep: AsyncMock
    ) -> None:
        manager = make_manager(database, event_bus, sleep, debug=False)
        executor = AsyncMock(side_effect=KeyError("student_id"))

        result = await manager.execute_operation("enroll", None, executor=executor)

        assert result.error is ErrorKind.OPERATION_FAILED
        assert result.details is None


class TestBackoff:
    """Tests for the retry delay schedule."""

    def test_delay_doubles_per_retry(self, manager: DataManager) -> None:
        assert [manager.backoff_delay(i) for i in range(4)] == [0.1, 0.2, 0.4, 0.8]

    def test_delay_is_capped(
        self, database: FakeDatabase, event_bus: EventBus, sleep: AsyncMock
    ) -> None:
        manager = make_manager(
            database, event_bus, sleep, retry_base_delay=0.5, retry_max_delay=1.0
        )

        assert [manager.backoff_delay(i) for i in range(3)] == [0.5, 1.0, 1.0]
