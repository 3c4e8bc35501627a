# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Operation executor for enrollment and access request writes.

Every state change to the enrollment tables goes through
``DataManager.execute_operation``, which runs one logical operation as:

    validate (own read session)
      -> open transaction
      -> run operation (re-checks its invariants inside the transaction)
      -> commit
      -> publish queued domain events
      -> return OperationResult

Transient database failures restart the whole transaction with exponential
backoff. Validation failures, domain errors and constraint violations are
never retried. Events queued by an operation are published only after its
transaction committed; a rolled back attempt publishes nothing.

Example:
    manager = DataManager(sessionmaker, settings)
    result = await manager.execute_operation(
        "enroll_student",
        params,
        executor=operations.enroll_student,
        validator=validators.validate_enrollment,
    )
    if result.success:
        print(result.data.enrollment_id)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from learnsync.core.config.settings import DataManagerSettings, Settings, get_settings
from learnsync.domains.data_manager.classification import (
    KIND_MESSAGES,
    classify_error,
    map_constraint_violation,
)
from learnsync.domains.data_manager.exceptions import DataManagerError
from learnsync.infrastructure.events import EventBus, get_event_bus
from learnsync.models.results import (
    ErrorCategory,
    ErrorKind,
    OperationResult,
    ValidationResult,
)
from learnsync.utils.logging import log_context

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass
class PendingEvent:
    """Domain event queued inside a transaction, published after commit."""

    event_type: str
    payload: dict[str, Any]
    actor_id: int | None = None


@dataclass
class UnitOfWork:
    """Transaction handle passed to operations.

    Attributes:
        session: Session with an open transaction. Operations must not
            commit or roll it back themselves.
        settings: Data manager settings (request retention policy).
        events: Events to publish once the transaction commits.
    """

    session: AsyncSession
    settings: DataManagerSettings
    events: list[PendingEvent] = field(default_factory=list)

    def emit(
        self,
        event_type: str,
        payload: dict[str, Any],
        actor_id: int | None = None,
    ) -> None:
        """Queue a domain event for publication after commit."""
        self.events.append(PendingEvent(event_type, payload, actor_id))


Validator = Callable[[AsyncSession, P], Awaitable[ValidationResult]]
OperationExecutor = Callable[[UnitOfWork, P], Awaitable[T]]


class DataManager:
    """Runs enrollment operations transactionally with retries.

    Attributes:
        settings: Executor settings (retry budget and backoff).
        debug: Attach internal error details to failed results.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
        event_bus: EventBus | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the data manager.

        Args:
            sessionmaker: Factory for database sessions.
            settings: Application settings. Defaults to get_settings().
            event_bus: Bus for post-commit events. Defaults to the
                process-wide bus.
            sleep: Awaitable used for backoff delays.
        """
        app_settings = settings or get_settings()
        self._sessionmaker = sessionmaker
        self._event_bus = event_bus
        self._sleep = sleep
        self.settings = app_settings.data_manager
        self.debug = app_settings.debug

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus or get_event_bus()

    @asynccontextmanager
    async def read_session(self) -> AsyncIterator[AsyncSession]:
        """Open a session for read-only checks outside any operation."""
        async with self._sessionmaker() as session:
            yield session

    def backoff_delay(self, retry_index: int) -> float:
        """Delay before retry number ``retry_index`` (0-based), in seconds."""
        delay = self.settings.retry_base_delay * (2**retry_index)
        return min(delay, self.settings.retry_max_delay)

    async def execute_operation(
        self,
        operation_type: str,
        params: P,
        executor: OperationExecutor[P, T],
        validator: Validator[P] | None = None,
        retryable: bool = True,
        max_retries: int | None = None,
    ) -> OperationResult[T]:
        """Validate, run and commit one logical operation.

        Args:
            operation_type: Operation name used in logs.
            params: Operation parameters, passed to validator and executor.
            executor: Operation run inside the transaction.
            validator: Read-only precondition check run before the
                transaction is opened.
            retryable: Retry transient failures.
            max_retries: Retry budget. Defaults to settings.max_retries.

        Returns:
            OperationResult with the executor's return value on success.
        """
        with log_context(operation=operation_type):
            return await self._execute(
                operation_type, params, executor, validator, retryable, max_retries
            )

    async def _execute(
        self,
        operation_type: str,
        params: P,
        executor: OperationExecutor[P, T],
        validator: Validator[P] | None,
        retryable: bool,
        max_retries: int | None,
    ) -> OperationResult[T]:
        if validator is not None:
            try:
                async with self.read_session() as session:
                    validation = await validator(session, params)
            except (SQLAlchemyError, OSError) as e:
                logger.error("%s validation could not run: %s", operation_type, str(e))
                return self._failure(ErrorKind.OPERATION_FAILED, e, attempts=0)

            if not validation.valid:
                logger.info(
                    "%s rejected by validation: %s (%s)",
                    operation_type,
                    validation.reason.value if validation.reason else None,
                    validation.message,
                )
                return OperationResult.fail(
                    validation.reason or ErrorKind.OPERATION_FAILED,
                    validation.message or "Validation failed",
                )

        budget = self.settings.max_retries if max_retries is None else max_retries
        attempt = 0

        while True:
            attempt += 1
            try:
                with log_context(attempt=attempt):
                    async with self._sessionmaker() as session:
                        async with session.begin():
                            tx = UnitOfWork(session=session, settings=self.settings)
                            data = await executor(tx, params)
            except DataManagerError as e:
                logger.info(
                    "%s failed inside transaction: %s (%s)",
                    operation_type,
                    e.kind.value,
                    e.message,
                )
                return OperationResult.fail(e.kind, e.message, attempts=attempt)
            except Exception as e:
                category = classify_error(e)

                if category is ErrorCategory.CONSTRAINT:
                    kind = map_constraint_violation(e)
                    logger.info(
                        "%s hit constraint violation, reported as %s",
                        operation_type,
                        kind.value,
                    )
                    return self._failure(kind, e, attempts=attempt)

                if category is ErrorCategory.TRANSIENT and retryable and attempt <= budget:
                    delay = self.backoff_delay(attempt - 1)
                    logger.warning(
                        "%s transient failure on attempt %d, retrying in %.2fs: %s",
                        operation_type,
                        attempt,
                        delay,
                        str(e),
                    )
                    await self._sleep(delay)
                    continue

                logger.error(
                    "%s failed after %d attempt(s) (%s): %s",
                    operation_type,
                    attempt,
                    category.value,
                    str(e),
                    exc_info=category is ErrorCategory.INTERNAL,
                )
                return self._failure(ErrorKind.OPERATION_FAILED, e, attempts=attempt)

            break

        logger.debug("%s committed on attempt %d", operation_type, attempt)
        await self._publish_events(tx.events)
        return OperationResult.ok(data, attempts=attempt)

    def _failure(
        self,
        kind: ErrorKind,
        error: BaseException,
        attempts: int,
    ) -> OperationResult[Any]:
        details = f"{type(error).__name__}: {error}" if self.debug else None
        return OperationResult.fail(
            kind,
            KIND_MESSAGES.get(kind, KIND_MESSAGES[ErrorKind.OPERATION_FAILED]),
            details=details,
            attempts=attempts,
        )

    async def _publish_events(self, events: list[PendingEvent]) -> None:
        bus = self.event_bus
        for pending in events:
            try:
                await bus.publish(pending.event_type, pending.payload, actor_id=pending.actor_id)
            except Exception as e:
                logger.error(
                    "Failed to publish %s after commit: %s",
                    pending.event_type,
                    str(e),
                    exc_info=True,
                )


_data_manager: DataManager | None = None


def init_data_manager(
    sessionmaker: async_sessionmaker[AsyncSession],
    settings: Settings | None = None,
    event_bus: EventBus | None = None,
) -> DataManager:
    """Create the process-wide data manager.

    Called from the application lifespan once the database is initialized.
    """
    global _data_manager
    _data_manager = DataManager(sessionmaker, settings=settings, event_bus=event_bus)
    return _data_manager


def get_data_manager() -> DataManager:
    """Get the process-wide data manager.

    Falls back to the initialized database sessionmaker when
    init_data_manager() has not been called.

    Raises:
        DatabaseError: If neither the data manager nor the database
            has been initialized.
    """
    global _data_manager
    if _data_manager is None:
        from learnsync.infrastructure.database.connection import get_sessionmaker

        _data_manager = DataManager(get_sessionmaker())
    return _data_manager


def reset_data_manager() -> None:
    """Reset the data manager singleton.

    Useful for testing to ensure clean state between tests.
    """
    global _data_manager
    _data_manager = None
