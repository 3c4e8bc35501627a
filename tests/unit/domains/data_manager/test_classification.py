# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database error classification."""

import sqlite3
from types import SimpleNamespace

import pytest
from sqlalchemy import exc as sa_exc

from learnsync.domains.data_manager.classification import (
    classify_error,
    map_constraint_violation,
)
from learnsync.domains.data_manager.exceptions import (
    AlreadyEnrolledError,
    DuplicateRequestError,
    RequestNotFoundError,
)
from learnsync.infrastructure.database.errors import (
    get_constraint_name,
    get_sqlstate,
    is_constraint_violation,
    is_transient_error,
)
from learnsync.models.results import ErrorCategory, ErrorKind


class AsyncpgLikeError(Exception):
    def __init__(self, sqlstate: str, constraint_name: str | None = None) -> None:
        super().__init__(f"driver error {sqlstate}")
        self.sqlstate = sqlstate
        self.constraint_name = constraint_name


class PsycopgLikeError(Exception):
    def __init__(self, pgcode: str, constraint_name: str | None = None) -> None:
        super().__init__(f"driver error {pgcode}")
        self.pgcode = pgcode
        self.diag = SimpleNamespace(constraint_name=constraint_name)


def wrap(orig: Exception, cls: type[sa_exc.DBAPIError] = sa_exc.OperationalError, **kwargs):
    return cls("SELECT 1", {}, orig, **kwargs)


class TestSqlstateExtraction:
    """Tests for reading SQLSTATE and constraint names."""

    def test_reads_asyncpg_sqlstate(self) -> None:
        assert get_sqlstate(wrap(AsyncpgLikeError("40P01"))) == "40P01"

    def test_reads_psycopg_pgcode(self) -> None:
        assert get_sqlstate(wrap(PsycopgLikeError("55P03"))) == "55P03"

    def test_follows_exception_cause(self) -> None:
        try:
            try:
                raise AsyncpgLikeError("40001")
            except AsyncpgLikeError as inner:
                raise RuntimeError("wrapped") from inner
        except RuntimeError as outer:
            assert get_sqlstate(outer) == "40001"

    def test_missing_sqlstate(self) -> None:
        assert get_sqlstate(ValueError("nope")) is None

    def test_constraint_name_from_diag(self) -> None:
        error = wrap(PsycopgLikeError("23505", "uq_access_requests_pending"), sa_exc.IntegrityError)

        assert get_constraint_name(error) == "uq_access_requests_pending"


class TestTransientErrors:
    """Tests for retry eligibility."""

    @pytest.mark.parametrize(
        "sqlstate",
        ["40001", "40P01", "55P03", "57014", "57P01", "08006", "08003"],
    )
    def test_transient_sqlstates(self, sqlstate: str) -> None:
        assert is_transient_error(wrap(AsyncpgLikeError(sqlstate))) is True

    @pytest.mark.parametrize("sqlstate", ["23505", "23503", "42P01", "22P02"])
    def test_non_transient_sqlstates(self, sqlstate: str) -> None:
        assert is_transient_error(wrap(AsyncpgLikeError(sqlstate))) is False

    def test_invalidated_connection_is_transient(self) -> None:
        error = wrap(Exception("connection reset"), connection_invalidated=True)

        assert is_transient_error(error) is True

    def test_pool_timeout_is_transient(self) -> None:
        assert is_transient_error(sa_exc.TimeoutError("QueuePool limit reached")) is True

    def test_builtin_network_errors_are_transient(self) -> None:
        assert is_transient_error(ConnectionResetError("reset by peer")) is True
        assert is_transient_error(TimeoutError()) is True

    @pytest.mark.parametrize("code", [5, 6, 517, 262])
    def test_sqlite_busy_and_locked_are_transient(self, code: int) -> None:
        orig = sqlite3.OperationalError("database is locked")
        orig.sqlite_errorcode = code

        assert is_transient_error(wrap(orig)) is True

    def test_sqlite_lock_message_without_code_is_not_transient(self) -> None:
        assert is_transient_error(wrap(sqlite3.OperationalError("database is locked"))) is False

    def test_other_sqlite_errors_are_not_transient(self) -> None:
        orig = sqlite3.OperationalError("no such table: enrollments")
        orig.sqlite_errorcode = 1

        assert is_transient_error(wrap(orig)) is False

    def test_message_text_is_not_consulted(self) -> None:
        """A duplicate key whose message mentions a timeout is still not transient."""
        error = wrap(
            AsyncpgLikeError("23505", "uq_enrollments_user_course"),
            sa_exc.IntegrityError,
        )
        error.args = ("duplicate key after lock timeout",)

        assert is_transient_error(error) is False

    def test_integrity_error_is_constraint_violation(self) -> None:
        error = wrap(sqlite3.IntegrityError("UNIQUE constraint failed"), sa_exc.IntegrityError)

        assert is_constraint_violation(error) is True
        assert is_transient_error(error) is False


class TestClassifyError:
    """Tests for executor failure categories."""

    def test_domain_error_is_validation(self) -> None:
        assert classify_error(AlreadyEnrolledError("enrolled")) is ErrorCategory.VALIDATION

    def test_unique_violation_is_constraint(self) -> None:
        error = wrap(AsyncpgLikeError("23505", "uq_enrollments_user_course"), sa_exc.IntegrityError)

        assert classify_error(error) is ErrorCategory.CONSTRAINT

    def test_deadlock_is_transient(self) -> None:
        assert classify_error(wrap(AsyncpgLikeError("40P01"))) is ErrorCategory.TRANSIENT

    def test_anything_else_is_internal(self) -> None:
        assert classify_error(AttributeError("oops")) is ErrorCategory.INTERNAL


class TestMapConstraintViolation:
    """Tests for mapping constraint violations to error kinds."""

    @pytest.mark.parametrize(
        ("constraint", "kind"),
        [
            ("uq_enrollments_user_course", ErrorKind.ALREADY_ENROLLED),
            ("uq_student_progress_student_course", ErrorKind.ALREADY_ENROLLED),
            ("uq_access_requests_pending", ErrorKind.DUPLICATE_REQUEST),
        ],
    )
    def test_known_constraints(self, constraint: str, kind: ErrorKind) -> None:
        error = wrap(AsyncpgLikeError("23505", constraint), sa_exc.IntegrityError)

        assert map_constraint_violation(error) is kind

    def test_foreign_key_violation_is_not_found(self) -> None:
        error = wrap(AsyncpgLikeError("23503", "fk_enrollments_user_id_users"), sa_exc.IntegrityError)

        assert map_constraint_violation(error) is ErrorKind.NOT_FOUND

    @pytest.mark.parametrize(
        ("message", "kind"),
        [
            (
                "UNIQUE constraint failed: enrollments.user_id, enrollments.course_id",
                ErrorKind.ALREADY_ENROLLED,
            ),
            (
                "UNIQUE constraint failed: access_requests.student_id, access_requests.course_id",
                ErrorKind.DUPLICATE_REQUEST,
            ),
        ],
    )
    def test_sqlite_unique_messages(self, message: str, kind: ErrorKind) -> None:
        error = wrap(sqlite3.IntegrityError(message), sa_exc.IntegrityError)

        assert map_constraint_violation(error) is kind

    def test_unknown_constraint_is_operation_failed(self) -> None:
        error = wrap(AsyncpgLikeError("23514", "ck_something"), sa_exc.IntegrityError)

        assert map_constraint_violation(error) is ErrorKind.OPERATION_FAILED


class TestDomainExceptions:
    """Tests for the kind carried by domain exceptions."""

    def test_request_not_found_is_not_found(self) -> None:
        error = RequestNotFoundError("Request not found")

        assert error.kind is ErrorKind.NOT_FOUND
        assert error.message == "Request not found"

    def test_duplicate_request_kind(self) -> None:
        assert DuplicateRequestError("dup").kind is ErrorKind.DUPLICATE_REQUEST
