# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classification of database exceptions by SQLSTATE and exception type.

The executor decides whether to retry an operation from what these helpers
report. Messages are never inspected for that decision: a duplicate-key
violation must not be mistaken for a transient failure.

SQLSTATE references (PostgreSQL):
    08xxx  connection exceptions
    23xxx  integrity constraint violations
    40001  serialization_failure
    40P01  deadlock_detected
    55P03  lock_not_available
    57014  query_canceled (statement_timeout)
    57P01  admin_shutdown
    57P02  crash_shutdown
    57P03  cannot_connect_now

SQLite reports no SQLSTATE. Its primary result codes SQLITE_BUSY (5) and
SQLITE_LOCKED (6) mean another connection holds the lock.
"""

from sqlalchemy import exc as sa_exc

TRANSIENT_SQLSTATES = frozenset(
    {"40001", "40P01", "55P03", "57014", "57P01", "57P02", "57P03"}
)
TRANSIENT_SQLSTATE_CLASSES = ("08",)
INTEGRITY_SQLSTATE_CLASS = "23"
UNIQUE_VIOLATION = "23505"
SQLITE_BUSY = 5
SQLITE_LOCKED = 6


def _error_chain(error: BaseException):
    """Yield the error, its DBAPI original and their causes."""
    seen: set[int] = set()
    pending: list[BaseException | None] = [error]
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.append(getattr(current, "orig", None))
        pending.append(current.__cause__)


def get_sqlstate(error: BaseException) -> str | None:
    """Extract the SQLSTATE code from a driver or SQLAlchemy error.

    asyncpg exposes it as ``sqlstate``, psycopg as ``pgcode``.
    """
    for candidate in _error_chain(error):
        for attr in ("sqlstate", "pgcode"):
            code = getattr(candidate, attr, None)
            if isinstance(code, str) and code:
                return code
    return None


def get_sqlite_errorcode(error: BaseException) -> int | None:
    """Extract the primary SQLite result code, when the driver is sqlite3."""
    for candidate in _error_chain(error):
        code = getattr(candidate, "sqlite_errorcode", None)
        if isinstance(code, int):
            # Extended codes carry the primary code in the low byte.
            return code & 0xFF
    return None


def get_constraint_name(error: BaseException) -> str | None:
    """Return the name of the violated constraint, when the driver reports it."""
    for candidate in _error_chain(error):
        name = getattr(candidate, "constraint_name", None)
        if isinstance(name, str) and name:
            return name
        diag = getattr(candidate, "diag", None)
        name = getattr(diag, "constraint_name", None)
        if isinstance(name, str) and name:
            return name
    return None


def is_constraint_violation(error: BaseException) -> bool:
    """Check whether the error is an integrity constraint violation."""
    if isinstance(error, sa_exc.IntegrityError):
        return True
    sqlstate = get_sqlstate(error)
    return sqlstate is not None and sqlstate.startswith(INTEGRITY_SQLSTATE_CLASS)


def is_transient_error(error: BaseException) -> bool:
    """Check whether retrying the whole transaction may succeed.

    Transient: serialization and deadlock conflicts, lock and statement
    timeouts, SQLite busy and locked databases, server shutdowns, dropped
    or invalidated connections, pool checkout timeouts.
    """
    if is_constraint_violation(error):
        return False

    sqlstate = get_sqlstate(error)
    if sqlstate is not None:
        if sqlstate in TRANSIENT_SQLSTATES:
            return True
        if sqlstate.startswith(TRANSIENT_SQLSTATE_CLASSES):
            return True

    if get_sqlite_errorcode(error) in (SQLITE_BUSY, SQLITE_LOCKED):
        return True

    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return True

    if isinstance(error, (sa_exc.TimeoutError, sa_exc.DisconnectionError)):
        return True

    return isinstance(error, (TimeoutError, ConnectionError))
