# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the LMS PostgreSQL database.

Example:
    from learnsync.infrastructure.database import init_database, get_session

    await init_database(settings)
    async with get_session() as session:
        result = await session.execute(select(Enrollment))
"""

from learnsync.infrastructure.database.connection import (
    DatabaseError,
    build_engine,
    build_sessionmaker,
    check_database_connection,
    close_database,
    create_schema,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from learnsync.infrastructure.database.errors import (
    get_constraint_name,
    get_sqlstate,
    is_constraint_violation,
    is_transient_error,
)

__all__ = [
    # Connection lifecycle
    "DatabaseError",
    "build_engine",
    "build_sessionmaker",
    "check_database_connection",
    "close_database",
    "create_schema",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    # Error classification
    "get_constraint_name",
    "get_sqlstate",
    "is_constraint_violation",
    "is_transient_error",
]
