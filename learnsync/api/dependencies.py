# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions for read-side queries
- Get the data manager that runs write operations
- Get the authenticated principal

Example:
    @router.post("/requests/{request_id}/approve")
    async def approve(
        request_id: int,
        manager: DataManager = Depends(get_manager),
        current_user: CurrentUser = Depends(require_admin),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from learnsync.api.middleware.auth import CurrentUser, get_current_user
from learnsync.core.config import get_settings
from learnsync.domains.data_manager import DataManager, get_data_manager, init_data_manager
from learnsync.infrastructure.database.connection import (
    close_database,
    get_session,
    get_sessionmaker,
    init_database,
)
from learnsync.infrastructure.events import get_event_bus, register_default_handlers

logger = logging.getLogger(__name__)


async def init_db() -> None:
    """Initialize the database pool and the data manager on top of it."""
    settings = get_settings()
    await init_database(settings)
    init_data_manager(get_sessionmaker(), settings=settings)
    register_default_handlers(get_event_bus())


async def close_db() -> None:
    """Close the database pool."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for read-side endpoints.

    Yields:
        AsyncSession for the LMS database.
    """
    async with get_session() as session:
        yield session


def get_manager() -> DataManager:
    """Get the data manager that runs enrollment writes."""
    return get_data_manager()


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require an authenticated principal.

    Raises:
        HTTPException: If no principal was forwarded.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def require_admin(request: Request) -> CurrentUser:
    """Require an admin principal.

    Raises:
        HTTPException: If not authenticated or not admin.
    """
    user = require_auth(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def ensure_can_act_for(user: CurrentUser, student_id: int) -> None:
    """Allow admins, and students on their own data only.

    Raises:
        HTTPException: If a student targets another student.
    """
    if not user.can_act_for(student_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this student's enrollments",
        )
