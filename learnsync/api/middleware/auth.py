# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Principal middleware.

Authentication happens upstream (the LMS gateway). The gateway forwards
the authenticated principal in trusted headers, and this middleware turns
them into ``request.state.user`` for the route dependencies.

Example:
    POST /api/v1/requests
    X-User-Id: 6
    X-User-Role: student
"""

import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from learnsync.infrastructure.database.models import UserRole
from learnsync.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"

# Paths that never carry a principal
PUBLIC_PATHS = frozenset({
    "/",
    "/health",
    "/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
})


class CurrentUser:
    """Authenticated principal of a request.

    Attributes:
        id: User id in the LMS database.
        role: User role ("student" or "admin").
    """

    def __init__(self, id: int, role: str) -> None:
        self.id = id
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value

    def can_act_for(self, student_id: int) -> bool:
        """Check if the user may act on a student's own data."""
        return self.is_admin or self.id == student_id

    def __repr__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role!r})"


class PrincipalMiddleware(BaseHTTPMiddleware):
    """Populate request.state.user from the gateway headers.

    Requests without valid principal headers continue with
    ``request.state.user = None``; endpoints decide whether that is allowed.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        request.state.user = None
        clear_context()

        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        user = self._extract_principal(request)
        if user is not None:
            request.state.user = user
            bind_context(user_id=user.id, user_role=user.role)
            logger.debug("Request principal: %s", user)

        return await call_next(request)

    def _extract_principal(self, request: Request) -> CurrentUser | None:
        raw_id = request.headers.get(USER_ID_HEADER)
        role = request.headers.get(USER_ROLE_HEADER, "").strip().lower()
        if not raw_id or not role:
            return None

        try:
            user_id = int(raw_id)
        except ValueError:
            logger.debug("Invalid %s header: %s", USER_ID_HEADER, raw_id)
            return None

        if role not in {r.value for r in UserRole}:
            logger.debug("Unknown %s header: %s", USER_ROLE_HEADER, role)
            return None

        return CurrentUser(id=user_id, role=role)


def get_current_user(request: Request) -> CurrentUser | None:
    """Get current user from request state.

    Args:
        request: HTTP request with state.

    Returns:
        CurrentUser or None if no principal was forwarded.
    """
    return getattr(request.state, "user", None)
