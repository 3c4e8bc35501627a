# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from collections.abc import Generator

import pytest

from learnsync.core.config import clear_settings_cache
from learnsync.domains.data_manager import reset_data_manager
from learnsync.infrastructure.events import reset_event_bus


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses a database)"
    )


# =============================================================================
# Singleton Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset process-wide singletons around every test."""
    clear_settings_cache()
    reset_event_bus()
    reset_data_manager()
    yield
    clear_settings_cache()
    reset_event_bus()
    reset_data_manager()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_student_id() -> int:
    """Provide a sample student ID for testing."""
    return 6


@pytest.fixture
def sample_course_id() -> int:
    """Provide a sample course ID for testing."""
    return 10


@pytest.fixture
def sample_admin_id() -> int:
    """Provide a sample admin ID for testing."""
    return 1
