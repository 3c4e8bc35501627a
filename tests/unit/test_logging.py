# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for logging configuration."""

import json
import logging
from collections.abc import Generator

import pytest

from learnsync.core.config.settings import Settings
from learnsync.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    log_context,
    reset_logging,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    yield
    clear_context()
    reset_logging()


def last_line(capsys: pytest.CaptureFixture[str]) -> str:
    return capsys.readouterr().out.strip().splitlines()[-1]


class TestJsonOutput:
    """Tests for production (JSON) rendering."""

    @pytest.fixture(autouse=True)
    def configure(self, capsys: pytest.CaptureFixture[str]) -> None:
        # Depends on capsys so the handler binds to the captured stdout.
        setup_logging(Settings(environment="production", debug=False, log_level="INFO"))

    def test_stdlib_records_carry_operation_context(self, capsys) -> None:
        with log_context(operation="enroll_student", attempt=2):
            logging.getLogger("learnsync.domains.data_manager.core").info(
                "Enrolled student %s in course %s", 6, 10
            )

        line = json.loads(last_line(capsys))

        assert line["event"] == "Enrolled student 6 in course 10"
        assert line["operation"] == "enroll_student"
        assert line["attempt"] == 2
        assert line["level"] == "info"
        assert line["logger"] == "learnsync.domains.data_manager.core"

    def test_context_is_restored_after_block(self, capsys) -> None:
        with log_context(operation="approve_request"):
            with log_context(attempt=1):
                pass
            logging.getLogger("learnsync.test").info("Attempt finished")

        line = json.loads(last_line(capsys))

        assert line["operation"] == "approve_request"
        assert "attempt" not in line

    def test_structlog_records_keep_fields_and_principal(self, capsys) -> None:
        bind_context(user_id=1, user_role="admin")

        get_logger("learnsync.audit").info("enrollment.created", student_id=6, course_id=10)

        line = json.loads(last_line(capsys))

        assert line["event"] == "enrollment.created"
        assert line["student_id"] == 6
        assert line["user_id"] == 1
        assert line["user_role"] == "admin"

    def test_debug_lines_are_filtered(self, capsys) -> None:
        logging.getLogger("learnsync.test").debug("Not shown")

        assert capsys.readouterr().out == ""


class TestConsoleOutput:
    """Tests for development rendering."""

    def test_console_lines_include_context(self, capsys) -> None:
        setup_logging(Settings(environment="development", debug=True, log_level="DEBUG"))

        with log_context(operation="sync_enrollment_state"):
            logging.getLogger("learnsync.test").warning("Tables disagree for student %s", 6)

        line = last_line(capsys)

        assert "Tables disagree for student 6" in line
        assert "operation=sync_enrollment_state" in line

    def test_setup_twice_keeps_one_handler(self, capsys) -> None:
        settings = Settings(environment="development", debug=True, log_level="INFO")
        setup_logging(settings)
        setup_logging(settings)

        logging.getLogger("learnsync.test").info("Once")

        assert capsys.readouterr().out.count("Once") == 1
