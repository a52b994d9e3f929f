"""Tests for error types and logging setup."""

import json
import logging

from port_master.errors import (
    AllocationRetriesExceededError,
    AssignmentNotFoundError,
    PortConflictError,
    PortExhaustedError,
    StorageError,
    ValidationError,
    format_error,
    log_and_format_error,
    setup_logger,
)
from port_master.models import PortRange


class TestErrorMessages:
    """Tests for user-facing error messages."""

    def test_exhausted_single_range(self):
        error = PortExhaustedError("custom", [PortRange(start=9100, end=9999)])
        assert str(error) == 'No available ports for type "custom". Range 9100-9999 is exhausted.'

    def test_exhausted_both_ranges(self):
        error = PortExhaustedError(
            "dev", [PortRange(start=3100, end=3999), PortRange(start=9100, end=9999)]
        )
        assert "primary range (3100-3999)" in str(error)
        assert "catch-all range (9100-9999)" in str(error)

    def test_retries_exceeded(self):
        error = AllocationRetriesExceededError("dev", [PortRange(start=3100, end=3999)], 5)
        assert "after 5 attempts" in str(error)
        assert "3100-3999" in str(error)
        assert error.attempts == 5

    def test_conflict(self):
        error = PortConflictError("/proj/a", "dev", 3100, "UNIQUE constraint failed: ports.port")
        assert error.port == 3100
        assert "UNIQUE constraint failed" in str(error)

    def test_not_found(self):
        assert "type 'dev'" in str(AssignmentNotFoundError("/proj/a", "dev"))
        assert "No port assignments found" in str(AssignmentNotFoundError("/proj/a"))

    def test_format_error(self):
        assert format_error(ValidationError("bad")) == "Error: bad"
        assert format_error(RuntimeError("boom")) == "Error: unexpected RuntimeError: boom"


class TestLogging:
    """Tests for setup_logger and log_and_format_error."""

    def test_setup_is_idempotent(self):
        logger = setup_logger("port_master.test_idempotent")
        setup_logger("port_master.test_idempotent")
        assert len(logger.handlers) == 1
        logger.handlers.clear()

    def test_json_error_log(self, tmp_path):
        log_file = tmp_path / "errors.log"
        logger = setup_logger("port_master.test_json", error_log_file=str(log_file))
        try:
            message = log_and_format_error(logger, "get", RuntimeError("boom"), directory="/p")
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

        assert message == "Error: unexpected RuntimeError: boom"
        record = json.loads(log_file.read_text().splitlines()[0])
        assert record["levelname"] == "ERROR"
        assert "Error in get (directory=/p)" in record["message"]

    def test_storage_errors_logged_at_error(self, caplog):
        logger = logging.getLogger("port_master.test_storage_error")
        with caplog.at_level(logging.DEBUG, logger="port_master.test_storage_error"):
            message = log_and_format_error(logger, "list", StorageError("disk gone"))
        assert message == "Error: disk gone"
        assert caplog.records[0].levelno == logging.ERROR

    def test_expected_errors_logged_at_debug(self, caplog):
        logger = logging.getLogger("port_master.test_debug")
        with caplog.at_level(logging.DEBUG, logger="port_master.test_debug"):
            log_and_format_error(logger, "rm", AssignmentNotFoundError("/p", "dev"))
        assert caplog.records[0].levelno == logging.DEBUG
