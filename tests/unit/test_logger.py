"""
Unit tests for structured logging utility (courtbook/utils/logger.py)

Covers:
- JSON log formatting with required fields
- Student ID and email masking
- Log operation decorator
"""

import json
import logging
from datetime import datetime
from io import StringIO

import pytest

from courtbook.utils.logger import (
    StructuredLogger,
    mask_student_id,
    mask_email,
    log_operation,
    get_logger,
)


class TestMaskStudentId:
    """Tests for student ID masking."""

    def test_mask_keeps_first_and_last_two(self):
        result = mask_student_id("BCS2209123")
        assert result == "BC******23"
        assert "2209" not in result

    def test_mask_short_id_fully_hidden(self):
        assert mask_student_id("1234") == "****"

    def test_mask_empty_and_none(self):
        assert mask_student_id("") == "unknown"
        assert mask_student_id(None) == "unknown"


class TestMaskEmail:
    """Tests for email masking."""

    def test_mask_local_part(self):
        assert mask_email("aisyah@students.uts.edu.my") == "a****h@students.uts.edu.my"

    def test_mask_very_short_local_part(self):
        assert mask_email("ab@uts.edu.my") == "**@uts.edu.my"

    def test_mask_invalid_and_missing(self):
        assert mask_email("not-an-email") == "invalid"
        assert mask_email(None) == "unknown"


class TestStructuredLogger:
    """Tests for StructuredLogger class."""

    @pytest.fixture
    def logger_with_handler(self):
        """Logger writing into a string stream."""
        logger = StructuredLogger("test_courtbook_logger")
        logger.logger.handlers.clear()

        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.logger.addHandler(handler)
        logger.logger.setLevel(logging.DEBUG)

        return logger, stream

    def test_format_log_basic_fields(self, logger_with_handler):
        logger, _ = logger_with_handler

        parsed = json.loads(logger._format_log("INFO", "Test message"))

        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Test message"
        assert parsed["timestamp"].endswith("Z")
        datetime.fromisoformat(parsed["timestamp"].replace("Z", "+00:00"))

    def test_format_log_all_fields(self, logger_with_handler):
        logger, _ = logger_with_handler

        context = {"booking_id": "3F9A1C07", "facility": "Badminton Court 1"}
        parsed = json.loads(
            logger._format_log(
                "ERROR",
                "Booking failed",
                operation="confirm_booking",
                context=context,
                duration_ms=45.678,
                error="Slot taken",
            )
        )

        assert parsed["operation"] == "confirm_booking"
        assert parsed["context"] == context
        assert parsed["duration_ms"] == 45.68
        assert parsed["error"] == "Slot taken"

    def test_format_log_serializes_dates(self, logger_with_handler):
        """Dates in context are written as strings instead of failing."""
        logger, _ = logger_with_handler

        parsed = json.loads(
            logger._format_log("INFO", "x", context={"date": datetime(2025, 10, 20).date()})
        )

        assert parsed["context"]["date"] == "2025-10-20"

    def test_info_writes_json_line(self, logger_with_handler):
        logger, stream = logger_with_handler

        logger.info("Booking confirmed", operation="confirm_booking", context={"booking_id": "A1"})

        parsed = json.loads(stream.getvalue().strip())
        assert parsed["message"] == "Booking confirmed"
        assert parsed["context"]["booking_id"] == "A1"

    def test_warning_includes_error(self, logger_with_handler):
        logger, stream = logger_with_handler

        logger.warning("Throttled", operation="get_booking", error="ThrottlingException")

        parsed = json.loads(stream.getvalue().strip())
        assert parsed["level"] == "WARNING"
        assert parsed["error"] == "ThrottlingException"


class TestLogOperationDecorator:
    """Tests for the log_operation decorator."""

    def test_returns_result_and_logs_completion(self, caplog):
        @log_operation("quote")
        def quote(facility, student_id=None):
            return "RM 22.50"

        with caplog.at_level(logging.DEBUG):
            assert quote("Badminton Court 1", student_id="BCS2209123") == "RM 22.50"

        messages = [json.loads(r.getMessage()) for r in caplog.records]
        completed = [m for m in messages if m["message"] == "Completed quote"]
        assert completed
        assert completed[0]["context"]["student_id_masked"] == "BC******23"
        assert "duration_ms" in completed[0]

    def test_reraises_and_logs_failure(self, caplog):
        @log_operation("explode")
        def explode():
            raise RuntimeError("boom")

        with caplog.at_level(logging.DEBUG):
            with pytest.raises(RuntimeError):
                explode()

        messages = [json.loads(r.getMessage()) for r in caplog.records]
        failed = [m for m in messages if m["message"] == "Failed explode"]
        assert failed[0]["error"] == "boom"


def test_get_logger_returns_structured_logger():
    logger = get_logger("courtbook.test")
    assert isinstance(logger, StructuredLogger)
    assert logger.logger.name == "courtbook.test"
