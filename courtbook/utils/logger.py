"""
Structured logging utility for the booking backend.

Provides JSON-formatted logging with built-in masking of student identifiers
and email addresses, context injection, and operation timing.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from functools import wraps


def mask_student_id(student_id: Optional[str]) -> str:
    """
    Mask a student identifier to preserve privacy in logs.

    Keeps the first two and last two characters visible.

    Args:
        student_id: Student identifier as typed by the user

    Returns:
        Masked identifier string

    Example:
        >>> mask_student_id("BCS2209123")
        "BC******23"
        >>> mask_student_id("")
        "unknown"
    """
    if not student_id:
        return "unknown"

    clean_id = student_id.strip()

    if len(clean_id) <= 4:
        return "*" * len(clean_id)

    return f"{clean_id[:2]}{'*' * (len(clean_id) - 4)}{clean_id[-2:]}"


def mask_email(email: Optional[str]) -> str:
    """
    Mask the local part of an email address.

    Example:
        >>> mask_email("aisyah@students.uts.edu.my")
        "a****h@students.uts.edu.my"
    """
    if not email:
        return "unknown"

    if "@" not in email:
        return "invalid"

    local, domain = email.split("@", 1)
    if len(local) <= 2:
        return f"{'*' * len(local)}@{domain}"

    return f"{local[0]}{'*' * (len(local) - 2)}{local[-1]}@{domain}"


# Handlers created by StructuredLogger and the filters every one of them gets
_structured_handlers: List[logging.Handler] = []
_handler_filters: List[logging.Filter] = []


def install_handler_filter(log_filter: logging.Filter) -> None:
    """
    Attach a filter to every structured logger handler, present and future,
    and to the root logger's handlers.

    Filters on a logger do not see records propagated from child loggers,
    so redaction has to live on the handlers.
    """
    if log_filter not in _handler_filters:
        _handler_filters.append(log_filter)
    for handler in _structured_handlers + logging.getLogger().handlers:
        if log_filter not in handler.filters:
            handler.addFilter(log_filter)


class StructuredLogger:
    """
    JSON-formatted logger with context injection and operation timing.

    All log output is JSON so it can be parsed by log shippers without
    regular expressions.
    """

    def __init__(self, name: str):
        """
        Initialize structured logger.

        Args:
            name: Logger name (typically __name__ from calling module)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(logging.DEBUG)

            formatter = logging.Formatter("%(message)s", datefmt="%Y-%m-%dT%H:%M:%S")
            handler.setFormatter(formatter)
            for log_filter in _handler_filters:
                handler.addFilter(log_filter)
            _structured_handlers.append(handler)
            self.logger.addHandler(handler)

    def _format_log(
        self,
        level: str,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
        error: Optional[str] = None,
    ) -> str:
        """
        Format log entry as JSON.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            message: Human-readable message
            operation: Operation name (e.g., "confirm_booking", "get_time_slots")
            context: Context dict with facility, booking_id, etc.
            duration_ms: Operation duration in milliseconds
            error: Error message if applicable

        Returns:
            JSON-formatted log string
        """
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "message": message,
        }

        if operation:
            log_entry["operation"] = operation

        if context:
            log_entry["context"] = context

        if duration_ms is not None:
            log_entry["duration_ms"] = round(duration_ms, 2)

        if error:
            log_entry["error"] = error

        return json.dumps(log_entry, ensure_ascii=False, default=str)

    def debug(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Log debug message."""
        log_json = self._format_log("DEBUG", message, operation, context)
        self.logger.debug(log_json)

    def info(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
    ):
        """Log info message."""
        log_json = self._format_log("INFO", message, operation, context, duration_ms)
        self.logger.info(log_json)

    def warning(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        """Log warning message."""
        log_json = self._format_log("WARNING", message, operation, context, error=error)
        self.logger.warning(log_json)

    def error(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        duration_ms: Optional[float] = None,
    ):
        """Log error message."""
        log_json = self._format_log(
            "ERROR", message, operation, context, duration_ms, error
        )
        self.logger.error(log_json)


def log_operation(operation_name: str):
    """
    Decorator to automatically log operation start, duration, and completion.

    Usage:
        @log_operation("calculate_final_cost")
        def calculate_final_cost(facility_id, time_slot, student_id):
            ...
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = StructuredLogger(func.__module__)

            context: Dict[str, Any] = {
                "function": func.__name__,
            }

            if len(args) > 0:
                context["arg_count"] = len(args)
            if "student_id" in kwargs:
                context["student_id_masked"] = mask_student_id(kwargs["student_id"])

            logger.debug(
                f"Starting {operation_name}", operation=operation_name, context=context
            )

            start_time = time.time()
            try:
                result = func(*args, **kwargs)
                duration_ms = (time.time() - start_time) * 1000
                logger.info(
                    f"Completed {operation_name}",
                    operation=operation_name,
                    context=context,
                    duration_ms=duration_ms,
                )
                return result
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                logger.error(
                    f"Failed {operation_name}",
                    operation=operation_name,
                    context=context,
                    error=str(e),
                    duration_ms=duration_ms,
                )
                raise

        return wrapper

    return decorator


def get_logger(name: str) -> StructuredLogger:
    """
    Factory function to get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(name)
