"""Error types and logging utilities for port-master."""

import logging
import sys
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from pythonjsonlogger.json import JsonFormatter

if TYPE_CHECKING:
    from .models import PortRange


class PortMasterError(Exception):
    """Base exception for port-master errors."""

    pass


class PortExhaustedError(PortMasterError):
    """Raised when every port in the attempted ranges is already assigned."""

    def __init__(self, port_type: str, ranges: Sequence["PortRange"], message: str | None = None):
        self.port_type = port_type
        self.ranges = tuple(ranges)
        if message is None:
            message = self._default_message()
        super().__init__(message)

    def _default_message(self) -> str:
        if len(self.ranges) == 1:
            return (
                f'No available ports for type "{self.port_type}". '
                f"Range {self.ranges[0]} is exhausted."
            )
        primary, *fallbacks = self.ranges
        fallback_text = ", ".join(str(r) for r in fallbacks)
        return (
            f'No available ports for type "{self.port_type}". Both primary range '
            f"({primary}) and catch-all range ({fallback_text}) are exhausted."
        )


class AllocationRetriesExceededError(PortExhaustedError):
    """Raised when concurrent writers kept taking the allocated port."""

    def __init__(self, port_type: str, ranges: Sequence["PortRange"], attempts: int):
        self.attempts = attempts
        ranges_text = ", ".join(str(r) for r in ranges)
        super().__init__(
            port_type,
            ranges,
            message=(
                f'Could not assign a port for type "{port_type}" after {attempts} '
                f"attempts; other processes kept claiming ports in range(s) {ranges_text}."
            ),
        )


class PortConflictError(PortMasterError):
    """Raised by the store when an insert violates a uniqueness constraint."""

    def __init__(self, directory: str, port_type: str, port: int, detail: str = ""):
        self.directory = directory
        self.port_type = port_type
        self.port = port
        self.detail = detail
        message = f"Port {port} ({port_type}) for {directory} conflicts with an existing assignment"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class AssignmentNotFoundError(PortMasterError):
    """Raised when a command expects an assignment that does not exist."""

    def __init__(self, directory: str, port_type: str | None = None):
        self.directory = directory
        self.port_type = port_type
        if port_type is None:
            message = f"No port assignments found in directory '{directory}'"
        else:
            message = (
                f"No port assignment found for type '{port_type}' in directory '{directory}'"
            )
        super().__init__(message)


class StorageError(PortMasterError):
    """Raised when the database cannot be opened or queried."""

    pass


class ValidationError(Exception):
    """Raised when command-line input fails validation."""

    pass


def setup_logger(
    name: str = "port_master",
    level: int | str = logging.WARNING,
    error_log_file: str | None = None,
) -> logging.Logger:
    """Set up and configure the package logger.

    Console output goes to stderr so stdout stays clean for scripting
    (``PORT=$(port-master get dev)``).

    Args:
        name: Logger name
        level: Console log level
        error_log_file: Optional path receiving ERROR records as JSON

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        logger.setLevel(level)
        return logger

    logger.setLevel(level)
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stderr)
    console_formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s")
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if error_log_file:
        try:
            file_handler = logging.FileHandler(error_log_file, mode="a")
            file_handler.setLevel(logging.ERROR)
            json_formatter = JsonFormatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
            file_handler.setFormatter(json_formatter)
            logger.addHandler(file_handler)
        except OSError:
            logger.warning(f"Cannot open error log file {error_log_file}, using console only")

    return logger


def format_error(error: Exception) -> str:
    """Format an error into the single-line message shown to the user.

    Args:
        error: The exception raised by a command

    Returns:
        User-friendly error message
    """
    if isinstance(error, (PortMasterError, ValidationError)):
        return f"Error: {error}"
    return f"Error: unexpected {type(error).__name__}: {error}"


def log_and_format_error(
    logger: logging.Logger,
    command: str,
    error: Exception,
    **context: Any,
) -> str:
    """Log an error with its context and return the user-facing message.

    Expected user errors are logged at DEBUG with the traceback; storage
    failures and anything unexpected are logged at ERROR so they reach the
    JSON error log.

    Args:
        logger: Logger to write to
        command: Name of the command that failed
        error: The exception that was raised
        **context: Additional context to log (e.g., directory="/proj")

    Returns:
        User-friendly error message
    """
    context_str = ", ".join(f"{k}={v}" for k, v in context.items())
    log_message = f"Error in {command}"
    if context_str:
        log_message += f" ({context_str})"
    log_message += f": {error}"

    if isinstance(error, (PortMasterError, ValidationError)) and not isinstance(
        error, StorageError
    ):
        logger.debug(log_message, exc_info=True)
    else:
        logger.error(log_message, exc_info=True)

    return format_error(error)
