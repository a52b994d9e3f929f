"""Input validation utilities for port-master commands."""

import os

from .errors import ValidationError


def normalize_port_type(value: str | None) -> str:
    """Normalize a service type label.

    Args:
        value: Raw type from the command line

    Returns:
        The stripped, lower-cased type

    Raises:
        ValidationError: If the type is missing or blank
    """
    if value is None:
        raise ValidationError("Port type cannot be empty")
    if not isinstance(value, str):
        raise ValidationError(f"Port type must be a string, got {type(value).__name__}")

    normalized = value.strip().lower()
    if not normalized:
        raise ValidationError("Port type cannot be empty")
    return normalized


def resolve_directory(value: str | None = None, must_exist: bool = False) -> str:
    """Resolve a directory argument to a normalized absolute path.

    Args:
        value: Directory from ``--dir``; the working directory when omitted
        must_exist: Reject directories that are not on disk

    Returns:
        Absolute path without trailing separators or ``..`` segments

    Raises:
        ValidationError: If the path is blank, or missing while required
    """
    if value is None:
        value = os.getcwd()
    elif not value.strip():
        raise ValidationError("Directory cannot be empty")

    directory = os.path.abspath(os.path.expanduser(value))

    if must_exist and not os.path.isdir(directory):
        raise ValidationError(f"Directory does not exist: {directory}")

    return directory


def validate_description(value: str | None) -> str | None:
    """Strip a description; blank descriptions are stored as None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
