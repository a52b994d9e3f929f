"""Removal of assignments whose project directory no longer exists."""

import logging
import os
from collections.abc import Callable

from .models import PortAssignment
from .storage import PortStorage

logger = logging.getLogger("port_master.cleanup")


def find_stale_entries(
    storage: PortStorage,
    exists: Callable[[str], bool] = os.path.exists,
) -> list[PortAssignment]:
    """Find assignments whose directory is gone from disk.

    Args:
        storage: Store to scan
        exists: Directory existence check

    Returns:
        Stale assignments ordered by directory, then type
    """
    stale = [entry for entry in storage.find_all() if not exists(entry.directory)]
    stale.sort(key=lambda entry: (entry.directory, entry.port_type))
    logger.debug(f"Found {len(stale)} stale assignment(s)")
    return stale


def remove_stale_entries(storage: PortStorage, entries: list[PortAssignment]) -> int:
    """Remove the given assignments.

    Returns:
        Number of assignments removed
    """
    removed = storage.delete_by_ids(entry.id for entry in entries)
    if removed:
        logger.info(f"Removed {removed} stale assignment(s)")
    return removed
