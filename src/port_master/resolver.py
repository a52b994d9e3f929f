"""Get-or-create resolution of (directory, service type) to a port."""

import logging
import os

from .allocator import PortAllocator
from .config import get_settings
from .errors import AllocationRetriesExceededError, PortConflictError
from .models import PortAssignment, PortDisplayInfo, ProjectInfo, ProjectPort
from .storage import PortStorage
from .validation import normalize_port_type

logger = logging.getLogger("port_master.resolver")


class PortResolver:
    """Hands out stable ports per project directory and service type.

    An existing assignment is always returned unchanged. A missing one is
    allocated from a fresh snapshot of used ports and inserted; when another
    process wins the race for the same port, the whole snapshot, allocate
    and insert sequence is retried a bounded number of times.
    """

    def __init__(
        self,
        storage: PortStorage,
        allocator: PortAllocator | None = None,
        max_retries: int | None = None,
    ):
        """Initialize resolver.

        Args:
            storage: Store holding the assignments
            allocator: Allocator to use (default ranges when omitted)
            max_retries: Allocation attempts before giving up
        """
        self.storage = storage
        self.allocator = allocator or PortAllocator()
        if max_retries is None:
            max_retries = get_settings().max_allocation_retries
        self.max_retries = max(1, max_retries)

    def resolve(self, directory: str, port_type: str, description: str | None = None) -> int:
        """Get the port of a service in a project, assigning one if needed.

        Args:
            directory: Absolute project directory
            port_type: Service type label (case-insensitive)
            description: Note stored with a newly created assignment

        Returns:
            The assigned port

        Raises:
            PortExhaustedError: If no free port exists in the applicable ranges
            AllocationRetriesExceededError: If concurrent writers kept winning
        """
        normalized_type = normalize_port_type(port_type)

        existing = self.storage.find_by_directory_and_type(directory, normalized_type)
        if existing:
            logger.debug(f"Existing port {existing.port} for {directory} ({normalized_type})")
            return existing.port

        return self._create(directory, normalized_type, description).port

    def _create(
        self, directory: str, port_type: str, description: str | None
    ) -> PortAssignment:
        for attempt in range(1, self.max_retries + 1):
            used_ports = self.storage.used_ports()
            # PortExhaustedError propagates; retrying cannot free a port
            port = self.allocator.allocate(port_type, used_ports)

            try:
                assignment = self.storage.insert(directory, port_type, port, description)
            except PortConflictError as e:
                # Another process may have created this very assignment
                winner = self.storage.find_by_directory_and_type(directory, port_type)
                if winner:
                    logger.debug(
                        f"Concurrent process assigned port {winner.port} to "
                        f"{directory} ({port_type})"
                    )
                    return winner
                logger.info(
                    f"Port {port} was taken concurrently (attempt {attempt}/"
                    f"{self.max_retries}): {e.detail or e}"
                )
                continue

            logger.info(f"Assigned port {port} to {directory} ({port_type})")
            return assignment

        raise AllocationRetriesExceededError(
            port_type, self.allocator.candidate_ranges(port_type), self.max_retries
        )

    def lookup(self, directory: str, port_type: str) -> PortAssignment | None:
        """Get an assignment without creating one."""
        return self.storage.find_by_directory_and_type(directory, normalize_port_type(port_type))

    def remove(self, directory: str, port_type: str) -> PortAssignment | None:
        """Remove the assignment of a type in a directory."""
        removed = self.storage.delete_by_directory_and_type(
            directory, normalize_port_type(port_type)
        )
        if removed:
            logger.info(f"Removed port {removed.port} ({removed.port_type}) from {directory}")
        return removed

    def remove_all(self, directory: str) -> list[PortAssignment]:
        """Remove every assignment of a directory."""
        removed = self.storage.delete_all_by_directory(directory)
        if removed:
            logger.info(f"Removed {len(removed)} port(s) from {directory}")
        return removed

    def info(self, directory: str) -> ProjectInfo:
        """Collect the ports of one project directory."""
        entries = self.storage.find_all_by_directory(directory)
        return ProjectInfo(
            directory=os.path.basename(directory) or directory,
            full_path=directory,
            ports=[
                ProjectPort(type=entry.port_type, port=entry.port, description=entry.description)
                for entry in entries
            ],
        )

    def list_ports(self, verbose: bool = False) -> list[PortDisplayInfo]:
        """Collect every assignment for display, ordered by port.

        Args:
            verbose: Show full paths instead of basenames
        """
        return [
            PortDisplayInfo(
                port=entry.port,
                type=entry.port_type,
                directory=entry.directory
                if verbose
                else (os.path.basename(entry.directory) or entry.directory),
                full_path=entry.directory,
                description=entry.description,
            )
            for entry in self.storage.find_all()
        ]
