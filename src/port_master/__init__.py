"""port-master - stable per-project port assignments."""

__version__ = "1.0.0"

from .allocator import PortAllocator, allocate, find_port_in_range
from .errors import (
    AllocationRetriesExceededError,
    AssignmentNotFoundError,
    PortConflictError,
    PortExhaustedError,
    PortMasterError,
    StorageError,
    ValidationError,
)
from .models import PortAssignment, PortRange
from .ranges import CATCH_ALL_RANGE, KNOWN_PORT_TYPES, PORT_RANGES, get_port_range
from .resolver import PortResolver
from .storage import PortStorage, get_storage

__all__ = [
    "__version__",
    "PortAllocator",
    "PortAssignment",
    "PortRange",
    "PortResolver",
    "PortStorage",
    "PORT_RANGES",
    "CATCH_ALL_RANGE",
    "KNOWN_PORT_TYPES",
    "PortMasterError",
    "PortExhaustedError",
    "AllocationRetriesExceededError",
    "PortConflictError",
    "AssignmentNotFoundError",
    "StorageError",
    "ValidationError",
    "allocate",
    "find_port_in_range",
    "get_port_range",
    "get_storage",
]
