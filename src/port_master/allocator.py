"""Port allocation within the per-type ranges.

Picks the lowest port of the applicable range that is not already recorded
as assigned. Ports are never probed at the OS level; the set of used ports
always comes from the store.
"""

import logging
from collections.abc import Iterable, Mapping

from .errors import PortExhaustedError
from .models import PortRange
from .ranges import CATCH_ALL_RANGE, PORT_RANGES, get_port_range, is_catch_all

logger = logging.getLogger("port_master.allocator")


def find_port_in_range(port_range: PortRange, used_ports: Iterable[int]) -> int | None:
    """Find the first port of a range that is not in use.

    Args:
        port_range: Range to scan in ascending order
        used_ports: Ports already assigned

    Returns:
        The lowest free port, or None if the whole range is used
    """
    used = used_ports if isinstance(used_ports, (set, frozenset)) else set(used_ports)
    for port in port_range.ports():
        if port not in used:
            return port
    return None


class PortAllocator:
    """Chooses a free port for a service type.

    Tries the type's own range first, then falls back to the catch-all range
    when the dedicated range is full. Types without a dedicated range only
    ever scan the catch-all range, once.
    """

    def __init__(
        self,
        port_ranges: Mapping[str, PortRange] | None = None,
        catch_all_range: PortRange = CATCH_ALL_RANGE,
    ):
        """Initialize port allocator.

        Args:
            port_ranges: Dedicated ranges keyed by lower-case type
            catch_all_range: Range for unknown types and overflow
        """
        self.port_ranges = dict(PORT_RANGES if port_ranges is None else port_ranges)
        self.catch_all_range = catch_all_range

    def range_for(self, port_type: str) -> PortRange:
        """Get the primary range for a type (case-insensitive)."""
        return get_port_range(port_type, self.port_ranges, self.catch_all_range)

    def candidate_ranges(self, port_type: str) -> list[PortRange]:
        """Ranges scanned for a type, in order."""
        primary = self.range_for(port_type)
        if is_catch_all(primary, self.catch_all_range):
            return [primary]
        return [primary, self.catch_all_range]

    def allocate(self, port_type: str, used_ports: Iterable[int]) -> int:
        """Allocate the lowest free port for a type.

        Args:
            port_type: Service type label
            used_ports: Snapshot of every port currently assigned

        Returns:
            Allocated port number

        Raises:
            PortExhaustedError: If every attempted range is fully used
        """
        used = set(used_ports)
        ranges = self.candidate_ranges(port_type)

        for index, port_range in enumerate(ranges):
            port = find_port_in_range(port_range, used)
            if port is not None:
                if index > 0:
                    logger.info(
                        f"Range {ranges[0]} for '{port_type}' is full, "
                        f"allocated {port} from catch-all range {port_range}"
                    )
                else:
                    logger.debug(f"Allocated port {port} for '{port_type}' from {port_range}")
                return port

        raise PortExhaustedError(port_type, ranges)


_default_allocator = PortAllocator()


def allocate(port_type: str, used_ports: Iterable[int]) -> int:
    """Allocate a port using the built-in range table."""
    return _default_allocator.allocate(port_type, used_ports)
