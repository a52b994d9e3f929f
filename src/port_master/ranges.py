"""Port ranges reserved for each service type."""

from collections.abc import Mapping

from .models import PortRange

# Each known type gets its own block; pg and postgres share one on purpose.
PORT_RANGES: dict[str, PortRange] = {
    "dev": PortRange(start=3100, end=3999),
    "pg": PortRange(start=5500, end=5599),
    "postgres": PortRange(start=5500, end=5599),
    "db": PortRange(start=5600, end=5699),
    "redis": PortRange(start=6400, end=6499),
    "mongo": PortRange(start=27100, end=27199),
}

# Custom types, and overflow when a dedicated range is full
CATCH_ALL_RANGE = PortRange(start=9100, end=9999)

KNOWN_PORT_TYPES: tuple[str, ...] = tuple(PORT_RANGES)

RANGE_DESCRIPTIONS: dict[str, str] = {
    "dev": "Development servers",
    "pg/postgres": "PostgreSQL databases",
    "db": "Generic databases",
    "redis": "Redis servers",
    "mongo": "MongoDB servers",
}


def get_port_range(
    port_type: str,
    port_ranges: Mapping[str, PortRange] = PORT_RANGES,
    catch_all_range: PortRange = CATCH_ALL_RANGE,
) -> PortRange:
    """Get the port range for a service type.

    Lookup is case-insensitive. Unknown types map to the catch-all range.

    Args:
        port_type: Service type label (dev, pg, redis, or any custom string)
        port_ranges: Dedicated ranges keyed by lower-case type
        catch_all_range: Range returned for unknown types

    Returns:
        The dedicated range of a known type, otherwise the catch-all range
    """
    return port_ranges.get(port_type.lower(), catch_all_range)


def is_catch_all(port_range: PortRange, catch_all_range: PortRange = CATCH_ALL_RANGE) -> bool:
    """Check whether a range is the catch-all range."""
    return port_range == catch_all_range


def describe_ranges() -> str:
    """Render the range table for ``--help`` output."""
    lines = []
    for label, description in RANGE_DESCRIPTIONS.items():
        port_range = get_port_range(label.split("/")[0])
        lines.append(f"  {label:<12} {str(port_range):<11} {description}")
    lines.append(f"  {'(other)':<12} {str(CATCH_ALL_RANGE):<11} Catch-all for custom types")
    return "\n".join(lines)
