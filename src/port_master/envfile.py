"""Export of a project's ports in ``.env`` format."""

import re

from .storage import PortStorage

_SEPARATORS = re.compile(r"[-\s]+")


def to_env_var_name(port_type: str, prefix: str | None = None, uppercase: bool = True) -> str:
    """Convert a port type to an environment variable name.

    Args:
        port_type: The port type (e.g., "dev", "pg", "redis")
        prefix: Optional prefix for the variable name
        uppercase: Whether to uppercase the variable name

    Returns:
        Environment variable name (e.g., "DEV_PORT", "PG_PORT")
    """
    name = _SEPARATORS.sub("_", port_type)

    if not name.lower().endswith("_port"):
        name = f"{name}_PORT"

    if prefix:
        name = f"{prefix}_{name}"

    return name.upper() if uppercase else name


def generate_env_lines(
    storage: PortStorage,
    directory: str,
    prefix: str | None = None,
    uppercase: bool = True,
) -> list[str]:
    """Build ``KEY=value`` lines for every port of a directory, in port order."""
    return [
        f"{to_env_var_name(entry.port_type, prefix, uppercase)}={entry.port}"
        for entry in storage.find_all_by_directory(directory)
    ]
