"""Command-line interface for port-master.

Every command is a thin wrapper over the resolver and the store: it parses
arguments, calls the core, and prints. Output meant for scripts (the port
of ``get``, ``env`` lines, ``--json``) goes to stdout; diagnostics go to
stderr.
"""

import argparse
import json
import logging
import sys
from collections.abc import Sequence

import pydantic

from . import __version__
from .cleanup import find_stale_entries, remove_stale_entries
from .config import LOG_LEVELS, Settings, get_settings
from .envfile import generate_env_lines
from .errors import (
    AssignmentNotFoundError,
    PortMasterError,
    ValidationError,
    log_and_format_error,
    setup_logger,
)
from .models import PortDisplayInfo, ProjectInfo
from .ranges import describe_ranges
from .resolver import PortResolver
from .storage import PortStorage, get_storage
from .validation import normalize_port_type, resolve_directory, validate_description

logger = logging.getLogger("port_master.cli")


def confirm(question: str) -> bool | None:
    """Ask a yes/no question on the terminal.

    Returns:
        True for yes, False for no, None when the prompt was cancelled
    """
    try:
        answer = input(f"{question} [y/N] ")
    except (EOFError, KeyboardInterrupt):
        print(file=sys.stderr)
        return None
    return answer.strip().lower() in ("y", "yes")


def _plural(count: int) -> str:
    return "entry" if count == 1 else "entries"


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> list[str]:
    """Lay out rows in left-aligned columns separated by two spaces."""
    widths = [len(header) for header in headers]
    for row in rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))

    def render(values: Sequence[str]) -> str:
        return "  ".join(value.ljust(width) for value, width in zip(values, widths)).rstrip()

    header = render(headers)
    lines = [header, "-" * len(header)]
    lines.extend(render(row) for row in rows)
    return lines


def print_list(entries: list[PortDisplayInfo]) -> None:
    if not entries:
        print("No ports have been assigned yet.")
        return

    rows = [
        (str(entry.port), entry.type, entry.directory, entry.description or "")
        for entry in entries
    ]
    for line in format_table(("PORT", "TYPE", "DIRECTORY", "DESCRIPTION"), rows):
        print(line)


def print_info(info: ProjectInfo) -> None:
    if not info.ports:
        print(f"No ports have been assigned to {info.directory}.")
        print(f"  Path: {info.full_path}")
        print()
        print('Use "port-master get <type>" to assign a port.')
        return

    print(f"Project: {info.directory}")
    print(f"Path: {info.full_path}")
    print()
    rows = [(entry.type, str(entry.port), entry.description or "") for entry in info.ports]
    for line in format_table(("TYPE", "PORT", "DESCRIPTION"), rows):
        print(line)


def cmd_get(args: argparse.Namespace, storage: PortStorage) -> int:
    """Get or create a port for a service type."""
    directory = resolve_directory(args.dir)
    port_type = normalize_port_type(args.type)
    description = validate_description(args.desc)

    port = PortResolver(storage).resolve(directory, port_type, description)
    print(port)
    return 0


def cmd_list(args: argparse.Namespace, storage: PortStorage) -> int:
    """Show all assigned ports across projects."""
    entries = PortResolver(storage).list_ports(verbose=args.verbose)

    if args.json:
        print(json.dumps([entry.model_dump(by_alias=True) for entry in entries], indent=2))
    else:
        print_list(entries)
    return 0


def cmd_info(args: argparse.Namespace, storage: PortStorage) -> int:
    """Show all ports assigned to one project."""
    directory = resolve_directory(args.dir, must_exist=args.dir is not None)
    info = PortResolver(storage).info(directory)

    if args.json:
        print(json.dumps(info.model_dump(by_alias=True), indent=2))
    else:
        print_info(info)
    return 0


def cmd_rm(args: argparse.Namespace, storage: PortStorage) -> int:
    """Remove one port assignment, or all of a directory with --all."""
    if args.all and args.type:
        raise ValidationError("Pass either a port type or --all, not both")
    if not args.all and not args.type:
        raise ValidationError("A port type is required unless --all is given")

    directory = resolve_directory(args.dir)
    resolver = PortResolver(storage)

    if args.all:
        entries = storage.find_all_by_directory(directory)
        if not entries:
            raise AssignmentNotFoundError(directory)
        if args.interactive:
            question = f"Remove {len(entries)} port(s) from {directory}?"
            if confirm(question) is not True:
                print("Cancelled.")
                return 0
        for entry in resolver.remove_all(directory):
            print(entry.port)
        return 0

    port_type = normalize_port_type(args.type)
    existing = resolver.lookup(directory, port_type)
    if existing is None:
        raise AssignmentNotFoundError(directory, port_type)

    if args.interactive:
        question = f"Remove port {existing.port} ({port_type}) from {directory}?"
        if confirm(question) is not True:
            print("Cancelled.")
            return 0

    removed = resolver.remove(directory, port_type)
    if removed is None:
        # Removed by another process since the lookup
        raise AssignmentNotFoundError(directory, port_type)
    print(removed.port)
    return 0


def cmd_cleanup(args: argparse.Namespace, storage: PortStorage) -> int:
    """Remove entries whose project directory was deleted."""
    stale = find_stale_entries(storage)

    if not stale:
        print("No stale entries found. All directories exist.")
        return 0

    print(f"Found {len(stale)} stale {_plural(len(stale))}:")
    print()
    for entry in stale:
        print(f"  - {entry.directory} ({entry.port_type}: {entry.port})")
    print()

    if args.dry_run:
        print(f"Would remove {len(stale)} {_plural(len(stale))}.")
        return 0

    if args.interactive:
        if confirm(f"Remove {len(stale)} stale {_plural(len(stale))}?") is not True:
            print("Cancelled.")
            return 0

    removed = remove_stale_entries(storage, stale)
    print(f"Removed {removed} stale {_plural(removed)}.")
    return 0


def cmd_env(args: argparse.Namespace, storage: PortStorage) -> int:
    """Print the ports of a project as .env lines."""
    directory = resolve_directory(args.dir, must_exist=args.dir is not None)
    # Nothing is printed for a project without ports, so appending to .env is safe
    for line in generate_env_lines(storage, directory, args.prefix, uppercase=args.uppercase):
        print(line)
    return 0


def _add_dir_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-d",
        "--dir",
        default=None,
        help="Target directory instead of current working directory",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="port-master",
        description=f"""Track and assign consistent development ports per project directory.

Storage location: {Settings.model_fields["db_path"].default} (override with PORT_MASTER_DB_PATH)

Port ranges by type:
{describe_ranges()}""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  port-master get dev          # Get/create dev port for current project
  port-master get pg --desc "local postgres"
  port-master list             # Show all port assignments
  port-master list --json      # Output as JSON
  port-master info             # Show ports for current project
  port-master rm redis         # Remove redis port assignment
  port-master cleanup          # Remove stale entries
  port-master env >> .env      # Export ports as environment variables

Environment variables:
  PORT_MASTER_DB_PATH          - Database location
  PORT_MASTER_LOG_LEVEL        - Console log level (default: WARNING)
        """,
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--db-path",
        default=None,
        help="Database file to use instead of the configured one",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=LOG_LEVELS,
        type=str.upper,
        help="Console log level",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    for name, help_text in (
        ("get", "Get or create a port for a service type in the current project"),
        ("add", "Alias for 'get'"),
    ):
        sub = subparsers.add_parser(name, help=help_text, description=help_text)
        sub.add_argument("type", help="Service type (dev, pg, postgres, db, redis, mongo, ...)")
        _add_dir_option(sub)
        sub.add_argument("--desc", default=None, help="Description for a new assignment")
        sub.set_defaults(handler=cmd_get)

    sub = subparsers.add_parser("list", help="Show all assigned ports across projects")
    sub.add_argument(
        "-v", "--verbose", action="store_true", help="Show full paths instead of basenames"
    )
    sub.add_argument("--json", action="store_true", help="Output as JSON array")
    sub.set_defaults(handler=cmd_list)

    sub = subparsers.add_parser("info", help="Show all ports assigned to the current project")
    _add_dir_option(sub)
    sub.add_argument("--json", action="store_true", help="Output as JSON")
    sub.set_defaults(handler=cmd_info)

    sub = subparsers.add_parser("rm", help="Remove a port assignment")
    sub.add_argument("type", nargs="?", default=None, help="Service type to remove")
    _add_dir_option(sub)
    sub.add_argument(
        "-i", "--interactive", action="store_true", help="Prompt for confirmation first"
    )
    sub.add_argument(
        "--all", action="store_true", help="Remove every assignment of the directory"
    )
    sub.set_defaults(handler=cmd_rm)

    sub = subparsers.add_parser("cleanup", help="Remove entries for deleted project directories")
    sub.add_argument(
        "-n", "--dry-run", action="store_true", help="Show what would be removed without removing"
    )
    sub.add_argument(
        "-i", "--interactive", action="store_true", help="Prompt for confirmation first"
    )
    sub.set_defaults(handler=cmd_cleanup)

    sub = subparsers.add_parser("env", help="Print the project's ports as .env lines")
    _add_dir_option(sub)
    sub.add_argument("--prefix", default=None, help="Prefix for every variable name")
    sub.add_argument(
        "--no-uppercase",
        dest="uppercase",
        action="store_false",
        help="Keep the type's case in variable names",
    )
    sub.set_defaults(handler=cmd_env)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except pydantic.ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logger(
        level=(args.log_level or settings.log_level).upper(),
        error_log_file=settings.error_log_file,
    )

    if getattr(args, "handler", None) is None:
        parser.print_help(sys.stderr)
        return 2

    try:
        with get_storage(args.db_path) as storage:
            return args.handler(args, storage)
    except (PortMasterError, ValidationError) as e:
        print(log_and_format_error(logger, args.command, e), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        print(log_and_format_error(logger, args.command, e), file=sys.stderr)
        return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
