"""Persistent storage for port assignments using SQLite."""

import logging
import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from .config import get_settings
from .errors import PortConflictError, StorageError
from .models import PortAssignment

logger = logging.getLogger("port_master.storage")

SCHEMA = """
CREATE TABLE IF NOT EXISTS ports (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    directory TEXT NOT NULL,
    port_type TEXT NOT NULL,
    port INTEGER NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE(directory, port_type),
    UNIQUE(port)
);

CREATE INDEX IF NOT EXISTS idx_ports_directory ON ports(directory);
CREATE INDEX IF NOT EXISTS idx_ports_port_type ON ports(port_type);
CREATE INDEX IF NOT EXISTS idx_ports_port ON ports(port);
"""


class PortStorage:
    """SQLite store of port assignments.

    Uniqueness of (directory, port_type) and of port is enforced by the
    table constraints, so concurrent processes cannot both insert the same
    port. Every operation opens its own connection and closes it before
    returning; no connection outlives a call.
    """

    def __init__(self, db_path: str | Path | None = None, timeout: float | None = None):
        if db_path is None:
            final_path = Path(get_settings().resolved_db_path)
        elif isinstance(db_path, str):
            final_path = Path(db_path).expanduser()
        else:
            final_path = db_path

        self.db_path: Path = final_path
        self.timeout = get_settings().busy_timeout if timeout is None else timeout
        self._closed = False
        self._init_db()

    def __enter__(self) -> "PortStorage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Mark the store closed; later operations raise StorageError."""
        self._closed = True

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper settings."""
        if self._closed:
            raise StorageError(f"Storage at {self.db_path} is closed")
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.IntegrityError:
            conn.rollback()
            raise
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Database error on {self.db_path}: {e}") from e
        finally:
            conn.close()

    def _init_db(self):
        """Create the database file and schema if missing."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create directory {self.db_path.parent}: {e}") from e

        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(SCHEMA)
            conn.commit()
        logger.debug(f"Initialized port database at {self.db_path}")

    def find_by_directory_and_type(self, directory: str, port_type: str) -> PortAssignment | None:
        """Get the assignment of a type in a directory."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM ports WHERE directory = ? AND port_type = ?",
                (directory, port_type),
            )
            row = cursor.fetchone()

            if not row:
                return None

            return self._row_to_assignment(row)

    def find_all_by_directory(self, directory: str) -> list[PortAssignment]:
        """Get every assignment of a directory, ordered by port."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM ports WHERE directory = ? ORDER BY port ASC",
                (directory,),
            )
            return [self._row_to_assignment(row) for row in cursor.fetchall()]

    def find_all(self) -> list[PortAssignment]:
        """Get every assignment, ordered by port."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT * FROM ports ORDER BY port ASC")
            return [self._row_to_assignment(row) for row in cursor.fetchall()]

    def used_ports(self) -> set[int]:
        """Snapshot of every port currently assigned."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT port FROM ports")
            return {row["port"] for row in cursor.fetchall()}

    def insert(
        self,
        directory: str,
        port_type: str,
        port: int,
        description: str | None = None,
    ) -> PortAssignment:
        """Insert a new assignment.

        Args:
            directory: Absolute project directory
            port_type: Normalized service type
            port: Port to assign
            description: Optional note

        Returns:
            The stored assignment

        Raises:
            PortConflictError: If the directory already has this type, or
                the port is assigned elsewhere
        """
        now = datetime.now()
        with self._get_connection() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO ports
                    (directory, port_type, port, description, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                """,
                    (directory, port_type, port, description, now.isoformat(), now.isoformat()),
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                logger.debug(f"Insert of port {port} for {directory} ({port_type}) rejected: {e}")
                raise PortConflictError(directory, port_type, port, str(e)) from e

            return PortAssignment(
                id=cursor.lastrowid,
                directory=directory,
                port_type=port_type,
                port=port,
                description=description,
                created_at=now,
                updated_at=now,
            )

    def delete_by_directory_and_type(
        self, directory: str, port_type: str
    ) -> PortAssignment | None:
        """Remove the assignment of a type in a directory.

        Returns:
            The removed assignment, or None if there was none
        """
        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            cursor = conn.execute(
                "SELECT * FROM ports WHERE directory = ? AND port_type = ?",
                (directory, port_type),
            )
            row = cursor.fetchone()
            if not row:
                conn.rollback()
                return None

            conn.execute("DELETE FROM ports WHERE id = ?", (row["id"],))
            conn.commit()
            return self._row_to_assignment(row)

    def delete_all_by_directory(self, directory: str) -> list[PortAssignment]:
        """Remove every assignment of a directory.

        Returns:
            The removed assignments, ordered by port
        """
        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            cursor = conn.execute(
                "SELECT * FROM ports WHERE directory = ? ORDER BY port ASC",
                (directory,),
            )
            rows = cursor.fetchall()
            conn.execute("DELETE FROM ports WHERE directory = ?", (directory,))
            conn.commit()
            return [self._row_to_assignment(row) for row in rows]

    def delete_by_ids(self, ids: Iterable[int]) -> int:
        """Remove assignments by id.

        Returns:
            Number of rows removed
        """
        id_list = list(ids)
        if not id_list:
            return 0

        with self._get_connection() as conn:
            cursor = conn.executemany(
                "DELETE FROM ports WHERE id = ?", [(entry_id,) for entry_id in id_list]
            )
            conn.commit()
            return cursor.rowcount

    def _row_to_assignment(self, row: sqlite3.Row) -> PortAssignment:
        """Convert SQLite row to PortAssignment object."""
        return PortAssignment(
            id=row["id"],
            directory=row["directory"],
            port_type=row["port_type"],
            port=row["port"],
            description=row["description"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


def get_storage(db_path: str | Path | None = None) -> PortStorage:
    """Open the store at the configured location."""
    return PortStorage(db_path)
