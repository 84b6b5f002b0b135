"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/database.py
Version:        1.0.0
Description:    Central database manager for SQLite persistence. Owns the
                connection, converges the schema through the ordered migration
                registry at startup and keeps the applied-version bookkeeping.
                Also exposes the small JSON key/value 'config' table.
------------------------------------------------------------------------------
"""

import json
import sqlite3
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from core.logger import get_logger, log_migration_sql
from core.migrations import MIGRATIONS, Migration, MigrationError

logger = get_logger("db")

BOOKKEEPING_TABLE = "_migrations"


def split_statements(script: str) -> List[str]:
    """
    Splits a SQL script into single statements.
    Relies on sqlite3.complete_statement so semicolons inside string
    literals, comments and trigger bodies do not end a statement.

    Args:
        script: One or more SQL statements.

    Returns:
        The statements in order, stripped. Blank chunks are dropped.
    """
    statements: List[str] = []
    buffer = ""
    for char in script:
        buffer += char
        if char == ";" and sqlite3.complete_statement(buffer):
            statements.append(buffer.strip())
            buffer = ""
    if buffer.strip():
        # Trailing text without terminator; let SQLite judge it.
        statements.append(buffer.strip())
    return statements


class DatabaseManager:
    """
    Manages the SQLite connection and schema convergence.
    """

    def __init__(self, db_path: str = "subly.db",
                 migrations: Sequence[Migration] = MIGRATIONS) -> None:
        """
        Initializes the DatabaseManager.

        Args:
            db_path: Path to the SQLite database file.
            migrations: Ordered migration registry (see core.migrations).
        """
        self.db_path: str = db_path
        self.migrations: Sequence[Migration] = migrations
        self.connection: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self) -> None:
        """
        Establishes a connection to the database and configures PRAGMAs.
        Enables WAL mode and foreign key constraints.
        """
        try:
            self.connection = sqlite3.connect(self.db_path)
            self.connection.row_factory = sqlite3.Row  # Enable named column access
            self.connection.execute("PRAGMA foreign_keys = ON")
            self.connection.execute("PRAGMA journal_mode = WAL")
            logger.info(f"Connected to database at {self.db_path} (WAL mode enabled)")
        except sqlite3.Error as e:
            logger.critical(f"Failed to connect to database: {e}")
            raise

    def init_db(self) -> List[int]:
        """
        Brings the schema up to date. Must finish before anything else
        touches the database.

        Returns:
            The versions applied by this call (empty if already current).

        Raises:
            MigrationError: If bookkeeping is inconsistent or a statement fails.
        """
        return self.run_migrations()

    def run_migrations(self) -> List[int]:
        """
        Applies every registered migration above the highest applied version,
        in ascending order, each in its own transaction. Stops at the first
        failure; versions applied before it stay applied.
        """
        if not self.connection:
            raise MigrationError("Database connection is closed")

        self._ensure_bookkeeping()
        applied = self._applied_checksums()
        self._verify_applied(applied)

        current = max(applied, default=0)
        pending = [m for m in self.migrations if m.version > current]
        if not pending:
            logger.info(f"Schema is up to date (version {current})")
            return []

        logger.info(f"Running migrations: {current} -> {pending[-1].version}")
        done: List[int] = []
        for migration in pending:
            self._apply(migration)
            done.append(migration.version)
        return done

    def _ensure_bookkeeping(self) -> None:
        """Creates the applied-version table on first run."""
        with self.connection:
            self.connection.execute(f"""
                CREATE TABLE IF NOT EXISTS {BOOKKEEPING_TABLE} (
                    version INTEGER PRIMARY KEY,
                    description TEXT NOT NULL,
                    installed_on TEXT NOT NULL,
                    checksum TEXT NOT NULL,
                    execution_time INTEGER NOT NULL
                )
            """)

    def _applied_checksums(self) -> Dict[int, str]:
        cursor = self.connection.execute(
            f"SELECT version, checksum FROM {BOOKKEEPING_TABLE} ORDER BY version"
        )
        return {int(row["version"]): str(row["checksum"]) for row in cursor.fetchall()}

    def _verify_applied(self, applied: Dict[int, str]) -> None:
        """
        Rejects a database whose history no longer matches the registry:
        an applied version that disappeared or whose statement was edited.
        """
        known = {m.version: m for m in self.migrations}
        for version, checksum in applied.items():
            migration = known.get(version)
            if migration is None:
                raise MigrationError(
                    f"Migration {version} was previously applied but is missing "
                    f"from the registry", version=version
                )
            if migration.checksum != checksum:
                raise MigrationError(
                    f"Migration {version} ({migration.description}) was modified "
                    f"after it was applied", version=version
                )

    def _apply(self, migration: Migration) -> None:
        """Runs one migration and records it, atomically."""
        logger.info(f"Applying migration {migration.version}: {migration.description}")
        started = time.perf_counter()
        try:
            with self.connection:
                self.connection.execute("BEGIN")
                for statement in split_statements(migration.statement):
                    log_migration_sql(migration.version, statement)
                    self.connection.execute(statement)
                elapsed_ns = int((time.perf_counter() - started) * 1_000_000_000)
                self.connection.execute(
                    f"INSERT INTO {BOOKKEEPING_TABLE} "
                    "(version, description, installed_on, checksum, execution_time) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        migration.version,
                        migration.description,
                        datetime.now(tz=timezone.utc).isoformat(timespec="seconds"),
                        migration.checksum,
                        elapsed_ns,
                    ),
                )
        except sqlite3.Error as e:
            logger.critical(f"Migration {migration.version} ({migration.description}) failed: {e}")
            raise MigrationError(
                f"Migration {migration.version} ({migration.description}) failed: {e}",
                version=migration.version,
            ) from e

    def applied_versions(self) -> List[int]:
        """Returns the applied versions in ascending order."""
        cursor = self.connection.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
            (BOOKKEEPING_TABLE,),
        )
        if cursor.fetchone() is None:
            return []
        return sorted(self._applied_checksums())

    def current_version(self) -> int:
        """Highest applied version, 0 for a fresh database."""
        return max(self.applied_versions(), default=0)

    def get_config_value(self, key: str) -> Optional[Any]:
        """
        Reads a JSON value from the 'config' table.
        Values that are not valid JSON are returned as the raw string.
        """
        row = self.connection.execute(
            "SELECT value FROM config WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            return row["value"]

    def set_config_value(self, key: str, value: Any) -> None:
        """Upserts a JSON encoded value into the 'config' table."""
        with self.connection:
            self.connection.execute(
                "INSERT INTO config (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, json.dumps(value)),
            )

    def close(self) -> None:
        """Safely closes the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None
