"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/migrations.py
Version:        1.0.0
Description:    Static registry of SQLite schema migrations. Each migration is
                plain data (version, description, SQL) so that tests can
                substitute a synthetic registry against a temporary database.
                Released migrations must never be edited; add a new version.
------------------------------------------------------------------------------
"""

import hashlib
from dataclasses import dataclass
from typing import Iterable, Tuple


class MigrationError(RuntimeError):
    """
    Raised when schema convergence fails. Fatal at startup.

    Attributes:
        version: The migration version that failed, if any.
    """

    def __init__(self, message: str, version: int = 0) -> None:
        super().__init__(message)
        self.version = version


@dataclass(frozen=True)
class Migration:
    """A single forward-only schema change."""
    version: int
    description: str
    statement: str

    @property
    def checksum(self) -> str:
        """SHA-384 of the statement text, stored alongside the applied version."""
        return hashlib.sha384(self.statement.encode("utf-8")).hexdigest()


def build_registry(migrations: Iterable[Migration]) -> Tuple[Migration, ...]:
    """
    Validates and freezes an ordered migration list.

    Args:
        migrations: Migrations in the order they were declared.

    Returns:
        An immutable tuple in ascending version order.

    Raises:
        ValueError: On versions below 1, duplicates, or declaration out of order.
    """
    registry = tuple(migrations)
    previous = 0
    for migration in registry:
        if migration.version < 1:
            raise ValueError(f"Migration version must be >= 1, got {migration.version}")
        if migration.version == previous:
            raise ValueError(f"Duplicate migration version {migration.version}")
        if migration.version < previous:
            raise ValueError(
                f"Migration {migration.version} declared after {previous}; "
                "versions must be strictly increasing"
            )
        previous = migration.version
    return registry


CREATE_INITIAL_TABLES = """
CREATE TABLE IF NOT EXISTS subscriptions (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    logo TEXT NOT NULL DEFAULT '',
    price REAL NOT NULL DEFAULT 0,
    currency_id TEXT NOT NULL DEFAULT '',
    next_payment TEXT NOT NULL DEFAULT '',
    start_date TEXT NOT NULL DEFAULT '',
    cycle INTEGER NOT NULL DEFAULT 3,
    frequency INTEGER NOT NULL DEFAULT 1,
    notes TEXT NOT NULL DEFAULT '',
    payment_method_id TEXT NOT NULL DEFAULT '',
    payer_user_id TEXT NOT NULL DEFAULT '',
    category_id TEXT NOT NULL DEFAULT '',
    notify INTEGER NOT NULL DEFAULT 0,
    notify_days_before INTEGER NOT NULL DEFAULT 0,
    last_notified_date TEXT NOT NULL DEFAULT '',
    inactive INTEGER NOT NULL DEFAULT 0,
    auto_renew INTEGER NOT NULL DEFAULT 1,
    url TEXT NOT NULL DEFAULT '',
    cancellation_date TEXT,
    replacement_subscription_id TEXT,
    created_at TEXT NOT NULL DEFAULT '',
    favorite INTEGER NOT NULL DEFAULT 0,
    tags TEXT NOT NULL DEFAULT '[]' -- JSON list of tag ids
);

CREATE TABLE IF NOT EXISTS payment_records (
    id TEXT PRIMARY KEY,
    subscription_id TEXT NOT NULL REFERENCES subscriptions(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    amount REAL NOT NULL DEFAULT 0,
    currency_id TEXT NOT NULL DEFAULT '',
    note TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_payment_records_subscription
    ON payment_records(subscription_id);

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    amount REAL NOT NULL DEFAULT 0,
    currency_id TEXT NOT NULL DEFAULT '',
    date TEXT NOT NULL DEFAULT '',
    category_id TEXT NOT NULL DEFAULT '',
    payment_method_id TEXT NOT NULL DEFAULT '',
    payer_user_id TEXT NOT NULL DEFAULT '',
    tags TEXT NOT NULL DEFAULT '[]',
    notes TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT '',
    url TEXT NOT NULL DEFAULT '',
    subscription_id TEXT NOT NULL DEFAULT '',
    payment_record_id TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    icon TEXT NOT NULL DEFAULT '',
    sort_order INTEGER NOT NULL DEFAULT 0,
    i18n_key TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS currencies (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    symbol TEXT NOT NULL DEFAULT '',
    code TEXT NOT NULL,
    rate REAL NOT NULL DEFAULT 1,
    sort_order INTEGER NOT NULL DEFAULT 0,
    i18n_key TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS household_members (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL DEFAULT '',
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS payment_methods (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    icon TEXT NOT NULL DEFAULT '',
    enabled INTEGER NOT NULL DEFAULT 1,
    sort_order INTEGER NOT NULL DEFAULT 0,
    i18n_key TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS tags (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    favorite INTEGER NOT NULL DEFAULT 0,
    sort_order INTEGER NOT NULL DEFAULT 0,
    i18n_key TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL -- JSON encoded
);
"""

ADD_CURRENCY_RATE_HISTORY = """
CREATE TABLE IF NOT EXISTS currency_rate_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    currency_id TEXT NOT NULL,
    rate REAL NOT NULL,
    recorded_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_currency_rate_history_currency
    ON currency_rate_history(currency_id, recorded_at);
"""

MIGRATIONS: Tuple[Migration, ...] = build_registry([
    Migration(1, "create_initial_tables", CREATE_INITIAL_TABLES),
    Migration(2, "add_currency_rate_history", ADD_CURRENCY_RATE_HISTORY),
])
