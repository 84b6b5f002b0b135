"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/logger.py
Version:        1.1.0
Description:    Logging for Subly. One 'subly' logger tree with console and
                optional file output, per-component level overrides read from
                AppConfig, and a DEBUG trace of every migration statement.
------------------------------------------------------------------------------
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

APP_LOGGER_NAME = "subly"

LOG_FORMAT = "%(asctime)s [%(levelname).4s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Component receiving the migration statement trace
MIGRATION_SQL_COMPONENT = "db.migrations.sql"


def _level_from_name(name: str) -> Optional[int]:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else None


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    component_levels: Optional[Dict[str, str]] = None
) -> logging.Logger:
    """
    (Re)configures the application logger tree. Safe to call repeatedly:
    handlers from a previous call are closed and replaced.

    Args:
        level: Level name for the whole tree; unknown names fall back to WARNING.
        log_file: Optional file receiving the same records as stdout.
        component_levels: Overrides such as {"db": "DEBUG"}.

    Returns:
        The 'subly' root logger.
    """
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    for old in list(app_logger.handlers):
        app_logger.removeHandler(old)
        old.close()

    numeric_level = _level_from_name(level)
    app_logger.setLevel(logging.WARNING if numeric_level is None else numeric_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(log_file):
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)

    for component, cmp_level in (component_levels or {}).items():
        set_component_level(component, cmp_level)
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, always inside the 'subly' tree."""
    if name == APP_LOGGER_NAME or name.startswith(APP_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


def set_component_level(component: str, level: str) -> bool:
    """
    Overrides the level of one component.

    Returns:
        False if the level name is unknown; the component is left untouched.
    """
    numeric_level = _level_from_name(level)
    if numeric_level is None:
        get_logger("core").warning(f"Ignoring unknown log level '{level}' for '{component}'")
        return False
    get_logger(component).setLevel(numeric_level)
    return True


def log_migration_sql(version: int, statement: str) -> None:
    """
    Traces one statement of a migration as 'v<N>: <sql>' on a single line.
    Emitted at DEBUG on 'subly.db.migrations.sql'.
    """
    logger = get_logger(MIGRATION_SQL_COMPONENT)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"v{version}: {' '.join(statement.split())}")
