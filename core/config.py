"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/config.py
Version:        1.0.0
Description:    Manages application configuration using QSettings. Standardizes
                paths for data, database and log files across
                platforms (XDG standards on Linux).
------------------------------------------------------------------------------
"""

import json
from pathlib import Path
from typing import Any, Optional

from PyQt6.QtCore import QSettings, QStandardPaths


class AppConfig:
    """
    Manages application configuration using QSettings.
    Singleton-like usage via class methods or single instance.
    """

    KEY_LOG_LEVEL: str = "log_level"
    KEY_LOG_COMPONENTS: str = "log_components"
    KEY_NOTIFICATIONS_PRIMED: str = "notifications_primed"

    DEFAULT_LOG_LEVEL: str = "WARNING"

    APP_ID: str = "subly"
    _active_profile: Optional[str] = None

    def __init__(self, profile: Optional[str] = None) -> None:
        """
        Initializes the configuration manager.

        Args:
            profile: Optional profile name (e.g. 'dev', 'test').
                    If provided, all paths and settings are isolated (e.g. subly-dev).
        """
        # If no profile provided, use the last active one
        if profile is None:
            profile = AppConfig._active_profile
        else:
            AppConfig._active_profile = profile

        self.profile = profile
        self.active_id = self.APP_ID
        if profile:
            self.active_id = f"{self.APP_ID}-{profile}"

        self.settings = QSettings(self.active_id, self.active_id)

    def get_data_dir(self) -> Path:
        """
        Returns the path to the application data directory.
        Forces a flat structure: ~/.local/share/subly[-profile]/
        """
        base_path = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericDataLocation)
        data_dir = Path(base_path) / self.active_id
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_path(self) -> Path:
        """Returns the location of the SQLite database file."""
        return self.get_data_dir() / f"{self.APP_ID}.db"

    def _get_setting(self, group: str, key: str, default: Any = None) -> Any:
        """
        Helper to retrieve a setting value from a specific group.

        Args:
            group: The configuration group name.
            key: The setting key.
            default: The default value if not found.

        Returns:
            The retrieved value or default.
        """
        if group:
            self.settings.beginGroup(group)
        val = self.settings.value(key, default)
        if group:
            self.settings.endGroup()
        return val

    def _set_setting(self, group: str, key: str, value: Any) -> None:
        """
        Helper to save a setting value into a specific group.

        Args:
            group: The configuration group name.
            key: The setting key.
            value: The value to save.
        """
        if isinstance(value, str):
            value = value.strip()

        if group:
            self.settings.beginGroup(group)
        self.settings.setValue(key, value)
        if group:
            self.settings.endGroup()

    def get_log_level(self) -> str:
        """Retrieves the global log level."""
        return str(self._get_setting("Logging", self.KEY_LOG_LEVEL, self.DEFAULT_LOG_LEVEL))

    def set_log_level(self, level: str) -> None:
        """Saves the global log level."""
        self._set_setting("Logging", self.KEY_LOG_LEVEL, level.upper())

    def get_log_components(self) -> dict:
        """Retrieves a dictionary of component-specific log levels."""
        raw = str(self._get_setting("Logging", self.KEY_LOG_COMPONENTS, "{}"))
        try:
            components = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return components if isinstance(components, dict) else {}

    def set_log_components(self, components: dict) -> None:
        """Saves a dictionary of component-specific log levels."""
        self._set_setting("Logging", self.KEY_LOG_COMPONENTS, json.dumps(components))

    def get_log_file_path(self) -> Path:
        """Returns the absolute path to the log file."""
        return self.get_data_dir() / "app.log"

    def is_notifications_primed(self) -> bool:
        """
        True once the first-launch notification has been sent.
        QSettings may hand back booleans as strings on some backends.
        """
        val = self._get_setting("Notifications", self.KEY_NOTIFICATIONS_PRIMED, False)
        if isinstance(val, str):
            return val.lower() == "true"
        return bool(val)

    def set_notifications_primed(self, primed: bool = True) -> None:
        """Records that the permission-priming notification was issued."""
        self._set_setting("Notifications", self.KEY_NOTIFICATIONS_PRIMED, primed)
