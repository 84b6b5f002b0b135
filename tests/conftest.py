import os

import pytest
from PyQt6.QtCore import QSettings, QStandardPaths

from core.config import AppConfig

# Headless runs: no display server required
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

@pytest.fixture(autouse=True, scope="session")
def isolated_standard_paths():
    """Redirects QStandardPaths to Qt's test locations so real user data is never touched."""
    QStandardPaths.setTestModeEnabled(True)
    yield
    QStandardPaths.setTestModeEnabled(False)


@pytest.fixture
def app_config(tmp_path):
    """AppConfig backed by a throwaway INI file."""
    config = AppConfig(profile="test")
    config.settings = QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)
    return config


class FakeWindowHandle:
    """Records window operations; any name in `failing` raises instead."""

    def __init__(self, failing=()):
        self.calls = []
        self.failing = set(failing)

    def _record(self, name):
        self.calls.append(name)
        if name in self.failing:
            raise RuntimeError(f"{name} refused")

    def show(self):
        self._record("show")

    def hide(self):
        self._record("hide")

    def set_focus(self):
        self._record("set_focus")

    def exit(self, code=0):
        self._record(f"exit({code})")


@pytest.fixture
def fake_handle():
    return FakeWindowHandle()


@pytest.fixture
def make_fake_handle():
    return FakeWindowHandle


@pytest.fixture
def icloud_home(tmp_path):
    """A home directory with iCloud Drive enabled."""
    home = tmp_path / "home"
    (home / "Library" / "Mobile Documents" / "com~apple~CloudDocs").mkdir(parents=True)
    return home
