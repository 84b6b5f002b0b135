"""
------------------------------------------------------------------------------
Project:        Subly
File:           main.py
Version:        1.0.0
Description:    Application entry point. Initializes the Qt environment,
                logging and configuration, converges the database schema and
                wires the main window to the tray lifecycle.
------------------------------------------------------------------------------
"""

import argparse
import sys

from PyQt6.QtCore import QCoreApplication
from PyQt6.QtWidgets import QApplication, QStyle, QSystemTrayIcon

from core.config import AppConfig
from core.database import DatabaseManager
from core.lifecycle import DesktopLifecycleController, create_lifecycle_controller
from core.logger import setup_logging, get_logger
from core.migrations import MigrationError
from gui.main_window import MainWindow
from gui.tray import QtWindowHandle, TrayManager


def main() -> None:
    """
    Subly Entry Point.
    Initializes infrastructure and launches the GUI.
    """
    parser = argparse.ArgumentParser(description="Subly - Subscription Tracker")
    parser.add_argument("-P", "--profile", type=str, help="Application profile for isolation (e.g. 'dev')")
    args, unknown = parser.parse_known_args()

    app = QApplication(sys.argv)

    app_id = "subly"
    if args.profile:
        app_id = f"subly-{args.profile}"
    QCoreApplication.setApplicationName(app_id)

    app_config = AppConfig(profile=args.profile)

    setup_logging(
        level=app_config.get_log_level(),
        log_file=str(app_config.get_log_file_path()),
        component_levels=app_config.get_log_components()
    )
    logger = get_logger("core")
    logger.info(f"Subly started (Profile: {args.profile or 'default'})")

    # 1. Schema convergence before anything touches the database
    db = DatabaseManager(db_path=str(app_config.get_database_path()))
    try:
        applied = db.init_db()
    except MigrationError as e:
        logger.critical(f"Database migration failed, aborting startup: {e}")
        db.close()
        sys.exit(1)
    if applied:
        logger.info(f"Applied migrations: {applied}")

    # 2. Window + lifecycle
    window = MainWindow()
    tray_supported = QSystemTrayIcon.isSystemTrayAvailable()
    controller = create_lifecycle_controller(QtWindowHandle(window), tray_supported)
    window.set_lifecycle(controller)

    tray = None
    if isinstance(controller, DesktopLifecycleController):
        # Hidden window must not end the event loop
        app.setQuitOnLastWindowClosed(False)
        icon = app.windowIcon()
        if icon.isNull():
            icon = app.style().standardIcon(QStyle.StandardPixmap.SP_ComputerIcon)
        tray = TrayManager(controller, icon)
        tray.show()
        tray.prime_notifications(app_config)

    window.show()

    # 3. Event Loop
    exit_code = app.exec()
    db.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
