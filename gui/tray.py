"""
------------------------------------------------------------------------------
Project:        Subly
File:           gui/tray.py
Version:        1.0.0
Description:    Qt side of the window lifecycle: a WindowHandle over a
                QWidget and the system tray icon with its context menu.
                All decisions are delegated to core.lifecycle.
------------------------------------------------------------------------------
"""

from typing import Dict, Optional

from PyQt6.QtCore import QObject
from PyQt6.QtGui import QAction, QIcon
from PyQt6.QtWidgets import QApplication, QMenu, QSystemTrayIcon, QWidget

from core.config import AppConfig
from core.lifecycle import LifecycleController, LifecycleEvent, MENU_ITEMS
from core.logger import get_logger

logger = get_logger("gui.tray")

APP_NAME = "Subly"

# Left click and double click both bring the window back
ACTIVATION_EVENTS = {
    QSystemTrayIcon.ActivationReason.Trigger: LifecycleEvent.TRAY_CLICK,
    QSystemTrayIcon.ActivationReason.DoubleClick: LifecycleEvent.TRAY_DOUBLE_CLICK,
}


class QtWindowHandle:
    """
    WindowHandle implementation for a top-level Qt widget.
    """

    def __init__(self, window: QWidget) -> None:
        self.window = window

    def show(self) -> None:
        if self.window.isMinimized():
            self.window.showNormal()
        else:
            self.window.show()

    def hide(self) -> None:
        self.window.hide()

    def set_focus(self) -> None:
        self.window.raise_()
        self.window.activateWindow()

    def exit(self, code: int = 0) -> None:
        # exit() leaves the event loop without sending close events,
        # so the hide-on-close intercept cannot cancel it.
        QApplication.exit(code)


class TrayManager(QObject):
    """
    Owns the QSystemTrayIcon and forwards its signals to the controller.
    """

    def __init__(self, controller: LifecycleController, icon: QIcon,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.controller = controller
        self.tray = QSystemTrayIcon(icon, self)
        self.tray.setToolTip(APP_NAME)

        self.menu = QMenu()
        self.actions: Dict[str, QAction] = {}
        for item in MENU_ITEMS:
            if item is None:
                self.menu.addSeparator()
                continue
            menu_id, label = item
            action = QAction(self.tr(label), self.menu)
            action.setData(menu_id)
            action.triggered.connect(lambda _checked=False, mid=menu_id: self.controller.handle_menu(mid))
            self.menu.addAction(action)
            self.actions[menu_id] = action

        self.tray.setContextMenu(self.menu)
        self.tray.activated.connect(self._on_activated)

    def show(self) -> None:
        self.tray.show()

    def _on_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        event = ACTIVATION_EVENTS.get(reason)
        if event is not None:
            self.controller.handle_event(event)

    def prime_notifications(self, app_config: AppConfig) -> bool:
        """
        Sends the one-time notification that makes the OS ask for
        notification permission on first launch.

        Returns:
            True if the notification was sent by this call.
        """
        if app_config.is_notifications_primed():
            return False
        self.tray.showMessage(
            APP_NAME, self.tr("Notifications enabled"),
            QSystemTrayIcon.MessageIcon.Information, 3000
        )
        app_config.set_notifications_primed(True)
        logger.info("First launch: notification permission prompt triggered")
        return True
