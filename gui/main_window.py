"""
------------------------------------------------------------------------------
Project:        Subly
File:           gui/main_window.py
Version:        1.0.0
Description:    Main application window. Hosts the UI layer and routes
                the window-manager close request through the lifecycle
                controller so it can become a hide-to-tray.
------------------------------------------------------------------------------
"""

from typing import Optional

from PyQt6.QtGui import QCloseEvent
from PyQt6.QtWidgets import QMainWindow, QWidget

from core.lifecycle import LifecycleController, LifecycleEvent
from core.logger import get_logger

logger = get_logger("gui.main_window")


class MainWindow(QMainWindow):
    """
    Top-level window. The lifecycle controller is attached after
    construction because its WindowHandle wraps this window.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.lifecycle: Optional[LifecycleController] = None
        self.setObjectName("main")
        self.setWindowTitle("Subly")
        self.setCentralWidget(QWidget(self))
        self.resize(1100, 720)

    def set_lifecycle(self, controller: LifecycleController) -> None:
        self.lifecycle = controller

    def closeEvent(self, event: QCloseEvent):
        """Handle window close: hide to tray unless the controller lets it through."""
        if self.lifecycle is not None and self.lifecycle.intercepts_close:
            event.ignore()
            self.lifecycle.handle_event(LifecycleEvent.CLOSE_REQUESTED)
            return
        super().closeEvent(event)
