"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/lifecycle.py
Version:        1.0.0
Description:    Window/tray lifecycle state machine. Deciding a transition is
                pure (decide); executing it goes through an injected
                WindowHandle so the controller runs without a windowing system.
                On desktops with a tray, closing the window hides it and only
                the explicit quit action terminates the process.
------------------------------------------------------------------------------
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Tuple

from core.logger import get_logger

logger = get_logger("lifecycle")


class WindowState(Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"
    TERMINATED = "terminated"


class LifecycleEvent(Enum):
    CLOSE_REQUESTED = "close_requested"
    MENU_SHOW = "menu_show"
    MENU_QUIT = "menu_quit"
    TRAY_CLICK = "tray_click"
    TRAY_DOUBLE_CLICK = "tray_double_click"


class Action(Enum):
    NONE = "none"
    HIDE = "hide"
    SHOW_AND_FOCUS = "show_and_focus"
    EXIT = "exit"


@dataclass(frozen=True)
class Transition:
    target: WindowState
    action: Action


# Tray context menu: (id, label) entries, None is a separator
MENU_ITEMS: Tuple[Optional[Tuple[str, str]], ...] = (
    ("show", "Open Subly"),
    None,
    ("quit", "Quit"),
)

_MENU_EVENTS = {
    "show": LifecycleEvent.MENU_SHOW,
    "quit": LifecycleEvent.MENU_QUIT,
}

_SHOW_EVENTS = frozenset({
    LifecycleEvent.MENU_SHOW,
    LifecycleEvent.TRAY_CLICK,
    LifecycleEvent.TRAY_DOUBLE_CLICK,
})


def event_for_menu_id(menu_id: str) -> Optional[LifecycleEvent]:
    """Maps a tray menu id to its event; unknown ids are ignored."""
    return _MENU_EVENTS.get(menu_id)


def decide(state: WindowState, event: LifecycleEvent) -> Transition:
    """
    Pure transition function.

    Args:
        state: Current window state.
        event: The user action that arrived.

    Returns:
        The next state and the side effect that realizes it.
    """
    if state is WindowState.TERMINATED:
        return Transition(WindowState.TERMINATED, Action.NONE)
    if event is LifecycleEvent.MENU_QUIT:
        return Transition(WindowState.TERMINATED, Action.EXIT)
    if event is LifecycleEvent.CLOSE_REQUESTED:
        return Transition(WindowState.HIDDEN, Action.HIDE)
    if event in _SHOW_EVENTS:
        return Transition(WindowState.VISIBLE, Action.SHOW_AND_FOCUS)
    return Transition(state, Action.NONE)


class WindowHandle(Protocol):
    """The only mutating operations the controller may perform."""

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def set_focus(self) -> None: ...

    def exit(self, code: int = 0) -> None: ...


class LifecycleController:
    """
    Common interface of the desktop and inert variants.
    """

    def __init__(self) -> None:
        self.state: WindowState = WindowState.VISIBLE

    @property
    def intercepts_close(self) -> bool:
        """True if a close request must be turned into a hide."""
        return False

    def handle_event(self, event: LifecycleEvent) -> WindowState:
        return self.state

    def handle_menu(self, menu_id: str) -> WindowState:
        event = event_for_menu_id(menu_id)
        if event is None:
            logger.debug(f"Ignoring unknown tray menu id '{menu_id}'")
            return self.state
        return self.handle_event(event)


class DesktopLifecycleController(LifecycleController):
    """
    Full tray-backed lifecycle. Window operations are best-effort:
    a failing show/hide/focus is logged and the state still advances.
    """

    def __init__(self, handle: WindowHandle) -> None:
        super().__init__()
        self.handle: WindowHandle = handle

    @property
    def intercepts_close(self) -> bool:
        # Once quitting, the close that follows must go through.
        return self.state is not WindowState.TERMINATED

    def handle_event(self, event: LifecycleEvent) -> WindowState:
        transition = decide(self.state, event)
        logger.debug(f"{event.value}: {self.state.value} -> {transition.target.value}")
        self.state = transition.target
        self._execute(transition.action)
        return self.state

    def _execute(self, action: Action) -> None:
        if action is Action.HIDE:
            self._best_effort("hide", self.handle.hide)
        elif action is Action.SHOW_AND_FOCUS:
            self._best_effort("show", self.handle.show)
            self._best_effort("set_focus", self.handle.set_focus)
        elif action is Action.EXIT:
            logger.info("Quit requested from tray")
            self.handle.exit(0)

    @staticmethod
    def _best_effort(name: str, operation) -> None:
        try:
            operation()
        except Exception as e:
            logger.warning(f"Window operation '{name}' failed: {e}")


class InertLifecycleController(LifecycleController):
    """
    Used where there is no tray: nothing is intercepted and closing the
    window terminates the application as usual.
    """


def create_lifecycle_controller(handle: WindowHandle, tray_supported: bool) -> LifecycleController:
    """Selects the controller variant for the current platform."""
    if tray_supported:
        return DesktopLifecycleController(handle)
    logger.info("System tray not available, close-to-tray disabled")
    return InertLifecycleController()
