"""MenuController: Manages menu creation and action connections."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QMainWindow, QMenuBar


class MenuController:
    """Manages main window menu creation and action connections.

    This class encapsulates all menu-related functionality including:
    - Menu structure creation
    - Action creation and organization
    - Action-to-handler connection management
    """

    def __init__(self, main_window: QMainWindow) -> None:
        """Initialize with main window reference.

        Args:
            main_window: The QMainWindow to create menus for
        """
        self.window = main_window
        self.actions: dict[str, QAction] = {}

    def setup_menus(self) -> dict[str, QAction]:
        """Create all menus and return action references.

        Returns:
            Dictionary mapping action names to QAction instances
        """
        menubar = QMenuBar(self.window)

        # File Menu
        file_menu = menubar.addMenu("File")
        self.actions["export"] = file_menu.addAction("Export")
        self.actions["export"].setShortcut(QKeySequence("Ctrl+E"))
        self.actions["export"].setEnabled(False)
        self.actions["refresh"] = file_menu.addAction("Refresh Library")
        self.actions["refresh"].setShortcut(QKeySequence.Refresh)
        file_menu.addSeparator()
        self.actions["exit"] = file_menu.addAction("Exit")

        # Edit Menu
        edit_menu = menubar.addMenu("Edit")
        self.actions["select_all"] = edit_menu.addAction("Select All")
        self.actions["select_all"].setShortcut(QKeySequence.SelectAll)
        self.actions["clear_selection"] = edit_menu.addAction("Deselect All")
        self.actions["clear_selection"].setShortcut(QKeySequence("Ctrl+Shift+A"))

        self.window.setMenuBar(menubar)
        return self.actions

    def connect_actions(self, handlers: dict[str, Callable]) -> None:
        """Connect menu actions to their handler methods.

        Args:
            handlers: Dictionary mapping action names to handler callables
        """
        for name, handler in handlers.items():
            action = self.actions.get(name)
            if action is not None:
                action.triggered.connect(handler)

    def update_export_action(self, title: str, enabled: bool) -> None:
        """Reflect the current selection in the Export action."""
        action = self.actions.get("export")
        if action is None:
            return
        action.setText(f"{title}…" if enabled else title)
        action.setEnabled(enabled)
