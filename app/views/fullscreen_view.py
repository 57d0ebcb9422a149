"""Fullscreen viewer for one asset with previous/next navigation."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent, QPixmap, QResizeEvent
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from app.viewmodels.main_vm import MainVM
from app.views.constants import FULLSCREEN_NAV_BUTTON_PX
from core.models import NavigationDirection


class FullscreenView(QWidget):
    """Shows `vm.fullscreen_image`; arrow keys navigate, Escape closes."""

    def __init__(self, vm: MainVM, parent: QWidget | None = None) -> None:
        super().__init__(parent, Qt.Window)
        self._vm = vm
        self._pixmap: QPixmap | None = None
        self.setFocusPolicy(Qt.StrongFocus)

        self._label = QLabel()
        self._label.setAlignment(Qt.AlignCenter)
        self._label.setMinimumSize(1, 1)

        self._prev = QPushButton("‹")
        self._next = QPushButton("›")
        for button in (self._prev, self._next):
            button.setFixedSize(FULLSCREEN_NAV_BUTTON_PX, FULLSCREEN_NAV_BUTTON_PX)
            button.setFocusPolicy(Qt.NoFocus)
        self._prev.clicked.connect(lambda: self._vm.navigate_fullscreen(NavigationDirection.PREVIOUS))
        self._next.clicked.connect(lambda: self._vm.navigate_fullscreen(NavigationDirection.NEXT))

        row = QHBoxLayout()
        row.addWidget(self._prev)
        row.addWidget(self._label, 1)
        row.addWidget(self._next)
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.addLayout(row)

        vm.fullscreenChanged.connect(self.refresh)

    def refresh(self) -> None:
        """Sync the widget with the view-model's fullscreen state."""
        if self._vm.fullscreen_identifier is None:
            self._pixmap = None
            self.hide()
            return
        image = self._vm.fullscreen_image
        if image is not None:
            self._pixmap = QPixmap.fromImage(image)
            self._apply_pixmap()
        else:
            self._pixmap = None
            self._label.setPixmap(QPixmap())
            self._label.setText("Loading…" if self._vm.is_loading_fullscreen_image else "")
        self.setWindowTitle(self._vm.fullscreen_identifier)
        if not self.isVisible():
            self.showFullScreen()
            self.setFocus()

    def _apply_pixmap(self) -> None:
        if self._pixmap is None or self._pixmap.isNull():
            return
        self._label.setPixmap(
            self._pixmap.scaled(self._label.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation)
        )

    def resizeEvent(self, event: QResizeEvent) -> None:  # noqa: N802 - Qt override
        super().resizeEvent(event)
        self._apply_pixmap()

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802 - Qt override
        key = event.key()
        if key == Qt.Key_Escape:
            self._vm.close_fullscreen()
        elif key == Qt.Key_Left:
            self._vm.navigate_fullscreen(NavigationDirection.PREVIOUS)
        elif key == Qt.Key_Right:
            self._vm.navigate_fullscreen(NavigationDirection.NEXT)
        else:
            super().keyPressEvent(event)
