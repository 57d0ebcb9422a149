"""MainWindow: toolbar, thumbnail grid and status bar over `MainVM`.

The window holds no state of its own beyond widgets; every user action is
forwarded to the view-model and every change comes back through its
signals.
"""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QColor, QIcon, QPixmap
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QLabel,
    QListView,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QFileDialog,
    QSlider,
    QStackedWidget,
    QToolBar,
    QToolButton,
)
from loguru import logger

from app.viewmodels.main_vm import MainVM
from app.viewmodels.photo_vm import PhotoVM
from app.views.components.menu_controller import MenuController
from app.views.constants import (
    AUTHORIZATION_MESSAGES,
    DEFAULT_TILE_PX,
    GRID_MAX_TILE_PX,
    GRID_MIN_TILE_PX,
    GRID_SPACING_PX,
    ID_ROLE,
    PLACEHOLDER_RGB,
    SELECTED_TILE_RGBA,
    STATUS_TIMEOUT_MS,
    WINDOW_TITLE,
)
from app.views.fullscreen_view import FullscreenView
from core.models import ClickModifiers, MediaAsset, MediaTypeFilter, SortOption, SortOrder

_PAGE_MESSAGE = 0
_PAGE_GRID = 1


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, vm: MainVM, settings: Any | None = None) -> None:
        """Initialize MainWindow.

        Args:
            vm: ViewModel owning all application state
            settings: Settings instance for configuration
        """
        super().__init__()
        self._vm = vm
        self._tile_px = DEFAULT_TILE_PX
        if settings is not None:
            self._tile_px = settings.get_int("view.tile_size", DEFAULT_TILE_PX)
        self._tile_px = max(GRID_MIN_TILE_PX, min(GRID_MAX_TILE_PX, self._tile_px))
        self._items: dict[str, QListWidgetItem] = {}
        self._assets: dict[str, MediaAsset] = {}

        self.menu_controller = MenuController(self)
        self._setup_ui()
        self._connect_signals()
        self.fullscreen = FullscreenView(vm, self)

    def _setup_ui(self) -> None:
        """Setup the toolbar, grid and status bar."""
        self.setWindowTitle(WINDOW_TITLE)

        toolbar = QToolBar("View")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        self.filter_combo = QComboBox()
        for media_filter in MediaTypeFilter:
            self.filter_combo.addItem(media_filter.label, media_filter.value)
        self.filter_combo.setCurrentIndex(self.filter_combo.findData(self._vm.media_filter.value))
        toolbar.addWidget(self.filter_combo)

        self.size_slider = QSlider(Qt.Horizontal)
        self.size_slider.setRange(GRID_MIN_TILE_PX, GRID_MAX_TILE_PX)
        self.size_slider.setValue(self._tile_px)
        self.size_slider.setFixedWidth(120)
        toolbar.addWidget(self.size_slider)

        self.sort_combo = QComboBox()
        for option in SortOption:
            self.sort_combo.addItem(option.label, option.value)
        self.sort_combo.setCurrentIndex(self.sort_combo.findData(self._vm.sort_option.value))
        toolbar.addWidget(self.sort_combo)

        self.order_button = QToolButton()
        self._update_order_button()
        toolbar.addWidget(self.order_button)

        self.grid = QListWidget()
        self.grid.setViewMode(QListView.IconMode)
        self.grid.setResizeMode(QListView.Adjust)
        self.grid.setMovement(QListView.Static)
        self.grid.setUniformItemSizes(True)
        self.grid.setSpacing(GRID_SPACING_PX)
        # Selection is owned by the view-model, not by the list widget
        self.grid.setSelectionMode(QListWidget.NoSelection)
        self._apply_tile_size()

        self.message = QLabel()
        self.message.setAlignment(Qt.AlignCenter)
        self.message.setWordWrap(True)

        self.pages = QStackedWidget()
        self.pages.addWidget(self.message)
        self.pages.addWidget(self.grid)
        self.setCentralWidget(self.pages)

        self.sync_label = QLabel()
        self.count_label = QLabel()
        self.statusBar().addWidget(self.sync_label)
        self.statusBar().addPermanentWidget(self.count_label)

        self.menu_controller.setup_menus()
        self.menu_controller.connect_actions(
            {
                "export": self._on_export_requested,
                "refresh": self._vm.refresh,
                "exit": self.close,
                "select_all": self._vm.select_all,
                "clear_selection": self._vm.clear_selection,
            }
        )
        self.resize(1100, 760)

    def _connect_signals(self) -> None:
        """Connect all signal/slot relationships."""
        self.filter_combo.currentIndexChanged.connect(self._on_filter_changed)
        self.sort_combo.currentIndexChanged.connect(self._on_sort_changed)
        self.order_button.clicked.connect(self._on_order_clicked)
        self.size_slider.valueChanged.connect(self._on_tile_size_changed)
        self.grid.itemClicked.connect(self._on_item_clicked)
        self.grid.itemDoubleClicked.connect(self._on_item_double_clicked)

        vm = self._vm
        vm.authorizationChanged.connect(lambda _state: self._update_page())
        vm.loadingChanged.connect(lambda _loading: self._update_page())
        vm.visibleAssetsChanged.connect(self._rebuild_grid)
        vm.selectionChanged.connect(self._refresh_tiles)
        vm.metadataChanged.connect(self._refresh_tiles)
        vm.thumbnailLoaded.connect(self._on_thumbnail_loaded)
        vm.syncStateChanged.connect(self._update_status)
        vm.exportStateChanged.connect(self._update_status)
        vm.exportFinished.connect(self._on_export_finished)
        vm.errorChanged.connect(self._on_error)

    # Page / status -----------------------------------------------------
    def _update_page(self) -> None:
        state = self._vm.authorization_state
        if not state.grants_access:
            self.message.setText(AUTHORIZATION_MESSAGES.get(state, ""))
            self.pages.setCurrentIndex(_PAGE_MESSAGE)
        elif self._vm.is_loading:
            self.message.setText("Loading photos…")
            self.pages.setCurrentIndex(_PAGE_MESSAGE)
        elif not self._vm.visible_assets:
            self.message.setText("No photos or videos found.")
            self.pages.setCurrentIndex(_PAGE_MESSAGE)
        else:
            self.pages.setCurrentIndex(_PAGE_GRID)

    def _update_status(self) -> None:
        vm = self._vm
        if vm.is_exporting:
            self.sync_label.setText(f"Exporting {vm.export_progress}/{vm.export_total}")
        else:
            self.sync_label.setText(vm.sync_status_text)
        self.count_label.setText(vm.item_count_text)
        self.menu_controller.update_export_action(vm.export_menu_title, vm.export_enabled)

    def _update_order_button(self) -> None:
        ascending = self._vm.sort_order is SortOrder.ASCENDING
        self.order_button.setText("↑" if ascending else "↓")
        self.order_button.setToolTip("Sort Ascending" if ascending else "Sort Descending")

    # Grid ---------------------------------------------------------------
    def _apply_tile_size(self) -> None:
        self.grid.setIconSize(QSize(self._tile_px, self._tile_px))
        self.grid.setGridSize(QSize(self._tile_px + 16, self._tile_px + 36))

    def _placeholder_icon(self) -> QIcon:
        pm = QPixmap(self._tile_px, self._tile_px)
        pm.fill(QColor(*PLACEHOLDER_RGB))
        return QIcon(pm)

    def _rebuild_grid(self) -> None:
        self.grid.clear()
        self._items = {}
        self._assets = {}
        placeholder = self._placeholder_icon()
        for asset in self._vm.visible_assets:
            item = QListWidgetItem(placeholder, "")
            item.setData(ID_ROLE, asset.identifier)
            self.grid.addItem(item)
            self._items[asset.identifier] = item
            self._assets[asset.identifier] = asset
            image = self._vm.load_thumbnail(asset.identifier)
            if image is not None:
                item.setIcon(QIcon(QPixmap.fromImage(image)))
        self._refresh_tiles()
        self._update_page()

    def _refresh_tiles(self) -> None:
        highlight = QColor(*SELECTED_TILE_RGBA)
        for identifier, item in self._items.items():
            tile = PhotoVM(
                asset=self._assets[identifier],
                record=self._vm.metadata_for(identifier),
                selected=self._vm.is_selected(identifier),
            )
            item.setText(tile.caption)
            item.setToolTip(identifier)
            item.setBackground(highlight if tile.selected else QColor(0, 0, 0, 0))
        self._update_status()

    def _on_thumbnail_loaded(self, identifier: str, image: Any) -> None:
        item = self._items.get(identifier)
        if item is not None:
            item.setIcon(QIcon(QPixmap.fromImage(image)))

    # User actions -------------------------------------------------------
    def _on_filter_changed(self, index: int) -> None:
        self._vm.media_filter = MediaTypeFilter(self.filter_combo.itemData(index))

    def _on_sort_changed(self, index: int) -> None:
        self._vm.sort_option = SortOption(self.sort_combo.itemData(index))

    def _on_order_clicked(self) -> None:
        self._vm.toggle_sort_order()
        self._update_order_button()

    def _on_tile_size_changed(self, value: int) -> None:
        self._tile_px = int(value)
        self._apply_tile_size()

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        mods = QApplication.keyboardModifiers()
        modifiers = ClickModifiers(
            toggle=bool(mods & (Qt.ControlModifier | Qt.MetaModifier)),
            range=bool(mods & Qt.ShiftModifier),
        )
        self._vm.handle_thumbnail_click(item.data(ID_ROLE), modifiers)

    def _on_item_double_clicked(self, item: QListWidgetItem) -> None:
        self._vm.open_fullscreen(item.data(ID_ROLE))

    def _on_export_requested(self) -> None:
        directory = QFileDialog.getExistingDirectory(self, "Export")
        if not directory:
            return
        logger.info("Export requested to {}", directory)
        self._vm.export_selected(directory)

    def _on_export_finished(self, outcome: Any) -> None:
        QMessageBox.information(
            self,
            "Export",
            f"Exported {outcome.success}, failed {outcome.failure}, skipped {outcome.skipped}.",
        )

    def _on_error(self, message: str) -> None:
        if message:
            self.statusBar().showMessage(message, STATUS_TIMEOUT_MS)
