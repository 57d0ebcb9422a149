"""ViewModel orchestrating the catalog, metadata sync, selection and export.

`MainVM` owns every piece of published state and is only touched from the
UI thread. Background work (catalog listing, sorting, metadata sync,
export, rendering) is handed to a `TaskRunner`, whose callbacks come back on
the UI thread. Views subscribe to the Qt signals below and read state
through the properties.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from PySide6.QtCore import QObject, Signal
from loguru import logger

from app.viewmodels.tasks import TaskRunner as QtTaskRunner
from core.constants import FULLSCREEN_MAX_SIDE, SYNC_BATCH_SIZE
from core.errors import ExportDestinationError
from core.models import (
    AuthorizationState,
    CatalogSnapshot,
    ClickModifiers,
    MediaAsset,
    MediaTypeFilter,
    MetadataRecord,
    NavigationDirection,
    SortOption,
    SortOrder,
)
from core.services.interfaces import (
    CatalogService,
    ExportOutcome,
    MetadataStore,
    SyncResult,
    TaskRunner,
    identifiers_of,
)
from core.services.navigation_service import FullscreenNavigator, capped_size
from core.services.selection_service import SelectionModel
from core.services.sort_service import FilterSortPipeline
from core.services.sync_service import MetadataSyncEngine
from infrastructure.export_service import ExportService
from infrastructure.image_service import ImageService


class MainVM(QObject):
    """Main application view-model.

    Mediates between the catalog/metadata collaborators and the grid,
    status bar and fullscreen views.
    """

    authorizationChanged = Signal(object)  # AuthorizationState
    assetsChanged = Signal()
    visibleAssetsChanged = Signal()
    loadingChanged = Signal(bool)
    errorChanged = Signal(str)
    selectionChanged = Signal()
    metadataChanged = Signal()
    syncStateChanged = Signal()
    exportStateChanged = Signal()
    exportFinished = Signal(object)  # ExportOutcome
    fullscreenChanged = Signal()
    thumbnailLoaded = Signal(str, object)  # identifier, QImage

    def __init__(
        self,
        catalog: CatalogService,
        store: MetadataStore,
        runner: TaskRunner | None = None,
        image_service: ImageService | None = None,
        *,
        batch_size: int = SYNC_BATCH_SIZE,
        fullscreen_max_side: int = FULLSCREEN_MAX_SIDE,
        media_filter: MediaTypeFilter = MediaTypeFilter.ALL,
        sort_option: SortOption = SortOption.CREATION_DATE,
        sort_order: SortOrder = SortOrder.DESCENDING,
        parent: QObject | None = None,
    ) -> None:
        """Create a MainVM.

        Args:
            catalog: Media catalog collaborator.
            store: Persisted metadata store.
            runner: Background task runner (defaults to the Qt thread pool runner).
            image_service: Thumbnail/preview renderer (defaults to one over `catalog`).
            batch_size: Metadata inserts per commit.
            fullscreen_max_side: Longest side of fullscreen renders.
            media_filter: Initial media type filter.
            sort_option: Initial sort key.
            sort_order: Initial sort direction.
        """
        super().__init__(parent)
        if runner is None:
            runner = QtTaskRunner(parent=self)
        self._catalog = catalog
        self._runner = runner
        self._images = image_service or ImageService(catalog)
        self._sync_engine = MetadataSyncEngine(store, catalog.file_size, batch_size)
        self._exporter = ExportService(catalog)
        self._pipeline = FilterSortPipeline(runner, self._publish_visible)
        self._selection = SelectionModel()
        self._navigator = FullscreenNavigator()
        self._fullscreen_max_side = int(fullscreen_max_side)

        self._authorization = AuthorizationState.NOT_DETERMINED
        self._snapshot = CatalogSnapshot()
        self._visible: list[MediaAsset] = []
        self._is_loading = False
        self._error_message: str | None = None
        self._metadata: dict[str, MetadataRecord] = {}

        self._media_filter = media_filter
        self._sort_option = sort_option
        self._sort_order = sort_order

        self._is_syncing = False
        self._sync_pending = False
        self._sync_progress = 0
        self._sync_total = 0

        self._is_exporting = False
        self._export_progress = 0
        self._export_total = 0
        self._last_export: ExportOutcome | None = None

        self._pending_thumbnails: set[str] = set()

    # ------------------------------------------------------------------
    # Authorization and catalog
    # ------------------------------------------------------------------
    @property
    def authorization_state(self) -> AuthorizationState:
        return self._authorization

    def _set_authorization(self, state: AuthorizationState) -> None:
        self._authorization = state
        self.authorizationChanged.emit(state)

    def check_authorization_status(self) -> AuthorizationState:
        """Read the catalog's access state without prompting."""
        self._set_authorization(self._catalog.authorization_status())
        return self._authorization

    def request_authorization(self) -> AuthorizationState:
        """Ask the catalog for access and fetch assets once it is granted."""
        self._set_authorization(self._catalog.request_authorization())
        if self._authorization.grants_access:
            self.fetch_assets()
        return self._authorization

    @property
    def assets(self) -> list[MediaAsset]:
        return list(self._snapshot.assets)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error_message(self) -> str | None:
        return self._error_message

    def _set_error(self, message: str | None) -> None:
        self._error_message = message
        self.errorChanged.emit(message or "")

    def _set_loading(self, loading: bool) -> None:
        self._is_loading = loading
        self.loadingChanged.emit(loading)

    def fetch_assets(self) -> bool:
        """List the catalog in the background; returns False if already loading."""
        if self._is_loading:
            return False
        self._set_loading(True)
        self._set_error(None)
        catalog = self._catalog
        self._runner.submit(
            lambda _report: catalog.list_assets(),
            on_done=self._on_assets_fetched,
            on_error=self._on_fetch_failed,
        )
        return True

    def refresh(self) -> bool:
        """Drop cached thumbnails and re-list the catalog."""
        self._images.invalidate_all()
        self._pending_thumbnails.clear()
        return self.fetch_assets()

    def _on_assets_fetched(self, assets: list[MediaAsset]) -> None:
        self._snapshot = CatalogSnapshot(list(assets))
        logger.info("Catalog loaded: {} assets", len(self._snapshot.assets))
        self._set_loading(False)
        self.assetsChanged.emit()
        self._recompute()
        self.sync_metadata()

    def _on_fetch_failed(self, ex: BaseException) -> None:
        logger.error("Catalog listing failed: {}", ex)
        self._set_loading(False)
        self._set_error(f"Failed to load the library: {ex}")

    # ------------------------------------------------------------------
    # Filter / sort pipeline
    # ------------------------------------------------------------------
    @property
    def media_filter(self) -> MediaTypeFilter:
        return self._media_filter

    @media_filter.setter
    def media_filter(self, value: MediaTypeFilter) -> None:
        if value is self._media_filter:
            return
        self._media_filter = value
        self._recompute()

    @property
    def sort_option(self) -> SortOption:
        return self._sort_option

    @sort_option.setter
    def sort_option(self, value: SortOption) -> None:
        if value is self._sort_option:
            return
        self._sort_option = value
        self._recompute()

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @sort_order.setter
    def sort_order(self, value: SortOrder) -> None:
        if value is self._sort_order:
            return
        self._sort_order = value
        self._recompute()

    def toggle_sort_order(self) -> None:
        self.sort_order = self._sort_order.toggled()

    @property
    def sort_generation(self) -> int:
        return self._pipeline.generation

    @property
    def visible_assets(self) -> list[MediaAsset]:
        return list(self._visible)

    @property
    def visible_identifiers(self) -> list[str]:
        return identifiers_of(self._visible)

    @property
    def file_sizes(self) -> dict[str, int]:
        return {identifier: r.file_size for identifier, r in self._metadata.items()}

    def _recompute(self) -> None:
        self._pipeline.recompute(
            self._snapshot.assets,
            self._media_filter,
            self._sort_option,
            self._sort_order,
            self.file_sizes,
        )

    def _publish_visible(self, assets: list[MediaAsset]) -> None:
        self._visible = list(assets)
        self.visibleAssetsChanged.emit()

    @property
    def item_count_text(self) -> str:
        count = len(self._visible)
        return f"{count} item" if count == 1 else f"{count} items"

    # ------------------------------------------------------------------
    # Metadata sync
    # ------------------------------------------------------------------
    @property
    def metadata_cache(self) -> dict[str, MetadataRecord]:
        return dict(self._metadata)

    def metadata_for(self, identifier: str) -> MetadataRecord | None:
        return self._metadata.get(identifier)

    @property
    def is_syncing_metadata(self) -> bool:
        return self._is_syncing

    @property
    def metadata_sync_progress(self) -> int:
        return self._sync_progress

    @property
    def metadata_sync_total(self) -> int:
        return self._sync_total

    @property
    def sync_status_text(self) -> str:
        if not self._is_syncing:
            return ""
        return f"Loading Metadata {self._sync_progress:,}/{self._sync_total:,}"

    def sync_metadata(self) -> bool:
        """Start a reconciliation run; returns False if one is already running.

        A refused request is remembered: the running sync is followed by
        another one over the snapshot current at that time.
        """
        if self._is_syncing:
            logger.info("Metadata sync already in progress; queued a follow-up run")
            self._sync_pending = True
            return False
        self._sync_pending = False
        self._is_syncing = True
        self._sync_progress = 0
        self._sync_total = 0
        self.syncStateChanged.emit()
        assets = list(self._snapshot.assets)
        engine = self._sync_engine
        self._runner.submit(
            lambda report: engine.sync(assets, lambda done, total: report((done, total))),
            on_done=self._on_sync_finished,
            on_progress=self._on_sync_progress,
            on_error=self._on_sync_failed,
        )
        return True

    def _on_sync_progress(self, value: tuple[int, int]) -> None:
        done, total = value
        self._sync_total = max(self._sync_total, int(total))
        self._sync_progress = max(self._sync_progress, int(done))
        self.syncStateChanged.emit()

    def _on_sync_finished(self, result: SyncResult | None) -> None:
        self._is_syncing = False
        if self._sync_pending:
            # The snapshot changed while this run was active; its records are stale.
            self.sync_metadata()
            return
        self.syncStateChanged.emit()
        if result is None:
            return
        self._metadata = dict(result.records)
        self.metadataChanged.emit()
        if self._sort_option is SortOption.FILE_SIZE:
            self._recompute()

    def _on_sync_failed(self, ex: BaseException) -> None:
        logger.error("Metadata sync failed: {}", ex)
        self._is_syncing = False
        self._set_error(f"Failed to load metadata: {ex}")
        if self._sync_pending:
            self.sync_metadata()
            return
        self.syncStateChanged.emit()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    @property
    def selected_identifiers(self) -> frozenset[str]:
        return frozenset(self._selection.selected)

    @property
    def selection_anchor(self) -> str | None:
        return self._selection.anchor

    def is_selected(self, identifier: str) -> bool:
        return self._selection.is_selected(identifier)

    def handle_thumbnail_click(
        self, identifier: str, modifiers: ClickModifiers | None = None
    ) -> None:
        self._selection.click(identifier, modifiers or ClickModifiers(), self.visible_identifiers)
        self.selectionChanged.emit()

    def select_all(self) -> None:
        self._selection.select_all(self.visible_identifiers)
        self.selectionChanged.emit()

    def clear_selection(self) -> None:
        self._selection.clear()
        self.selectionChanged.emit()

    @property
    def visible_selected_count(self) -> int:
        return self._selection.visible_selected_count(self.visible_identifiers)

    @property
    def visible_selected_assets(self) -> list[MediaAsset]:
        return self._selection.visible_selected_items(self._visible)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    @property
    def is_exporting(self) -> bool:
        return self._is_exporting

    @property
    def export_progress(self) -> int:
        return self._export_progress

    @property
    def export_total(self) -> int:
        return self._export_total

    @property
    def last_export_outcome(self) -> ExportOutcome | None:
        return self._last_export

    @property
    def export_enabled(self) -> bool:
        return not self._is_exporting and self.visible_selected_count > 0

    @property
    def export_menu_title(self) -> str:
        count = self.visible_selected_count
        if count == 0:
            return "Export"
        return "Export 1 Item" if count == 1 else f"Export {count} Items"

    def export_selected(self, directory: str | Path) -> bool:
        """Export the visible selection into `directory` in the background.

        Returns False when an export is already running or the destination is
        not a directory (the message is placed in `error_message`).
        """
        if self._is_exporting:
            logger.info("Export already in progress")
            return False
        items = self.visible_selected_assets
        if not items:
            self._last_export = ExportOutcome()
            self.exportFinished.emit(self._last_export)
            return True
        destination = Path(directory)
        if not destination.is_dir():
            self._set_error(f"Export destination is not a folder: {destination}")
            return False

        self._is_exporting = True
        self._export_progress = 0
        self._export_total = len(items)
        self.exportStateChanged.emit()
        exporter = self._exporter
        self._runner.submit(
            lambda report: exporter.export(
                items, destination, lambda done, total: report((done, total))
            ),
            on_done=self._on_export_finished,
            on_progress=self._on_export_progress,
            on_error=self._on_export_failed,
        )
        return True

    def _on_export_progress(self, value: tuple[int, int]) -> None:
        done, _total = value
        self._export_progress = max(self._export_progress, int(done))
        self.exportStateChanged.emit()

    def _on_export_finished(self, outcome: ExportOutcome | None) -> None:
        self._is_exporting = False
        self.exportStateChanged.emit()
        if outcome is None:
            return
        self._last_export = outcome
        self.exportFinished.emit(outcome)

    def _on_export_failed(self, ex: BaseException) -> None:
        self._is_exporting = False
        self.exportStateChanged.emit()
        if isinstance(ex, ExportDestinationError):
            self._set_error(str(ex))
        else:
            logger.error("Export failed: {}", ex)
            self._set_error(f"Export failed: {ex}")

    # ------------------------------------------------------------------
    # Thumbnails
    # ------------------------------------------------------------------
    def cached_thumbnail(self, identifier: str) -> Any | None:
        return self._images.cached_thumbnail(identifier)

    def load_thumbnail(self, identifier: str) -> Any | None:
        """Return a cached thumbnail, or start rendering it and return None.

        The rendered image is announced through `thumbnailLoaded`.
        """
        cached = self._images.cached_thumbnail(identifier)
        if cached is not None:
            return cached
        if identifier in self._pending_thumbnails:
            return None
        self._pending_thumbnails.add(identifier)
        images = self._images
        epoch = images.epoch
        self._runner.submit(
            lambda _report: images.get_thumbnail(identifier, epoch),
            on_done=lambda image: self._on_thumbnail(identifier, image, epoch),
            on_error=lambda ex: self._on_thumbnail_failed(identifier, ex, epoch),
        )
        return None

    def _on_thumbnail(self, identifier: str, image: Any | None, epoch: int) -> None:
        if epoch != self._images.epoch:
            # Rendered before a refresh; a newer request may already be pending.
            return
        self._pending_thumbnails.discard(identifier)
        if image is not None:
            self.thumbnailLoaded.emit(identifier, image)

    def _on_thumbnail_failed(self, identifier: str, ex: BaseException, epoch: int) -> None:
        if epoch == self._images.epoch:
            self._pending_thumbnails.discard(identifier)
        logger.debug("Thumbnail failed for {}: {}", identifier, ex)

    # ------------------------------------------------------------------
    # Fullscreen
    # ------------------------------------------------------------------
    @property
    def fullscreen_identifier(self) -> str | None:
        return self._navigator.current

    @property
    def fullscreen_image(self) -> Any | None:
        return self._navigator.image

    @property
    def is_loading_fullscreen_image(self) -> bool:
        return self._navigator.loading

    def open_fullscreen(self, identifier: str) -> None:
        self._navigator.open(identifier)
        self.fullscreenChanged.emit()
        self.load_fullscreen_image()

    def close_fullscreen(self) -> None:
        self._navigator.close()
        self.fullscreenChanged.emit()

    def navigate_fullscreen(self, direction: NavigationDirection) -> str | None:
        target = self._navigator.navigate(direction, self.visible_identifiers)
        if target is None:
            return None
        self.fullscreenChanged.emit()
        self.load_fullscreen_image()
        return target

    def load_fullscreen_image(self) -> None:
        """Render the current fullscreen asset in the background."""
        asset = self._navigator.begin_load(self._visible)
        if asset is None:
            self.fullscreenChanged.emit()
            return
        identifier = asset.identifier
        target = capped_size(asset.pixel_width, asset.pixel_height, self._fullscreen_max_side)
        images = self._images
        self._runner.submit(
            lambda _report: images.get_preview(identifier, target),
            on_done=lambda image: self._on_fullscreen_image(identifier, image),
            on_error=lambda ex: self._on_fullscreen_failed(identifier, ex),
        )

    def _on_fullscreen_image(self, identifier: str, image: Any | None) -> None:
        if not self._navigator.finish_load(identifier, image):
            logger.debug("Dropping stale fullscreen image for {}", identifier)
        self.fullscreenChanged.emit()

    def _on_fullscreen_failed(self, identifier: str, ex: BaseException) -> None:
        logger.warning("Fullscreen render failed for {}: {}", identifier, ex)
        self._navigator.finish_load(identifier, None)
        self.fullscreenChanged.emit()
