"""Export of selected assets into a destination directory.

Every item is resolved to its original file through the catalog and written
as `directory/filename`. Existing files are never overwritten: they are
counted as skipped, so exporting the same selection twice is harmless.
Per-item failures are counted and never abort the run. Nothing is retried.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path
import threading

from loguru import logger

from core.errors import ExportDestinationError, UltraPhotosError
from core.models import MediaAsset
from core.services.interfaces import CatalogService, ExportOutcome

ExportProgress = Callable[[int, int], None]


class ItemStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class ExportService:
    """Single-flight exporter with per-item outcome accounting."""

    def __init__(self, catalog: CatalogService) -> None:
        self._catalog = catalog
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def export(
        self,
        assets: Iterable[MediaAsset],
        directory: str | Path,
        progress: ExportProgress | None = None,
    ) -> ExportOutcome | None:
        """Export `assets` in order into `directory`.

        An empty selection returns an all-zero outcome without starting a
        run. Returns None when another export is already running.

        Args:
            assets: Visible selected assets, in visible order.
            directory: Existing destination directory.
            progress: Called as `progress(processed, total)` after each item.

        Raises:
            ExportDestinationError: When `directory` is not an existing directory.
        """
        items = list(assets)
        if not items:
            return ExportOutcome()

        dest_dir = Path(directory)
        if not dest_dir.is_dir():
            raise ExportDestinationError(f"Export destination is not a directory: {dest_dir}")

        if not self._lock.acquire(blocking=False):
            logger.info("Export already running; request ignored")
            return None
        try:
            outcome = ExportOutcome()
            total = len(items)
            for asset in items:
                status = self._export_one(asset, dest_dir)
                if status is ItemStatus.SUCCESS:
                    outcome.success += 1
                elif status is ItemStatus.SKIPPED:
                    outcome.skipped += 1
                else:
                    outcome.failure += 1
                if progress:
                    progress(outcome.processed, total)
            logger.info(
                "Export to {} finished: {} success, {} failed, {} skipped",
                dest_dir,
                outcome.success,
                outcome.failure,
                outcome.skipped,
            )
            return outcome
        finally:
            self._lock.release()

    def _export_one(self, asset: MediaAsset, dest_dir: Path) -> ItemStatus:
        try:
            resource = self._catalog.resolve_resource(asset)
        except (OSError, ValueError, UltraPhotosError) as ex:
            logger.warning("Resource lookup failed for {}: {}", asset.identifier, ex)
            return ItemStatus.FAILURE
        if resource is None:
            logger.warning("No exportable resource for {}", asset.identifier)
            return ItemStatus.FAILURE

        destination = dest_dir / Path(resource.filename).name
        if destination.exists():
            logger.debug("Skipping existing file {}", destination)
            return ItemStatus.SKIPPED

        try:
            self._catalog.write_resource(resource, destination)
        except (OSError, ValueError, UltraPhotosError) as ex:
            logger.error("Export of {} to {} failed: {}", asset.identifier, destination, ex)
            # Leave no partial file behind, it would be skipped on the next run
            try:
                destination.unlink(missing_ok=True)
            except OSError:
                pass
            return ItemStatus.FAILURE
        return ItemStatus.SUCCESS
