"""Reconciliation of the persisted metadata cache against the catalog.

One run deletes records whose asset left the catalog, then inserts records
for assets seen for the first time, committing in batches. Records already
cached are never touched, so a second run over an unchanged catalog performs
no writes at all.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import threading

from loguru import logger

from core.constants import SYNC_BATCH_SIZE, UNKNOWN_FILE_SIZE
from core.errors import MetadataStoreError, UltraPhotosError
from core.models import MediaAsset, MetadataRecord
from core.services.interfaces import MetadataStore, SyncResult

SyncProgress = Callable[[int, int], None]


class MetadataSyncEngine:
    """Single-flight metadata reconciliation over a `MetadataStore`."""

    def __init__(
        self,
        store: MetadataStore,
        file_size: Callable[[MediaAsset], int],
        batch_size: int = SYNC_BATCH_SIZE,
    ) -> None:
        """Create the engine.

        Args:
            store: Persisted record store.
            file_size: Best-effort resolver for an asset's size in bytes.
            batch_size: Insertions between two commits.
        """
        self._store = store
        self._file_size = file_size
        self._batch_size = max(1, int(batch_size))
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def sync(
        self, assets: Iterable[MediaAsset], progress: SyncProgress | None = None
    ) -> SyncResult | None:
        """Reconcile the store with `assets`.

        Returns None without doing anything when a run is already active.
        `progress(done, total)` is called once with `done == 0` after the
        total is known, after every committed batch and once at the end with
        `done == total`.

        Raises:
            MetadataStoreError: When the store cannot be read or written.
                Writes not yet committed are rolled back first, so batches
                already committed are the only ones kept.
        """
        if not self._lock.acquire(blocking=False):
            logger.info("Metadata sync already running; request ignored")
            return None
        try:
            return self._run(list(assets), progress)
        except MetadataStoreError:
            self._store.rollback()
            raise
        finally:
            self._lock.release()

    def _run(self, assets: list[MediaAsset], progress: SyncProgress | None) -> SyncResult:
        existing = self._store.list_records()
        catalog_ids = {a.identifier for a in assets}

        stale = [r for r in existing if r.identifier not in catalog_ids]
        for record in stale:
            self._store.delete(record)
        if stale:
            self._store.commit()
            logger.info("Deleted {} stale metadata records", len(stale))

        cached = {r.identifier for r in existing if r.identifier in catalog_ids}
        to_sync: list[MediaAsset] = []
        for asset in assets:
            if asset.identifier in cached:
                continue
            cached.add(asset.identifier)
            to_sync.append(asset)

        total = len(to_sync)
        if progress:
            progress(0, total)

        inserted = 0
        for asset in to_sync:
            record = MetadataRecord.from_asset(asset, self._resolve_size(asset))
            self._store.insert(record)
            inserted += 1
            if inserted % self._batch_size == 0:
                self._store.commit()
                if progress:
                    progress(inserted, total)
        self._store.commit()
        if progress:
            progress(total, total)

        records = {r.identifier: r for r in self._store.list_records()}
        logger.info(
            "Metadata sync finished: {} deleted, {} inserted, {} cached",
            len(stale),
            inserted,
            len(records),
        )
        return SyncResult(deleted=len(stale), inserted=inserted, total=total, records=records)

    def _resolve_size(self, asset: MediaAsset) -> int:
        try:
            return int(self._file_size(asset) or UNKNOWN_FILE_SIZE)
        except (OSError, ValueError, TypeError, UltraPhotosError) as ex:
            logger.debug("File size unavailable for {}: {}", asset.identifier, ex)
            return UNKNOWN_FILE_SIZE
