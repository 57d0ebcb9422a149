"""Core service interfaces and shared data structures.

This module defines the collaborator protocols consumed by the core (the
media catalog, the persisted metadata store and the background task runner)
and the small result dataclasses passed between the services and the UI
layer.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from core.models import AuthorizationState, ContentMode, MediaAsset, MetadataRecord

ProgressReporter = Callable[[Any], None]


@dataclass
class ExportResource:
    """An exportable backing file for one asset.

    Attributes:
        filename: Original filename, used as the destination name.
        source: Opaque byte source understood by the catalog that produced it.
    """

    filename: str
    source: Any


@dataclass
class ExportOutcome:
    """Outcome of one export run.

    Attributes:
        success: Items written to the destination.
        failure: Items whose resource could not be resolved or written.
        skipped: Items whose destination file already existed.
    """

    success: int = 0
    failure: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.success + self.failure + self.skipped


@dataclass
class SyncResult:
    """Outcome of one metadata reconciliation run.

    Attributes:
        deleted: Records removed because their asset left the catalog.
        inserted: Records created for newly seen assets.
        total: Number of assets that needed syncing.
        records: All persisted records after the run, keyed by identifier.
    """

    deleted: int = 0
    inserted: int = 0
    total: int = 0
    records: dict[str, MetadataRecord] = field(default_factory=dict)


class CatalogService(Protocol):
    """The externally-owned media catalog and its image renderer."""

    def authorization_status(self) -> AuthorizationState:
        """Return the current access state without prompting."""
        ...

    def request_authorization(self) -> AuthorizationState:
        """Ask for access and return the resulting state."""
        ...

    def list_assets(self) -> list[MediaAsset]:
        """Return all assets, newest capture first.

        Raises:
            CatalogError: When the catalog cannot be listed.
        """
        ...

    def request_image(
        self, identifier: str, target_size: tuple[int, int], content_mode: ContentMode
    ) -> Any | None:
        """Render a preview of `identifier` bounded by `target_size`, or None."""
        ...

    def file_size(self, asset: MediaAsset) -> int:
        """Return the size in bytes of the asset's backing file (may raise)."""
        ...

    def resolve_resource(self, asset: MediaAsset) -> ExportResource | None:
        """Return the exportable resource of `asset`, or None if it has none."""
        ...

    def write_resource(self, resource: ExportResource, destination: Path) -> None:
        """Write `resource` to `destination` (raises on failure)."""
        ...


class MetadataStore(Protocol):
    """Persistent flat table of `MetadataRecord` keyed by identifier."""

    def list_records(self) -> list[MetadataRecord]:
        """Return all records.

        Raises:
            MetadataStoreError: When the store cannot be read.
        """
        ...

    def insert(self, record: MetadataRecord) -> None: ...

    def delete(self, record: MetadataRecord) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class TaskRunner(Protocol):
    """Runs callables off the UI thread and posts results back to it.

    `fn` receives a progress reporter; `on_done`, `on_progress` and
    `on_error` are always invoked on the UI thread.
    """

    def submit(
        self,
        fn: Callable[[ProgressReporter], Any],
        *,
        on_done: Callable[[Any], None],
        on_progress: Callable[[Any], None] | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None: ...


def identifiers_of(assets: Iterable[MediaAsset]) -> list[str]:
    """Return the identifiers of `assets` in order."""
    return [a.identifier for a in assets]
