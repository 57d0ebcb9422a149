from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import os
from pathlib import Path
import sys
from typing import Any, Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]

# Ensure the flat project packages are importable without installation.
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.errors import MetadataStoreError  # noqa: E402
from core.models import AuthorizationState, MediaAsset, MetadataRecord  # noqa: E402
from core.services.interfaces import ExportResource  # noqa: E402

BASE_DATE = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_asset(
    identifier: str,
    *,
    hours_ago: int = 0,
    is_video: bool = False,
    duration: float = 0.0,
    dated: bool = True,
    size: tuple[int, int] = (4000, 3000),
) -> MediaAsset:
    return MediaAsset(
        identifier=identifier,
        creation_date=BASE_DATE - timedelta(hours=hours_ago) if dated else None,
        is_video=is_video,
        duration=duration,
        pixel_width=size[0],
        pixel_height=size[1],
    )


class FakeCatalog:
    """In-memory `CatalogService` with controllable failures."""

    def __init__(
        self,
        assets: list[MediaAsset] | None = None,
        *,
        sizes: dict[str, int] | None = None,
        state: AuthorizationState = AuthorizationState.AUTHORIZED,
        granted_state: AuthorizationState | None = None,
    ) -> None:
        self.assets = list(assets or [])
        self.sizes = dict(sizes or {})
        self.state = state
        self.granted_state = granted_state or state
        self.list_error: Exception | None = None
        self.missing_resources: set[str] = set()
        self.failing_writes: set[str] = set()
        self.image_requests: list[tuple[str, tuple[int, int], Any]] = []
        self.list_calls = 0

    def authorization_status(self) -> AuthorizationState:
        return self.state

    def request_authorization(self) -> AuthorizationState:
        self.state = self.granted_state
        return self.state

    def list_assets(self) -> list[MediaAsset]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.assets)

    def request_image(self, identifier: str, target_size: tuple[int, int], content_mode: Any) -> Any:
        self.image_requests.append((identifier, tuple(target_size), content_mode))
        return f"image:{identifier}:{target_size[0]}x{target_size[1]}"

    def file_size(self, asset: MediaAsset) -> int:
        if asset.identifier not in self.sizes:
            raise OSError(f"no size for {asset.identifier}")
        return self.sizes[asset.identifier]

    def resolve_resource(self, asset: MediaAsset) -> ExportResource | None:
        if asset.identifier in self.missing_resources:
            return None
        return ExportResource(filename=f"{asset.identifier}.jpg", source=asset.identifier)

    def write_resource(self, resource: ExportResource, destination: Path) -> None:
        if resource.source in self.failing_writes:
            Path(destination).write_bytes(b"partial")
            raise OSError("disk full")
        Path(destination).write_bytes(f"data:{resource.source}".encode())


@dataclass
class InMemoryStore:
    """`MetadataStore` keeping committed and pending rows apart."""

    committed: dict[str, MetadataRecord] = field(default_factory=dict)
    pending: dict[str, MetadataRecord | None] = field(default_factory=dict)
    fail_list: bool = False
    fail_commit_after: int | None = None
    inserts: int = 0
    deletes: int = 0
    commits: int = 0
    rollbacks: int = 0

    def list_records(self) -> list[MetadataRecord]:
        if self.fail_list:
            raise MetadataStoreError("store unavailable")
        return list(self.committed.values())

    def insert(self, record: MetadataRecord) -> None:
        self.inserts += 1
        self.pending[record.identifier] = record

    def delete(self, record: MetadataRecord) -> None:
        self.deletes += 1
        self.pending[record.identifier] = None

    def commit(self) -> None:
        if self.fail_commit_after is not None and self.commits >= self.fail_commit_after:
            raise MetadataStoreError("disk I/O error")
        self.commits += 1
        for identifier, record in self.pending.items():
            if record is None:
                self.committed.pop(identifier, None)
            else:
                self.committed[identifier] = record
        self.pending.clear()

    def rollback(self) -> None:
        self.rollbacks += 1
        self.pending.clear()


@dataclass
class _Submitted:
    fn: Callable[[Callable[[Any], None]], Any]
    on_done: Callable[[Any], None]
    on_progress: Callable[[Any], None] | None
    on_error: Callable[[BaseException], None] | None


class ManualTaskRunner:
    """Queues submitted work so tests decide when (and in which order) it completes."""

    def __init__(self) -> None:
        self.tasks: list[_Submitted] = []

    def submit(self, fn, *, on_done, on_progress=None, on_error=None) -> None:
        self.tasks.append(_Submitted(fn, on_done, on_progress, on_error))

    @property
    def pending(self) -> int:
        return len(self.tasks)

    def run(self, index: int = 0) -> Any:
        task = self.tasks.pop(index)
        report = task.on_progress or (lambda _value: None)
        try:
            result = task.fn(report)
        except Exception as ex:  # mirrors the worker boundary
            if task.on_error is not None:
                task.on_error(ex)
            return ex
        task.on_done(result)
        return result

    def run_all(self) -> None:
        while self.tasks:
            self.run(0)


class ImmediateTaskRunner(ManualTaskRunner):
    """Runs every submitted task synchronously."""

    def submit(self, fn, *, on_done, on_progress=None, on_error=None) -> None:
        super().submit(fn, on_done=on_done, on_progress=on_progress, on_error=on_error)
        self.run(len(self.tasks) - 1)


@pytest.fixture(scope="session")
def qapp():
    pytest.importorskip("PySide6", reason="PySide6 is required", exc_type=ImportError)
    pytest.importorskip("PySide6.QtWidgets", reason="Qt widgets not available", exc_type=ImportError)
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def library() -> list[MediaAsset]:
    """Six assets newest first: photos p0..p3, videos v0 (30s) and v1 (5s)."""
    return [
        make_asset("p0", hours_ago=0),
        make_asset("v0", hours_ago=1, is_video=True, duration=30.0),
        make_asset("p1", hours_ago=2),
        make_asset("p2", hours_ago=3),
        make_asset("v1", hours_ago=4, is_video=True, duration=5.0),
        make_asset("p3", hours_ago=5),
    ]


@pytest.fixture
def sizes() -> dict[str, int]:
    return {"p0": 300, "v0": 9000, "p1": 100, "p2": 500, "v1": 700, "p3": 200}
