from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeCatalog, make_asset

from core.errors import ExportDestinationError
from core.services.interfaces import ExportOutcome
from infrastructure.export_service import ExportService


@pytest.fixture
def three_assets():
    return [make_asset("ok"), make_asset("exists"), make_asset("broken")]


def test_export_tallies_and_rerun(tmp_path: Path, three_assets) -> None:
    catalog = FakeCatalog(three_assets)
    catalog.missing_resources = {"broken"}
    (tmp_path / "exists.jpg").write_bytes(b"already here")
    progress: list[tuple[int, int]] = []

    outcome = ExportService(catalog).export(
        three_assets, tmp_path, lambda done, total: progress.append((done, total))
    )

    assert outcome == ExportOutcome(success=1, failure=1, skipped=1)
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert (tmp_path / "ok.jpg").read_bytes() == b"data:ok"
    assert (tmp_path / "exists.jpg").read_bytes() == b"already here"
    assert not (tmp_path / "broken.jpg").exists()

    again = ExportService(catalog).export(three_assets, tmp_path)
    assert again == ExportOutcome(success=0, failure=1, skipped=2)


def test_failed_write_leaves_no_partial_file(tmp_path: Path) -> None:
    catalog = FakeCatalog()
    catalog.failing_writes = {"a"}
    outcome = ExportService(catalog).export([make_asset("a")], tmp_path)
    assert outcome == ExportOutcome(failure=1)
    assert not (tmp_path / "a.jpg").exists()


def test_unresolvable_resource_counts_as_failure(tmp_path: Path) -> None:
    catalog = FakeCatalog()
    catalog.missing_resources = {"a"}
    outcome = ExportService(catalog).export([make_asset("a"), make_asset("b")], tmp_path)
    assert (outcome.success, outcome.failure, outcome.skipped) == (1, 1, 0)


def test_empty_selection_returns_zero_outcome(tmp_path: Path) -> None:
    assert ExportService(FakeCatalog()).export([], tmp_path / "missing") == ExportOutcome()


def test_missing_destination_raises(tmp_path: Path) -> None:
    with pytest.raises(ExportDestinationError):
        ExportService(FakeCatalog()).export([make_asset("a")], tmp_path / "missing")


def test_outcome_processed_sum() -> None:
    assert ExportOutcome(success=2, failure=1, skipped=3).processed == 6
