from __future__ import annotations

import threading

import pytest

from conftest import InMemoryStore, make_asset

from core.errors import MetadataStoreError
from core.models import MetadataRecord
from core.services.sync_service import MetadataSyncEngine


def _sizes(mapping):
    def _file_size(asset):
        if asset.identifier not in mapping:
            raise OSError("missing")
        return mapping[asset.identifier]

    return _file_size


def test_reconciles_against_catalog() -> None:
    store = InMemoryStore()
    store.committed = {
        "A": MetadataRecord.from_asset(make_asset("A"), 10),
        "B": MetadataRecord.from_asset(make_asset("B"), 20),
        "stale": MetadataRecord.from_asset(make_asset("stale"), 99),
    }
    catalog = [make_asset("A"), make_asset("B"), make_asset("C", is_video=True, duration=12.5)]
    engine = MetadataSyncEngine(store, _sizes({"C": 4096}))

    result = engine.sync(catalog)

    assert result is not None
    assert (result.deleted, result.inserted, result.total) == (1, 1, 1)
    assert set(result.records) == {"A", "B", "C"}
    assert result.records["A"].file_size == 10  # cached records are never rewritten
    assert result.records["C"].file_size == 4096
    assert result.records["C"].duration == 12.5


def test_second_run_writes_nothing() -> None:
    store = InMemoryStore()
    catalog = [make_asset("A"), make_asset("B")]
    engine = MetadataSyncEngine(store, _sizes({"A": 1, "B": 2}))
    engine.sync(catalog)
    inserts, deletes = store.inserts, store.deletes

    result = engine.sync(catalog)

    assert (result.deleted, result.inserted, result.total) == (0, 0, 0)
    assert (store.inserts, store.deletes) == (inserts, deletes)
    assert set(result.records) == {"A", "B"}


def test_unknown_size_is_recorded_as_zero() -> None:
    store = InMemoryStore()
    result = MetadataSyncEngine(store, _sizes({})).sync([make_asset("A")])
    assert result.records["A"].file_size == 0


def test_duplicate_identifiers_are_inserted_once() -> None:
    store = InMemoryStore()
    result = MetadataSyncEngine(store, _sizes({"A": 1})).sync([make_asset("A"), make_asset("A")])
    assert store.inserts == 1
    assert result.total == 1


def test_progress_reports_batches_and_final_total() -> None:
    store = InMemoryStore()
    catalog = [make_asset(f"a{i}") for i in range(5)]
    engine = MetadataSyncEngine(store, _sizes({}), batch_size=2)
    calls: list[tuple[int, int]] = []

    engine.sync(catalog, lambda done, total: calls.append((done, total)))

    assert calls == [(0, 5), (2, 5), (4, 5), (5, 5)]
    # two batch commits plus the final one
    assert store.commits == 3
    assert store.pending == {}


def test_empty_catalog_deletes_everything() -> None:
    store = InMemoryStore()
    store.committed = {"A": MetadataRecord.from_asset(make_asset("A"), 1)}
    calls: list[tuple[int, int]] = []
    result = MetadataSyncEngine(store, _sizes({})).sync([], lambda d, t: calls.append((d, t)))
    assert result.deleted == 1
    assert result.records == {}
    assert calls == [(0, 0), (0, 0)]


def test_list_failure_propagates_without_writes() -> None:
    store = InMemoryStore(fail_list=True)
    engine = MetadataSyncEngine(store, _sizes({}))
    with pytest.raises(MetadataStoreError):
        engine.sync([make_asset("A")])
    assert (store.inserts, store.deletes, store.commits) == (0, 0, 0)
    assert not engine.is_running


def test_concurrent_request_is_ignored() -> None:
    started = threading.Event()
    release = threading.Event()

    class BlockingStore(InMemoryStore):
        def list_records(self):
            started.set()
            release.wait(5)
            return super().list_records()

    engine = MetadataSyncEngine(BlockingStore(), _sizes({}))
    worker = threading.Thread(target=engine.sync, args=([make_asset("A")],))
    worker.start()
    assert started.wait(5)
    assert engine.is_running
    assert engine.sync([make_asset("A")]) is None
    release.set()
    worker.join(5)
    assert not engine.is_running


def test_failed_commit_rolls_back_uncommitted_batch() -> None:
    store = InMemoryStore(fail_commit_after=1)
    engine = MetadataSyncEngine(store, _sizes({}), batch_size=2)
    assets = [make_asset(identifier) for identifier in "ABCDE"]

    with pytest.raises(MetadataStoreError):
        engine.sync(assets)
    assert set(store.committed) == {"A", "B"}
    assert store.pending == {}
    assert store.rollbacks == 1
    assert not engine.is_running

    store.fail_commit_after = None
    result = engine.sync(assets)
    assert result.inserted == 3
    assert set(store.committed) == set("ABCDE")
