from __future__ import annotations

import itertools
from datetime import datetime

import pytest

from conftest import ManualTaskRunner, make_asset

from core.models import MediaAsset, MediaTypeFilter, SortOption, SortOrder
from core.services.sort_service import (
    FilterSortPipeline,
    filter_assets,
    is_delivered_order,
    sort_assets,
)


def _ids(assets) -> list[str]:
    return [a.identifier for a in assets]


def test_filter_preserves_order(library) -> None:
    assert _ids(filter_assets(library, MediaTypeFilter.PHOTOS_ONLY)) == ["p0", "p1", "p2", "p3"]
    assert _ids(filter_assets(library, MediaTypeFilter.VIDEOS_ONLY)) == ["v0", "v1"]
    assert _ids(filter_assets(library, MediaTypeFilter.ALL)) == _ids(library)


def test_sort_by_date_with_missing_dates_first_ascending() -> None:
    assets = [
        make_asset("new", hours_ago=0),
        make_asset("old", hours_ago=10),
        make_asset("undated", dated=False),
    ]
    assert _ids(sort_assets(assets, SortOption.CREATION_DATE, SortOrder.ASCENDING)) == [
        "undated",
        "old",
        "new",
    ]
    assert _ids(sort_assets(assets, SortOption.CREATION_DATE, SortOrder.DESCENDING)) == [
        "new",
        "old",
        "undated",
    ]


def test_sort_mixes_naive_and_aware_dates() -> None:
    naive = MediaAsset(identifier="naive", creation_date=datetime(2030, 1, 1), is_video=False)
    aware = make_asset("aware")
    result = sort_assets([aware, naive], SortOption.CREATION_DATE, SortOrder.DESCENDING)
    assert _ids(result) == ["naive", "aware"]


def test_sort_by_duration_ties_keep_catalog_order(library) -> None:
    asc = sort_assets(library, SortOption.DURATION, SortOrder.ASCENDING)
    assert _ids(asc) == ["p0", "p1", "p2", "p3", "v1", "v0"]
    desc = sort_assets(library, SortOption.DURATION, SortOrder.DESCENDING)
    assert _ids(desc) == ["v0", "v1", "p0", "p1", "p2", "p3"]


def test_sort_by_file_size_unknown_is_zero(library, sizes) -> None:
    partial = dict(sizes)
    del partial["v0"]
    asc = sort_assets(library, SortOption.FILE_SIZE, SortOrder.ASCENDING, partial)
    assert _ids(asc) == ["v0", "p1", "p3", "p0", "p2", "v1"]


def test_delivered_order_only_for_date_descending() -> None:
    assert is_delivered_order(SortOption.CREATION_DATE, SortOrder.DESCENDING)
    assert not is_delivered_order(SortOption.CREATION_DATE, SortOrder.ASCENDING)
    assert not is_delivered_order(SortOption.DURATION, SortOrder.DESCENDING)


def test_fast_path_publishes_synchronously(library) -> None:
    runner = ManualTaskRunner()
    published: list[list[str]] = []
    pipeline = FilterSortPipeline(runner, lambda assets: published.append(_ids(assets)))
    generation = pipeline.recompute(
        library, MediaTypeFilter.PHOTOS_ONLY, SortOption.CREATION_DATE, SortOrder.DESCENDING
    )
    assert generation == 1
    assert published == [["p0", "p1", "p2", "p3"]]
    assert runner.pending == 0


def test_slow_path_publishes_filtered_then_sorted(library, sizes) -> None:
    runner = ManualTaskRunner()
    published: list[list[str]] = []
    pipeline = FilterSortPipeline(runner, lambda assets: published.append(_ids(assets)))
    pipeline.recompute(
        library, MediaTypeFilter.VIDEOS_ONLY, SortOption.FILE_SIZE, SortOrder.ASCENDING, sizes
    )
    assert published == [["v0", "v1"]]
    runner.run_all()
    assert published[-1] == ["v1", "v0"]


@pytest.mark.parametrize("completion", list(itertools.permutations(range(3))))
def test_only_latest_generation_is_published(library, completion) -> None:
    runner = ManualTaskRunner()
    published: list[list[str]] = []
    pipeline = FilterSortPipeline(runner, lambda assets: published.append(_ids(assets)))
    requests = [
        (MediaTypeFilter.ALL, SortOption.DURATION, SortOrder.DESCENDING),
        (MediaTypeFilter.ALL, SortOption.CREATION_DATE, SortOrder.ASCENDING),
        (MediaTypeFilter.PHOTOS_ONLY, SortOption.CREATION_DATE, SortOrder.ASCENDING),
    ]
    for media_filter, option, order in requests:
        pipeline.recompute(library, media_filter, option, order)
    tasks = list(runner.tasks)
    runner.tasks.clear()
    for index in completion:
        runner.tasks.append(tasks[index])
        runner.run(len(runner.tasks) - 1)
    assert pipeline.generation == 3
    assert published[-1] == ["p3", "p2", "p1", "p0"]


def test_fast_path_supersedes_inflight_sort(library) -> None:
    runner = ManualTaskRunner()
    published: list[list[str]] = []
    pipeline = FilterSortPipeline(runner, lambda assets: published.append(_ids(assets)))
    pipeline.recompute(library, MediaTypeFilter.ALL, SortOption.DURATION, SortOrder.ASCENDING)
    pipeline.recompute(library, MediaTypeFilter.ALL, SortOption.CREATION_DATE, SortOrder.DESCENDING)
    runner.run_all()
    assert published[-1] == _ids(library)
    assert not pipeline.is_current(1)
