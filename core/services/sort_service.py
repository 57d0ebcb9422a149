"""Filtering and sorting of the catalog into the visible order.

Sorting uses decorated keys with documented sentinels for missing values:
a missing capture date sorts as `DISTANT_PAST` and an unknown file size as
zero bytes. Python's sort is stable in both directions, so assets with equal
keys always keep their catalog order (newest capture first).

`FilterSortPipeline` owns the generation counter. Every recompute bumps it,
and a background sort result is published only while its captured
generation is still the current one.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from core.constants import DISTANT_PAST, UNKNOWN_FILE_SIZE
from core.models import MediaAsset, MediaTypeFilter, SortOption, SortOrder
from core.services.interfaces import ProgressReporter, TaskRunner


def filter_assets(assets: Iterable[MediaAsset], media_filter: MediaTypeFilter) -> list[MediaAsset]:
    """Return assets accepted by `media_filter`, preserving input order."""
    return [a for a in assets if media_filter.accepts(a)]


def _capture_instant(asset: MediaAsset) -> datetime:
    dt = asset.creation_date
    if dt is None:
        return DISTANT_PAST
    # Naive timestamps are read as UTC so they compare with aware ones
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def sort_key_for(
    option: SortOption, file_sizes: Mapping[str, int] | None = None
) -> Callable[[MediaAsset], Any]:
    """Return the natural (ascending) sort key for `option`."""
    if option is SortOption.DURATION:
        return lambda a: float(a.duration or 0.0)
    if option is SortOption.FILE_SIZE:
        sizes = file_sizes or {}
        return lambda a: int(sizes.get(a.identifier, UNKNOWN_FILE_SIZE) or UNKNOWN_FILE_SIZE)
    return _capture_instant


def sort_assets(
    assets: Iterable[MediaAsset],
    option: SortOption,
    order: SortOrder,
    file_sizes: Mapping[str, int] | None = None,
) -> list[MediaAsset]:
    """Return `assets` sorted by `option` in `order`; ties keep input order."""
    key = sort_key_for(option, file_sizes)
    return sorted(assets, key=key, reverse=order is SortOrder.DESCENDING)


def is_delivered_order(option: SortOption, order: SortOrder) -> bool:
    """True if the catalog's delivery order already satisfies the request."""
    return option is SortOption.CREATION_DATE and order is SortOrder.DESCENDING


class FilterSortPipeline:
    """Derives the visible order and discards superseded background sorts."""

    def __init__(self, runner: TaskRunner, publish: Callable[[list[MediaAsset]], None]) -> None:
        """Create a pipeline.

        Args:
            runner: Runs the background sort and posts the result back.
            publish: Receives every new visible order on the UI thread.
        """
        self._runner = runner
        self._publish = publish
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def recompute(
        self,
        assets: Iterable[MediaAsset],
        media_filter: MediaTypeFilter,
        option: SortOption,
        order: SortOrder,
        file_sizes: Mapping[str, int] | None = None,
    ) -> int:
        """Publish the filtered order and, if needed, start a background sort.

        Returns the generation captured for this request.
        """
        filtered = filter_assets(assets, media_filter)
        self._generation += 1
        generation = self._generation
        self._publish(filtered)
        if is_delivered_order(option, order):
            return generation

        sizes = dict(file_sizes or {})

        def _work(_report: ProgressReporter) -> list[MediaAsset]:
            return sort_assets(filtered, option, order, sizes)

        def _done(result: list[MediaAsset]) -> None:
            if not self.is_current(generation):
                logger.debug(
                    "Discarding sort for generation {} (current {})", generation, self._generation
                )
                return
            self._publish(result)

        def _failed(ex: BaseException) -> None:
            logger.error("Background sort failed for generation {}: {}", generation, ex)

        self._runner.submit(_work, on_done=_done, on_error=_failed)
        return generation
