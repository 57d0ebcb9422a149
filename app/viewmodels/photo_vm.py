"""Lightweight view model wrapper around `MediaAsset` for grid tiles."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from core.models import MediaAsset, MetadataRecord

_SIZE_UNITS = [("GB", 1000**3, 2), ("MB", 1000**2, 1), ("KB", 1000, 0)]


def format_duration(seconds: float) -> str:
    """Format a duration as ``m:ss`` (minutes are not wrapped into hours)."""
    total = max(0, int(seconds or 0))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}"


def format_capture_date(dt: datetime | None) -> str:
    """Format a capture date as ``MM/DD/YYYY``; empty when unknown."""
    if dt is None:
        return ""
    return dt.strftime("%m/%d/%Y")


def format_file_size(size: int) -> str:
    """Human readable file size using decimal units (1 KB = 1000 bytes)."""
    size = int(size or 0)
    if size <= 0:
        return "Zero KB"
    for unit, factor, digits in _SIZE_UNITS:
        if size >= factor:
            value = size / factor
            return f"{value:,.{digits}f} {unit}"
    return f"{size} bytes"


@dataclass
class PhotoVM:
    """Expose display strings for one grid tile."""

    asset: MediaAsset
    record: MetadataRecord | None = None
    selected: bool = False

    @property
    def identifier(self) -> str:
        return self.asset.identifier

    @property
    def date_text(self) -> str:
        return format_capture_date(self.asset.creation_date)

    @property
    def duration_text(self) -> str:
        """Video duration, empty for photos."""
        return format_duration(self.asset.duration) if self.asset.is_video else ""

    @property
    def size_text(self) -> str:
        """File size once metadata is cached, otherwise empty."""
        return format_file_size(self.record.file_size) if self.record else ""

    @property
    def caption(self) -> str:
        parts = [p for p in (self.date_text, self.duration_text, self.size_text) if p]
        return "  ".join(parts)
