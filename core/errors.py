"""Custom exception hierarchy for UltraPhotos."""

from __future__ import annotations


class UltraPhotosError(Exception):
    """Base class for all custom errors raised by UltraPhotos."""


class CatalogError(UltraPhotosError):
    """Raised when the media catalog cannot be listed or read."""


class MetadataStoreError(UltraPhotosError):
    """Raised when the persisted metadata store cannot be read or written."""


class ExportError(UltraPhotosError):
    """Raised when a single resource cannot be exported."""


class ExportDestinationError(ExportError):
    """Raised when the export destination is missing or not a directory."""


class ExternalToolError(UltraPhotosError):
    """Raised when an external tool such as ffprobe fails."""
