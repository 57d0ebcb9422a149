"""Default values shared across the core, infrastructure and view layers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Final

# Rendering sizes
THUMBNAIL_SIZE: Final[tuple[int, int]] = (300, 300)
FULLSCREEN_MAX_SIDE: Final[int] = 4096

# Metadata sync commits after this many insertions
SYNC_BATCH_SIZE: Final[int] = 100

# In-memory preview cache capacity (entries)
IMAGE_CACHE_CAPACITY: Final[int] = 512

# Missing capture dates sort as the earliest possible instant
DISTANT_PAST: Final[datetime] = datetime.min.replace(tzinfo=timezone.utc)

# Missing file sizes sort as zero bytes
UNKNOWN_FILE_SIZE: Final[int] = 0

APP_NAME: Final[str] = "UltraPhotos"
METADATA_DB_NAME: Final[str] = "metadata.sqlite3"
