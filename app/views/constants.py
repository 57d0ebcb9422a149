"""
UI/view constants centralized for reuse across view modules.

Only magic numbers, roles and fixed texts live here.
"""

from __future__ import annotations

from PySide6.QtCore import Qt

from core.models import AuthorizationState

# Data roles
ID_ROLE: int = Qt.UserRole  # asset identifier on grid items

# Grid defaults
DEFAULT_TILE_PX: int = 150  # overridable by settings.json
GRID_MIN_TILE_PX: int = 60
GRID_MAX_TILE_PX: int = 300
GRID_SPACING_PX: int = 4
SELECTED_TILE_RGBA: tuple[int, int, int, int] = (10, 132, 255, 90)
PLACEHOLDER_RGB: tuple[int, int, int] = (200, 200, 200)

STATUS_TIMEOUT_MS: int = 3000
FULLSCREEN_NAV_BUTTON_PX: int = 44

WINDOW_TITLE: str = "UltraPhotos"

AUTHORIZATION_MESSAGES: dict[AuthorizationState, str] = {
    AuthorizationState.NOT_DETERMINED: (
        "UltraPhotos needs access to your photo library.\n"
        "Grant access to view and analyze your photo metadata."
    ),
    AuthorizationState.DENIED: (
        "Photos Access Denied\nCheck that the library folder exists and is readable."
    ),
    AuthorizationState.RESTRICTED: (
        "Photos Access Restricted\nLibrary access is restricted on this device."
    ),
}
