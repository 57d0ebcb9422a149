"""Utilities for media metadata extraction (EXIF, filesystem, ffprobe).

This module centralizes capture date, location and video probing so the
catalog depends on a single behavior. It uses best-effort parsing and will
not raise on errors; callers should expect `None` when data is not
available. Naive EXIF timestamps are interpreted in the local time zone.
"""

from __future__ import annotations

from datetime import datetime
import json
import os
from pathlib import Path
import subprocess
from typing import Any

from PIL import Image
from loguru import logger

from core.errors import ExternalToolError

EXIF_DATETIME_ORIGINAL = 36867
EXIF_DATETIME = 306
EXIF_IFD_POINTER = 0x8769
GPS_IFD_POINTER = 0x8825
FFPROBE_TIMEOUT_SEC = 15


def get_filesystem_creation_datetime(path: str | Path) -> datetime | None:
    """Best-effort file creation time.

    On Windows, `os.path.getctime` returns creation time. On other systems it may
    return ctime (metadata change). We accept that as a best-effort value.
    """
    try:
        ts = os.path.getctime(path)
        return datetime.fromtimestamp(ts).astimezone()
    except (OSError, ValueError) as ex:
        logger.debug("getctime failed for {}: {}", path, ex)
        return None


def parse_exif_datetime(value: Any) -> datetime | None:
    """Parse an EXIF timestamp such as ``2024:05:01 10:00:00``."""
    if not value:
        return None
    text = str(value).strip().rstrip("\x00")
    try:
        if len(text) >= 19 and text[4] == ":" and text[7] == ":":
            dt = datetime.strptime(text[:19], "%Y:%m:%d %H:%M:%S")
        else:
            dt = datetime.fromisoformat(text.replace("/", "-"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.astimezone()


def get_exif_datetime_original(image: Any) -> datetime | None:
    """Extract DateTimeOriginal (falling back to DateTime) from an open image."""
    try:
        exif = image.getexif()
        if not exif:
            return None
        value = exif.get_ifd(EXIF_IFD_POINTER).get(EXIF_DATETIME_ORIGINAL) or exif.get(
            EXIF_DATETIME
        )
        return parse_exif_datetime(value)
    except (AttributeError, KeyError, TypeError, ValueError) as ex:
        logger.debug("EXIF date read failed: {}", ex)
        return None


def _dms_to_degrees(dms: Any, ref: Any) -> float | None:
    try:
        degrees, minutes, seconds = (float(part) for part in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    value = degrees + minutes / 60.0 + seconds / 3600.0
    if str(ref).strip().upper() in ("S", "W"):
        value = -value
    return value


def get_exif_location(image: Any) -> tuple[float | None, float | None]:
    """Return (latitude, longitude) from the GPS IFD, or (None, None)."""
    try:
        gps = image.getexif().get_ifd(GPS_IFD_POINTER)
    except (AttributeError, KeyError, TypeError, ValueError) as ex:
        logger.debug("EXIF GPS read failed: {}", ex)
        return None, None
    if not gps or 2 not in gps or 4 not in gps:
        return None, None
    return _dms_to_degrees(gps[2], gps.get(1, "N")), _dms_to_degrees(gps[4], gps.get(3, "E"))


def read_image_metadata(path: str | Path) -> dict[str, Any]:
    """Return capture date, pixel size and location of an image file.

    Keys are always present; values are None (or 0 for sizes) when unknown.
    """
    info: dict[str, Any] = {
        "creation_date": None,
        "pixel_width": 0,
        "pixel_height": 0,
        "latitude": None,
        "longitude": None,
    }
    try:
        with Image.open(path) as im:
            info["pixel_width"], info["pixel_height"] = im.size
            info["creation_date"] = get_exif_datetime_original(im)
            info["latitude"], info["longitude"] = get_exif_location(im)
    except (OSError, ValueError) as ex:
        logger.debug("Image metadata read failed for {}: {}", path, ex)
    return info


def probe_media(source: str | Path) -> dict[str, Any]:
    """Return ffprobe metadata for `source`.

    Raises:
        ExternalToolError: When ffprobe is unavailable or fails.
    """
    command = [
        "ffprobe",
        "-hide_banner",
        "-loglevel",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(source),
    ]
    try:
        process = subprocess.run(
            command,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=FFPROBE_TIMEOUT_SEC,
        )
    except FileNotFoundError as exc:
        raise ExternalToolError("ffprobe executable not found on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise ExternalToolError(f"ffprobe timed out on {source}") from exc
    if process.returncode != 0 or not process.stdout:
        stderr = process.stderr.decode("utf-8", "ignore").strip()
        raise ExternalToolError(f"ffprobe failed to inspect {source}: {stderr or 'unknown error'}")
    try:
        return json.loads(process.stdout.decode("utf-8"))
    except json.JSONDecodeError as exc:
        raise ExternalToolError("ffprobe returned invalid JSON output") from exc


def read_video_metadata(path: str | Path) -> dict[str, Any]:
    """Return duration, pixel size and capture date of a video (best-effort)."""
    info: dict[str, Any] = {
        "creation_date": None,
        "duration": 0.0,
        "pixel_width": 0,
        "pixel_height": 0,
    }
    try:
        probe = probe_media(path)
    except ExternalToolError as ex:
        logger.debug("Video probe skipped for {}: {}", path, ex)
        return info
    fmt = probe.get("format") or {}
    try:
        info["duration"] = float(fmt.get("duration") or 0.0)
    except (TypeError, ValueError):
        info["duration"] = 0.0
    tags = fmt.get("tags") or {}
    created = tags.get("creation_time")
    if created:
        try:
            info["creation_date"] = datetime.fromisoformat(str(created).replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Unparseable creation_time for {}: {}", path, created)
    for stream in probe.get("streams") or []:
        if stream.get("codec_type") == "video":
            info["pixel_width"] = int(stream.get("width") or 0)
            info["pixel_height"] = int(stream.get("height") or 0)
            break
    return info
