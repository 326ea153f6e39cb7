"""Caller-side helpers for reading image payloads and EXIF GPS hints."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from PIL import ExifTags, Image, UnidentifiedImageError

from ..models.base import TrustedLocation

logger = logging.getLogger(__name__)

GPS_IFD_TAG = 0x8825
SUPPORTED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
    "image/gif",
}


class UnsupportedImageError(ValueError):
    """Raised when a file is not an image the remote service accepts."""


def detect_mime_type(path: Path) -> str:
    """Identify the MIME type of ``path`` from its content, then its extension."""
    mime: str | None = None
    try:
        with Image.open(path) as img:
            mime = Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        logger.debug("Pillow could not identify %s; falling back to the extension", path)
    if mime is None:
        mime, _ = mimetypes.guess_type(path.name)
        if path.suffix.lower() in {".heic", ".heif"}:
            mime = f"image/{path.suffix.lower().lstrip('.')}"
    if mime not in SUPPORTED_MIME_TYPES:
        raise UnsupportedImageError(f"Unsupported image type for {path}: {mime or 'unknown'}")
    return mime


def _to_degrees(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    degrees, minutes, seconds = (_rational(part) for part in value)
    return degrees + minutes / 60.0 + seconds / 3600.0


def _rational(value: Any) -> float:
    # Older Pillow releases return (numerator, denominator) pairs.
    if isinstance(value, tuple) and len(value) == 2:
        return value[0] / value[1]
    return float(value)


def gps_to_location(gps: Mapping[Any, Any]) -> TrustedLocation | None:
    """Convert a GPS IFD (numeric or named keys) into a :class:`TrustedLocation`."""
    named = {ExifTags.GPSTAGS.get(key, key): value for key, value in gps.items()}
    if "GPSLatitude" not in named or "GPSLongitude" not in named:
        return None
    try:
        latitude = _to_degrees(named["GPSLatitude"])
        longitude = _to_degrees(named["GPSLongitude"])
        if str(named.get("GPSLatitudeRef", "N")).upper().startswith("S"):
            latitude = -latitude
        if str(named.get("GPSLongitudeRef", "E")).upper().startswith("W"):
            longitude = -longitude
        return TrustedLocation(latitude=latitude, longitude=longitude)
    except (TypeError, ValueError, ZeroDivisionError) as exc:
        logger.warning("Ignoring unreadable GPS data: %s", exc)
        return None


def read_gps_location(path: Path) -> TrustedLocation | None:
    """Return the EXIF GPS position of ``path``, or None when it has none."""
    try:
        with Image.open(path) as img:
            gps = img.getexif().get_ifd(GPS_IFD_TAG)
    except (UnidentifiedImageError, OSError) as exc:
        logger.info("Could not read EXIF from %s: %s", path, exc)
        return None
    if not gps:
        return None
    location = gps_to_location(gps)
    if location is not None:
        logger.info("Using EXIF GPS %.6f, %.6f for %s", location.latitude, location.longitude, path)
    return location
