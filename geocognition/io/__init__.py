"""I/O helpers for preparing image payloads."""

from .images import UnsupportedImageError, detect_mime_type, gps_to_location, read_gps_location

__all__ = ["UnsupportedImageError", "detect_mime_type", "gps_to_location", "read_gps_location"]
