"""Tests for the caller-side image helpers."""

from __future__ import annotations

from fractions import Fraction

import pytest
from PIL import Image

from geocognition.io.images import (
    UnsupportedImageError,
    detect_mime_type,
    gps_to_location,
    read_gps_location,
)
from geocognition.models.base import TrustedLocation


def test_detect_mime_type_from_content(tmp_path):
    path = tmp_path / "photo.bin"
    Image.new("RGB", (4, 4), color=(10, 20, 30)).save(path, format="PNG")

    assert detect_mime_type(path) == "image/png"


def test_detect_mime_type_falls_back_to_extension(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"not really a jpeg")

    assert detect_mime_type(path) == "image/jpeg"


def test_detect_mime_type_heic_extension(tmp_path):
    path = tmp_path / "IMG_0001.HEIC"
    path.write_bytes(b"\x00\x00\x00\x18ftypheic")

    assert detect_mime_type(path) == "image/heic"


def test_detect_mime_type_rejects_unsupported(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")

    with pytest.raises(UnsupportedImageError):
        detect_mime_type(path)


def test_gps_to_location_with_named_rational_values():
    gps = {
        "GPSLatitudeRef": "N",
        "GPSLatitude": (Fraction(43), Fraction(8), Fraction(15)),
        "GPSLongitudeRef": "W",
        "GPSLongitude": ((4, 1), (12, 1), (40, 1)),
    }

    location = gps_to_location(gps)

    assert location is not None
    assert location.latitude == pytest.approx(43.1375)
    assert location.longitude == pytest.approx(-4.211111, rel=1e-5)


def test_gps_to_location_with_numeric_tags():
    # 1: GPSLatitudeRef, 2: GPSLatitude, 3: GPSLongitudeRef, 4: GPSLongitude
    gps = {1: "S", 2: 33.8688, 3: "E", 4: 151.2093}

    assert gps_to_location(gps) == TrustedLocation(latitude=-33.8688, longitude=151.2093)


@pytest.mark.parametrize(
    "gps",
    [
        {},
        {"GPSLatitude": (1, 2, 3)},
        {"GPSLatitude": ((1, 0), (0, 1), (0, 1)), "GPSLongitude": (1, 2, 3)},
        {"GPSLatitude": 123.0, "GPSLongitude": 1.0},
    ],
)
def test_gps_to_location_ignores_unusable_data(gps):
    assert gps_to_location(gps) is None


def test_read_gps_location_without_exif(tmp_path):
    path = tmp_path / "plain.jpg"
    Image.new("RGB", (4, 4)).save(path, format="JPEG")

    assert read_gps_location(path) is None


def test_read_gps_location_unreadable_file(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"garbage")

    assert read_gps_location(path) is None
