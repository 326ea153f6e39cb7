"""Utility helpers for the GeoCognition package."""

from .paths import collect_images, is_image_file

__all__ = ["collect_images", "is_image_file"]
