"""Image discovery for batch runs."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp", ".gif", ".heic", ".heif"})


def is_image_file(path: Path, *, extensions: Iterable[str] | None = None) -> bool:
    """Return True if ``path`` has an extension the remote service accepts."""
    allowed = {ext.lower() for ext in (extensions or IMAGE_EXTENSIONS)}
    return path.suffix.lower() in allowed


def collect_images(target: Path, *, recursive: bool = False) -> list[Path]:
    """Return ``target`` itself or the visible images inside it, sorted."""
    target = target.expanduser()
    if not target.exists():
        raise FileNotFoundError(target)
    if target.is_file():
        return [target]

    candidates = target.rglob("*") if recursive else target.iterdir()
    return sorted(
        path
        for path in candidates
        if path.is_file() and not path.name.startswith(".") and is_image_file(path)
    )
