"""Persistence helpers for user configuration."""

from __future__ import annotations

import os
from pathlib import Path

from .config import AppConfig

API_KEY_VARIABLES = ("GEOCOGNITION_API_KEY", "GEMINI_API_KEY", "API_KEY")
MODEL_VARIABLE = "GEOCOGNITION_MODEL"


class SettingsStore:
    """Load and save application settings to a well-known path."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppConfig:
        if not self._path.exists():
            config = AppConfig()
        else:
            config = AppConfig.load(self._path)
        return apply_environment_overrides(config)

    def save(self, config: AppConfig) -> None:
        config.save(self._path)


def apply_environment_overrides(config: AppConfig) -> AppConfig:
    """Return a copy of ``config`` with credentials and model taken from the environment."""
    updates: dict[str, str] = {}
    for variable in API_KEY_VARIABLES:
        value = os.getenv(variable)
        if value and value.strip():
            updates["api_key"] = value.strip()
            break
    model = os.getenv(MODEL_VARIABLE)
    if model and model.strip():
        updates["remote_model"] = model.strip()
    if not updates:
        return config
    return config.model_copy(update=updates)


def default_settings_path() -> Path:
    if os.name == "nt":
        base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:
        base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base.expanduser() / "geocognition" / "settings.yaml"
