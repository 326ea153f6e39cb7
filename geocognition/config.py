"""Application-wide configuration models and persistence helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .models.base import Language


class ConfigurationError(ValueError):
    """Raised when required configuration is missing at construction time."""


class AppConfig(BaseModel):
    """Validates and stores runtime settings for the pipeline."""

    backend_name: str = Field(
        default="remote.gemini",
        description="Identifier of the inference backend to use.",
    )
    api_key: str | None = Field(
        default=None,
        description="API key for the remote inference service.",
    )
    remote_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Base URL of the remote inference service.",
    )
    remote_model: str = Field(
        default="gemini-2.5-flash",
        description="Model identifier served by the remote backend.",
    )
    remote_temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Sampling temperature passed to every remote call.",
    )
    remote_timeout: float = Field(
        default=90.0,
        ge=1.0,
        le=600.0,
        description="Timeout (seconds) for HTTP calls to the remote service.",
    )
    max_attempts: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Total attempts per remote call, including the first one.",
    )
    initial_backoff: float = Field(
        default=3.0,
        ge=0.0,
        le=60.0,
        description="Delay (seconds) before the first retry after a rate limit; doubles per retry.",
    )
    phase_delay: float = Field(
        default=0.0,
        ge=0.0,
        le=10.0,
        description="Optional pause (seconds) after each phase notification, for progress UIs.",
    )
    language: Language = Field(
        default=Language.EN,
        description="Default report language when a request does not specify one.",
    )
    max_concurrency: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Number of worker threads used when analysing several images.",
    )

    @field_validator("language", mode="before")
    @classmethod
    def _resolve_language(cls, value: Any) -> Language:
        return Language.resolve(value)

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @model_validator(mode="after")
    def _normalise_remote_settings(self) -> AppConfig:
        base = self.remote_base_url.strip()
        if not base:
            raise ValueError("Remote base URL must not be empty.")
        if "://" not in base:
            raise ValueError(
                "Remote base URL must include a scheme such as "
                "https://generativelanguage.googleapis.com."
            )
        self.remote_base_url = base.rstrip("/")
        model = self.remote_model.strip()
        if not model:
            raise ValueError("Remote model identifier must not be empty.")
        self.remote_model = model
        return self

    def require_api_key(self) -> str:
        """Return the API key or raise ``ConfigurationError`` if it is absent."""
        if not self.api_key:
            raise ConfigurationError(
                "No API key configured. Set GEOCOGNITION_API_KEY or add api_key to the "
                "settings file."
            )
        return self.api_key

    def as_dict(self) -> dict[str, Any]:
        """Serialize the configuration to primitive Python types."""
        return self.model_dump(mode="json")

    @classmethod
    def load(cls, path: Path) -> AppConfig:
        """Load configuration from a YAML or JSON file."""
        data = _read_config_file(path)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:  # pragma: no cover - pass through details
            raise ValueError(f"Invalid configuration file at {path}: {exc}") from exc

    def save(self, path: Path) -> None:
        """Persist configuration to a YAML file."""
        _write_config_file(path, self.as_dict())


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text) or {}
    return json.loads(text)


def _write_config_file(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in {".yaml", ".yml"}:
        yaml_text = yaml.safe_dump(
            data,
            allow_unicode=False,
            sort_keys=False,
        )
        path.write_text(yaml_text, encoding="utf-8")
    else:
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
