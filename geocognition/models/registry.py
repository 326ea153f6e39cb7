"""Registry for discovering inference backends."""

from __future__ import annotations

import logging
from importlib import import_module
from typing import TYPE_CHECKING, Callable, Dict

from .base import BackendInfo, InferenceBackend

if TYPE_CHECKING:  # pragma: no cover
    from ..config import AppConfig

Factory = Callable[..., InferenceBackend]
logger = logging.getLogger(__name__)


class BackendRegistry:
    """Tracks available backend factories and builds them on demand."""

    _factories: Dict[str, Factory] = {}
    _infos: Dict[str, BackendInfo] = {}
    _bootstrap_complete: bool = False

    @classmethod
    def register(cls, name: str, factory: Factory, *, info: BackendInfo) -> None:
        """Register a backend factory under the provided name."""
        cls._factories[name] = factory
        cls._infos[name] = info

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._factories.pop(name, None)
        cls._infos.pop(name, None)

    @classmethod
    def ensure_bootstrapped(cls) -> None:
        if cls._bootstrap_complete:
            return
        modules = [
            "geocognition.models.gemini",
        ]
        for module_name in modules:
            try:
                import_module(module_name)
            except ImportError as exc:  # pragma: no cover - optional dependency paths
                logger.debug("Backend module %s could not be imported: %s", module_name, exc)
        cls._bootstrap_complete = True

    @classmethod
    def list_backend_infos(cls) -> list[BackendInfo]:
        """Return metadata for all registered backends."""
        cls.ensure_bootstrapped()
        return list(cls._infos.values())

    @classmethod
    def get(cls, name: str, *, config: AppConfig) -> InferenceBackend:
        """Build and load the backend registered as ``name``."""
        cls.ensure_bootstrapped()
        try:
            factory = cls._factories[name]
        except KeyError as exc:
            available = ", ".join(sorted(cls._factories))
            raise KeyError(f"Unknown backend '{name}'. Available: {available}") from exc
        instance = factory(config)
        instance.load()
        return instance
