"""Top-level package for the GeoCognition analysis pipeline."""

from .config import AppConfig, ConfigurationError
from .models.base import (
    AnalysisError,
    AnalysisRequest,
    ErrorCode,
    GenericFailureError,
    InvalidCredentialError,
    InvalidResponseFormatError,
    Language,
    PipelinePhase,
    QuotaExceededError,
    TrustedLocation,
)
from .models.report import AnalysisReport
from .services.pipeline import GeolocationPipeline
from .settings_store import SettingsStore

__all__ = [
    "AnalysisError",
    "AnalysisReport",
    "AnalysisRequest",
    "AppConfig",
    "ConfigurationError",
    "ErrorCode",
    "GenericFailureError",
    "GeolocationPipeline",
    "InvalidCredentialError",
    "InvalidResponseFormatError",
    "Language",
    "PipelinePhase",
    "QuotaExceededError",
    "SettingsStore",
    "TrustedLocation",
]
