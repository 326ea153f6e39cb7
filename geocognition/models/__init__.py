"""Data model, error taxonomy and inference transports."""

from .base import (
    AnalysisError,
    AnalysisRequest,
    ErrorCode,
    GenericFailureError,
    InferenceRequest,
    InferenceResponse,
    InvalidCredentialError,
    InvalidResponseFormatError,
    Language,
    PipelinePhase,
    QuotaExceededError,
    TransportError,
    TransportErrorKind,
    TrustedLocation,
)
from .report import AnalysisReport, Citation, EnvironmentAssessment, EnvironmentKind, ForensicAssessment

__all__ = [
    "AnalysisError",
    "AnalysisReport",
    "AnalysisRequest",
    "Citation",
    "EnvironmentAssessment",
    "EnvironmentKind",
    "ErrorCode",
    "ForensicAssessment",
    "GenericFailureError",
    "InferenceRequest",
    "InferenceResponse",
    "InvalidCredentialError",
    "InvalidResponseFormatError",
    "Language",
    "PipelinePhase",
    "QuotaExceededError",
    "TransportError",
    "TransportErrorKind",
    "TrustedLocation",
]
