"""Core types, transport interface and error taxonomy for the analysis pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Sequence

logger = logging.getLogger(__name__)


class Language(str, Enum):
    """Locales the prompts are written in."""

    EN = "en"
    ES = "es"
    ZH = "zh"
    HI = "hi"
    FR = "fr"
    RU = "ru"
    PT = "pt"

    @classmethod
    def default(cls) -> Language:
        return cls.EN

    @classmethod
    def resolve(cls, value: Language | str | None) -> Language:
        """Map ``value`` onto a supported locale, falling back to English."""
        if isinstance(value, Language):
            return value
        if value:
            # Accept regional tags such as ``pt-BR`` or ``zh_CN``.
            primary = str(value).strip().lower().replace("_", "-").split("-", 1)[0]
            for member in cls:
                if member.value == primary:
                    return member
        logger.debug("Unsupported language %r; using %s", value, cls.default().value)
        return cls.default()


class PipelinePhase(str, Enum):
    """Ordered stages of one analysis run."""

    INITIALIZATION = "initialization"
    FEATURE_EXTRACTION = "feature-extraction"
    HYPOTHESIS_GENERATION = "hypothesis-generation"
    SYNTHESIS = "synthesis"

    @property
    def order(self) -> int:
        return list(PipelinePhase).index(self)


class BackendCapability(str, Enum):
    """Features a remote inference backend can provide."""

    VISION = "vision"
    STRUCTURED_OUTPUT = "structured_output"
    SEARCH_GROUNDING = "search_grounding"


@dataclass(slots=True, frozen=True)
class TrustedLocation:
    """Caller-supplied coordinates treated as ground truth."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= float(self.latitude) <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= float(self.longitude) <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")


@dataclass(slots=True)
class AnalysisRequest:
    """Image payload and options for a single pipeline run."""

    image: bytes
    mime_type: str
    language: Language = Language.EN
    trusted_location: TrustedLocation | None = None

    def __post_init__(self) -> None:
        if not self.image:
            raise ValueError("Image payload must not be empty.")
        if not self.mime_type or not self.mime_type.strip():
            raise ValueError("A MIME type is required for the image payload.")
        self.mime_type = self.mime_type.strip().lower()
        self.language = Language.resolve(self.language)


@dataclass(slots=True)
class InferenceRequest:
    """Everything a transport needs to issue one remote call."""

    phase: PipelinePhase
    model: str
    prompt: str
    image: bytes | None = None
    mime_type: str | None = None
    response_schema: dict[str, Any] | None = None
    use_search: bool = False
    temperature: float = 0.2


@dataclass(slots=True)
class InferenceResponse:
    """Raw text returned by a remote call plus any grounding chunks."""

    text: str
    grounding_chunks: list[dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class BackendInfo:
    """Metadata describing an available transport implementation."""

    identifier: str
    display_name: str
    description: str
    capabilities: tuple[BackendCapability, ...]
    tags: Sequence[str] = ()


class TransportErrorKind(str, Enum):
    """Coarse classification of a failed remote call."""

    RATE_LIMIT = "rate_limit"
    CREDENTIAL = "credential"
    OTHER = "other"


class TransportError(RuntimeError):
    """Raised by transports with a typed description of the failure."""

    def __init__(
        self,
        message: str,
        *,
        kind: TransportErrorKind = TransportErrorKind.OTHER,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class InferenceBackend(Protocol):
    """Interface that remote inference transports must satisfy."""

    def info(self) -> BackendInfo:
        """Return metadata describing the transport."""

    def load(self) -> None:
        """Prepare network sessions or other resources."""

    def generate(self, request: InferenceRequest) -> InferenceResponse:
        """Issue a single remote call, raising ``TransportError`` on failure."""


class ErrorCode(str, Enum):
    """Symbolic error conditions exposed to callers."""

    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    INVALID_API_KEY = "INVALID_API_KEY"
    INVALID_RESPONSE_FORMAT = "INVALID_RESPONSE_FORMAT"
    GENERIC_ERROR = "GENERIC_ERROR"


class AnalysisError(RuntimeError):
    """Base class for every error a pipeline run can surface."""

    code: ErrorCode = ErrorCode.GENERIC_ERROR


class QuotaExceededError(AnalysisError):
    """The remote service kept rate limiting until the attempt budget ran out."""

    code = ErrorCode.QUOTA_EXCEEDED


class InvalidCredentialError(AnalysisError):
    """The remote service rejected the configured API key."""

    code = ErrorCode.INVALID_API_KEY


class InvalidResponseFormatError(AnalysisError):
    """The structured response could not be parsed or was incomplete."""

    code = ErrorCode.INVALID_RESPONSE_FORMAT


class GenericFailureError(AnalysisError):
    """Any other failure, wrapped so callers only see the four known conditions."""

    code = ErrorCode.GENERIC_ERROR
