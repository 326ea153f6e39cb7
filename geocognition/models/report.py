"""Validated report models returned by the synthesis phase."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EnvironmentKind(str, Enum):
    """Whether the scene was captured indoors or outdoors."""

    INTERIOR = "interior"
    EXTERIOR = "exterior"
    UNKNOWN = "unknown"


_ENVIRONMENT_ALIASES = {
    "desconocido": EnvironmentKind.UNKNOWN,
    "indoor": EnvironmentKind.INTERIOR,
    "outdoor": EnvironmentKind.EXTERIOR,
}


class Citation(BaseModel):
    """A web source returned by a search-grounded call."""

    model_config = ConfigDict(frozen=True)

    uri: str
    title: str


class ForensicAssessment(BaseModel):
    """Judgement on whether the image was generated or altered."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    is_altered: bool = Field(alias="isAltered", strict=True)
    alteration_confidence: float = Field(
        alias="alterationConfidence", strict=True, allow_inf_nan=False
    )


class EnvironmentAssessment(BaseModel):
    """Indoor/outdoor classification of the scene."""

    model_config = ConfigDict(populate_by_name=True)

    kind: EnvironmentKind = Field(alias="type")
    details: str

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _ENVIRONMENT_ALIASES.get(lowered, lowered)
        return value


class AnalysisReport(BaseModel):
    """Final geolocation and forensics report."""

    model_config = ConfigDict(populate_by_name=True)

    location_name: str = Field(alias="locationName")
    description: str
    confidence_score: float = Field(alias="confidenceScore", strict=True, allow_inf_nan=False)
    forensic: ForensicAssessment = Field(alias="forensicAnalysis")
    environment: EnvironmentAssessment = Field(alias="environmentAnalysis")
    citations: list[Citation] = Field(default_factory=list, alias="groundingSources")

    @field_validator("location_name", "description")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def with_citations(self, citations: list[Citation]) -> AnalysisReport:
        """Return a copy carrying ``citations`` in place of the current list."""
        return self.model_copy(update={"citations": list(citations)})

    def to_payload(self) -> dict[str, Any]:
        """Serialize using the wire field names."""
        return self.model_dump(mode="json", by_alias=True)
