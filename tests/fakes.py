"""Test doubles shared by the pipeline tests."""

from __future__ import annotations

import json
from collections.abc import Callable

from geocognition.models.base import (
    BackendCapability,
    BackendInfo,
    InferenceRequest,
    InferenceResponse,
    PipelinePhase,
)

VALID_REPORT = {
    "locationName": "Bárcena Mayor, Cantabria",
    "description": "Stone village in the Saja valley.",
    "confidenceScore": 82,
    "forensicAnalysis": {
        "summary": "No signs of manipulation.",
        "isAltered": False,
        "alterationConfidence": 0,
    },
    "environmentAnalysis": {"type": "exterior", "details": "Open street with houses."},
}

Handler = Callable[[InferenceRequest], InferenceResponse]


class FakeBackend:
    """Scripted transport that records every request it receives."""

    def __init__(self, handlers: dict[PipelinePhase, Handler | InferenceResponse | Exception]):
        self.handlers = handlers
        self.calls: list[InferenceRequest] = []

    def info(self) -> BackendInfo:
        return BackendInfo(
            identifier="fake",
            display_name="Fake",
            description="",
            capabilities=(BackendCapability.VISION,),
        )

    def load(self) -> None:  # pragma: no cover - nothing to prepare
        return None

    def generate(self, request: InferenceRequest) -> InferenceResponse:
        self.calls.append(request)
        handler = self.handlers[request.phase]
        if isinstance(handler, Exception):
            raise handler
        if isinstance(handler, InferenceResponse):
            return handler
        return handler(request)

    @property
    def phases(self) -> list[PipelinePhase]:
        return [call.phase for call in self.calls]


def default_handlers(
    report: dict | None = None,
) -> dict[PipelinePhase, Handler | InferenceResponse | Exception]:
    return {
        PipelinePhase.FEATURE_EXTRACTION: InferenceResponse(
            text="Stone houses, wooden balconies, mountain valley."
        ),
        PipelinePhase.HYPOTHESIS_GENERATION: InferenceResponse(
            text="Bárcena Mayor, Cantabria, Spain",
            grounding_chunks=[
                {"uri": "https://example.com/barcena", "title": "Bárcena Mayor"},
                {"uri": "https://example.com/untitled"},
            ],
        ),
        PipelinePhase.SYNTHESIS: InferenceResponse(text=json.dumps(report or VALID_REPORT)),
    }
