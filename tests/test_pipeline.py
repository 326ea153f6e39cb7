"""Tests for the pipeline orchestrator."""

from __future__ import annotations

import copy
import json

import pytest
from fakes import VALID_REPORT, FakeBackend, default_handlers

from geocognition.config import AppConfig, ConfigurationError
from geocognition.models.base import (
    AnalysisRequest,
    GenericFailureError,
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
from geocognition.models.report import Citation
from geocognition.services.pipeline import (
    FullPipeline,
    GeolocationPipeline,
    PhaseEmitter,
    TrustedLocationPipeline,
    extract_hypothesis,
    select_variant,
)

ALL_PHASES = list(PipelinePhase)


def _request(**kwargs) -> AnalysisRequest:
    return AnalysisRequest(image=b"\xff\xd8fake", mime_type="image/jpeg", **kwargs)


def _pipeline(backend: FakeBackend, **config) -> GeolocationPipeline:
    return GeolocationPipeline(AppConfig(**config), backend=backend, sleep=lambda delay: None)


def test_full_pipeline_runs_every_phase_in_order():
    backend = FakeBackend(default_handlers())
    phases: list[PipelinePhase] = []

    report = _pipeline(backend).run(_request(), on_phase=phases.append)

    assert phases == ALL_PHASES
    assert backend.phases == [
        PipelinePhase.FEATURE_EXTRACTION,
        PipelinePhase.HYPOTHESIS_GENERATION,
        PipelinePhase.SYNTHESIS,
    ]
    assert report.location_name == VALID_REPORT["locationName"]


def test_full_pipeline_request_shapes():
    backend = FakeBackend(default_handlers())
    _pipeline(backend, remote_model="gemini-test", remote_temperature=0.4).run(_request())

    extraction, hypothesis, synthesis = backend.calls
    assert extraction.image == b"\xff\xd8fake"
    assert extraction.mime_type == "image/jpeg"
    assert extraction.use_search is False
    assert extraction.response_schema is None

    assert hypothesis.use_search is True
    assert hypothesis.image is None
    assert "Stone houses, wooden balconies" in hypothesis.prompt

    assert synthesis.response_schema is not None
    assert synthesis.image == b"\xff\xd8fake"
    assert "Bárcena Mayor, Cantabria, Spain" in synthesis.prompt
    assert all(call.model == "gemini-test" for call in backend.calls)
    assert all(call.temperature == 0.4 for call in backend.calls)


def test_incomplete_citations_are_dropped_in_order():
    backend = FakeBackend(default_handlers())

    report = _pipeline(backend).run(_request())

    assert report.citations == [
        Citation(uri="https://example.com/barcena", title="Bárcena Mayor"),
    ]


def test_trusted_location_skips_discovery_calls_but_reports_all_phases():
    backend = FakeBackend(default_handlers())
    phases: list[PipelinePhase] = []
    request = _request(trusted_location=TrustedLocation(latitude=43.1375, longitude=-4.2111))

    report = _pipeline(backend).run(request, on_phase=phases.append)

    assert phases == ALL_PHASES
    assert backend.phases == [PipelinePhase.SYNTHESIS]
    assert "43.137500" in backend.calls[0].prompt
    assert backend.calls[0].prompt.endswith("Verified GPS coordinates: 43.137500, -4.211100")
    assert report.citations == []


def test_language_is_forwarded_to_prompts():
    backend = FakeBackend(default_handlers())
    _pipeline(backend).run(_request(language=Language.ES))
    assert "Responde en español" in backend.calls[-1].prompt


def test_round_trip_report_matches_payload_plus_citations():
    backend = FakeBackend(default_handlers())

    report = _pipeline(backend).run(_request())

    expected = copy.deepcopy(VALID_REPORT)
    expected["groundingSources"] = [
        {"uri": "https://example.com/barcena", "title": "Bárcena Mayor"}
    ]
    assert report.to_payload() == expected


def test_missing_confidence_score_surfaces_invalid_format():
    broken = copy.deepcopy(VALID_REPORT)
    del broken["confidenceScore"]
    backend = FakeBackend(default_handlers(report=broken))

    with pytest.raises(InvalidResponseFormatError):
        _pipeline(backend).run(_request())


def test_quota_exhaustion_aborts_pipeline():
    handlers = default_handlers()
    handlers[PipelinePhase.FEATURE_EXTRACTION] = TransportError(
        "429", kind=TransportErrorKind.RATE_LIMIT, status_code=429
    )
    backend = FakeBackend(handlers)
    delays: list[float] = []
    pipeline = GeolocationPipeline(AppConfig(), backend=backend, sleep=delays.append)
    phases: list[PipelinePhase] = []

    with pytest.raises(QuotaExceededError):
        pipeline.run(_request(), on_phase=phases.append)

    assert delays == [3.0, 6.0, 12.0, 24.0]
    assert backend.phases == [PipelinePhase.FEATURE_EXTRACTION] * 5
    assert phases == [PipelinePhase.INITIALIZATION, PipelinePhase.FEATURE_EXTRACTION]


def test_credential_error_is_not_retried():
    handlers = default_handlers()
    handlers[PipelinePhase.SYNTHESIS] = TransportError(
        "bad key", kind=TransportErrorKind.CREDENTIAL, status_code=400
    )
    backend = FakeBackend(handlers)

    with pytest.raises(InvalidCredentialError):
        _pipeline(backend).run(_request())
    assert backend.phases.count(PipelinePhase.SYNTHESIS) == 1


def test_unexpected_errors_become_generic_failures():
    handlers = default_handlers()
    handlers[PipelinePhase.HYPOTHESIS_GENERATION] = TransportError("HTTP 500", status_code=500)
    backend = FakeBackend(handlers)

    with pytest.raises(GenericFailureError) as excinfo:
        _pipeline(backend).run(_request())

    assert isinstance(excinfo.value.__cause__, TransportError)
    assert PipelinePhase.SYNTHESIS not in backend.phases


def test_callback_errors_become_generic_failures():
    backend = FakeBackend(default_handlers())

    def explode(phase):
        raise RuntimeError("ui crashed")

    with pytest.raises(GenericFailureError):
        _pipeline(backend).run(_request(), on_phase=explode)
    assert backend.calls == []


def test_empty_hypothesis_still_synthesizes():
    handlers = default_handlers()
    handlers[PipelinePhase.HYPOTHESIS_GENERATION] = InferenceResponse(text="  \n")
    backend = FakeBackend(handlers)

    report = _pipeline(backend).run(_request())

    assert report.citations == []
    assert "web search" not in backend.calls[-1].prompt


def test_run_analysis_builds_request():
    backend = FakeBackend(default_handlers())
    phases: list[PipelinePhase] = []

    report = _pipeline(backend, language="fr").run_analysis(
        b"image", "IMAGE/PNG", phases.append
    )

    assert phases == ALL_PHASES
    assert backend.calls[0].mime_type == "image/png"
    assert "Répondez en français" in backend.calls[0].prompt
    assert report.description == VALID_REPORT["description"]


def test_run_analysis_rejects_empty_image_as_generic_failure():
    backend = FakeBackend(default_handlers())
    with pytest.raises(GenericFailureError):
        _pipeline(backend).run_analysis(b"", "image/jpeg")
    assert backend.calls == []


def test_phase_delay_paces_notifications():
    backend = FakeBackend(default_handlers())
    delays: list[float] = []
    pipeline = GeolocationPipeline(AppConfig(phase_delay=0.5), backend=backend, sleep=delays.append)

    pipeline.run(_request())

    assert delays == [0.5] * 4


def test_phase_emitter_rejects_out_of_order_and_repeats():
    emitter = PhaseEmitter()
    emitter(PipelinePhase.INITIALIZATION)
    emitter(PipelinePhase.SYNTHESIS)

    with pytest.raises(RuntimeError):
        emitter(PipelinePhase.FEATURE_EXTRACTION)
    with pytest.raises(RuntimeError):
        emitter(PipelinePhase.SYNTHESIS)
    assert emitter.emitted == (PipelinePhase.INITIALIZATION, PipelinePhase.SYNTHESIS)


def test_select_variant():
    assert isinstance(select_variant(_request()), FullPipeline)
    trusted = _request(trusted_location=TrustedLocation(latitude=0.0, longitude=0.0))
    assert isinstance(select_variant(trusted), TrustedLocationPipeline)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Bárcena Mayor, Cantabria", "Bárcena Mayor, Cantabria"),
        ("\n**\"Lisbon, Portugal\"**\nBecause of the trams.", "Lisbon, Portugal"),
        (
            "Based on these clues, the most likely location is:\nBárcena Mayor, Cantabria",
            "Bárcena Mayor, Cantabria",
        ),
        ("**Most likely location:**\n1. **Porto, Portugal**", "Porto, Portugal"),
        ("2) Hallstatt, Austria", "Hallstatt, Austria"),
        ("最可能的位置：\n西班牙坎塔布里亚", "西班牙坎塔布里亚"),
        ("Candidates:\n", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_hypothesis(text, expected):
    assert extract_hypothesis(text) == expected


def test_analyze_many_returns_outcomes_in_input_order():
    def synthesis(request):
        payload = copy.deepcopy(VALID_REPORT)
        payload["locationName"] = request.mime_type
        return InferenceResponse(text=json.dumps(payload))

    handlers = default_handlers()
    handlers[PipelinePhase.SYNTHESIS] = synthesis
    backend = FakeBackend(handlers)
    requests = [
        AnalysisRequest(image=b"a", mime_type="image/png"),
        AnalysisRequest(image=b"b", mime_type="image/jpeg"),
        AnalysisRequest(image=b"c", mime_type="image/webp"),
    ]
    seen: list[tuple[int, PipelinePhase]] = []

    outcomes = _pipeline(backend, max_concurrency=3).analyze_many(
        requests, on_phase=lambda index, phase: seen.append((index, phase))
    )

    assert [outcome.report.location_name for outcome in outcomes] == [
        "image/png",
        "image/jpeg",
        "image/webp",
    ]
    assert all(outcome.ok for outcome in outcomes)
    for index in range(3):
        assert [phase for i, phase in seen if i == index] == ALL_PHASES


def test_analyze_many_captures_classified_errors():
    handlers = default_handlers()
    handlers[PipelinePhase.SYNTHESIS] = InferenceResponse(text="nope")
    backend = FakeBackend(handlers)

    outcomes = _pipeline(backend).analyze_many([_request()])

    assert outcomes[0].ok is False
    assert isinstance(outcomes[0].error, InvalidResponseFormatError)
    assert _pipeline(backend).analyze_many([]) == []


def test_missing_api_key_fails_at_construction():
    with pytest.raises(ConfigurationError):
        GeolocationPipeline(AppConfig(api_key=None))


def test_unknown_backend_fails_at_construction():
    with pytest.raises(ConfigurationError):
        GeolocationPipeline(AppConfig(api_key="key", backend_name="remote.missing"))
