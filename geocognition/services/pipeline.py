"""Pipeline orchestration: phase sequencing, evidence gathering and synthesis."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from ..config import AppConfig, ConfigurationError
from ..models.base import (
    AnalysisError,
    AnalysisRequest,
    GenericFailureError,
    InferenceBackend,
    InferenceRequest,
    Language,
    PipelinePhase,
    TrustedLocation,
)
from ..models.registry import BackendRegistry
from ..models.report import AnalysisReport, Citation
from .invoker import ResilientInvoker, SleepFunction
from .prompts import RESPONSE_SCHEMA, compose_prompts
from .validation import attach_citations, collect_citations, parse_and_validate

logger = logging.getLogger(__name__)

PhaseCallback = Callable[[PipelinePhase], None]


class PhaseEmitter:
    """Deliver phase notifications in strict order, at most once per phase."""

    def __init__(
        self,
        callback: PhaseCallback | None = None,
        *,
        delay: float = 0.0,
        sleep: SleepFunction = time.sleep,
    ) -> None:
        self._callback = callback
        self._delay = delay
        self._sleep = sleep
        self._emitted: list[PipelinePhase] = []

    @property
    def emitted(self) -> tuple[PipelinePhase, ...]:
        return tuple(self._emitted)

    def __call__(self, phase: PipelinePhase) -> None:
        if self._emitted and phase.order <= self._emitted[-1].order:
            raise RuntimeError(
                f"Phase {phase.value!r} emitted after {self._emitted[-1].value!r}."
            )
        self._emitted.append(phase)
        logger.info("Entering phase %s", phase.value)
        if self._callback is not None:
            self._callback(phase)
        if self._delay > 0:
            self._sleep(self._delay)


@dataclass(slots=True)
class Evidence:
    """What the pre-synthesis phases learned about the image."""

    features: str | None = None
    hypothesis: str | None = None
    citations: list[Citation] = field(default_factory=list)


class FullPipeline:
    """Extract features, form a grounded hypothesis, then synthesize."""

    name = "full"

    def gather(
        self,
        pipeline: GeolocationPipeline,
        request: AnalysisRequest,
        emit: PhaseEmitter,
    ) -> Evidence:
        prompts = compose_prompts(request.language)
        emit(PipelinePhase.FEATURE_EXTRACTION)
        features_response = pipeline.invoker.invoke(
            pipeline.build_inference_request(
                PipelinePhase.FEATURE_EXTRACTION,
                prompts.feature_extraction,
                image=request.image,
                mime_type=request.mime_type,
            )
        )
        features = features_response.text.strip() or None

        emit(PipelinePhase.HYPOTHESIS_GENERATION)
        prompts = compose_prompts(request.language, extracted_features=features)
        hypothesis_response = pipeline.invoker.invoke(
            pipeline.build_inference_request(
                PipelinePhase.HYPOTHESIS_GENERATION,
                prompts.hypothesis,
                use_search=True,
            )
        )
        citations = collect_citations(hypothesis_response.grounding_chunks)
        hypothesis = extract_hypothesis(hypothesis_response.text)
        logger.debug("Hypothesis %r with %d citation(s)", hypothesis, len(citations))
        return Evidence(features=features, hypothesis=hypothesis, citations=citations)


class TrustedLocationPipeline:
    """Skip inference-based discovery when the caller supplied coordinates."""

    name = "trusted-location"

    def gather(
        self,
        pipeline: GeolocationPipeline,
        request: AnalysisRequest,
        emit: PhaseEmitter,
    ) -> Evidence:
        if request.trusted_location is None:
            raise ValueError("TrustedLocationPipeline requires a trusted location.")
        # Both phases are still announced so progress indicators stay monotonic.
        emit(PipelinePhase.FEATURE_EXTRACTION)
        emit(PipelinePhase.HYPOTHESIS_GENERATION)
        # Synthesis derives its evidence from request.trusted_location.
        return Evidence()


PipelineVariant = FullPipeline | TrustedLocationPipeline


def select_variant(request: AnalysisRequest) -> PipelineVariant:
    if request.trusted_location is not None:
        return TrustedLocationPipeline()
    return FullPipeline()


_LIST_NUMBERING = re.compile(r"^\d+[.)]\s+")
_MARKUP = "*`#>-_"
_QUOTES = "\"'“”«»"


def extract_hypothesis(text: str | None) -> str | None:
    """Return the first meaningful line of a hypothesis response.

    Lead-in lines ending with a colon are skipped, and Markdown emphasis,
    bullets, list numbering and surrounding quotes are removed.
    """
    for line in (text or "").splitlines():
        candidate = line.strip().strip(_MARKUP).strip()
        candidate = _LIST_NUMBERING.sub("", candidate)
        candidate = candidate.strip(_MARKUP).strip().strip(_QUOTES).strip()
        if not candidate or candidate.endswith((":", "：")):
            continue
        return candidate
    return None


@dataclass(slots=True)
class PipelineOutcome:
    """Result of one run inside :meth:`GeolocationPipeline.analyze_many`."""

    request: AnalysisRequest
    report: AnalysisReport | None = None
    error: AnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.report is not None


class GeolocationPipeline:
    """High-level orchestration of a geolocation analysis run."""

    def __init__(
        self,
        config: AppConfig,
        backend: InferenceBackend | None = None,
        *,
        sleep: SleepFunction = time.sleep,
    ) -> None:
        self.config = config
        if backend is None:
            try:
                backend = BackendRegistry.get(config.backend_name, config=config)
            except KeyError as exc:
                raise ConfigurationError(str(exc)) from exc
        self.backend = backend
        self._sleep = sleep
        self.invoker = ResilientInvoker(
            backend,
            max_attempts=config.max_attempts,
            initial_backoff=config.initial_backoff,
            sleep=sleep,
        )

    def build_inference_request(
        self,
        phase: PipelinePhase,
        prompt: str,
        *,
        image: bytes | None = None,
        mime_type: str | None = None,
        response_schema: dict | None = None,
        use_search: bool = False,
    ) -> InferenceRequest:
        return InferenceRequest(
            phase=phase,
            model=self.config.remote_model,
            prompt=prompt,
            image=image,
            mime_type=mime_type,
            response_schema=response_schema,
            use_search=use_search,
            temperature=self.config.remote_temperature,
        )

    def run_analysis(
        self,
        image_bytes: bytes,
        mime_type: str,
        on_phase_change: PhaseCallback | None = None,
        language: Language | str | None = None,
        trusted_location: TrustedLocation | None = None,
    ) -> AnalysisReport:
        """Convenience wrapper building the :class:`AnalysisRequest` for :meth:`run`."""
        try:
            request = AnalysisRequest(
                image=image_bytes,
                mime_type=mime_type,
                language=language or self.config.language,
                trusted_location=trusted_location,
            )
        except ValueError as exc:
            raise GenericFailureError(str(exc)) from exc
        return self.run(request, on_phase=on_phase_change)

    def run(
        self,
        request: AnalysisRequest,
        on_phase: PhaseCallback | None = None,
    ) -> AnalysisReport:
        """Run every phase for ``request`` and return the validated report.

        Only the four :class:`AnalysisError` subclasses escape; anything else
        is logged and wrapped in :class:`GenericFailureError`.
        """
        emit = PhaseEmitter(on_phase, delay=self.config.phase_delay, sleep=self._sleep)
        try:
            return self._run(request, emit)
        except AnalysisError as exc:
            logger.warning("Analysis failed with %s: %s", exc.code.value, exc)
            raise
        except Exception as exc:
            logger.exception("Unexpected failure during analysis")
            raise GenericFailureError(f"Analysis failed: {exc}") from exc

    def _run(self, request: AnalysisRequest, emit: PhaseEmitter) -> AnalysisReport:
        emit(PipelinePhase.INITIALIZATION)
        variant = select_variant(request)
        logger.debug("Using %s pipeline", variant.name)
        evidence = variant.gather(self, request, emit)

        emit(PipelinePhase.SYNTHESIS)
        prompts = compose_prompts(
            request.language,
            extracted_features=evidence.features,
            hypothesis=evidence.hypothesis,
            trusted_location=request.trusted_location,
        )
        response = self.invoker.invoke(
            self.build_inference_request(
                PipelinePhase.SYNTHESIS,
                prompts.synthesis,
                image=request.image,
                mime_type=request.mime_type,
                response_schema=RESPONSE_SCHEMA,
            )
        )
        report = parse_and_validate(response.text)
        return attach_citations(report, evidence.citations)

    def analyze_many(
        self,
        requests: Sequence[AnalysisRequest],
        *,
        on_phase: Callable[[int, PipelinePhase], None] | None = None,
    ) -> list[PipelineOutcome]:
        """Run independent pipelines concurrently, returning outcomes in input order."""
        if not requests:
            return []

        def _worker(index: int, request: AnalysisRequest) -> PipelineOutcome:
            callback = None
            if on_phase is not None:
                callback = lambda phase: on_phase(index, phase)  # noqa: E731
            try:
                return PipelineOutcome(request=request, report=self.run(request, callback))
            except AnalysisError as exc:
                return PipelineOutcome(request=request, error=exc)

        with ThreadPoolExecutor(max_workers=self.config.max_concurrency) as executor:
            futures = [
                executor.submit(_worker, index, request) for index, request in enumerate(requests)
            ]
            return [future.result() for future in futures]
