"""Service layer: retrying invoker, prompts, validation and the pipeline itself."""

from .invoker import ResilientInvoker, classify_error
from .pipeline import GeolocationPipeline, PipelineOutcome
from .prompts import RESPONSE_SCHEMA, compose_prompts
from .validation import collect_citations, parse_and_validate

__all__ = [
    "GeolocationPipeline",
    "PipelineOutcome",
    "RESPONSE_SCHEMA",
    "ResilientInvoker",
    "classify_error",
    "collect_citations",
    "compose_prompts",
    "parse_and_validate",
]
