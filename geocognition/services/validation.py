"""Parsing and validation of structured synthesis responses."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from ..models.base import InvalidResponseFormatError
from ..models.report import AnalysisReport, Citation

logger = logging.getLogger(__name__)


def _strip_markdown(text: str) -> str:
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    parts = stripped.split("```")
    # The second segment holds the payload, possibly prefixed by a language tag.
    if len(parts) < 3:
        return stripped
    candidate = parts[1]
    if "\n" in candidate:
        _, remainder = candidate.split("\n", 1)
        return remainder.strip()
    return candidate.strip()


def parse_and_validate(raw_text: str | None) -> AnalysisReport:
    """Turn the raw synthesis text into an :class:`AnalysisReport`.

    Malformed JSON and well-formed but incomplete payloads are reported the
    same way, as :class:`InvalidResponseFormatError`. Numeric fields are not
    clamped.
    """
    if raw_text is None or not raw_text.strip():
        raise InvalidResponseFormatError("The remote service returned an empty response.")

    cleaned = _strip_markdown(raw_text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("Synthesis response is not valid JSON: %s", exc)
        raise InvalidResponseFormatError(
            "The remote service returned a response that is not valid JSON."
        ) from exc

    if not isinstance(payload, dict):
        raise InvalidResponseFormatError(
            f"Expected a JSON object, got {type(payload).__name__}."
        )

    # confidenceScore may legitimately be 0, so check for absence rather than falsiness.
    missing = [
        name
        for name in ("locationName", "description", "confidenceScore")
        if payload.get(name) is None or payload.get(name) == ""
    ]
    if missing:
        raise InvalidResponseFormatError(
            f"Response is missing required fields: {', '.join(missing)}."
        )

    try:
        report = AnalysisReport.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Synthesis response failed validation: %s", exc)
        raise InvalidResponseFormatError(
            "The remote service returned a response that does not match the report schema."
        ) from exc

    if not report.forensic.is_altered and report.forensic.alteration_confidence != 0:
        logger.debug(
            "Image reported as unaltered with alterationConfidence=%s; keeping value as returned.",
            report.forensic.alteration_confidence,
        )
    return report


def collect_citations(chunks: Iterable[Mapping[str, Any]] | None) -> list[Citation]:
    """Keep grounding chunks that carry both a URI and a title, in their original order."""
    citations: list[Citation] = []
    for chunk in chunks or []:
        if not isinstance(chunk, Mapping):
            continue
        uri = chunk.get("uri")
        title = chunk.get("title")
        if isinstance(uri, str) and uri and isinstance(title, str) and title:
            citations.append(Citation(uri=uri, title=title))
    return citations


def attach_citations(report: AnalysisReport, citations: Iterable[Citation]) -> AnalysisReport:
    """Return ``report`` with ``citations`` attached."""
    return report.with_citations(list(citations))
