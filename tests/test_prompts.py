"""Tests for prompt composition."""

from __future__ import annotations

import pytest

from geocognition.models.base import Language, TrustedLocation
from geocognition.services.prompts import (
    RESPONSE_SCHEMA,
    compose_prompts,
    describe_trusted_location,
)


@pytest.mark.parametrize("language", list(Language))
def test_every_language_has_all_prompts(language):
    prompts = compose_prompts(language, extracted_features="red roofs")

    assert prompts.language is language
    assert prompts.feature_extraction.strip()
    assert prompts.hypothesis.strip()
    assert prompts.synthesis.strip()
    assert "red roofs" in prompts.hypothesis


def test_languages_produce_distinct_text():
    english = compose_prompts(Language.EN)
    spanish = compose_prompts(Language.ES)
    assert english.synthesis != spanish.synthesis
    assert "Responde en español" in spanish.synthesis


@pytest.mark.parametrize("value", ["de", "xx", "", None])
def test_unsupported_language_falls_back_to_english(value):
    assert compose_prompts(value) == compose_prompts(Language.EN)


def test_regional_language_tags_resolve():
    assert compose_prompts("pt-BR").language is Language.PT
    assert compose_prompts("zh_CN").language is Language.ZH


def test_trusted_location_adds_preamble_and_ignores_hypothesis():
    location = TrustedLocation(latitude=43.1375, longitude=-4.2111)
    prompts = compose_prompts(
        Language.EN,
        extracted_features="red roofs",
        hypothesis="Somewhere else",
        trusted_location=location,
    )

    assert prompts.synthesis.startswith("IMPORTANT")
    assert "43.137500" in prompts.synthesis
    assert "-4.211100" in prompts.synthesis
    assert "Somewhere else" not in prompts.synthesis
    assert "red roofs" not in prompts.synthesis


def test_trusted_location_synthesis_ends_with_verified_coordinates():
    location = TrustedLocation(latitude=43.1375, longitude=-4.2111)
    prompts = compose_prompts(Language.ES, trusted_location=location)

    assert prompts.synthesis.endswith(describe_trusted_location(location, Language.ES))


def test_hypothesis_and_features_are_added_as_evidence():
    prompts = compose_prompts(
        Language.FR, extracted_features="panneaux en basque", hypothesis="Bilbao"
    )

    assert "Bilbao" in prompts.synthesis
    assert "panneaux en basque" in prompts.synthesis


def test_synthesis_without_evidence_is_the_base_text():
    base = compose_prompts(Language.EN).synthesis
    assert base.endswith("Respond in English.")
    assert compose_prompts(Language.EN, hypothesis="  ").synthesis == base


def test_describe_trusted_location_is_localized():
    location = TrustedLocation(latitude=1.5, longitude=2.25)
    assert describe_trusted_location(location, Language.EN) == (
        "Verified GPS coordinates: 1.500000, 2.250000"
    )
    assert describe_trusted_location(location, "es").startswith("Coordenadas GPS verificadas")


def test_response_schema_requires_report_fields():
    assert RESPONSE_SCHEMA["required"] == [
        "locationName",
        "description",
        "confidenceScore",
        "forensicAnalysis",
        "environmentAnalysis",
    ]
    environment = RESPONSE_SCHEMA["properties"]["environmentAnalysis"]
    assert environment["properties"]["type"]["enum"] == ["interior", "exterior", "unknown"]
    forensic = RESPONSE_SCHEMA["properties"]["forensicAnalysis"]
    assert forensic["required"] == ["summary", "isAltered", "alterationConfidence"]
