"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from ats_buddy.models import AppConfig, PipelineConfig


def test_defaults():
    config = AppConfig()

    assert config.llm.provider == "gemini"
    assert config.llm.model == "gemini-2.5-flash"
    assert config.llm.api_key is None
    assert config.debug is False

    pipeline = config.pipeline
    assert pipeline.keyword_temperature == 0.2
    assert pipeline.scoring_temperature == 0.2
    assert pipeline.optimization_temperature == 0.25
    assert pipeline.cover_letter_variant_temperature == 0.7
    assert pipeline.cover_letter_temperature == 0.4
    assert pipeline.chat_temperature == 0.4
    assert pipeline.cover_letter_excerpt_chars == 3000
    assert pipeline.stage_timeout_seconds is None


def test_nested_settings_from_environment(monkeypatch):
    monkeypatch.setenv("ATS_LLM__PROVIDER", "openai")
    monkeypatch.setenv("ATS_LLM__MODEL", "gpt-4o-mini")
    monkeypatch.setenv("ATS_PIPELINE__STAGE_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("ATS_DEBUG", "true")

    config = AppConfig()

    assert config.llm.provider == "openai"
    assert config.llm.model == "gpt-4o-mini"
    assert config.pipeline.stage_timeout_seconds == 30.0
    assert config.debug is True


def test_unknown_provider_from_environment(monkeypatch):
    monkeypatch.setenv("ATS_LLM__PROVIDER", "bogus")

    with pytest.raises(ValidationError):
        AppConfig()


@pytest.mark.parametrize("field, value", [
    ("stage_timeout_seconds", 0),
    ("cover_letter_excerpt_chars", 0),
    ("chat_temperature", -0.1),
])
def test_pipeline_rejects_invalid_values(field, value):
    with pytest.raises(ValidationError):
        PipelineConfig(**{field: value})


def test_mock_provider_from_environment(monkeypatch):
    monkeypatch.setenv("ATS_LLM__PROVIDER", "mock")

    assert AppConfig().llm.provider == "mock"
