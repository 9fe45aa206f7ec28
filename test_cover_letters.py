"""Tests for cover-letter generation: styled variants and the single letter."""

from datetime import date

import pytest

from ats_buddy.core import AnalysisOrchestrator, COVER_LETTER_STYLES
from ats_buddy.core.prompts import cover_letter_variant_prompt, format_letter_date
from ats_buddy.models import (
    AppConfig,
    CoverLetterOutput,
    PipelineConfig,
    StageName,
    StageStatus,
)
from ats_buddy.services import MalformedOutputError, TransportError

from conftest import FakeGenerationClient


STYLE_NAMES = [style.name for style in COVER_LETTER_STYLES]


class TestCoverLetterVariants:

    @pytest.mark.asyncio
    async def test_all_styles_succeed(self, orchestrator, fake_client):
        batch = await orchestrator.run_cover_letter_variants("resume", "job", "session-4")

        assert batch.status == StageStatus.COMPLETED
        assert len(batch.outputs) == 3
        assert [variant.style for variant in batch.outputs] == STYLE_NAMES
        assert len({variant.style for variant in batch.outputs}) == 3
        assert batch.error is None
        assert batch.errors == {}
        assert all(temperature == 0.7 for _, temperature in fake_client.calls)

    def test_fixed_style_set(self):
        assert STYLE_NAMES == [
            "Professional & Direct",
            "Achievement Focused",
            "Passionate & Cultural",
        ]

    @pytest.mark.asyncio
    async def test_one_failing_style_keeps_the_others(self, config):
        client = FakeGenerationClient(
            responses={"Achievement Focused": TransportError("rate limited")}
        )
        orchestrator = AnalysisOrchestrator(config, client=client)

        batch = await orchestrator.run_cover_letter_variants("resume", "job", "session-4")

        assert batch.status == StageStatus.COMPLETED
        assert [variant.style for variant in batch.outputs] == [
            "Professional & Direct",
            "Passionate & Cultural",
        ]
        assert batch.errors == {"Achievement Focused": "rate limited"}
        # Every style was attempted
        assert client.called_keys() == set(STYLE_NAMES)

    @pytest.mark.asyncio
    async def test_all_styles_failing_fails_the_batch(self, config):
        client = FakeGenerationClient(responses={
            name: MalformedOutputError("Empty response from generation service")
            for name in STYLE_NAMES
        })
        orchestrator = AnalysisOrchestrator(config, client=client)

        batch = await orchestrator.run_cover_letter_variants("resume", "job", "session-4")

        assert batch.status == StageStatus.FAILED
        assert batch.outputs == []
        assert set(batch.errors) == set(STYLE_NAMES)
        assert "Professional & Direct: Empty response" in batch.error

    @pytest.mark.asyncio
    async def test_inputs_are_truncated(self):
        config = AppConfig(pipeline=PipelineConfig(cover_letter_excerpt_chars=10))
        client = FakeGenerationClient()
        orchestrator = AnalysisOrchestrator(config, client=client)

        await orchestrator.run_cover_letter_variants("R" * 50, "J" * 50, "session-4")

        prompt = client.prompts["Professional & Direct"]
        assert "R" * 10 in prompt
        assert "R" * 11 not in prompt
        assert "J" * 11 not in prompt


class TestSingleCoverLetter:

    @pytest.mark.asyncio
    async def test_returns_cover_letter_stage(self, orchestrator, fake_client):
        envelope = await orchestrator.generate_cover_letter("resume", "job", "session-5")

        assert envelope.name == StageName.COVER_LETTER
        assert envelope.status == StageStatus.COMPLETED
        assert isinstance(envelope.output, CoverLetterOutput)
        assert envelope.output.markdown.startswith("Dear Hiring Manager")
        assert fake_client.calls == [("cover_letter", 0.4)]

    @pytest.mark.asyncio
    async def test_failure_is_captured(self, config):
        client = FakeGenerationClient(responses={"cover_letter": TransportError("boom")})
        orchestrator = AnalysisOrchestrator(config, client=client)

        envelope = await orchestrator.generate_cover_letter("resume", "job", "session-5")

        assert envelope.status == StageStatus.FAILED
        assert envelope.error == "boom"


class TestCoverLetterPrompts:

    def test_letter_date_format(self):
        assert format_letter_date(date(2026, 10, 8)) == "October 8, 2026"

    def test_variant_prompt_includes_style_and_date(self):
        style = COVER_LETTER_STYLES[1]
        prompt = cover_letter_variant_prompt(
            "resume text", "job text", style, today=date(2026, 1, 2)
        )

        assert f"STYLE INSTRUCTION: {style.instruction}" in prompt
        assert "**Date**: January 2, 2026." in prompt
        assert "resume text" in prompt
        assert "job text" in prompt
