"""Tests for the résumé assistant chat prompt and reply handling."""

from datetime import date

import pytest

from ats_buddy.core import build_chat_prompt, merge_stage, pending_stage, split_updated_resume
from ats_buddy.models import (
    AggregateResult,
    ChatMessage,
    KeywordAnalysisOutput,
    OptimizedDraftOutput,
    ScoreBreakdownOutput,
    StageEnvelope,
    StageName,
    StageStatus,
)
from ats_buddy.services import TransportError

from conftest import FakeGenerationClient


MESSAGES = [
    ChatMessage(role="user", content="How can I improve my score?"),
    ChatMessage(role="assistant", content="Add Kubernetes experience."),
    ChatMessage(role="user", content="Please update my resume."),
]


def completed(name: StageName, output) -> StageEnvelope:
    return StageEnvelope(name=name, status=StageStatus.COMPLETED, output=output)


@pytest.fixture
def analysis() -> AggregateResult:
    result = AggregateResult(session_id="session-6", correlation_id="corr-6")
    result = merge_stage(result, completed(
        StageName.KEYWORD_ANALYSIS,
        KeywordAnalysisOutput(
            matching_keywords=["Python", "REST"],
            missing_keywords=["Kubernetes"],
            suggestions=["Mention Kubernetes", "Quantify impact"],
        ),
    ))
    result = merge_stage(result, completed(
        StageName.SCORING,
        ScoreBreakdownOutput(
            overall=64,
            alignment_notes="Solid backend fit",
            matched_keywords=["Python"],
            missing_keywords=["Kubernetes"],
        ),
    ))
    return merge_stage(result, completed(
        StageName.OPTIMIZATION,
        OptimizedDraftOutput(markdown="## EXPERIENCE\nOptimized", rationale="Added keywords"),
    ))


class TestBuildChatPrompt:

    def test_includes_analysis_context(self, analysis):
        prompt = build_chat_prompt(
            MESSAGES, analysis, "original resume", "job posting", today=date(2026, 3, 4)
        )

        assert "CURRENT DATE: March 4, 2026" in prompt
        assert "Original Resume ATS Score: 64/100" in prompt
        assert "Alignment Summary: Solid backend fit" in prompt
        assert "Matching Keywords from Original: Python, REST" in prompt
        assert "Missing Keywords from Original: Kubernetes" in prompt
        assert "- Mention Kubernetes\n- Quantify impact" in prompt
        assert "## EXPERIENCE\nOptimized" in prompt
        assert "original resume" in prompt
        assert "job posting" in prompt

    def test_transcript_and_reply_cue(self, analysis):
        prompt = build_chat_prompt(MESSAGES, analysis)

        assert (
            "USER: How can I improve my score?\n\n"
            "ASSISTANT: Add Kubernetes experience.\n\n"
            "USER: Please update my resume."
        ) in prompt
        assert prompt.endswith("ASSISTANT:")

    def test_without_analysis_has_no_context(self):
        prompt = build_chat_prompt(MESSAGES)

        assert "CONTEXT ANALYSIS" not in prompt
        assert "You are an expert resume assistant." in prompt

    def test_failed_and_missing_stages_render_placeholders(self):
        result = AggregateResult(
            session_id="s",
            correlation_id="c",
            stages={StageName.KEYWORD_ANALYSIS: pending_stage(StageName.KEYWORD_ANALYSIS)},
        )
        result = merge_stage(result, StageEnvelope(
            name=StageName.SCORING,
            status=StageStatus.FAILED,
            error="boom",
        ))

        prompt = build_chat_prompt(MESSAGES, result)

        assert "Original Resume ATS Score: N/A/100" in prompt
        assert "Alignment Summary: Not available" in prompt
        assert "Matching Keywords from Original: None" in prompt


class TestSplitUpdatedResume:

    def test_reply_with_updated_resume(self):
        explanation, updated = split_updated_resume(
            "I added Kubernetes.\n\nUPDATED_RESUME:\n## EXPERIENCE\nNew content\n"
        )

        assert explanation == "I added Kubernetes."
        assert updated == "## EXPERIENCE\nNew content"

    def test_reply_without_marker(self):
        assert split_updated_resume(" Just advice. ") == ("Just advice.", None)

    def test_marker_with_nothing_after_it(self):
        assert split_updated_resume("Done.\nUPDATED_RESUME:  ") == ("Done.", None)


class TestOrchestratorChat:

    @pytest.mark.asyncio
    async def test_chat_uses_chat_temperature(self, orchestrator, fake_client, analysis):
        reply = await orchestrator.chat(MESSAGES, analysis, "resume", "job")

        assert reply == "Happy to help."
        assert fake_client.calls == [("chat", 0.4)]
        assert "Original Resume ATS Score: 64/100" in fake_client.prompts["chat"]

    @pytest.mark.asyncio
    async def test_chat_failure_propagates(self, config):
        from ats_buddy.core import AnalysisOrchestrator

        client = FakeGenerationClient(responses={"chat": TransportError("down")})
        orchestrator = AnalysisOrchestrator(config, client=client)

        with pytest.raises(TransportError):
            await orchestrator.chat(MESSAGES)
