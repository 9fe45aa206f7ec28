"""
Shared fixtures for the analysis engine tests.

Provides a scripted generation client so no test ever reaches a real
language model, and isolates ATS_* environment settings.
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from ats_buddy.core import AnalysisOrchestrator, COVER_LETTER_STYLES
from ats_buddy.models import AppConfig, ObjectSchema


KEYWORDS = {
    "matchingKeywords": ["Python"],
    "missingKeywords": ["Go", "Kubernetes"],
    "suggestions": ["Mention containerized deployments", "Quantify API traffic"],
}

SCORING = {
    "overall": 82.6,
    "alignmentNotes": "Strong Python background, light on infrastructure.",
    "matchedKeywords": ["Python"],
    "missingKeywords": ["Go"],
    "jobTitle": "Backend Engineer",
    "company": "Acme",
}

OPTIMIZED = {
    "markdown": "## EXPERIENCE\n\n**Acme Corp** | 2021 - Present\n**Software Engineer**\n* Built Python APIs",
    "rationale": "Surfaced API and infrastructure work.",
}

COVER_LETTER = {"markdown": "Dear Hiring Manager,\n\nI am excited to apply."}


def prompt_key(prompt: str) -> str:
    """Identify which stage a prompt belongs to."""
    if "Keyword Analyzer" in prompt:
        return "keywords"
    if "ATS Scorer" in prompt:
        return "scoring"
    if "Resume Optimizer" in prompt:
        return "optimizer"
    if "STYLE INSTRUCTION" in prompt:
        for style in COVER_LETTER_STYLES:
            if style.instruction in prompt:
                return style.name
    if "Cover Letter Writer" in prompt:
        return "cover_letter"
    return "chat"


class FakeGenerationClient:
    """Scripted stand-in for the generation service.

    ``responses`` maps a prompt key (see ``prompt_key``) to the decoded value
    to return, or to an exception to raise. ``delays`` maps a key to seconds
    to wait first, which lets tests control completion order.
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Any]] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.responses: Dict[str, Any] = {
            "keywords": KEYWORDS,
            "scoring": SCORING,
            "optimizer": OPTIMIZED,
            "cover_letter": COVER_LETTER,
            "chat": "Happy to help.",
            **{
                style.name: {"markdown": f"Letter in the {style.name} style"}
                for style in COVER_LETTER_STYLES
            },
        }
        self.responses.update(responses or {})
        self.delays = delays or {}
        self.calls: List[Tuple[str, float]] = []
        self.prompts: Dict[str, str] = {}
        self.cancelled: Set[str] = set()

    async def _respond(self, key: str, temperature: float) -> Any:
        self.calls.append((key, temperature))
        try:
            await asyncio.sleep(self.delays.get(key, 0))
        except asyncio.CancelledError:
            self.cancelled.add(key)
            raise

        response = self.responses[key]
        if isinstance(response, Exception):
            raise response
        return copy.deepcopy(response)

    async def generate_structured(self, prompt: str, schema: ObjectSchema, temperature: float) -> Any:
        key = prompt_key(prompt)
        self.prompts[key] = prompt
        return await self._respond(key, temperature)

    async def chat_generate(self, prompt: str, temperature: float) -> str:
        self.prompts["chat"] = prompt
        return await self._respond("chat", temperature)

    def called_keys(self) -> Set[str]:
        return {key for key, _ in self.calls}


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep real ATS_* settings and API keys out of the tests."""
    import os

    for name in list(os.environ):
        if name.startswith("ATS_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "test-mock-key")


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def fake_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def orchestrator(config, fake_client) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(config, client=fake_client)
