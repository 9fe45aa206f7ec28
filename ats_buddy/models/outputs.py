"""Pydantic models for the structured output of each analysis stage."""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional


class StageOutput(BaseModel):
    """Base for stage outputs: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class KeywordAnalysisOutput(StageOutput):
    """Keyword comparison between the résumé and the job posting."""
    matching_keywords: List[str] = Field(
        description="Keywords present in both the résumé and the job posting"
    )
    missing_keywords: List[str] = Field(
        description="Keywords in the job posting that the résumé lacks"
    )
    suggestions: List[str] = Field(
        description="3-5 actionable improvements"
    )


class ScoreBreakdownOutput(StageOutput):
    """ATS match score with alignment notes and extracted job details."""
    overall: int = Field(description="Overall match score, nominally 0-100")
    alignment_notes: str
    matched_keywords: List[str] = Field(default_factory=list)
    missing_keywords: List[str] = Field(default_factory=list)
    job_title: Optional[str] = None
    company: Optional[str] = None

    @field_validator("overall", mode="before")
    @classmethod
    def round_overall(cls, value):
        # Halves round up; not clamped to 0-100
        if isinstance(value, float):
            return math.floor(value + 0.5)
        return value


class OptimizedDraftOutput(StageOutput):
    """Rewritten résumé in markdown plus a short rationale."""
    markdown: str
    rationale: str


class FormattedOutput(StageOutput):
    """ATS-friendly markdown, derived from the optimizer's draft."""
    markdown: str


class CoverLetterOutput(StageOutput):
    markdown: str


class CoverLetterStyle(BaseModel):
    """A named tone used to generate one cover-letter variant."""
    name: str
    instruction: str


class CoverLetterVariant(StageOutput):
    markdown: str
    style: str
