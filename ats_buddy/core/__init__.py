"""Core orchestration logic for the ATS Buddy analysis engine."""

from .pipeline import AnalysisOrchestrator, InvocationLogger, ProgressCallback, derive_formatting
from .stages import run_stage, merge_stage, pending_stage
from .prompts import COVER_LETTER_STYLES
from .chat import build_chat_prompt, split_updated_resume

__all__ = [
    "AnalysisOrchestrator",
    "InvocationLogger",
    "ProgressCallback",
    "derive_formatting",
    "run_stage",
    "merge_stage",
    "pending_stage",
    "COVER_LETTER_STYLES",
    "build_chat_prompt",
    "split_updated_resume",
]
