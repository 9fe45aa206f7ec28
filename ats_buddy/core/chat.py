"""Context-aware résumé assistant prompts."""

from datetime import date
from typing import Any, Optional, Sequence, Tuple

from ..models import AggregateResult, ChatMessage, StageName, StageStatus
from .prompts import format_letter_date, render_prompt

UPDATED_RESUME_MARKER = "UPDATED_RESUME:"


def _completed_output(analysis: AggregateResult, name: StageName) -> Optional[Any]:
    envelope = analysis.stage(name)
    if envelope is None or envelope.status != StageStatus.COMPLETED:
        return None
    return envelope.output


def _joined(items, separator: str = ", ") -> str:
    return separator.join(items) if items else "None"


def build_chat_context(
    analysis: AggregateResult,
    resume_text: str = "",
    job_text: str = "",
    today: Optional[date] = None,
) -> str:
    """Summarize a finished analysis as a preamble for the assistant.

    Stages that did not complete are rendered as "N/A"/"None" so a partial
    analysis still yields a usable context.
    """
    scoring = _completed_output(analysis, StageName.SCORING)
    keywords = _completed_output(analysis, StageName.KEYWORD_ANALYSIS)
    optimized = _completed_output(analysis, StageName.OPTIMIZATION)

    return render_prompt(
        "chat_context",
        today=format_letter_date(today),
        overall=scoring.overall if scoring else "N/A",
        summary=scoring.alignment_notes if scoring else "Not available",
        matching=_joined(keywords.matching_keywords if keywords else None),
        missing=_joined(keywords.missing_keywords if keywords else None),
        suggestions=_joined(keywords.suggestions if keywords else None, "\n- "),
        optimized=optimized.markdown if optimized else "",
        resume=resume_text,
        job_text=job_text,
    )


def build_chat_prompt(
    messages: Sequence[ChatMessage],
    analysis: Optional[AggregateResult] = None,
    resume_text: str = "",
    job_text: str = "",
    today: Optional[date] = None,
) -> str:
    """Render the full assistant prompt: context preamble plus transcript."""
    context = ""
    if analysis is not None:
        context = build_chat_context(analysis, resume_text, job_text, today)

    conversation = "\n\n".join(f"{m.role.upper()}: {m.content}" for m in messages)
    return render_prompt("chat", context=context, conversation=conversation)


def split_updated_resume(reply: str) -> Tuple[str, Optional[str]]:
    """Split an assistant reply into (explanation, updated résumé).

    The updated résumé is whatever follows the first ``UPDATED_RESUME:``
    marker; it is None when the marker is absent or nothing follows it.
    """
    explanation, marker, updated = reply.partition(UPDATED_RESUME_MARKER)
    if not marker:
        return reply.strip(), None
    return explanation.strip(), updated.strip() or None
