"""Analysis Orchestrator - concurrent multi-stage pipelines.

Each pipeline fans its stages out to the generation client at once, tracks
every stage through PENDING → COMPLETED | FAILED, and publishes a freshly
merged snapshot to the progress callback as each stage settles:

    full analysis:   keyword-analysis | scoring | optimization (+ formatting)
    keyword only:    keyword-analysis
    score only:      keyword-analysis | scoring
    cover letters:   one cover-letter stage per style

Formatting costs no request; it is derived from the optimizer's markdown.
"""

import asyncio
import logging
import uuid
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence

from ..models import (
    AggregateResult,
    AppConfig,
    ChatMessage,
    CoverLetterBatch,
    CoverLetterOutput,
    CoverLetterStyle,
    CoverLetterVariant,
    FormattedOutput,
    KeywordAnalysisOutput,
    OptimizedDraftOutput,
    ScoreBreakdownOutput,
    StageEnvelope,
    StageName,
    StageStatus,
)
from ..services import GenerationClient, create_generation_client
from .chat import build_chat_prompt
from .prompts import (
    COVER_LETTER_SCHEMA,
    COVER_LETTER_STYLES,
    KEYWORD_SCHEMA,
    OPTIMIZER_SCHEMA,
    SCORING_SCHEMA,
    cover_letter_prompt,
    cover_letter_variant_prompt,
    keyword_analysis_prompt,
    optimizer_prompt,
    scoring_prompt,
)
from .stages import StageWork, merge_stage, pending_stage, run_stage

logger = logging.getLogger(__name__)


# Receives each merged snapshot as a stage settles
ProgressCallback = Callable[[AggregateResult], None]


class InvocationLogger(logging.LoggerAdapter):
    """Tags every record with the session and correlation id of one call."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return (
            f"[session={self.extra['session_id']} "
            f"correlation={self.extra['correlation_id']}] {msg}",
            kwargs,
        )


def derive_formatting(optimization: StageEnvelope) -> StageEnvelope:
    """Build the formatting envelope from a settled optimization envelope."""
    if optimization.status == StageStatus.COMPLETED:
        return StageEnvelope(
            name=StageName.FORMATTING,
            status=StageStatus.COMPLETED,
            output=FormattedOutput(markdown=optimization.output.markdown),
            started_at=optimization.finished_at,
            finished_at=optimization.finished_at,
        )
    return StageEnvelope(
        name=StageName.FORMATTING,
        status=StageStatus.FAILED,
        error=f"optimization failed: {optimization.error}",
        started_at=optimization.finished_at,
        finished_at=optimization.finished_at,
    )


class AnalysisOrchestrator:
    """Runs the résumé analysis pipelines against a generation client.

    Stage failures never escape a pipeline: each one returns
    a well-formed result whose envelopes say which stages completed and
    which failed.

    Usage:
        orchestrator = AnalysisOrchestrator(config)
        result = await orchestrator.run_full_analysis(
            resume, job_text, session_id, on_progress=render
        )
    """

    def __init__(
        self,
        config: AppConfig,
        client: Optional[GenerationClient] = None,
        log_sink: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.client = client or create_generation_client(config.llm)
        self._log_sink = log_sink or logger

    def _invocation_logger(self, session_id: str, correlation_id: str) -> InvocationLogger:
        return InvocationLogger(
            self._log_sink,
            {"session_id": session_id, "correlation_id": correlation_id},
        )

    # === Stage work ===

    async def _keyword_analysis(self, resume: str, job_text: str) -> KeywordAnalysisOutput:
        raw = await self.client.generate_structured(
            keyword_analysis_prompt(resume, job_text),
            KEYWORD_SCHEMA,
            self.config.pipeline.keyword_temperature,
        )
        return KeywordAnalysisOutput.model_validate(raw)

    async def _scoring(self, resume: str, job_text: str) -> ScoreBreakdownOutput:
        raw = await self.client.generate_structured(
            scoring_prompt(resume, job_text),
            SCORING_SCHEMA,
            self.config.pipeline.scoring_temperature,
        )
        # ScoreBreakdownOutput rounds a fractional overall
        return ScoreBreakdownOutput.model_validate(raw)

    async def _optimization(self, resume: str, job_text: str) -> OptimizedDraftOutput:
        raw = await self.client.generate_structured(
            optimizer_prompt(resume, job_text),
            OPTIMIZER_SCHEMA,
            self.config.pipeline.optimization_temperature,
        )
        return OptimizedDraftOutput.model_validate(raw)

    async def _cover_letter_variant(
        self,
        resume: str,
        job_text: str,
        style: CoverLetterStyle,
    ) -> CoverLetterVariant:
        raw = await self.client.generate_structured(
            cover_letter_variant_prompt(
                resume,
                job_text,
                style,
                excerpt_chars=self.config.pipeline.cover_letter_excerpt_chars,
            ),
            COVER_LETTER_SCHEMA,
            self.config.pipeline.cover_letter_variant_temperature,
        )
        letter = CoverLetterOutput.model_validate(raw)
        return CoverLetterVariant(markdown=letter.markdown, style=style.name)

    async def _cover_letter(self, resume: str, job_text: str) -> CoverLetterOutput:
        raw = await self.client.generate_structured(
            cover_letter_prompt(resume, job_text),
            COVER_LETTER_SCHEMA,
            self.config.pipeline.cover_letter_temperature,
        )
        return CoverLetterOutput.model_validate(raw)

    # === Execution ===

    def _notify(
        self,
        on_progress: Optional[ProgressCallback],
        result: AggregateResult,
        log: InvocationLogger,
    ) -> None:
        if on_progress is None:
            return
        try:
            on_progress(result)
        except Exception:
            log.exception("Progress callback raised; continuing pipeline")

    async def _execute(
        self,
        works: Dict[StageName, StageWork],
        session_id: str,
        correlation_id: str,
        on_progress: Optional[ProgressCallback],
        log: InvocationLogger,
        with_formatting: bool = False,
    ) -> AggregateResult:
        """Run ``works`` concurrently and merge each envelope as it settles.

        Every declared stage starts PENDING; none is PENDING on return.
        """
        declared: List[StageName] = list(works)
        if with_formatting:
            declared.append(StageName.FORMATTING)

        result = AggregateResult(
            session_id=session_id,
            correlation_id=correlation_id,
            stages={name: pending_stage(name) for name in declared},
        )
        timeout = self.config.pipeline.stage_timeout_seconds

        async def settle(name: StageName, work: StageWork) -> StageEnvelope:
            nonlocal result
            envelope = await run_stage(name, work, timeout=timeout, log=log)

            result = merge_stage(result, envelope)
            if with_formatting and name == StageName.OPTIMIZATION:
                result = merge_stage(result, derive_formatting(envelope))

            self._notify(on_progress, result, log)
            return envelope

        await asyncio.gather(*(settle(name, work) for name, work in works.items()))
        return result

    # === Pipelines ===

    async def run_full_analysis(
        self,
        resume: str,
        job_text: str,
        session_id: str,
        correlation_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> AggregateResult:
        """Keyword analysis, scoring and optimization in parallel, plus formatting.

        Args:
            resume: Résumé text
            job_text: Job posting text
            session_id: Work session this analysis belongs to
            correlation_id: Trace id for this call; generated when omitted
            on_progress: Called with a merged snapshot after each stage settles

        Returns:
            AggregateResult with keyword-analysis, scoring, optimization and
            formatting envelopes, all settled
        """
        correlation_id = correlation_id or str(uuid.uuid4())
        log = self._invocation_logger(session_id, correlation_id)
        log.info("Starting full analysis")

        result = await self._execute(
            {
                StageName.KEYWORD_ANALYSIS: partial(self._keyword_analysis, resume, job_text),
                StageName.SCORING: partial(self._scoring, resume, job_text),
                StageName.OPTIMIZATION: partial(self._optimization, resume, job_text),
            },
            session_id,
            correlation_id,
            on_progress,
            log,
            with_formatting=True,
        )

        scoring = result.scoring
        score = scoring.output.overall if scoring.status == StageStatus.COMPLETED else None
        log.info(f"Full analysis complete (score={score})")
        return result

    async def run_keyword_only(
        self,
        resume: str,
        job_text: str,
        session_id: str,
        correlation_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> AggregateResult:
        """Lightweight pipeline: keyword analysis only."""
        correlation_id = correlation_id or str(uuid.uuid4())
        log = self._invocation_logger(session_id, correlation_id)
        log.info("Starting keyword-only analysis")

        result = await self._execute(
            {StageName.KEYWORD_ANALYSIS: partial(self._keyword_analysis, resume, job_text)},
            session_id,
            correlation_id,
            on_progress,
            log,
        )

        log.info("Keyword-only analysis complete")
        return result

    async def run_score_only(
        self,
        resume: str,
        job_text: str,
        session_id: str,
        correlation_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> AggregateResult:
        """Keyword analysis and scoring in parallel, without optimization."""
        correlation_id = correlation_id or str(uuid.uuid4())
        log = self._invocation_logger(session_id, correlation_id)
        log.info("Starting ATS score analysis")

        result = await self._execute(
            {
                StageName.KEYWORD_ANALYSIS: partial(self._keyword_analysis, resume, job_text),
                StageName.SCORING: partial(self._scoring, resume, job_text),
            },
            session_id,
            correlation_id,
            on_progress,
            log,
        )

        scoring = result.scoring
        score = scoring.output.overall if scoring.status == StageStatus.COMPLETED else None
        log.info(f"ATS score analysis complete (score={score})")
        return result

    async def run_cover_letter_variants(
        self,
        resume: str,
        job_text: str,
        session_id: str,
        styles: Sequence[CoverLetterStyle] = COVER_LETTER_STYLES,
    ) -> CoverLetterBatch:
        """Generate one cover letter per style, concurrently.

        Each style runs as its own stage, so one failing style keeps the
        others' letters. The batch fails only when every style failed.
        """
        log = self._invocation_logger(session_id, str(uuid.uuid4()))
        log.info(f"Starting cover letter generation ({len(styles)} styles)")
        timeout = self.config.pipeline.stage_timeout_seconds

        envelopes = await asyncio.gather(*(
            run_stage(
                StageName.COVER_LETTER,
                partial(self._cover_letter_variant, resume, job_text, style),
                timeout=timeout,
                log=log,
            )
            for style in styles
        ))

        outputs: List[CoverLetterVariant] = []
        errors: Dict[str, str] = {}
        for style, envelope in zip(styles, envelopes):
            if envelope.status == StageStatus.COMPLETED:
                outputs.append(envelope.output)
            else:
                errors[style.name] = envelope.error

        if errors:
            log.warning(f"Cover letter styles failed: {sorted(errors)}")

        if outputs:
            log.info(f"Cover letter generation complete ({len(outputs)}/{len(styles)})")
            return CoverLetterBatch(
                status=StageStatus.COMPLETED,
                outputs=outputs,
                errors=errors,
            )

        return CoverLetterBatch(
            status=StageStatus.FAILED,
            error="; ".join(f"{name}: {message}" for name, message in errors.items())
            or "No cover letter styles requested",
            errors=errors,
        )

    async def generate_cover_letter(
        self,
        resume: str,
        job_text: str,
        session_id: str,
    ) -> StageEnvelope:
        """Single standard cover letter as a cover-letter stage envelope."""
        log = self._invocation_logger(session_id, str(uuid.uuid4()))
        log.info("Starting cover letter generation")

        return await run_stage(
            StageName.COVER_LETTER,
            partial(self._cover_letter, resume, job_text),
            timeout=self.config.pipeline.stage_timeout_seconds,
            log=log,
        )

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        analysis: Optional[AggregateResult] = None,
        resume_text: str = "",
        job_text: str = "",
    ) -> str:
        """Reply to a résumé-assistant conversation.

        Raises:
            GenerationError: If the generation service fails; chat is not a
                pipeline and does not isolate failures
        """
        prompt = build_chat_prompt(messages, analysis, resume_text, job_text)
        return await self.client.chat_generate(
            prompt,
            self.config.pipeline.chat_temperature,
        )
