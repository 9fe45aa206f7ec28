"""Stage runner and result merger.

``run_stage`` is the failure-isolation boundary: whatever a stage's work
raises is turned into a failed envelope, so stages gathered together can
never take each other down. ``merge_stage`` folds a settled envelope into an
aggregate snapshot without touching the previous snapshot.
"""

import asyncio
import logging
import time
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Optional, Union

from ..models import AggregateResult, StageEnvelope, StageName, StageStatus

logger = logging.getLogger(__name__)

# A stage's unit of work: no arguments, awaited once
StageWork = Callable[[], Awaitable[Any]]

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


def pending_stage(name: StageName) -> StageEnvelope:
    """Placeholder envelope for a stage that has not settled yet."""
    return StageEnvelope(name=name, status=StageStatus.PENDING)


def failed_stage(
    name: StageName,
    error: str,
    started_at: Optional[float] = None,
) -> StageEnvelope:
    return StageEnvelope(
        name=name,
        status=StageStatus.FAILED,
        error=error,
        started_at=started_at,
        finished_at=time.time(),
    )


def describe_error(error: BaseException) -> str:
    """Human-readable message for a stage failure, never empty."""
    message = str(error).strip()
    return message or type(error).__name__


async def run_stage(
    name: StageName,
    work: StageWork,
    timeout: Optional[float] = None,
    log: Optional[LoggerLike] = None,
) -> StageEnvelope:
    """Execute one stage and capture its outcome as an envelope.

    Args:
        name: Stage the envelope belongs to
        work: Async callable producing the stage output
        timeout: Optional deadline in seconds for the work
        log: Logger to report on; defaults to this module's logger

    Returns:
        A completed envelope carrying the output, or a failed envelope
        carrying the error message. Exceptions are never re-raised;
        cancellation of the surrounding task still propagates.
    """
    log = log or logger
    started_at = time.time()
    log.info(f"Running stage: {name.value}")

    try:
        if timeout is not None:
            output = await asyncio.wait_for(work(), timeout=timeout)
        else:
            output = await work()
    except Exception as e:
        if isinstance(e, asyncio.TimeoutError) and timeout is not None:
            error = f"{name.value} timed out after {timeout:g}s"
        else:
            error = describe_error(e)
        log.warning(f"Stage {name.value} failed: {error}")
        return failed_stage(name, error, started_at)

    if output is None:
        error = f"{name.value} produced no output"
        log.warning(f"Stage {name.value} failed: {error}")
        return failed_stage(name, error, started_at)

    finished_at = time.time()
    log.info(f"Stage {name.value} completed in {(finished_at - started_at) * 1000:.0f}ms")
    return StageEnvelope(
        name=name,
        status=StageStatus.COMPLETED,
        output=output,
        started_at=started_at,
        finished_at=finished_at,
    )


def merge_stage(result: AggregateResult, envelope: StageEnvelope) -> AggregateResult:
    """Return a new snapshot with exactly ``envelope.name`` replaced.

    The input snapshot and its ``stages`` mapping are left untouched.
    """
    stages = dict(result.stages)
    stages[envelope.name] = envelope
    return result.model_copy(update={"stages": MappingProxyType(stages)})
