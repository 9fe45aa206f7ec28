from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .outputs import CoverLetterVariant


class StageName(str, Enum):
    """Independently schedulable units of analysis work."""
    KEYWORD_ANALYSIS = "keyword-analysis"
    SCORING = "scoring"
    OPTIMIZATION = "optimization"
    FORMATTING = "formatting"
    COVER_LETTER = "cover-letter"


class StageStatus(str, Enum):
    """Stage lifecycle: PENDING → COMPLETED | FAILED."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class StageEnvelope(BaseModel):
    """Uniform result record for one stage.

    ``output`` is present only when the stage completed, ``error`` only when
    it failed. Envelopes are frozen: a status transition replaces the whole
    envelope.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    name: StageName
    status: StageStatus = StageStatus.PENDING
    output: Optional[Any] = None
    error: Optional[str] = None
    started_at: Optional[float] = Field(
        default=None,
        description="Epoch seconds when the stage began"
    )
    finished_at: Optional[float] = Field(
        default=None,
        description="Epoch seconds when the stage settled"
    )

    @model_validator(mode="after")
    def check_status_payload(self) -> "StageEnvelope":
        completed = self.status == StageStatus.COMPLETED
        failed = self.status == StageStatus.FAILED

        if (self.output is not None) != completed:
            raise ValueError(
                f"{self.name.value}: output must be set iff status is completed"
            )
        if bool(self.error) != failed:
            raise ValueError(
                f"{self.name.value}: error must be set iff status is failed"
            )
        if self.error is not None and not failed:
            raise ValueError(f"{self.name.value}: unexpected error on {self.status.value} stage")
        return self

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at


class AggregateResult(BaseModel):
    """Composite result of one orchestrator invocation.

    Holds exactly one envelope per stage the pipeline declared. Snapshots are
    frozen, their ``stages`` mapping is read-only, and every merge produces a
    new object, so a progress observer holding an earlier snapshot never sees
    it change.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    session_id: str
    correlation_id: str
    stages: Mapping[StageName, StageEnvelope] = Field(default_factory=dict, validate_default=True)

    @field_validator("stages", mode="after")
    @classmethod
    def freeze_stages(cls, stages):
        # Read-only view; observers share snapshots
        return MappingProxyType(dict(stages))

    @field_serializer("stages")
    def serialize_stages(self, stages) -> Dict[StageName, StageEnvelope]:
        return dict(stages)

    def stage(self, name: StageName) -> Optional[StageEnvelope]:
        return self.stages.get(name)

    @property
    def keyword_analysis(self) -> Optional[StageEnvelope]:
        return self.stages.get(StageName.KEYWORD_ANALYSIS)

    @property
    def scoring(self) -> Optional[StageEnvelope]:
        return self.stages.get(StageName.SCORING)

    @property
    def optimization(self) -> Optional[StageEnvelope]:
        return self.stages.get(StageName.OPTIMIZATION)

    @property
    def formatting(self) -> Optional[StageEnvelope]:
        return self.stages.get(StageName.FORMATTING)

    @property
    def cover_letter(self) -> Optional[StageEnvelope]:
        return self.stages.get(StageName.COVER_LETTER)

    @property
    def is_settled(self) -> bool:
        """True once no declared stage is still pending."""
        return all(
            envelope.status != StageStatus.PENDING
            for envelope in self.stages.values()
        )


class CoverLetterBatch(BaseModel):
    """Outcome of generating every cover-letter style.

    ``outputs`` holds the successful variants in style order; ``errors`` maps
    each failed style to its message. The batch only fails when no style
    succeeded.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: Literal[StageStatus.COMPLETED, StageStatus.FAILED]
    outputs: List[CoverLetterVariant] = Field(default_factory=list)
    error: Optional[str] = None
    errors: Dict[str, str] = Field(default_factory=dict)


class ChatMessage(BaseModel):
    """Single message in a résumé-assistant conversation."""
    role: Literal["user", "assistant", "system"]
    content: str
