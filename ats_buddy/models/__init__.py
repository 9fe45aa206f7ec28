"""Pydantic models for the ATS Buddy analysis engine."""

from .state import (
    StageName,
    StageStatus,
    StageEnvelope,
    AggregateResult,
    CoverLetterBatch,
    ChatMessage,
)
from .outputs import (
    KeywordAnalysisOutput,
    ScoreBreakdownOutput,
    OptimizedDraftOutput,
    FormattedOutput,
    CoverLetterOutput,
    CoverLetterStyle,
    CoverLetterVariant,
)
from .schema import (
    SchemaType,
    SchemaValidationError,
    Schema,
    StringSchema,
    NumberSchema,
    IntegerSchema,
    BooleanSchema,
    ArraySchema,
    ObjectSchema,
)
from .config import AppConfig, LLMConfig, PipelineConfig

__all__ = [
    "StageName",
    "StageStatus",
    "StageEnvelope",
    "AggregateResult",
    "CoverLetterBatch",
    "ChatMessage",
    "KeywordAnalysisOutput",
    "ScoreBreakdownOutput",
    "OptimizedDraftOutput",
    "FormattedOutput",
    "CoverLetterOutput",
    "CoverLetterStyle",
    "CoverLetterVariant",
    "SchemaType",
    "SchemaValidationError",
    "Schema",
    "StringSchema",
    "NumberSchema",
    "IntegerSchema",
    "BooleanSchema",
    "ArraySchema",
    "ObjectSchema",
    "AppConfig",
    "LLMConfig",
    "PipelineConfig",
]
