from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from typing import Literal, Optional


class LLMConfig(BaseModel):
    """Generation service configuration."""
    provider: Literal["gemini", "openai", "ollama", "groq", "mock"] = Field(
        default="gemini",
        description="Which LLM backend to use; \"mock\" serves canned replies offline"
    )
    model: str = Field(
        default="gemini-2.5-flash",
        description="Model identifier"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for cloud providers (not needed for Ollama)"
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Custom API endpoint (e.g., for Ollama: http://localhost:11434)"
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Fallback temperature when a call does not specify one"
    )


class PipelineConfig(BaseModel):
    """Per-stage settings for the analysis pipelines."""
    keyword_temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    scoring_temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    optimization_temperature: float = Field(default=0.25, ge=0.0, le=1.0)
    cover_letter_variant_temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    cover_letter_temperature: float = Field(default=0.4, ge=0.0, le=1.0)
    chat_temperature: float = Field(default=0.4, ge=0.0, le=1.0)
    cover_letter_excerpt_chars: int = Field(
        default=3000,
        ge=1,
        description="Résumé/job text is truncated to this length in cover-letter prompts"
    )
    stage_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Deadline for each stage; None waits indefinitely"
    )


class AppConfig(BaseSettings):
    """Root application configuration.

    Loads from environment variables with the ATS_ prefix.
    Example: ATS_LLM__API_KEY for llm.api_key
    """
    llm: LLMConfig = Field(default_factory=LLMConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    debug: bool = Field(
        default=False,
        description="Enable verbose logging"
    )

    class Config:
        env_prefix = "ATS_"
        env_nested_delimiter = "__"
