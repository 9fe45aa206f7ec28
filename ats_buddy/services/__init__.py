"""External service integrations."""

from .llm_service import (
    LLMService,
    MockGenerationClient,
    GenerationClient,
    GenerationError,
    TransportError,
    MalformedOutputError,
    create_generation_client,
)

__all__ = [
    "LLMService",
    "MockGenerationClient",
    "GenerationClient",
    "GenerationError",
    "TransportError",
    "MalformedOutputError",
    "create_generation_client",
]
