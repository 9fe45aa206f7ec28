"""Generation client for all language-model work.

Supports multiple backends: Gemini (default), OpenAI, Ollama, Groq, plus an
offline mock that serves canned stage outputs.
Uses langchain-core for a unified interface and for code-fenced JSON parsing.
"""

import copy
import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage, BaseMessage
from langchain_core.utils.json import parse_json_markdown

from ..models import LLMConfig, ObjectSchema, SchemaValidationError

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Base exception for generation service errors."""
    pass


class TransportError(GenerationError):
    """Raised when the call to the generation service itself fails."""
    pass


class MalformedOutputError(GenerationError):
    """Raised when the service replies with empty, non-JSON or off-schema text."""
    pass


STRUCTURED_SYSTEM_PROMPT = """You respond with a single JSON value and nothing else.
The value must conform to this schema description (types are STRING, NUMBER,
INTEGER, BOOLEAN, ARRAY with "items", OBJECT with "properties" and "required"):

{schema}"""


# === Generation Client Interface ===

class GenerationClient(Protocol):
    """Protocol defining the generation client the orchestrator depends on."""

    async def generate_structured(
        self,
        prompt: str,
        schema: ObjectSchema,
        temperature: float,
    ) -> Any:
        """Return the reply decoded as JSON and validated against ``schema``."""
        ...

    async def chat_generate(self, prompt: str, temperature: float) -> str:
        """Return the free-form text reply."""
        ...


class LLMService:
    """Generation client implementation using langchain-core.

    Supports:
    - Gemini (gemini-2.5-flash)
    - OpenAI (gpt-4o-mini, gpt-4o)
    - Ollama (local models)
    - Groq (fast inference)

    Chat models are built lazily, one per temperature, and reused.

    Usage:
        service = LLMService(config)
        analysis = await service.generate_structured(prompt, schema, 0.2)
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._llms: Dict[float, BaseChatModel] = {}

    def _get_llm(self, temperature: Optional[float] = None) -> BaseChatModel:
        """Lazy-load the chat model for a temperature based on configuration."""
        if temperature is None:
            temperature = self.config.temperature

        llm = self._llms.get(temperature)
        if llm is not None:
            return llm

        if self.config.provider == "gemini":
            from langchain_google_genai import ChatGoogleGenerativeAI
            kwargs = {}
            if self.config.api_key:
                kwargs["google_api_key"] = self.config.api_key
            llm = ChatGoogleGenerativeAI(
                model=self.config.model,
                temperature=temperature,
                **kwargs,
            )
        elif self.config.provider == "openai":
            from langchain_openai import ChatOpenAI
            llm = ChatOpenAI(
                model=self.config.model,
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                temperature=temperature,
            )
        elif self.config.provider == "ollama":
            from langchain_ollama import ChatOllama
            llm = ChatOllama(
                model=self.config.model,
                base_url=self.config.base_url or "http://localhost:11434",
                temperature=temperature,
            )
        elif self.config.provider == "groq":
            from langchain_groq import ChatGroq
            llm = ChatGroq(
                model=self.config.model,
                api_key=self.config.api_key,
                temperature=temperature,
            )
        else:
            raise ValueError(f"Unknown LLM provider: {self.config.provider}")

        logger.debug(f"Built {self.config.provider} model {self.config.model} at temperature {temperature}")
        self._llms[temperature] = llm
        return llm

    async def _invoke(self, messages: List[BaseMessage], temperature: float) -> str:
        """Send messages and return the reply text, stripped."""
        llm = self._get_llm(temperature)

        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"Generation request failed: {e}")
            raise TransportError(f"Generation request failed: {e}") from e

        content = response.content
        if isinstance(content, list):
            # Some providers return content blocks instead of a plain string
            content = "".join(
                block if isinstance(block, str) else block.get("text", "")
                for block in content
            )
        return (content or "").strip()

    async def generate_structured(
        self,
        prompt: str,
        schema: ObjectSchema,
        temperature: float,
    ) -> Any:
        """Generate a JSON reply conforming to ``schema``.

        The reply may be wrapped in a markdown code fence; the fence is
        stripped before parsing.

        Raises:
            TransportError: If the service call fails
            MalformedOutputError: If the reply is empty, not JSON, or off-schema
        """
        logger.debug(f"Structured generation request (temperature={temperature})")

        messages = [
            SystemMessage(content=STRUCTURED_SYSTEM_PROMPT.format(
                schema=json.dumps(schema.to_wire(), indent=2)
            )),
            HumanMessage(content=prompt),
        ]

        text = await self._invoke(messages, temperature)
        if not text:
            raise MalformedOutputError("Empty response from generation service")

        try:
            # json.loads rejects truncated replies instead of closing them
            result = parse_json_markdown(text, parser=json.loads)
        except json.JSONDecodeError as e:
            raise MalformedOutputError(f"Response is not valid JSON: {text[:200]}") from e

        try:
            schema.validate_value(result)
        except SchemaValidationError as e:
            raise MalformedOutputError(f"Response does not match schema: {e}") from e

        return result

    async def chat_generate(self, prompt: str, temperature: float) -> str:
        """Generate a free-form text reply.

        Raises:
            TransportError: If the service call fails
            MalformedOutputError: If the reply is empty
        """
        logger.debug(f"Chat generation request (temperature={temperature})")
        text = await self._invoke([HumanMessage(content=prompt)], temperature)
        if not text:
            raise MalformedOutputError("Empty response from generation service")
        return text


# === Offline Mock ===

# Canned replies keyed by the schema's required properties
MOCK_RESPONSES: Dict[Tuple[str, ...], Dict[str, Any]] = {
    ("matchingKeywords", "missingKeywords", "suggestions"): {
        "matchingKeywords": ["Python", "REST APIs", "PostgreSQL"],
        "missingKeywords": ["Kubernetes", "AWS"],
        "suggestions": [
            "Mention any container orchestration experience",
            "Name the cloud provider you deployed to",
            "Quantify the scale of the APIs you built",
        ],
    },
    ("overall", "alignmentNotes", "matchedKeywords", "missingKeywords"): {
        "overall": 72,
        "alignmentNotes": "Solid backend fundamentals; cloud and orchestration experience is not shown.",
        "matchedKeywords": ["Python", "REST APIs", "PostgreSQL"],
        "missingKeywords": ["Kubernetes", "AWS"],
        "jobTitle": "Software Engineer - Backend",
        "company": "Example Co",
    },
    ("markdown", "rationale"): {
        "markdown": (
            "## EXPERIENCE\n\n"
            "**Example Corp** | 2021 - Present\n"
            "**Software Engineer**\n"
            "* Built Python REST APIs backed by PostgreSQL"
        ),
        "rationale": "Moved backend keywords to the top of each entry.",
    },
    ("markdown",): {
        "markdown": "Dear Hiring Manager,\n\nThis is a sample cover letter.\n\nSincerely,\nCandidate",
    },
}

MOCK_CHAT_REPLY = "This is a sample reply from the offline assistant."


class MockGenerationClient:
    """Generation client that answers from ``MOCK_RESPONSES`` without any network.

    Selected with ``ATS_LLM__PROVIDER=mock`` for development and demos.
    Replies still go through schema validation.
    """

    async def generate_structured(
        self,
        prompt: str,
        schema: ObjectSchema,
        temperature: float,
    ) -> Any:
        response = MOCK_RESPONSES.get(tuple(schema.required))
        if response is None:
            raise MalformedOutputError(f"No mock response for schema requiring {schema.required}")

        result = copy.deepcopy(response)
        try:
            schema.validate_value(result)
        except SchemaValidationError as e:
            raise MalformedOutputError(f"Response does not match schema: {e}") from e
        return result

    async def chat_generate(self, prompt: str, temperature: float) -> str:
        return MOCK_CHAT_REPLY


def create_generation_client(config: LLMConfig) -> GenerationClient:
    """Build the generation client for the configured provider."""
    if config.provider == "mock":
        logger.info("Using offline mock generation client")
        return MockGenerationClient()
    return LLMService(config)
