"""
Session abstraction - unified interface to the generation engine.

A session is the only place where text is actually generated. The rest of the
library formats prompts, hands them to a session together with the target
type, and returns whatever the session produces. Any runtime that can turn
(prompt, JSON Schema) into conforming JSON can be plugged in by implementing
:class:`LanguageModelSession`.

Session Protocol:
    - respond(): One schema-constrained generation, returns a Response
    - stream_response(): Same generation as a sequence of partial snapshots
    - get_model_info(): Model metadata

Usage:
    ```python
    from llm_codable.sessions import SessionFactory

    # Auto-detect backend from the model identifier
    session = SessionFactory.create("models/qwen2.5-1.5b-instruct.gguf")

    response = await session.respond(
        "Extract structured data from the following text:\\n\\nTaro is 35",
        generating=Person,
    )
    print(response.content)
    ```
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, AsyncIterator, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from llm_codable.config import Settings, get_settings
from llm_codable.sessions.partial import parse_partial_json, snapshot_content

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """Base class for errors raised by a generation engine."""


class DecodingFailureError(GenerationError):
    """
    Engine output could not be decoded into the requested type.

    Attributes:
        raw_content: Text produced by the engine
        errors: Pydantic error details (empty if the text was not JSON at all)
    """

    def __init__(self, message: str, raw_content: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.raw_content = raw_content
        self.errors = errors or []


class ModelUnavailableError(GenerationError):
    """The model or the library that runs it cannot be loaded."""


@dataclass
class GenerationOptions:
    """
    Per-call generation options.

    Unset values fall back to the configured defaults
    (see :class:`llm_codable.config.Settings`).

    Attributes:
        temperature: Sampling temperature
        maximum_response_tokens: Maximum tokens to generate
        top_p: Nucleus sampling parameter
        seed: Random seed, if the engine supports one
        greedy: Always pick the most likely token (overrides temperature)
    """
    temperature: Optional[float] = None
    maximum_response_tokens: Optional[int] = None
    top_p: Optional[float] = None
    seed: Optional[int] = None
    greedy: bool = False

    def resolve(self, settings: Optional[Settings] = None) -> Dict[str, Any]:
        """
        Merge with configured defaults.

        Returns:
            Dict with keys temperature, max_tokens, top_p and (if set) seed
        """
        settings = settings or get_settings()

        resolved = {
            'temperature': 0.0 if self.greedy else (
                self.temperature if self.temperature is not None else settings.temperature
            ),
            'max_tokens': (
                self.maximum_response_tokens if self.maximum_response_tokens is not None else settings.max_tokens
            ),
            'top_p': self.top_p if self.top_p is not None else settings.top_p,
        }
        if self.seed is not None:
            resolved['seed'] = self.seed

        return resolved


@dataclass
class Response:
    """
    Result of a complete generation.

    Attributes:
        content: Value of the requested type
        raw_content: JSON text produced by the engine
    """
    content: Any
    raw_content: str


@dataclass
class ResponseSnapshot:
    """
    Intermediate state of a streamed generation.

    Attributes:
        content: Partial view of the requested type (unfilled fields are None)
        raw_content: Text generated so far
    """
    content: Any
    raw_content: str


@lru_cache(maxsize=None)
def type_adapter(generating: Any) -> TypeAdapter:
    """Cached TypeAdapter for a target type (model class, List[Model], ...)."""
    return TypeAdapter(generating)


def json_schema_for(generating: Any) -> Dict[str, Any]:
    """
    JSON Schema communicated to the engine for a target type.

    Field descriptions and bounds declared with ``pydantic.Field`` end up here.
    """
    return type_adapter(generating).json_schema()


def extract_json_text(text: str) -> str:
    """
    Cut the outermost JSON object or array out of free-form model output.

    Raises:
        DecodingFailureError: If the text contains no JSON value
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        raise DecodingFailureError("Model output contains no JSON value", raw_content=text)

    start = min(starts)
    closing = "}" if text[start] == "{" else "]"
    end = text.rfind(closing)
    if end < start:
        raise DecodingFailureError("Model output contains an unterminated JSON value", raw_content=text)

    return text[start:end + 1]


class LanguageModelSession(ABC):
    """
    Abstract base class for generation sessions.

    A session keeps the instructions and the transcript of previous turns, so
    reusing one session across calls gives the model the earlier context.

    Attributes:
        instructions: System instructions sent before every prompt
        include_schema_in_prompt: Whether the JSON Schema is appended to the
            system message
        transcript: Previous turns as chat messages
    """

    def __init__(
        self,
        instructions: Optional[str] = None,
        include_schema_in_prompt: bool = True,
    ):
        self.instructions = instructions
        self.include_schema_in_prompt = include_schema_in_prompt
        self.transcript: List[Dict[str, str]] = []

    @abstractmethod
    async def respond(
        self,
        prompt: str,
        generating: Any,
        options: Optional[GenerationOptions] = None,
    ) -> Response:
        """
        Generate a value of type ``generating`` for the prompt.

        Args:
            prompt: User prompt
            generating: Target type (Pydantic model, dataclass, List[...])
            options: Generation options

        Returns:
            Response: Decoded content and the raw engine text

        Raises:
            GenerationError: If generation or decoding fails
        """
        pass

    @abstractmethod
    def stream_response(
        self,
        prompt: str,
        generating: Any,
        options: Optional[GenerationOptions] = None,
    ) -> AsyncIterator[ResponseSnapshot]:
        """
        Stream partial snapshots of a value of type ``generating``.

        Args:
            prompt: User prompt
            generating: Target type
            options: Generation options

        Returns:
            Async iterator of ResponseSnapshot, fields filled in as they
            are generated
        """
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, Any]:
        """Get model metadata."""
        pass

    def build_messages(self, prompt: str, generating: Any) -> List[Dict[str, str]]:
        """
        Chat messages for a new turn: system, transcript, then the prompt.
        """
        system_parts = []
        if self.instructions:
            system_parts.append(self.instructions)
        if self.include_schema_in_prompt:
            schema = json.dumps(json_schema_for(generating), ensure_ascii=False)
            system_parts.append(
                "Respond only with JSON that conforms to this JSON Schema:\n" + schema
            )

        messages = []
        if system_parts:
            messages.append({'role': 'system', 'content': "\n\n".join(system_parts)})
        messages.extend(self.transcript)
        messages.append({'role': 'user', 'content': prompt})
        return messages

    def parse_content(self, raw_content: str, generating: Any) -> Any:
        """
        Decode engine text into the target type.

        Raises:
            DecodingFailureError: If the text does not match the type
        """
        try:
            return type_adapter(generating).validate_json(raw_content)
        except ValidationError as e:
            logger.error(f"Model output does not match schema: {e.error_count()} error(s)")
            raise DecodingFailureError(
                f"Model output does not match the requested type: {e}",
                raw_content=raw_content,
                errors=e.errors(include_url=False),
            ) from e

    def record_turn(self, prompt: str, raw_content: str) -> None:
        """Append a completed turn to the transcript."""
        self.transcript.append({'role': 'user', 'content': prompt})
        self.transcript.append({'role': 'assistant', 'content': raw_content})

    async def snapshots_from_chunks(
        self,
        prompt: str,
        chunks: AsyncIterator[str],
        generating: Any,
    ) -> AsyncIterator[ResponseSnapshot]:
        """
        Turn a stream of text chunks into partial snapshots.

        A snapshot is emitted whenever the accumulated text parses into a
        value that differs from the previous one. The finished turn is
        recorded in the transcript.
        """
        buffer = ""
        previous = None

        async for chunk in chunks:
            if not chunk:
                continue
            buffer += chunk

            data = parse_partial_json(buffer)
            if data is None or data == previous:
                continue
            previous = data

            yield ResponseSnapshot(
                content=snapshot_content(data, generating),
                raw_content=buffer,
            )

        logger.debug(f"Stream finished after {len(buffer)} characters")
        self.record_turn(prompt, buffer)

    def __repr__(self) -> str:
        info = self.get_model_info()
        return (
            f"{self.__class__.__name__}("
            f"model={info.get('model_id', 'unknown')}, "
            f"backend={info.get('backend', 'unknown')})"
        )


class SessionFactory:
    """
    Factory for creating sessions.

    Automatically detects the backend from the model identifier.

    Usage:
        ```python
        from llm_codable.sessions import SessionFactory

        # Auto-detect GGUF file
        session = SessionFactory.create("models/mistral-7b.gguf")

        # Explicit backend
        session = SessionFactory.create("Qwen/Qwen2.5-0.5B-Instruct", backend="transformers")

        # Everything from LLM_CODABLE_* settings
        session = SessionFactory.create()
        ```
    """

    @staticmethod
    def create(
        model_id: Optional[str] = None,
        backend: Optional[str] = None,
        device: Optional[str] = None,
        settings: Optional[Settings] = None,
        **kwargs
    ) -> LanguageModelSession:
        """
        Create appropriate session for a model.

        Args:
            model_id: Model identifier or file path (None = configured model)
            backend: "llamacpp" or "transformers" (None = configured or auto-detect)
            device: Device for the transformers backend
            settings: Settings to read defaults from
            **kwargs: Backend-specific options

        Returns:
            LanguageModelSession: Initialized session

        Raises:
            ValueError: If no model is configured or the backend is unsupported
        """
        settings = settings or get_settings()

        model_id = model_id or settings.model
        if not model_id:
            raise ValueError(
                "No model configured. Pass a model or set LLM_CODABLE_MODEL"
            )

        backend = backend or settings.backend or SessionFactory._detect_backend_type(model_id)
        kwargs.setdefault('instructions', settings.instructions)

        logger.info(f"Creating session: model={model_id}, backend={backend}")

        if backend == "llamacpp":
            from llm_codable.sessions.llamacpp_session import LlamaCppSession
            kwargs.setdefault('n_ctx', settings.n_ctx)
            kwargs.setdefault('n_gpu_layers', settings.n_gpu_layers)
            return LlamaCppSession(model_id, **kwargs)

        if backend == "transformers":
            from llm_codable.sessions.transformers_session import TransformersSession
            return TransformersSession(model_id, device=device or settings.device, **kwargs)

        raise ValueError(f"Unsupported backend type: {backend}")

    @staticmethod
    def _detect_backend_type(model_id: str) -> str:
        """
        Auto-detect backend type from model identifier.

        Strategy:
            - If ends with .gguf, .ggml or .bin -> llamacpp
            - Otherwise -> transformers (HuggingFace name or local directory)
        """
        if model_id.lower().endswith(('.gguf', '.ggml', '.bin')):
            return "llamacpp"

        return "transformers"

    @staticmethod
    def list_available_backends() -> List[str]:
        """List backends whose engine library is importable."""
        available = []

        try:
            import llama_cpp  # noqa: F401
            available.append("llamacpp")
        except ImportError:
            pass

        try:
            import transformers  # noqa: F401
            available.append("transformers")
        except ImportError:
            pass

        return available


def default_session() -> LanguageModelSession:
    """New session built from the configured settings."""
    return SessionFactory.create()
