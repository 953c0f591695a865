"""
llama.cpp session with Metal acceleration for Apple Silicon.

This session runs GGUF models through llama-cpp-python. Schema-constrained
generation is delegated to llama.cpp itself: the target type's JSON Schema is
passed as ``response_format`` and llama.cpp compiles it into a sampling
grammar, so every token it emits keeps the output inside the schema.

Features:
    - GGUF model support
    - Metal acceleration (all layers on GPU)
    - JSON-Schema grammar constrained decoding
    - Token streaming for partial snapshots

Usage:
    ```python
    from llm_codable.sessions import LlamaCppSession

    session = LlamaCppSession(
        "models/qwen2.5-1.5b-instruct-q4_k_m.gguf",
        n_gpu_layers=-1  # All layers on GPU (Metal)
    )

    person = await Person.decode(from_text, session=session)
    ```
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterator, Optional

from llm_codable.sessions.base import (
    GenerationOptions,
    LanguageModelSession,
    ModelUnavailableError,
    Response,
    ResponseSnapshot,
    json_schema_for,
)

logger = logging.getLogger(__name__)

_END = object()


class LlamaCppSession(LanguageModelSession):
    """
    Session backed by a llama.cpp (GGUF) model.

    Attributes:
        model_path: Path to GGUF model file
        llm: llama_cpp.Llama instance
        n_gpu_layers: Number of layers on GPU (-1 = all)
        n_ctx: Context length
    """

    def __init__(
        self,
        model_path: str,
        n_gpu_layers: int = -1,
        n_ctx: int = 4096,
        n_batch: int = 512,
        instructions: Optional[str] = None,
        include_schema_in_prompt: bool = True,
        llm: Optional[Any] = None,
        **kwargs
    ):
        """
        Initialize llama.cpp session.

        Args:
            model_path: Path to GGUF model file
            n_gpu_layers: Number of layers to offload to GPU
                         -1 = all layers (recommended for Apple Silicon)
            n_ctx: Context window size
            n_batch: Batch size for prompt processing
            instructions: System instructions
            include_schema_in_prompt: Also describe the schema in the system message
            llm: Already loaded llama_cpp.Llama to share between sessions
            **kwargs: Additional llama.cpp options

        Raises:
            FileNotFoundError: If the model file does not exist
            ModelUnavailableError: If llama-cpp-python is not installed
        """
        super().__init__(instructions=instructions, include_schema_in_prompt=include_schema_in_prompt)
        self.model_path = Path(model_path)
        self.n_gpu_layers = n_gpu_layers
        self.n_ctx = n_ctx
        self.n_batch = n_batch
        self.llm = llm

        logger.info(
            f"Initializing LlamaCppSession: model={model_path}, "
            f"n_gpu_layers={n_gpu_layers}"
        )

        if self.llm is None:
            if not self.model_path.exists():
                raise FileNotFoundError(f"Model file not found: {model_path}")
            self._load_model(**kwargs)

    def _load_model(self, **kwargs):
        """Load llama.cpp model."""
        try:
            from llama_cpp import Llama
        except ImportError as e:
            raise ModelUnavailableError(
                "llama-cpp-python is required. "
                "Install with: pip install 'llm-codable[llamacpp]'"
            ) from e

        logger.info(f"Loading GGUF model: {self.model_path}")

        load_kwargs = {
            'model_path': str(self.model_path),
            'n_gpu_layers': self.n_gpu_layers,
            'n_ctx': self.n_ctx,
            'n_batch': self.n_batch,
            'verbose': False,  # Reduce logging noise
        }
        load_kwargs.update(kwargs)

        try:
            self.llm = Llama(**load_kwargs)
            logger.info("Model loaded successfully")
        except Exception as e:
            logger.error(f"Failed to load model: {e}")
            raise ModelUnavailableError(f"Failed to load model {self.model_path}: {e}") from e

    def _completion_kwargs(
        self,
        prompt: str,
        generating: Any,
        options: Optional[GenerationOptions],
    ) -> Dict[str, Any]:
        gen_kwargs = (options or GenerationOptions()).resolve()
        gen_kwargs.update({
            'messages': self.build_messages(prompt, generating),
            'response_format': {
                'type': 'json_object',
                'schema': json_schema_for(generating),
            },
        })
        return gen_kwargs

    async def respond(
        self,
        prompt: str,
        generating: Any,
        options: Optional[GenerationOptions] = None,
    ) -> Response:
        """
        Generate a value of type ``generating`` with grammar-constrained decoding.

        Example:
            ```python
            response = await session.respond(prompt, generating=Person)
            print(response.content.name)
            ```
        """
        gen_kwargs = self._completion_kwargs(prompt, generating, options)
        sampling = {k: v for k, v in gen_kwargs.items() if k not in ('messages', 'response_format')}
        logger.debug(f"Generating with: {sampling}")

        try:
            output = await asyncio.to_thread(self.llm.create_chat_completion, **gen_kwargs)
        except Exception as e:
            logger.error(f"Generation failed: {e}")
            raise

        raw_content = output['choices'][0]['message']['content'] or ""
        usage = output.get('usage') or {}
        logger.debug(f"Generated {usage.get('completion_tokens', '?')} tokens")

        content = self.parse_content(raw_content, generating)
        self.record_turn(prompt, raw_content)
        return Response(content=content, raw_content=raw_content)

    def stream_response(
        self,
        prompt: str,
        generating: Any,
        options: Optional[GenerationOptions] = None,
    ) -> AsyncIterator[ResponseSnapshot]:
        """
        Stream partial snapshots as llama.cpp emits tokens.

        Example:
            ```python
            async for snapshot in session.stream_response(prompt, MovieReview):
                print(snapshot.content.title)
            ```
        """
        gen_kwargs = self._completion_kwargs(prompt, generating, options)
        gen_kwargs['stream'] = True
        return self.snapshots_from_chunks(prompt, self._stream_chunks(gen_kwargs), generating)

    async def _stream_chunks(self, gen_kwargs: Dict[str, Any]) -> AsyncIterator[str]:
        """Pull content deltas from llama.cpp's blocking chunk iterator."""
        chunks: Iterator[Dict[str, Any]] = await asyncio.to_thread(
            self.llm.create_chat_completion, **gen_kwargs
        )

        while True:
            chunk = await asyncio.to_thread(next, chunks, _END)
            if chunk is _END:
                break
            delta = chunk['choices'][0].get('delta') or {}
            text = delta.get('content')
            if text:
                yield text

    def get_model_info(self) -> Dict[str, Any]:
        """
        Get model metadata.

        Returns:
            Dict with model information
        """
        info = {
            'model_id': str(self.model_path),
            'backend': 'llamacpp',
            'n_gpu_layers': self.n_gpu_layers,
            'context_length': self.n_ctx,
            'n_batch': self.n_batch,
        }

        if self.llm is not None:
            try:
                info['vocab_size'] = self.llm.n_vocab()
            except AttributeError:
                pass

        return info

    def __repr__(self) -> str:
        return (
            f"LlamaCppSession(model={self.model_path.name}, "
            f"n_gpu_layers={self.n_gpu_layers})"
        )
