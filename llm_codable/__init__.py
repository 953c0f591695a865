"""
llm-codable: Codable-like protocols for language models

Decode application types from ambiguous, free-form text and encode them back
into LLM-friendly strings. The actual generation is delegated to a session
(llama.cpp or HuggingFace transformers, or any custom engine) that performs
schema-guided generation; this package supplies the prompt templates, the
formatters and the streaming adapters around it.

Key Features:
    - Decode Pydantic models from text with one call
    - Model-reported confidence scores, clamped to [0, 1]
    - Property-level streaming of partial results
    - Element streaming over decoded arrays
    - Markdown / JSON / natural-language / custom encodings

Quick Start:
    ```python
    from pydantic import BaseModel, Field
    from llm_codable import LLMCodable

    class Person(LLMCodable, BaseModel):
        name: str = Field(description="The person's name")
        age: int = Field(description="Age in years", ge=0, le=150)

    # LLM_CODABLE_MODEL=models/qwen2.5-1.5b-instruct-q4_k_m.gguf
    person = await Person.decode("Taro Tanaka, 35 years old")

    print(person.llm_encoded())
    # Person:
    # - name: Taro Tanaka
    # - age: 35
    ```

Architecture:
    1. Protocols: LLMDecodable / LLMEncodable / LLMCodable, @llm_codable
    2. Prompt templating: fixed extraction and confidence instructions
    3. Sessions: engine seam (respond / stream_response)
    4. Streaming: partial snapshots and ElementStream
"""

__version__ = "0.1.0"

from llm_codable.api import (  # noqa: F401
    decode,
    decode_all,
    decode_elements,
    decode_stream,
    decode_with_confidence,
)
from llm_codable.protocols import (  # noqa: F401
    LLMCodable,
    LLMDecodable,
    LLMEncodable,
    LLMEncodingStrategy,
    llm_codable,
)
from llm_codable.result import DecodedResult  # noqa: F401
from llm_codable.sessions import (  # noqa: F401
    DecodingFailureError,
    GenerationError,
    GenerationOptions,
    LanguageModelSession,
    ModelUnavailableError,
    SessionFactory,
)
from llm_codable.streaming import ElementStream  # noqa: F401

__all__ = [
    "LLMCodable",
    "LLMDecodable",
    "LLMEncodable",
    "LLMEncodingStrategy",
    "llm_codable",
    "DecodedResult",
    "ElementStream",
    "LanguageModelSession",
    "GenerationOptions",
    "SessionFactory",
    "GenerationError",
    "DecodingFailureError",
    "ModelUnavailableError",
    "decode",
    "decode_with_confidence",
    "decode_stream",
    "decode_elements",
    "decode_all",
]
