"""
Generation engine sessions.

A session wraps one language model runtime behind a narrow interface: submit a
prompt and a target type, get back a value of that type (or a stream of
partial values). The protocols in :mod:`llm_codable.protocols` only ever talk
to this interface.

Components:
    - base: LanguageModelSession protocol, options, responses, errors, factory
    - partial: Partial snapshots from incomplete JSON
    - llamacpp_session: llama.cpp (GGUF) with JSON-Schema grammar decoding
    - transformers_session: HuggingFace transformers with schema-guided prompts
    - device_utils: Device detection (MPS, CUDA, CPU)

Engine libraries are imported lazily, so this package imports without
llama-cpp-python or torch installed.

Example:
    ```python
    from llm_codable.sessions import SessionFactory, GenerationOptions

    session = SessionFactory.create("models/qwen2.5-1.5b-instruct-q4_k_m.gguf")
    person = await Person.decode(
        "Taro Tanaka, 35 years old",
        session=session,
        options=GenerationOptions(temperature=0.2),
    )
    ```
"""

from llm_codable.sessions.base import (
    DecodingFailureError,
    GenerationError,
    GenerationOptions,
    LanguageModelSession,
    ModelUnavailableError,
    Response,
    ResponseSnapshot,
    SessionFactory,
    default_session,
    json_schema_for,
)
from llm_codable.sessions.partial import partial_field_names, partial_model
from llm_codable.sessions.device_utils import get_device_info, get_optimal_device, resolve_device

__all__ = [
    "LanguageModelSession",
    "GenerationOptions",
    "Response",
    "ResponseSnapshot",
    "GenerationError",
    "DecodingFailureError",
    "ModelUnavailableError",
    "SessionFactory",
    "default_session",
    "json_schema_for",
    "partial_field_names",
    "partial_model",
    "get_device_info",
    "get_optimal_device",
    "resolve_device",
    "LlamaCppSession",
    "TransformersSession",
]


def __getattr__(name):
    # Concrete sessions are resolved on first access
    if name == "LlamaCppSession":
        from llm_codable.sessions.llamacpp_session import LlamaCppSession
        return LlamaCppSession
    if name == "TransformersSession":
        from llm_codable.sessions.transformers_session import TransformersSession
        return TransformersSession
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
