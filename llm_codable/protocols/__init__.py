"""
Codable-like protocols for language-model I/O.

Components:
    - decodable: LLMDecodable (text -> type via a session)
    - encodable: LLMEncodable and LLMEncodingStrategy (type -> prompt text)
    - codable: LLMCodable (both) and the llm_codable class decorator
"""

from llm_codable.protocols.codable import LLMCodable, llm_codable
from llm_codable.protocols.decodable import (
    ELEMENTS_PROMPT,
    EXTRACTION_PROMPT,
    LLMDecodable,
    elements_prompt,
    extraction_prompt,
)
from llm_codable.protocols.encodable import LLMEncodable, LLMEncodingStrategy

__all__ = [
    "LLMDecodable",
    "LLMEncodable",
    "LLMEncodingStrategy",
    "LLMCodable",
    "llm_codable",
    "EXTRACTION_PROMPT",
    "ELEMENTS_PROMPT",
    "extraction_prompt",
    "elements_prompt",
]
