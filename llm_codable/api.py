"""
High-level functional API.

Free functions that start from the text rather than the type:

    ```python
    from llm_codable import decode

    person = await decode("Taro is 35 years old", as_type=Person)
    ```
"""

from typing import Any, AsyncIterator, List, Optional, Type, TypeVar

from llm_codable.protocols.decodable import LLMDecodable
from llm_codable.result import DecodedResult
from llm_codable.sessions.base import GenerationOptions, LanguageModelSession, ResponseSnapshot
from llm_codable.streaming import ElementStream

T = TypeVar("T", bound=LLMDecodable)


def _require_decodable(as_type: Any) -> None:
    if not (isinstance(as_type, type) and issubclass(as_type, LLMDecodable)):
        raise TypeError(
            f"{getattr(as_type, '__name__', as_type)!s} is not LLMDecodable; "
            "subclass LLMCodable or decorate it with @llm_codable"
        )


async def decode(
    text: Any,
    as_type: Type[T],
    session: Optional[LanguageModelSession] = None,
    options: Optional[GenerationOptions] = None,
) -> T:
    """Decode ``text`` into ``as_type``. See :meth:`LLMDecodable.decode`."""
    _require_decodable(as_type)
    return await as_type.decode(text, session=session, options=options)


async def decode_with_confidence(
    text: Any,
    as_type: Type[T],
    session: Optional[LanguageModelSession] = None,
    options: Optional[GenerationOptions] = None,
) -> DecodedResult[T]:
    """Decode with a self-reported confidence. See :meth:`LLMDecodable.decode_with_confidence`."""
    _require_decodable(as_type)
    return await as_type.decode_with_confidence(text, session=session, options=options)


def decode_stream(
    text: Any,
    as_type: Type[T],
    session: Optional[LanguageModelSession] = None,
    options: Optional[GenerationOptions] = None,
) -> AsyncIterator[ResponseSnapshot]:
    """Stream partial snapshots. See :meth:`LLMDecodable.decode_stream`."""
    _require_decodable(as_type)
    return as_type.decode_stream(text, session=session, options=options)


def decode_elements(
    text: Any,
    of: Type[T],
    session: Optional[LanguageModelSession] = None,
    options: Optional[GenerationOptions] = None,
) -> ElementStream[T]:
    """Stream every instance in the text. See :meth:`LLMDecodable.decode_elements`."""
    _require_decodable(of)
    return of.decode_elements(text, session=session, options=options)


async def decode_all(
    text: Any,
    of: Type[T],
    session: Optional[LanguageModelSession] = None,
    options: Optional[GenerationOptions] = None,
) -> List[T]:
    """Decode every instance in the text into a list."""
    _require_decodable(of)
    return await of.decode_all(text, session=session, options=options)
