"""
Decoding structured types from ambiguous text.

``LLMDecodable`` is a mixin for Pydantic models (or dataclasses) that adds
class-level decode operations. Decoding is delegation: the library wraps the
input in a fixed instruction, hands it to a session together with the type,
and returns what the session produced. There is no local validation, repair
or retry; errors raised by the session reach the caller unchanged.

Usage:
    ```python
    from pydantic import BaseModel, Field
    from llm_codable import LLMDecodable

    class Person(LLMDecodable, BaseModel):
        name: str = Field(description="The person's name")
        age: int = Field(description="Age in years", ge=0, le=150)

    person = await Person.decode("Taro Tanaka, 35 years old")
    ```
"""

import logging
from typing import Any, AsyncIterator, List, Optional, Type, TypeVar

from llm_codable.result import ConfidenceWrapper, DecodedResult, confidence_prompt
from llm_codable.sessions.base import (
    GenerationOptions,
    LanguageModelSession,
    ResponseSnapshot,
    default_session,
)
from llm_codable.streaming import ElementStream

logger = logging.getLogger(__name__)

D = TypeVar("D", bound="LLMDecodable")

EXTRACTION_PROMPT = "Extract structured data from the following text:\n\n"
ELEMENTS_PROMPT = "Extract all matching items from the following text:\n\n"


def extraction_prompt(input_text: Any) -> str:
    """Instruction sent for a single-record decode."""
    return EXTRACTION_PROMPT + str(input_text)


def elements_prompt(input_text: Any) -> str:
    """Instruction sent for an element-stream decode."""
    return ELEMENTS_PROMPT + str(input_text)


class LLMDecodable:
    """
    Mixin: a type that can be decoded from ambiguous text by a language model.

    Every operation accepts an optional ``session``; without one, a new
    session is built from the configured settings for that call.
    """

    @classmethod
    async def decode(
        cls: Type[D],
        input: Any,
        session: Optional[LanguageModelSession] = None,
        options: Optional[GenerationOptions] = None,
    ) -> D:
        """
        Decode an instance from ambiguous text.

        Args:
            input: Unstructured text (anything with a string form)
            session: Session to use (None = new configured session)
            options: Generation options

        Returns:
            A decoded instance, exactly as the session produced it
        """
        if session is None:
            session = default_session()

        logger.debug(f"Decoding {cls.__name__} from {len(str(input))} characters")
        response = await session.respond(
            extraction_prompt(input),
            generating=cls,
            options=options,
        )
        return response.content

    @classmethod
    async def decode_with_confidence(
        cls: Type[D],
        input: Any,
        session: Optional[LanguageModelSession] = None,
        options: Optional[GenerationOptions] = None,
    ) -> DecodedResult[D]:
        """
        Decode an instance and ask the model how confident it is.

        Two independent generation calls are made on the same session: the
        decode, then a self-rating. If the rating call fails its error is
        raised; there is no fallback score.

        Returns:
            DecodedResult: The value and a confidence clamped to [0, 1]

        Example:
            ```python
            result = await Person.decode_with_confidence("Probably Tanaka, ~30")
            if result.confidence < 0.5:
                ask_user_to_confirm(result.value)
            ```
        """
        if session is None:
            session = default_session()

        value = await cls.decode(input, session=session, options=options)

        rating = await session.respond(
            confidence_prompt(str(input), value),
            generating=ConfidenceWrapper,
            options=options,
        )
        logger.debug(f"Model-reported confidence for {cls.__name__}: {rating.content.confidence}")

        return DecodedResult(value=value, confidence=rating.content.confidence)

    @classmethod
    def decode_stream(
        cls,
        input: Any,
        session: Optional[LanguageModelSession] = None,
        options: Optional[GenerationOptions] = None,
    ) -> AsyncIterator[ResponseSnapshot]:
        """
        Stream partial snapshots while the instance is being generated.

        The session's own snapshot sequence is returned unmodified. Each
        snapshot's ``content`` is a partial view of the type: fields appear
        as the model generates them, the rest are None. Pydantic models
        stream ``<Name>Partial`` models, dataclasses stream ``<Name>Partial``
        dataclasses; neither is validated until the final decode.

        Example:
            ```python
            async for snapshot in MovieReview.decode_stream(review_text):
                if snapshot.content.title:
                    print(snapshot.content.title)
            ```
        """
        if session is None:
            session = default_session()

        return session.stream_response(
            extraction_prompt(input),
            generating=cls,
            options=options,
        )

    @classmethod
    def decode_elements(
        cls: Type[D],
        input: Any,
        session: Optional[LanguageModelSession] = None,
        options: Optional[GenerationOptions] = None,
    ) -> "ElementStream[D]":
        """
        Decode every instance found in the text, yielded one at a time.

        Returns:
            ElementStream: Async iterable of complete instances. The model is
            called once, when iteration starts.
        """
        if session is None:
            session = default_session()

        return ElementStream(session, elements_prompt(input), cls, options)

    @classmethod
    async def decode_all(
        cls: Type[D],
        input: Any,
        session: Optional[LanguageModelSession] = None,
        options: Optional[GenerationOptions] = None,
    ) -> List[D]:
        """Decode every instance found in the text into a list."""
        return await cls.decode_elements(input, session=session, options=options).collect()
