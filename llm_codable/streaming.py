"""
Element streaming over a decoded array.

:class:`ElementStream` is an async iterable that yields the elements of a
``List[Element]`` generation one at a time. The generation itself is not
incremental: on the first pull the whole list is decoded in a single
``respond`` call and cached, and later pulls only advance an index. Building
the stream costs nothing; the model runs when iteration starts.

Usage:
    ```python
    stream = Recipe.decode_elements("Curry takes 60 minutes, pasta 15 ...")

    async for recipe in stream:
        print(recipe.name)  # a complete Recipe, not a partial one
    ```
"""

import logging
from typing import Any, AsyncIterator, Generic, List, Optional, Type, TypeVar

from llm_codable.sessions.base import GenerationOptions, LanguageModelSession

logger = logging.getLogger(__name__)

Element = TypeVar("Element")


class ElementStream(Generic[Element]):
    """
    Async iterable over the elements of one decoded array.

    Every ``async for`` gets its own cursor and therefore its own generation
    call.

    Attributes:
        session: Session that performs the generation
        prompt: Full prompt sent to the session
        element_type: Type of each element
        options: Generation options
    """

    def __init__(
        self,
        session: LanguageModelSession,
        prompt: str,
        element_type: Type[Element],
        options: Optional[GenerationOptions] = None,
    ):
        self.session = session
        self.prompt = prompt
        self.element_type = element_type
        self.options = options

    def __aiter__(self) -> "ElementStream.Iterator":
        return ElementStream.Iterator(self.session, self.prompt, self.element_type, self.options)

    async def collect(self) -> List[Element]:
        """Drain a fresh cursor into a list."""
        return [element async for element in self]

    def __repr__(self) -> str:
        return f"ElementStream(element_type={self.element_type.__name__})"

    class Iterator(AsyncIterator[Any]):
        """
        Cursor over a lazily decoded array.

        Attributes:
            elements: Cached array (None until the first pull)
            index: Position of the next element
        """

        def __init__(
            self,
            session: LanguageModelSession,
            prompt: str,
            element_type: Type[Any],
            options: Optional[GenerationOptions],
        ):
            self.session = session
            self.prompt = prompt
            self.element_type = element_type
            self.options = options
            self.elements: Optional[List[Any]] = None
            self.index = 0

        def __aiter__(self) -> "ElementStream.Iterator":
            return self

        async def __anext__(self) -> Any:
            if self.elements is None:
                response = await self.session.respond(
                    self.prompt,
                    generating=List[self.element_type],
                    options=self.options,
                )
                self.elements = list(response.content)
                logger.debug(f"Decoded {len(self.elements)} element(s)")

            if self.index < len(self.elements):
                element = self.elements[self.index]
                self.index += 1
                return element

            raise StopAsyncIteration
