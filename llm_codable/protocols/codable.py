"""
Bidirectional conversion: ``LLMCodable`` and the ``llm_codable`` decorator.

Two equivalent ways to opt a type in:

    ```python
    from pydantic import BaseModel, Field
    from llm_codable import LLMCodable, llm_codable

    class Person(LLMCodable, BaseModel):
        name: str = Field(description="The person's name")
        age: int = Field(description="Age in years", ge=0, le=150)

    @llm_codable
    class MeetingNotes(BaseModel):
        topics: List[str] = Field(description="Main topics discussed")
        attendees: List[str] = Field(description="Attendee names")

    person = await Person.decode("Taro Tanaka, 35 years old")
    prompt = person.llm_encoded()
    ```
"""

from typing import TypeVar

from llm_codable.protocols.decodable import LLMDecodable
from llm_codable.protocols.encodable import LLMEncodable

C = TypeVar("C", bound=type)


class LLMCodable(LLMDecodable, LLMEncodable):
    """A type that can be both decoded from text and encoded for a prompt."""


def llm_codable(cls: C) -> C:
    """
    Class decorator adding ``LLMDecodable`` and ``LLMEncodable`` to a type.

    The returned class has the same name, qualified name, module, docstring
    and fields as ``cls`` and subclasses it; nothing else is declared. A class
    that already has both capabilities is returned unchanged.

    Args:
        cls: Pydantic model or dataclass

    Returns:
        The class with both conformances

    Raises:
        TypeError: If ``cls`` is not a class
    """
    if not isinstance(cls, type):
        raise TypeError(f"llm_codable can only decorate classes, got {type(cls).__name__}")

    missing = tuple(base for base in (LLMDecodable, LLMEncodable) if not issubclass(cls, base))
    if not missing:
        return cls

    namespace = {
        "__module__": cls.__module__,
        "__qualname__": cls.__qualname__,
        "__doc__": cls.__doc__,
    }
    # The class's own metaclass builds the subclass, so Pydantic models stay models
    return type(cls)(cls.__name__, (cls,) + missing, namespace)
