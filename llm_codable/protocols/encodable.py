"""
Encoding structured types into LLM-friendly strings.

Strategies:
    - JSON: pretty-printed, key-sorted, deterministic
    - MARKDOWN: "<TypeName>:" followed by "- field: value" lines (the default)
    - NATURAL_LANGUAGE: "<TypeName> where field is value, ..."
    - custom(transform): whatever ``transform(value)`` returns

Fields are enumerated through :meth:`LLMEncodable.llm_fields`, which yields
(name, value) pairs in declaration order. The default reads the declared
fields of Pydantic models and dataclasses; types can override it to choose,
rename or reorder what gets rendered.

Usage:
    ```python
    person = Person(name="Taro", age=35)

    person.llm_encoded()
    # "Person:\\n- name: Taro\\n- age: 35"

    person.llm_encoded(LLMEncodingStrategy.NATURAL_LANGUAGE)
    # "Person where name is Taro, age is 35"
    ```
"""

import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, List, Optional, Tuple, Union

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from llm_codable.sessions.base import type_adapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LLMEncodingStrategy:
    """
    Closed set of output formats.

    Use the class constants for the built-in formats and
    :meth:`custom` for a caller-supplied formatter.

    Attributes:
        kind: "json", "markdown", "natural_language" or "custom"
        transform: Formatter, only for the custom kind
    """
    kind: str
    transform: Optional[Callable[[Any], str]] = None

    KINDS: ClassVar[Tuple[str, ...]] = ("json", "markdown", "natural_language", "custom")

    JSON: ClassVar["LLMEncodingStrategy"]
    MARKDOWN: ClassVar["LLMEncodingStrategy"]
    NATURAL_LANGUAGE: ClassVar["LLMEncodingStrategy"]

    def __post_init__(self):
        if self.kind not in self.KINDS:
            raise ValueError(
                f"Unknown encoding strategy: {self.kind!r} "
                f"(expected one of {', '.join(self.KINDS)})"
            )
        if self.kind == "custom" and not callable(self.transform):
            raise ValueError("Custom encoding strategy requires a callable transform")
        if self.kind != "custom" and self.transform is not None:
            raise ValueError(f"Only custom strategies take a transform, not {self.kind!r}")

    @classmethod
    def custom(cls, transform: Callable[[Any], str]) -> "LLMEncodingStrategy":
        """Strategy that renders a value with ``transform(value)``."""
        return cls("custom", transform)

    @classmethod
    def parse(cls, name: Union[str, "LLMEncodingStrategy"]) -> "LLMEncodingStrategy":
        """
        Resolve a strategy by name.

        Accepts "json", "markdown", "natural_language" (also "natural-language"
        and "naturalLanguage"). Strategy instances are returned as is.
        """
        if isinstance(name, LLMEncodingStrategy):
            return name

        key = name.strip().lower().replace("-", "_")
        if key == "naturallanguage":
            key = "natural_language"
        if key == "custom":
            raise ValueError("Use LLMEncodingStrategy.custom(transform) for custom strategies")

        return cls(key)


LLMEncodingStrategy.JSON = LLMEncodingStrategy("json")
LLMEncodingStrategy.MARKDOWN = LLMEncodingStrategy("markdown")
LLMEncodingStrategy.NATURAL_LANGUAGE = LLMEncodingStrategy("natural_language")


class LLMEncodable:
    """
    Mixin: a type that can be rendered as an LLM-friendly string.
    """

    def llm_fields(self) -> List[Tuple[str, Any]]:
        """
        Ordered (name, value) pairs to render.

        Override to control which fields appear and in what order.
        """
        if isinstance(self, BaseModel):
            return [(name, getattr(self, name)) for name in type(self).model_fields]

        if dataclasses.is_dataclass(self):
            return [(f.name, getattr(self, f.name)) for f in dataclasses.fields(self)]

        return list(vars(self).items())

    def llm_encoded(self, strategy: Union[str, LLMEncodingStrategy, None] = None) -> str:
        """
        Encode this instance.

        Args:
            strategy: Strategy or strategy name (default: markdown)

        Returns:
            str: Encoded representation
        """
        strategy = LLMEncodingStrategy.parse(strategy) if strategy is not None else LLMEncodingStrategy.MARKDOWN

        if strategy.kind == "json":
            return self._encode_as_json()
        if strategy.kind == "markdown":
            return self._encode_as_markdown()
        if strategy.kind == "natural_language":
            return self._encode_as_natural_language()
        return strategy.transform(self)

    @property
    def prompt_representation(self) -> str:
        """Default encoding, for embedding this value in a prompt."""
        return self.llm_encoded()

    def _json_data(self) -> Any:
        if isinstance(self, BaseModel):
            return self.model_dump(mode="json")
        if dataclasses.is_dataclass(self):
            return type_adapter(type(self)).dump_python(self, mode="json")
        return dict(self.llm_fields())

    def _encode_as_json(self) -> str:
        try:
            return json.dumps(self._json_data(), indent=2, sort_keys=True, ensure_ascii=False)
        except (TypeError, ValueError, PydanticSerializationError) as e:
            logger.debug(f"JSON encoding of {type(self).__name__} failed, using repr: {e}")
            return repr(self)

    def _encode_as_markdown(self) -> str:
        lines = [f"{type(self).__name__}:"]
        for name, value in self.llm_fields():
            lines.append(f"- {name}: {value}")
        return "\n".join(lines)

    def _encode_as_natural_language(self) -> str:
        parts = [f"{name} is {value}" for name, value in self.llm_fields()]
        return f"{type(self).__name__} where {', '.join(parts)}"
