"""
Partial results for streamed generation.

While an engine streams JSON text, the text generated so far is parsed with
pydantic-core's partial JSON mode and projected onto a "partial" variant of the
target type, in which every field is optional and defaults to None:

    {"title": "Interstellar", "year": 20        ->  MovieReviewPartial(
                                                      title='Interstellar',
                                                      year=20,
                                                      director=None, ...)

Pydantic models get a partial model built with ``create_model``; dataclasses
get a partial dataclass built with ``dataclasses.make_dataclass``. Partial
views are constructed without validation and nested records stay plain dicts
until the engine finishes.
"""

import dataclasses
import logging
import typing
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, create_model
from pydantic_core import from_json

logger = logging.getLogger(__name__)


def has_partial(cls: Any) -> bool:
    """Whether :func:`partial_model` can derive a partial variant of ``cls``."""
    if not isinstance(cls, type):
        return False
    return issubclass(cls, BaseModel) or dataclasses.is_dataclass(cls)


@lru_cache(maxsize=None)
def partial_model(cls: type) -> type:
    """
    Derive the partial variant of a Pydantic model or dataclass.

    Args:
        cls: Pydantic model class or dataclass

    Returns:
        Class named ``<Name>Partial`` with the same fields, all optional.
        A model class for Pydantic models, a dataclass for dataclasses.

    Example:
        ```python
        class Person(BaseModel):
            name: str
            age: int

        PersonPartial = partial_model(Person)
        PersonPartial.model_construct(name="Taro")  # age=None
        ```
    """
    if dataclasses.is_dataclass(cls) and not issubclass(cls, BaseModel):
        return dataclasses.make_dataclass(
            f"{cls.__name__}Partial",
            [
                (f.name, Optional[f.type], dataclasses.field(default=None))
                for f in dataclasses.fields(cls)
            ],
            namespace={'__doc__': f"Partially generated {cls.__name__}."},
            module=cls.__module__,
        )

    fields: Dict[str, Any] = {}
    for name, field in cls.model_fields.items():
        fields[name] = (
            Optional[field.annotation],
            Field(default=None, description=field.description),
        )

    return create_model(
        f"{cls.__name__}Partial",
        __module__=cls.__module__,
        __doc__=f"Partially generated {cls.__name__}.",
        **fields,
    )


def partial_field_names(cls: type) -> List[str]:
    """Field names of the partial variant, in declaration order."""
    partial_cls = partial_model(cls)
    if dataclasses.is_dataclass(partial_cls):
        return [f.name for f in dataclasses.fields(partial_cls)]
    return list(partial_cls.model_fields)


def parse_partial_json(text: str) -> Optional[Any]:
    """
    Parse an incomplete JSON document.

    Leading prose before the first ``{`` or ``[`` is skipped. Unterminated
    strings are kept as their prefix.

    Returns:
        Parsed value, or None if nothing parseable has been generated yet
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None

    try:
        return from_json(text[min(starts):], allow_partial="trailing-strings")
    except ValueError as e:
        # Typically trailing prose after a complete value; the complete
        # value was already emitted.
        logger.debug(f"Partial JSON not parseable yet: {e}")
        return None


def snapshot_content(data: Any, generating: Any) -> Any:
    """
    Project parsed partial JSON onto the target type.

    Args:
        data: Output of :func:`parse_partial_json`
        generating: Target type (model class, dataclass, or a List of either)

    Returns:
        Partial instance, list of partial instances, or the raw data for
        types without a partial variant (scalars, dicts, unions)
    """
    if has_partial(generating):
        if isinstance(data, dict):
            return _construct_partial(generating, data)
        return data

    if typing.get_origin(generating) in (list, typing.List) and isinstance(data, list):
        (item_type,) = typing.get_args(generating) or (Any,)
        if has_partial(item_type):
            return [
                _construct_partial(item_type, item) if isinstance(item, dict) else item
                for item in data
            ]

    return data


def _construct_partial(cls: type, data: Dict[str, Any]) -> Any:
    partial_cls = partial_model(cls)
    known = {k: v for k, v in data.items() if k in partial_field_names(cls)}
    if dataclasses.is_dataclass(partial_cls):
        return partial_cls(**known)
    return partial_cls.model_construct(**known)
