"""
Decoded values paired with a confidence score.

The score is whatever the model reports when asked to rate its own
extraction. It is not calibrated against ground truth; the only guarantee is
that it lies in [0.0, 1.0].
"""

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

CONFIDENCE_GUIDE = (
    "Confidence score from 0.0 to 1.0 indicating how certain you are about the "
    "accuracy of the extracted data. Use lower values (0.3-0.5) for ambiguous or "
    "incomplete input, medium values (0.5-0.8) for reasonably clear input, and "
    "high values (0.8-1.0) for very clear and complete input."
)


@dataclass(frozen=True)
class DecodedResult(Generic[T]):
    """
    A decoded value together with the model's confidence in it.

    Attributes:
        value: The decoded value
        confidence: 0.0 (low confidence) to 1.0 (high confidence); values
            outside the range are clamped and NaN becomes 0.0

    Example:
        ```python
        result = await Person.decode_with_confidence("Maybe Tanaka, around 30?")
        print(result.value.name)   # "Tanaka"
        print(result.confidence)   # 0.6
        ```
    """
    value: T
    confidence: float

    def __post_init__(self):
        confidence = float(self.confidence)
        if math.isnan(confidence):
            confidence = 0.0
        object.__setattr__(self, "confidence", max(0.0, min(1.0, confidence)))


class ConfidenceWrapper(BaseModel):
    """Schema the model fills in when rating an extraction."""

    # Advertised to the engine only; out-of-range replies are clamped by
    # DecodedResult rather than rejected here.
    confidence: float = Field(
        description=CONFIDENCE_GUIDE,
        json_schema_extra={"minimum": 0.0, "maximum": 1.0},
    )


def confidence_prompt(input_text: str, value: Any) -> str:
    """
    Instruction for the second, self-rating generation call.

    Args:
        input_text: The text the value was decoded from
        value: The decoded value
    """
    if hasattr(value, "prompt_representation"):
        rendered = value.prompt_representation
    elif isinstance(value, BaseModel):
        rendered = value.model_dump_json(indent=2)
    else:
        rendered = repr(value)

    return (
        "Rate how confident you are that the following data was extracted "
        "accurately from the input text, as a number from 0.0 to 1.0.\n\n"
        f"Input text:\n{input_text}\n\n"
        f"Extracted data:\n{rendered}"
    )
