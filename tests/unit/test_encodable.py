"""
Unit tests for encoding strategies.
"""

import json
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, List, Optional

import pytest
from pydantic import BaseModel, Field

from llm_codable import LLMEncodable, LLMEncodingStrategy


class Person(LLMEncodable, BaseModel):
    name: str = Field(description="The person's name")
    age: int = Field(description="Age in years")
    occupation: Optional[str] = None


class Meeting(LLMEncodable, BaseModel):
    topics: List[str]
    attendees: List[str]


@dataclass
class Item(LLMEncodable):
    name: str
    quantity: int


class Mood(Enum):
    HAPPY = "happy"
    TIRED = "tired"


@dataclass
class DiaryEntry(LLMEncodable):
    day: date
    mood: Mood


@dataclass
class Handle(LLMEncodable):
    label: str
    resource: Any


class Badge(LLMEncodable, BaseModel):
    name: str
    internal_id: int

    def llm_fields(self):
        return [("badge", self.name)]


TARO = Person(name="Taro Tanaka", age=35, occupation="engineer")


class TestMarkdown:
    """Test the default Markdown encoding."""

    def test_markdown_lines_in_declaration_order(self):
        """Test type-name line followed by one line per field."""
        assert TARO.llm_encoded(LLMEncodingStrategy.MARKDOWN) == (
            "Person:\n"
            "- name: Taro Tanaka\n"
            "- age: 35\n"
            "- occupation: engineer"
        )

    def test_markdown_is_default(self):
        """Test that no strategy means Markdown."""
        assert TARO.llm_encoded() == TARO.llm_encoded(LLMEncodingStrategy.MARKDOWN)
        assert TARO.prompt_representation == TARO.llm_encoded()

    def test_markdown_unset_optional(self):
        """Test that None values are rendered, not skipped."""
        person = Person(name="Hanako", age=29)

        assert person.llm_encoded().splitlines() == [
            "Person:",
            "- name: Hanako",
            "- age: 29",
            "- occupation: None",
        ]

    def test_markdown_dataclass(self):
        """Test dataclass fields."""
        assert Item(name="apple", quantity=3).llm_encoded() == "Item:\n- name: apple\n- quantity: 3"

    def test_overridden_field_enumeration(self):
        """Test that llm_fields controls what is rendered."""
        badge = Badge(name="Taro", internal_id=991)

        assert badge.llm_encoded() == "Badge:\n- badge: Taro"
        assert badge.llm_encoded("natural_language") == "Badge where badge is Taro"


class TestJson:
    """Test the JSON encoding."""

    def test_json_sorted_and_indented(self):
        """Test pretty-printed output with sorted keys."""
        expected = json.dumps(
            {"age": 35, "name": "Taro Tanaka", "occupation": "engineer"},
            indent=2,
        )

        assert TARO.llm_encoded(LLMEncodingStrategy.JSON) == expected

    def test_json_is_stable(self):
        """Test that equal values give identical strings."""
        a = Meeting(topics=["budget", "hiring"], attendees=["Taro", "Hanako"])
        b = Meeting(attendees=["Taro", "Hanako"], topics=["budget", "hiring"])

        assert a.llm_encoded("json") == b.llm_encoded("json")
        assert a.llm_encoded("json") == a.llm_encoded("json")

    def test_json_keeps_non_ascii(self):
        """Test that non-ASCII text is not escaped."""
        person = Person(name="田中太郎", age=35)

        assert '"name": "田中太郎"' in person.llm_encoded("json")

    def test_json_dataclass(self):
        """Test dataclass encoding."""
        assert json.loads(Item(name="apple", quantity=3).llm_encoded("json")) == {
            "name": "apple",
            "quantity": 3,
        }

    def test_json_dataclass_dates_and_enums(self):
        """Test that dataclass dates and enums use their JSON forms."""
        entry = DiaryEntry(day=date(2024, 1, 2), mood=Mood.HAPPY)

        assert json.loads(entry.llm_encoded("json")) == {"day": "2024-01-02", "mood": "happy"}

    def test_json_falls_back_to_repr(self):
        """Test that values JSON cannot represent are rendered with repr."""
        handle = Handle(label="socket", resource=object())

        assert handle.llm_encoded("json") == repr(handle)


class TestNaturalLanguage:
    """Test the natural-language encoding."""

    def test_natural_language_sentence(self):
        """Test '<Type> where field is value, ...'."""
        assert TARO.llm_encoded(LLMEncodingStrategy.NATURAL_LANGUAGE) == (
            "Person where name is Taro Tanaka, age is 35, occupation is engineer"
        )


class TestCustom:
    """Test caller-supplied formatters."""

    def test_custom_returns_transform_result(self):
        """Test that the result is exactly f(value)."""
        strategy = LLMEncodingStrategy.custom(lambda p: f"{p.name} ({p.age})")

        assert TARO.llm_encoded(strategy) == "Taro Tanaka (35)"

    def test_custom_receives_the_value(self):
        """Test that the transform is called with the instance itself."""
        seen = []

        def transform(value):
            seen.append(value)
            return "x"

        TARO.llm_encoded(LLMEncodingStrategy.custom(transform))

        assert seen == [TARO]
        assert seen[0] is TARO


class TestStrategy:
    """Test the strategy enumeration."""

    @pytest.mark.parametrize("name,expected", [
        ("json", LLMEncodingStrategy.JSON),
        ("Markdown", LLMEncodingStrategy.MARKDOWN),
        ("natural_language", LLMEncodingStrategy.NATURAL_LANGUAGE),
        ("natural-language", LLMEncodingStrategy.NATURAL_LANGUAGE),
        ("naturalLanguage", LLMEncodingStrategy.NATURAL_LANGUAGE),
    ])
    def test_parse_names(self, name, expected):
        """Test resolving strategies by name."""
        assert LLMEncodingStrategy.parse(name) == expected

    def test_parse_returns_instances_unchanged(self):
        """Test that strategy instances pass through."""
        strategy = LLMEncodingStrategy.custom(str)

        assert LLMEncodingStrategy.parse(strategy) is strategy

    def test_unknown_strategy(self):
        """Test that unknown kinds are rejected."""
        with pytest.raises(ValueError, match="Unknown encoding strategy"):
            LLMEncodingStrategy.parse("yaml")

        with pytest.raises(ValueError):
            TARO.llm_encoded("xml")

    def test_custom_by_name_rejected(self):
        """Test that custom needs a transform."""
        with pytest.raises(ValueError, match="custom"):
            LLMEncodingStrategy.parse("custom")

        with pytest.raises(ValueError, match="callable"):
            LLMEncodingStrategy("custom")

    def test_transform_only_for_custom(self):
        """Test that built-in kinds take no transform."""
        with pytest.raises(ValueError, match="Only custom"):
            LLMEncodingStrategy("json", transform=str)
