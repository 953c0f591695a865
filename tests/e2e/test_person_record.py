"""
End-to-end test: decoding and encoding records with a real GGUF model.

Set LLM_CODABLE_TEST_MODEL to a small instruction-tuned GGUF file, e.g.:

    LLM_CODABLE_TEST_MODEL=models/qwen2.5-1.5b-instruct-q4_k_m.gguf pytest -m e2e
"""

import os
from pathlib import Path
from typing import List, Optional

import pytest
from pydantic import BaseModel, Field

from llm_codable import GenerationOptions, LLMCodable, LLMEncodingStrategy

TEST_MODEL = os.environ.get("LLM_CODABLE_TEST_MODEL")

pytestmark = pytest.mark.skipif(
    not TEST_MODEL or not Path(TEST_MODEL).exists(),
    reason="LLM_CODABLE_TEST_MODEL does not point to a GGUF file",
)


class Person(LLMCodable, BaseModel):
    name: str = Field(description="The person's full name")
    age: int = Field(description="Age in years", ge=0, le=150)
    occupation: Optional[str] = Field(default=None, description="Job title, if mentioned")


class Recipe(LLMCodable, BaseModel):
    name: str = Field(description="Dish name")
    minutes: int = Field(description="Total cooking time in minutes", ge=0)


GREEDY = GenerationOptions(greedy=True, maximum_response_tokens=200)


@pytest.mark.e2e
@pytest.mark.slow
class TestPersonRecord:
    """Decode and encode records through llama.cpp."""

    @pytest.fixture(scope="class")
    def loaded_session(self):
        """Create session fixture."""
        from llm_codable.sessions import LlamaCppSession

        return LlamaCppSession(TEST_MODEL, n_ctx=4096)

    @pytest.fixture
    def session(self, loaded_session):
        """Same model, empty transcript for every test."""
        loaded_session.transcript.clear()
        return loaded_session

    @pytest.mark.asyncio
    async def test_decode_person(self, session):
        """Test extracting one record."""
        person = await Person.decode(
            "Taro Tanaka is a 35 year old software engineer living in Osaka.",
            session=session,
            options=GREEDY,
        )

        assert isinstance(person, Person)
        assert "Taro" in person.name
        assert person.age == 35

        encoded = person.llm_encoded(LLMEncodingStrategy.MARKDOWN)
        assert encoded.startswith("Person:\n- name: ")

    @pytest.mark.asyncio
    async def test_decode_with_confidence(self, session):
        """Test that the reported confidence is in range."""
        result = await Person.decode_with_confidence(
            "Someone called Ken, maybe in his forties?",
            session=session,
            options=GREEDY,
        )

        assert 0.0 <= result.confidence <= 1.0

    @pytest.mark.asyncio
    async def test_decode_elements(self, session):
        """Test extracting several records."""
        recipes: List[Recipe] = await Recipe.decode_all(
            "Curry takes about an hour. Pasta is done in 15 minutes.",
            session=session,
            options=GREEDY,
        )

        assert len(recipes) >= 1
        assert all(isinstance(recipe, Recipe) for recipe in recipes)

    @pytest.mark.asyncio
    async def test_decode_stream(self, session):
        """Test that the final snapshot is complete."""
        snapshots = [
            snapshot async for snapshot in Person.decode_stream(
                "Hanako Sato, 29, works as a nurse.",
                session=session,
                options=GREEDY,
            )
        ]

        assert snapshots
        assert snapshots[-1].content.name is not None
