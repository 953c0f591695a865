"""
Example record types.

Used by the demos and by the CLI, e.g.:

    cd examples
    llm-codable decode --type models:Person --text "Taro Tanaka, 35, engineer"
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from llm_codable import LLMCodable, llm_codable


class Person(LLMCodable, BaseModel):
    name: str = Field(description="The person's full name")
    age: int = Field(description="Age in years", ge=0, le=150)
    occupation: Optional[str] = Field(default=None, description="Job title, if mentioned")


class MovieReview(LLMCodable, BaseModel):
    title: str = Field(description="Movie title")
    year: int = Field(description="Release year")
    rating: int = Field(description="Reviewer's rating out of 10", ge=1, le=10)
    summary: str = Field(description="One-sentence summary of the review")


class Recipe(LLMCodable, BaseModel):
    name: str = Field(description="Dish name")
    minutes: int = Field(description="Total cooking time in minutes", ge=0)
    ingredients: List[str] = Field(description="Main ingredients")


@llm_codable
class MeetingNotes(BaseModel):
    """Minutes of a meeting."""

    topics: List[str] = Field(description="Main topics discussed")
    attendees: List[str] = Field(description="Names of the attendees")
    decisions: List[str] = Field(default_factory=list, description="Decisions that were made")
