#!/usr/bin/env python3
"""
Demo: decoding a person record and encoding it back.

This demonstrates:
- Decoding a Pydantic model from free-form text
- Asking the model for a confidence score
- Rendering the record as Markdown, JSON and natural language

Usage:
    LLM_CODABLE_MODEL=models/qwen2.5-1.5b-instruct-q4_k_m.gguf python examples/demo_person.py
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from llm_codable import GenerationOptions, LLMEncodingStrategy, SessionFactory
from llm_codable.utils import setup_logging

from models import MeetingNotes, Person

TEXTS = [
    "Taro Tanaka is a 35 year old software engineer living in Osaka.",
    "Met someone named Ken at the station, probably in his forties?",
]

MEETING = (
    "Weekly sync with Taro, Hanako and Ken. We went over the Q3 budget and the "
    "hiring plan. Agreed to open two backend positions."
)


async def main():
    setup_logging(level="INFO")

    print("=" * 60)
    print("llm-codable Demo: Person Record")
    print("=" * 60)

    session = SessionFactory.create()
    options = GenerationOptions(temperature=0.2, maximum_response_tokens=200)
    print(f"✓ Session ready: {session!r}")

    for i, text in enumerate(TEXTS, 1):
        print("\n" + "=" * 60)
        print(f"Text {i}: {text}")
        print("=" * 60)

        result = await Person.decode_with_confidence(text, session=session, options=options)

        print(f"\nConfidence: {result.confidence:.2f}")
        for strategy in (
            LLMEncodingStrategy.MARKDOWN,
            LLMEncodingStrategy.JSON,
            LLMEncodingStrategy.NATURAL_LANGUAGE,
        ):
            print(f"\n[{strategy.kind}]")
            print(result.value.llm_encoded(strategy))

    print("\n" + "=" * 60)
    print("Decorated type: MeetingNotes")
    print("=" * 60)

    notes = await MeetingNotes.decode(MEETING, session=session, options=options)
    one_line = LLMEncodingStrategy.custom(
        lambda n: f"{len(n.attendees)} attendees, topics: {'; '.join(n.topics)}"
    )
    print(notes.llm_encoded())
    print(notes.llm_encoded(one_line))


if __name__ == "__main__":
    asyncio.run(main())
