#!/usr/bin/env python3
"""
Demo: property-level and element streaming.

This demonstrates:
- Watching a MovieReview fill in field by field
- Pulling Recipe records one at a time from a list decode

Usage:
    LLM_CODABLE_MODEL=models/qwen2.5-1.5b-instruct-q4_k_m.gguf python examples/demo_streaming.py
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from llm_codable import SessionFactory

from models import MovieReview, Recipe

REVIEW = (
    "Just rewatched Interstellar (2014). Nolan's space epic still hits hard: "
    "the docking scene alone is worth it, even if the third act drags. 9/10."
)

RECIPES = (
    "For dinner: chicken curry (onion, chicken, curry roux) takes about an hour. "
    "If you're in a hurry, aglio e olio needs only spaghetti, garlic and olive oil "
    "and is done in 15 minutes. Miso soup with tofu and wakame: 10 minutes."
)


async def main():
    session = SessionFactory.create()

    print("=" * 60)
    print("Property-level streaming: MovieReview")
    print("=" * 60)

    async for snapshot in MovieReview.decode_stream(REVIEW, session=session):
        review = snapshot.content
        filled = [name for name in ("title", "year", "rating", "summary") if getattr(review, name) is not None]
        print(f"  fields so far: {', '.join(filled) or '-'}")

    print(f"\nFinal: {review!r}")

    print("\n" + "=" * 60)
    print("Element streaming: Recipe")
    print("=" * 60)

    async for recipe in Recipe.decode_elements(RECIPES, session=session):
        print()
        print(recipe.llm_encoded())


if __name__ == "__main__":
    asyncio.run(main())
