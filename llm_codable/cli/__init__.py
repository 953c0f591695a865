"""
Command-line interface module.

This module provides a rich terminal interface for llm-codable using Typer and Rich.

Commands:
    - decode: Decode one record from text, optionally with a confidence score
    - stream: Live partial results, or one element at a time
    - encode: Render a JSON record as Markdown, JSON or natural language
    - info: Configuration and available backends

Example Usage:
    ```bash
    export LLM_CODABLE_MODEL=models/qwen2.5-1.5b-instruct-q4_k_m.gguf

    llm-codable decode --type models:Person --text "Taro is 35" --confidence
    llm-codable stream --type models:Recipe --input-file recipes.txt --elements
    llm-codable encode --type models:Person --json person.json --format json
    ```
"""

from .main import app

__all__ = ["app"]
