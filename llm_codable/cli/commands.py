"""
CLI command implementations.

This module contains the logic behind each CLI command:
- decode: Decode one record from text (optionally with confidence)
- stream: Watch partial results, or print each element of a list
- encode: Render a JSON record with an encoding strategy
- info: Show configuration and available backends
"""

import asyncio
import importlib
import os
import sys
from pathlib import Path
from typing import Any, Optional

from llm_codable.config import get_settings
from llm_codable.protocols.decodable import LLMDecodable
from llm_codable.protocols.encodable import LLMEncodable, LLMEncodingStrategy
from llm_codable.sessions.base import (
    GenerationOptions,
    LanguageModelSession,
    SessionFactory,
    type_adapter,
)
from llm_codable.sessions.device_utils import get_device_info
from llm_codable.sessions.partial import partial_field_names

from .display import (
    console,
    create_progress_spinner,
    print_confidence,
    print_element,
    print_encoded,
    print_error,
    print_header,
    print_info,
    print_model_loading,
    print_separator,
    print_settings,
    print_success,
    print_warning,
    snapshot_table,
)


def load_type(type_path: str) -> type:
    """
    Import a class from a "module:ClassName" path.

    The current directory is importable, so models defined next to the
    invocation can be used directly.

    Raises:
        ValueError: If the path is malformed or does not name a class
    """
    module_name, sep, attr = type_path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Type must look like 'module:ClassName', got: {type_path}")

    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module '{module_name}': {e}") from e

    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            raise ValueError(f"'{attr}' not found in module '{module_name}'")

    if not isinstance(obj, type):
        raise ValueError(f"'{type_path}' is not a class")

    return obj


def load_input_text(text: Optional[str], input_file: Optional[Path]) -> str:
    """
    Input text from --text or --input-file.

    Raises:
        ValueError: If neither or both are given
    """
    if (text is None) == (input_file is None):
        raise ValueError("Provide exactly one of --text or --input-file")

    if input_file is not None:
        return input_file.read_text(encoding="utf-8")

    return text


def create_session(model: Optional[str], backend: Optional[str], device: Optional[str]) -> LanguageModelSession:
    """Load a session with a spinner; exits with an error message on failure."""
    settings = get_settings()
    model = model or settings.model
    if not model:
        print_error("No model given. Use --model or set LLM_CODABLE_MODEL")
        raise SystemExit(1)

    print_model_loading(model, backend or settings.backend)

    try:
        with create_progress_spinner() as progress:
            progress.add_task(description="Loading model...", total=None)
            session = SessionFactory.create(model, backend=backend, device=device)
    except Exception as e:
        print_error(f"Failed to load model: {e}")
        raise SystemExit(1)

    print_success("Model loaded successfully")
    return session


def _options(temperature: Optional[float], max_tokens: Optional[int]) -> GenerationOptions:
    return GenerationOptions(temperature=temperature, maximum_response_tokens=max_tokens)


def _require(cls: type, base: type, what: str) -> None:
    if not issubclass(cls, base):
        print_error(f"{cls.__name__} is not {base.__name__}; it cannot be {what}")
        raise SystemExit(1)


def decode_command(
    type_path: str,
    text: Optional[str],
    input_file: Optional[Path],
    model: Optional[str],
    backend: Optional[str],
    device: Optional[str],
    strategy: str,
    confidence: bool,
    temperature: Optional[float],
    max_tokens: Optional[int],
    output_path: Optional[Path],
) -> None:
    """
    Execute the decode command.

    Args:
        type_path: "module:ClassName" of the target type
        text: Input text
        input_file: File with input text
        model: Model ID or path
        backend: Backend to use
        device: Device to use
        strategy: Encoding used to display the result
        confidence: Also ask for a confidence score
        temperature: Sampling temperature
        max_tokens: Maximum tokens to generate
        output_path: Optional path to save the decoded record as JSON
    """
    print_header("llm-codable - Decode")

    cls = load_type(type_path)
    _require(cls, LLMDecodable, "decoded")
    input_text = load_input_text(text, input_file)
    encoding = LLMEncodingStrategy.parse(strategy)

    print_info(f"Type: [bold]{cls.__name__}[/bold]")
    print_info(f"Input: [bold]{len(input_text)}[/bold] characters")

    session = create_session(model, backend, device)
    options = _options(temperature, max_tokens)

    console.print()
    try:
        with create_progress_spinner() as progress:
            progress.add_task(description="Decoding...", total=None)
            if confidence:
                result = asyncio.run(cls.decode_with_confidence(input_text, session=session, options=options))
                value, score = result.value, result.confidence
            else:
                value = asyncio.run(cls.decode(input_text, session=session, options=options))
                score = None
    except Exception as e:
        print_error(f"Decoding failed: {e}")
        raise SystemExit(1)

    print_separator()
    print_success(f"Decoded {cls.__name__}")

    if isinstance(value, LLMEncodable):
        print_encoded(value.llm_encoded(encoding), encoding.kind, title=cls.__name__)
    else:
        console.print(repr(value))

    if score is not None:
        print_confidence(score)

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(type_adapter(cls).dump_json(value, indent=2))
        print_success(f"Output saved to: {output_path}")


def stream_command(
    type_path: str,
    text: Optional[str],
    input_file: Optional[Path],
    model: Optional[str],
    backend: Optional[str],
    device: Optional[str],
    elements: bool,
    strategy: str,
    temperature: Optional[float],
    max_tokens: Optional[int],
) -> None:
    """
    Execute the stream command.

    With ``elements`` every instance in the text is printed as it is pulled
    from the element stream; otherwise a live table shows fields filling in.
    """
    print_header("llm-codable - Stream")

    cls = load_type(type_path)
    _require(cls, LLMDecodable, "decoded")
    input_text = load_input_text(text, input_file)
    encoding = LLMEncodingStrategy.parse(strategy)

    session = create_session(model, backend, device)
    options = _options(temperature, max_tokens)

    console.print()
    try:
        if elements:
            count = asyncio.run(_print_elements(cls, input_text, session, options, encoding))
            print_separator()
            print_success(f"Decoded {count} {cls.__name__} element(s)")
        else:
            updates = asyncio.run(_live_snapshots(cls, input_text, session, options))
            print_separator()
            print_success(f"Stream finished after {updates} update(s)")
    except Exception as e:
        print_error(f"Streaming failed: {e}")
        raise SystemExit(1)


async def _print_elements(cls, input_text, session, options, encoding) -> int:
    count = 0
    async for element in cls.decode_elements(input_text, session=session, options=options):
        count += 1
        if isinstance(element, LLMEncodable):
            print_element(count, element.llm_encoded(encoding), encoding.kind)
        else:
            console.print(f"#{count} {element!r}")
    return count


async def _live_snapshots(cls, input_text, session, options) -> int:
    from rich.live import Live

    field_names = partial_field_names(cls)
    updates = 0

    with Live(snapshot_table(dict.fromkeys(field_names), cls.__name__, 0), console=console) as live:
        async for snapshot in cls.decode_stream(input_text, session=session, options=options):
            updates += 1
            content = snapshot.content
            current = {name: getattr(content, name, None) for name in field_names}
            live.update(snapshot_table(current, cls.__name__, updates))

    return updates


def encode_command(type_path: str, json_path: Path, strategy: str) -> None:
    """
    Execute the encode command: validate a JSON file into the type and
    print it with the chosen strategy.
    """
    cls = load_type(type_path)
    _require(cls, LLMEncodable, "encoded")
    encoding = LLMEncodingStrategy.parse(strategy)

    try:
        value = type_adapter(cls).validate_json(json_path.read_bytes())
    except ValueError as e:
        print_error(f"{json_path} does not match {cls.__name__}: {e}")
        raise SystemExit(1)

    # Plain output so the result can be piped
    console.print(value.llm_encoded(encoding), markup=False, highlight=False)


def info_command() -> None:
    """Execute the info command."""
    print_header("llm-codable - Info")

    settings = get_settings()
    backends = SessionFactory.list_available_backends()
    if not backends:
        print_warning("No backend installed. Install 'llm-codable[llamacpp]' or 'llm-codable[transformers]'")

    shown = settings.model_dump(include={
        'model', 'backend', 'device', 'temperature', 'max_tokens', 'top_p', 'n_ctx', 'n_gpu_layers', 'log_level',
    })
    print_settings(shown, backends, get_device_info())
