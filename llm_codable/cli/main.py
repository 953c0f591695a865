"""
Main CLI entry point using Typer.

Commands: decode, stream, encode, info.
"""

from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from llm_codable.config import get_settings
from llm_codable.utils import setup_logging

from .commands import decode_command, encode_command, info_command, stream_command
from .display import print_error

app = typer.Typer(
    name="llm-codable",
    help="llm-codable - Decode structured types from text with a language model",
    add_completion=False,
    rich_markup_mode="rich"
)

TypeOption = Annotated[
    str,
    typer.Option("--type", "-T", help="Target type as 'module:ClassName'")
]
TextOption = Annotated[
    Optional[str],
    typer.Option("--text", "-t", help="Input text")
]
InputFileOption = Annotated[
    Optional[Path],
    typer.Option("--input-file", "-i", help="File with input text", exists=True, file_okay=True, dir_okay=False)
]
ModelOption = Annotated[
    Optional[str],
    typer.Option("--model", "-m", help="Model ID (HuggingFace) or path (GGUF); defaults to LLM_CODABLE_MODEL")
]
BackendOption = Annotated[
    Optional[str],
    typer.Option("--backend", "-b", help="Backend: llamacpp or transformers (auto-detected if omitted)")
]
DeviceOption = Annotated[
    Optional[str],
    typer.Option("--device", "-d", help="Device: cpu, cuda, mps, or None for auto-detect")
]
FormatOption = Annotated[
    str,
    typer.Option("--format", "-f", help="Encoding: markdown, json or natural_language")
]
TemperatureOption = Annotated[
    Optional[float],
    typer.Option("--temperature", help="Sampling temperature (0.0-2.0)")
]
MaxTokensOption = Annotated[
    Optional[int],
    typer.Option("--max-tokens", help="Maximum tokens to generate")
]


@app.command("decode")
def decode(
    type_path: TypeOption,
    text: TextOption = None,
    input_file: InputFileOption = None,
    model: ModelOption = None,
    backend: BackendOption = None,
    device: DeviceOption = None,
    strategy: FormatOption = "markdown",
    confidence: Annotated[
        bool,
        typer.Option("--confidence", "-c", help="Also ask the model for a confidence score")
    ] = False,
    temperature: TemperatureOption = None,
    max_tokens: MaxTokensOption = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Path to save the decoded record as JSON")
    ] = None,
) -> None:
    """
    Decode one record from free-form text.

    Example:
        llm-codable decode \\
            --type models:Person \\
            --text "Taro Tanaka is a 35 year old engineer" \\
            --model models/qwen2.5-1.5b-instruct-q4_k_m.gguf \\
            --confidence
    """
    try:
        decode_command(
            type_path=type_path,
            text=text,
            input_file=input_file,
            model=model,
            backend=backend,
            device=device,
            strategy=strategy,
            confidence=confidence,
            temperature=temperature,
            max_tokens=max_tokens,
            output_path=output,
        )
    except Exception as e:
        print_error(f"Command failed: {e}")
        raise typer.Exit(code=1)


@app.command("stream")
def stream(
    type_path: TypeOption,
    text: TextOption = None,
    input_file: InputFileOption = None,
    model: ModelOption = None,
    backend: BackendOption = None,
    device: DeviceOption = None,
    elements: Annotated[
        bool,
        typer.Option("--elements", "-e", help="Decode every instance in the text, one at a time")
    ] = False,
    strategy: FormatOption = "markdown",
    temperature: TemperatureOption = None,
    max_tokens: MaxTokensOption = None,
) -> None:
    """
    Watch a record being generated field by field, or stream list elements.

    Example:
        llm-codable stream --type models:MovieReview --input-file review.txt
        llm-codable stream --type models:Recipe --input-file recipes.txt --elements
    """
    try:
        stream_command(
            type_path=type_path,
            text=text,
            input_file=input_file,
            model=model,
            backend=backend,
            device=device,
            elements=elements,
            strategy=strategy,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except Exception as e:
        print_error(f"Command failed: {e}")
        raise typer.Exit(code=1)


@app.command("encode")
def encode(
    type_path: TypeOption,
    json_file: Annotated[
        Path,
        typer.Option("--json", "-j", help="Path to a JSON record", exists=True, file_okay=True, dir_okay=False)
    ],
    strategy: FormatOption = "markdown",
) -> None:
    """
    Render a JSON record in an LLM-friendly format.

    Example:
        llm-codable encode --type models:Person --json person.json --format natural_language
    """
    try:
        encode_command(type_path=type_path, json_path=json_file, strategy=strategy)
    except Exception as e:
        print_error(f"Command failed: {e}")
        raise typer.Exit(code=1)


@app.command("info")
def info() -> None:
    """Show configuration and available backends."""
    info_command()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit")
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log debug output")
    ] = False,
) -> None:
    """
    llm-codable - Codable-like protocols for language models.
    """
    if version:
        from llm_codable import __version__
        typer.echo(f"llm-codable version {__version__}")
        raise typer.Exit()

    settings = get_settings()
    setup_logging(level="DEBUG" if verbose else settings.log_level, log_file=settings.log_file)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def cli() -> None:
    """CLI entry point for the console script."""
    app()


if __name__ == "__main__":
    cli()
