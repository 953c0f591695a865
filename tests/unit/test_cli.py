"""
Unit tests for the command-line interface.

Model calls are served by a scripted session patched into the session factory.
"""

import json
import sys

import pytest
from typer.testing import CliRunner

from llm_codable import __version__
from llm_codable.cli import app
from llm_codable.sessions import SessionFactory

runner = CliRunner()

MODELS_SOURCE = '''
from pydantic import BaseModel, Field

from llm_codable import LLMCodable


class Person(LLMCodable, BaseModel):
    name: str = Field(description="The person's name")
    age: int = Field(description="Age in years", ge=0, le=150)


class Plain(BaseModel):
    name: str
'''


@pytest.fixture
def models_dir(tmp_path, monkeypatch):
    """Working directory holding an importable cli_models module."""
    (tmp_path / "cli_models.py").write_text(MODELS_SOURCE, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "path", list(sys.path))
    monkeypatch.delitem(sys.modules, "cli_models", raising=False)
    return tmp_path


@pytest.fixture
def scripted_factory(monkeypatch, make_session):
    """Patch SessionFactory.create to hand out one scripted session."""
    def install(responses=None, chunks=None):
        session = make_session(responses, chunks)
        monkeypatch.setattr(SessionFactory, "create", staticmethod(lambda *args, **kwargs: session))
        return session
    return install


class TestGlobalOptions:
    """Test app-level options."""

    def test_version(self):
        """Test --version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"llm-codable version {__version__}" in result.output

    def test_no_command_shows_help(self):
        """Test bare invocation."""
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert "decode" in result.output
        assert "encode" in result.output


class TestEncodeCommand:
    """Test the encode command."""

    def test_markdown(self, models_dir):
        """Test the default encoding."""
        (models_dir / "taro.json").write_text('{"name": "Taro", "age": 35}', encoding="utf-8")

        result = runner.invoke(app, ["encode", "--type", "cli_models:Person", "--json", "taro.json"])

        assert result.exit_code == 0, result.output
        assert "Person:\n- name: Taro\n- age: 35" in result.output

    def test_json(self, models_dir):
        """Test --format json."""
        (models_dir / "taro.json").write_text('{"name": "Taro", "age": 35}', encoding="utf-8")

        result = runner.invoke(
            app, ["encode", "--type", "cli_models:Person", "--json", "taro.json", "--format", "json"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"age": 35, "name": "Taro"}

    def test_natural_language(self, models_dir):
        """Test --format natural-language."""
        (models_dir / "taro.json").write_text('{"name": "Taro", "age": 35}', encoding="utf-8")

        result = runner.invoke(
            app, ["encode", "-T", "cli_models:Person", "-j", "taro.json", "-f", "natural-language"]
        )

        assert result.exit_code == 0, result.output
        assert "Person where name is Taro, age is 35" in result.output

    def test_record_does_not_match(self, models_dir):
        """Test invalid records."""
        (models_dir / "bad.json").write_text('{"name": "Taro", "age": -1}', encoding="utf-8")

        result = runner.invoke(app, ["encode", "--type", "cli_models:Person", "--json", "bad.json"])

        assert result.exit_code == 1
        assert "does not match Person" in result.output

    def test_type_not_encodable(self, models_dir):
        """Test types without LLMEncodable."""
        (models_dir / "plain.json").write_text('{"name": "Taro"}', encoding="utf-8")

        result = runner.invoke(app, ["encode", "--type", "cli_models:Plain", "--json", "plain.json"])

        assert result.exit_code == 1
        assert "not LLMEncodable" in result.output

    def test_bad_type_path(self, models_dir):
        """Test malformed --type."""
        (models_dir / "taro.json").write_text('{"name": "Taro", "age": 35}', encoding="utf-8")

        result = runner.invoke(app, ["encode", "--type", "Person", "--json", "taro.json"])

        assert result.exit_code == 1
        assert "module:ClassName" in result.output


class TestDecodeCommand:
    """Test the decode command."""

    def test_decode(self, models_dir, scripted_factory):
        """Test decoding text into a record."""
        session = scripted_factory([{"name": "Taro", "age": 35}])

        result = runner.invoke(app, [
            "decode", "--type", "cli_models:Person",
            "--text", "Taro is 35", "--model", "tiny.gguf",
        ])

        assert result.exit_code == 0, result.output
        assert "Decoded Person" in result.output
        assert "name: Taro" in result.output
        assert session.calls[0]['prompt'].endswith("Taro is 35")

    def test_decode_options(self, models_dir, scripted_factory):
        """Test --temperature and --max-tokens."""
        session = scripted_factory([{"name": "Taro", "age": 35}])

        result = runner.invoke(app, [
            "decode", "--type", "cli_models:Person", "--text", "Taro is 35",
            "--model", "tiny.gguf", "--temperature", "0.1", "--max-tokens", "64",
        ])

        assert result.exit_code == 0, result.output
        options = session.calls[0]['options']
        assert options.temperature == 0.1
        assert options.maximum_response_tokens == 64

    def test_decode_with_confidence_and_output(self, models_dir, scripted_factory):
        """Test --confidence and --output."""
        scripted_factory([{"name": "Taro", "age": 35}, {"confidence": 0.9}])
        (models_dir / "input.txt").write_text("Taro is 35", encoding="utf-8")

        result = runner.invoke(app, [
            "decode", "--type", "cli_models:Person", "--input-file", "input.txt",
            "--model", "tiny.gguf", "--confidence", "--output", "out/person.json",
        ])

        assert result.exit_code == 0, result.output
        assert "Confidence" in result.output
        assert "0.90" in result.output
        saved = json.loads((models_dir / "out" / "person.json").read_text(encoding="utf-8"))
        assert saved == {"name": "Taro", "age": 35}

    def test_requires_input(self, models_dir, scripted_factory):
        """Test that --text or --input-file is required."""
        scripted_factory([])

        result = runner.invoke(app, ["decode", "--type", "cli_models:Person", "--model", "tiny.gguf"])

        assert result.exit_code == 1
        assert "--text or --input-file" in result.output

    def test_requires_model(self, models_dir):
        """Test that a model must be given or configured."""
        result = runner.invoke(app, ["decode", "--type", "cli_models:Person", "--text", "Taro"])

        assert result.exit_code == 1
        assert "No model given" in result.output

    def test_engine_failure(self, models_dir, scripted_factory):
        """Test that engine errors are reported."""
        from llm_codable import GenerationError

        scripted_factory([GenerationError("engine crashed")])

        result = runner.invoke(app, [
            "decode", "--type", "cli_models:Person", "--text", "Taro", "--model", "tiny.gguf",
        ])

        assert result.exit_code == 1
        assert "engine crashed" in result.output


class TestStreamCommand:
    """Test the stream command."""

    def test_elements(self, models_dir, scripted_factory):
        """Test --elements prints every decoded record."""
        scripted_factory([[{"name": "Taro", "age": 35}, {"name": "Hanako", "age": 29}]])

        result = runner.invoke(app, [
            "stream", "--type", "cli_models:Person", "--text", "Taro is 35, Hanako is 29",
            "--model", "tiny.gguf", "--elements",
        ])

        assert result.exit_code == 0, result.output
        assert "name: Hanako" in result.output
        assert "Decoded 2 Person element(s)" in result.output

    def test_snapshots(self, models_dir, scripted_factory):
        """Test live partial snapshots."""
        scripted_factory(chunks=['{"name": "Ta', 'ro", "age": 35}'])

        result = runner.invoke(app, [
            "stream", "--type", "cli_models:Person", "--text", "Taro is 35", "--model", "tiny.gguf",
        ])

        assert result.exit_code == 0, result.output
        assert "Stream finished after 2 update(s)" in result.output


class TestInfoCommand:
    """Test the info command."""

    def test_info(self, monkeypatch):
        """Test configuration output."""
        monkeypatch.setenv("LLM_CODABLE_MODEL", "tiny.gguf")

        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0, result.output
        assert "Configuration" in result.output
        assert "tiny.gguf" in result.output
