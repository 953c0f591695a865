"""
Unit tests for settings and logging setup.
"""

import io
import logging

import pytest
from pydantic import ValidationError
from rich.console import Console

from llm_codable.config import Settings, get_settings, reset_settings
from llm_codable.utils import setup_logging


class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self):
        """Test built-in defaults."""
        settings = Settings()

        assert settings.model is None
        assert settings.temperature == 0.7
        assert settings.max_tokens == 512
        assert settings.log_level == "WARNING"

    def test_environment(self, monkeypatch):
        """Test LLM_CODABLE_* variables."""
        monkeypatch.setenv("LLM_CODABLE_MODEL", "models/tiny.gguf")
        monkeypatch.setenv("LLM_CODABLE_TEMPERATURE", "0.2")
        monkeypatch.setenv("LLM_CODABLE_LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.model == "models/tiny.gguf"
        assert settings.temperature == 0.2
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("value,expected", [
        ("llama.cpp", "llamacpp"),
        ("LlamaCpp", "llamacpp"),
        ("llama-cpp", "llamacpp"),
        ("Transformers", "transformers"),
    ])
    def test_backend_spellings(self, value, expected):
        """Test backend name normalization."""
        assert Settings(backend=value).backend == expected

    def test_temperature_range(self):
        """Test invalid temperatures are rejected."""
        with pytest.raises(ValidationError):
            Settings(temperature=3.0)

    def test_cached(self, monkeypatch):
        """Test that settings are read once until reset."""
        first = get_settings()
        monkeypatch.setenv("LLM_CODABLE_MODEL", "other.gguf")

        assert get_settings() is first
        assert get_settings().model is None

        reset_settings()

        assert get_settings().model == "other.gguf"


class TestLogging:
    """Test logging setup."""

    @pytest.fixture(autouse=True)
    def restore_package_logger(self):
        """Leave the package logger as it was found."""
        logger = logging.getLogger("llm_codable")
        handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
        yield
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        for handler in handlers:
            logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = propagate

    def test_level_and_handlers(self, tmp_path):
        """Test Rich console handler plus file handler."""
        log_file = tmp_path / "logs" / "llm_codable.log"

        logger = setup_logging("debug", log_file=log_file, console=Console(file=io.StringIO()))
        logging.getLogger("llm_codable.sessions.base").debug("session created")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        for handler in logger.handlers:
            handler.flush()
        assert "session created" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_replaces_handlers(self):
        """Test handlers do not stack up."""
        setup_logging("INFO")
        logger = setup_logging("WARNING")

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_unknown_level(self):
        """Test invalid level names."""
        with pytest.raises(ValueError, match="NOISY"):
            setup_logging("noisy")
