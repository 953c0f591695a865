"""
Configuration management using Pydantic Settings.

Settings are read from environment variables prefixed with ``LLM_CODABLE_``
(and from a ``.env`` file in the working directory, when present). They supply
the defaults used when a caller decodes without passing an explicit session
or generation options.

Example:
    ```bash
    export LLM_CODABLE_MODEL=models/qwen2.5-1.5b-instruct-q4_k_m.gguf
    export LLM_CODABLE_TEMPERATURE=0.2
    ```

    ```python
    from llm_codable.config import get_settings

    settings = get_settings()
    print(settings.model, settings.backend)
    ```
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_CODABLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Engine
    model: Optional[str] = Field(
        default=None,
        description="Model identifier (HuggingFace name) or path (GGUF file)"
    )
    backend: Optional[str] = Field(
        default=None,
        description="Engine backend: 'llamacpp' or 'transformers' (None = auto-detect)"
    )
    device: Optional[str] = Field(default=None, description="Device: cpu, cuda, mps or None for auto")
    instructions: Optional[str] = Field(default=None, description="System instructions for new sessions")

    # Generation defaults
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=512, ge=1, description="Maximum tokens per response")
    top_p: float = Field(default=1.0, gt=0.0, le=1.0, description="Nucleus sampling parameter")

    # llama.cpp
    n_ctx: int = Field(default=4096, ge=256, description="Context window size")
    n_gpu_layers: int = Field(default=-1, description="Layers offloaded to GPU (-1 = all)")

    # Logging
    log_level: str = Field(default="WARNING", description="Logging level")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("backend")
    @classmethod
    def normalize_backend(cls, v):
        """Accept 'llama.cpp' / 'LlamaCpp' spellings"""
        if v is None:
            return v
        v = v.strip().lower().replace(".", "").replace("-", "")
        return v or None

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment"""
    get_settings.cache_clear()
