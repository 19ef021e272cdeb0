"""Application configuration loaded from config.yaml and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from resume_optimizer.errors import ConfigurationError

API_KEY_ENV = "OPENROUTER_API_KEY"


@dataclass(frozen=True)
class LLMConfig:
    model: str = "google/gemini-2.5-flash"
    api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    referer: str = "https://primoboost.ai"
    app_title: str = "PrimoBoost AI"
    timeout: int = 60

    def __post_init__(self) -> None:
        if self.timeout < 1:
            raise ValueError(f"llm.timeout must be >= 1, got {self.timeout}")
        if not self.model:
            raise ValueError("llm.model must not be empty")


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    initial_delay: float = 1.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if not 1 <= self.max_attempts <= 10:
            raise ValueError(f"retry.max_attempts must be between 1 and 10, got {self.max_attempts}")
        if self.initial_delay < 0:
            raise ValueError(f"retry.initial_delay must be >= 0, got {self.initial_delay}")
        if self.multiplier < 1:
            raise ValueError(f"retry.multiplier must be >= 1, got {self.multiplier}")


@dataclass(frozen=True)
class PipelineConfig:
    max_input_chars: int = 50_000

    def __post_init__(self) -> None:
        if self.max_input_chars < 1:
            raise ValueError(f"pipeline.max_input_chars must be >= 1, got {self.max_input_chars}")


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults.

    Raises:
        ConfigurationError: on unknown keys or out-of-range values.
    """
    if path is None:
        # Look for config.yaml relative to the project root
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    try:
        return AppConfig(
            llm=LLMConfig(**raw.get("llm", {})),
            retry=RetryConfig(**raw.get("retry", {})),
            pipeline=PipelineConfig(**raw.get("pipeline", {})),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e


def load_api_key(env: dict[str, str] | None = None) -> str:
    """Read the chat-completion API key from the environment.

    Raises:
        ConfigurationError: if the key is missing or blank.
    """
    source = os.environ if env is None else env
    key = (source.get(API_KEY_ENV) or "").strip()
    if not key:
        raise ConfigurationError(
            f"API key is not configured. Set {API_KEY_ENV} in the environment or a .env file."
        )
    return key
