"""Configuration management for persona-kit.

Loads configuration from:
1. persona-kit.toml (defaults)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

CONFIG_FILENAME = "persona-kit.toml"


@dataclass
class LLMConfig:
    """LLM backend configuration."""

    backend: str = "auto"  # "auto", "ollama", "openai", "anthropic", "lmstudio"
    model: str | None = None  # None = backend default
    base_url: str = "http://localhost:11434"
    timeout: int = 600
    temperature: float = 0.2

    def backend_kwargs(self, kind: str) -> dict[str, Any]:
        """Constructor arguments for the selected backend kind."""
        kwargs: dict[str, Any] = {"timeout": self.timeout}
        if self.model:
            kwargs["model"] = self.model
        if kind == "ollama":
            kwargs["base_url"] = self.base_url
        return kwargs


@dataclass
class PersonasConfig:
    """Where personas are discovered and which are active."""

    search_dirs: list[str] = field(default_factory=lambda: ["~/.persona-kit/personas"])
    enabled: list[str] = field(default_factory=list)  # empty = all
    disabled: list[str] = field(default_factory=list)
    include_builtin: bool = True

    def search_paths(self) -> list[Path]:
        return [Path(d).expanduser() for d in self.search_dirs]


@dataclass
class RoutingConfig:
    """Request routing thresholds."""

    min_score: float = 0.25
    max_candidates: int = 3


@dataclass
class RunConfig:
    """Persona run configuration."""

    file_patterns: list[str] = field(default_factory=list)  # empty = all text files
    max_file_bytes: int = 50 * 1024
    log_level: str = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    personas: PersonasConfig = field(default_factory=PersonasConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    run: RunConfig = field(default_factory=RunConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            llm=LLMConfig(**data.get("llm", {})),
            personas=PersonasConfig(**data.get("personas", {})),
            routing=RoutingConfig(**data.get("routing", {})),
            run=RunConfig(**data.get("run", {})),
        )


def find_config_file() -> Path | None:
    """Find persona-kit.toml in current or parent directories.

    Returns:
        Path to the config file or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / CONFIG_FILENAME
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to persona-kit.toml

    Returns:
        Config object with merged settings.
    """
    # Start with defaults
    config_data: dict[str, Any] = {}

    # Load from file if available
    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    persona_dirs = os.getenv("PERSONA_DIRS")

    # Apply environment variable overrides
    env_overrides = {
        "llm": {
            "backend": os.getenv("PERSONA_LLM_BACKEND"),
            "model": os.getenv("PERSONA_LLM_MODEL"),
            "base_url": os.getenv("OLLAMA_BASE_URL"),
            "timeout": _int_or_none(os.getenv("PERSONA_LLM_TIMEOUT")),
        },
        "personas": {
            "search_dirs": persona_dirs.split(os.pathsep) if persona_dirs else None,
        },
        "routing": {
            "min_score": _float_or_none(os.getenv("PERSONA_MIN_SCORE")),
        },
        "run": {
            "log_level": os.getenv("LOG_LEVEL"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _float_or_none(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config()
    return _config
