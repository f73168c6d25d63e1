"""LLM Backend abstraction layer.

Provides a unified interface for different LLM providers.
Supports auto-detection based on available API keys.

Priority order for "auto" mode:
1. Anthropic (if ANTHROPIC_API_KEY set)
2. OpenAI (if OPENAI_API_KEY set)
3. LM Studio (if running on localhost:1234)
4. Ollama (local fallback)
"""

from __future__ import annotations

import logging
import os
import socket
from typing import TYPE_CHECKING, Any

from .base import LLMBackend
from .ollama_backend import OllamaBackend

if TYPE_CHECKING:
    from personas.config import LLMConfig

logger = logging.getLogger(__name__)

__all__ = [
    "BACKENDS",
    "LLMBackend",
    "OllamaBackend",
    "backend_from_config",
    "detect_backend",
    "get_backend",
]

BACKENDS = ("auto", "ollama", "openai", "anthropic", "lmstudio")

# LM Studio default configuration
LM_STUDIO_HOST = ("localhost", 1234)
LM_STUDIO_DEFAULT_URL = "http://localhost:1234/v1"


def _check_lmstudio_running() -> bool:
    """Check if LM Studio server is listening on its default port."""
    try:
        with socket.create_connection(LM_STUDIO_HOST, timeout=1):
            return True
    except OSError:
        return False


def detect_backend() -> str:
    """Auto-detect the best available backend based on API keys.

    Returns:
        Backend name: "anthropic", "openai", "lmstudio", or "ollama"
    """
    if os.environ.get("ANTHROPIC_API_KEY"):
        logger.info("Auto-detected: Anthropic API key found")
        return "anthropic"

    if os.environ.get("OPENAI_API_KEY"):
        logger.info("Auto-detected: OpenAI API key found")
        return "openai"

    if _check_lmstudio_running():
        logger.info("Auto-detected: LM Studio running on localhost:1234")
        return "lmstudio"

    logger.info("Auto-detected: No API keys found, using Ollama (local)")
    return "ollama"


def get_backend(kind: str, **kwargs: Any) -> LLMBackend:
    """Factory function to get an LLM backend instance.

    Args:
        kind: Backend type ("auto", "ollama", "openai", "anthropic", "lmstudio")
        **kwargs: Backend-specific configuration

    Returns:
        LLMBackend instance

    Raises:
        ValueError: If backend type is unknown
        ImportError: If required package not installed
    """
    if kind == "auto":
        kind = detect_backend()
        logger.info("Auto-selected backend: %s", kind)

    if kind == "ollama":
        return OllamaBackend(**kwargs)

    if kind in ("openai", "lmstudio"):
        # Lazy import: the openai package is only needed for these backends
        from .openai_backend import OpenAIBackend

        if kind == "lmstudio":
            kwargs.setdefault("model", "local-model")
            kwargs.setdefault("base_url", LM_STUDIO_DEFAULT_URL)
            kwargs.setdefault("api_key", "lm-studio")  # LM Studio ignores API key
        return OpenAIBackend(**kwargs)

    if kind == "anthropic":
        from .anthropic_backend import AnthropicBackend

        return AnthropicBackend(**kwargs)

    raise ValueError(f"Unknown LLM backend: {kind}. Available: {', '.join(BACKENDS)}")


def backend_from_config(
    config: LLMConfig,
    kind: str | None = None,
    model: str | None = None,
) -> LLMBackend:
    """Build a backend from configuration, with optional CLI overrides."""
    kind = kind or config.backend
    if kind == "auto":
        kind = detect_backend()

    kwargs = config.backend_kwargs(kind)
    if model:
        kwargs["model"] = model
    return get_backend(kind, **kwargs)
