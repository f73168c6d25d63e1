"""Abstract base class for LLM backends."""

from abc import ABC, abstractmethod
from typing import Any


class LLMBackend(ABC):
    """Abstract interface for LLM providers.

    All LLM backends must implement this interface so a persona runs the
    same way whichever provider hosts it.
    """

    # Persona "model" aliases this backend understands, e.g. {"sonnet": "..."}
    MODEL_ALIASES: dict[str, str] = {}

    model: str

    @abstractmethod
    def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
        **kwargs: Any,
    ) -> str:
        """Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
                     Roles: "system", "user", "assistant"
            model: Optional model override (uses default if not specified)
            temperature: Sampling temperature (0.0-2.0)
            max_tokens: Maximum tokens in response
            json_mode: Ask the provider to constrain output to JSON when it can
            **kwargs: Provider-specific parameters

        Returns:
            The assistant's response content as a string.

        Raises:
            ConnectionError: If unable to connect to the backend
            TimeoutError: If the request times out
            RuntimeError: If the backend returns an error
        """
        ...

    @abstractmethod
    def list_models(self) -> list[str]:
        """List available models."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is available and responding."""
        ...

    def resolve_model(self, alias: str | None) -> str | None:
        """Map a persona model alias to a concrete model name.

        "inherit", unknown aliases and None resolve to None, meaning the
        backend default is used.
        """
        if not alias or alias == "inherit":
            return None
        return self.MODEL_ALIASES.get(alias)
