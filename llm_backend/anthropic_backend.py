"""Anthropic backend: personas run on Claude models."""

import os
from typing import Any

from .base import LLMBackend

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


class AnthropicBackend(LLMBackend):
    """Messages API backend (https://docs.anthropic.com/en/api/messages).

    The key comes from ``api_key`` or ANTHROPIC_API_KEY. Persona aliases
    map straight onto Claude model names.
    """

    MODEL_ALIASES = {
        "haiku": "claude-3-5-haiku-latest",
        "sonnet": DEFAULT_ANTHROPIC_MODEL,
        "opus": "claude-opus-4-20250514",
    }

    def __init__(
        self,
        model: str = DEFAULT_ANTHROPIC_MODEL,
        api_key: str | None = None,
        timeout: int = 120,
        max_tokens: int = 8192,
        **kwargs: Any,
    ) -> None:
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The anthropic backend needs the anthropic package: "
                "pip install 'persona-kit[anthropic]'"
            )

        api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("No Anthropic API key: set ANTHROPIC_API_KEY or pass api_key")

        self.model = model
        self.timeout = timeout
        self.default_max_tokens = max_tokens
        self._client = Anthropic(api_key=api_key, timeout=timeout)

    @staticmethod
    def split_system(
        messages: list[dict[str, str]],
    ) -> tuple[str | None, list[dict[str, str]]]:
        """Separate system messages from the conversation.

        Anthropic takes the system prompt as its own parameter and requires
        the conversation to start with a user turn.
        """
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        chat_messages = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m["role"] != "system"
        ]
        if chat_messages and chat_messages[0]["role"] != "user":
            chat_messages.insert(0, {"role": "user", "content": "Please assist me."})
        system = "\n\n".join(system_parts) if system_parts else None
        return system, chat_messages

    def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
        **kwargs: Any,
    ) -> str:
        """Run one Messages API call and join the text blocks of the reply.

        json_mode has no native equivalent here; the persona's output
        contract already asks for JSON. ``top_p``, ``top_k`` and
        ``stop_sequences`` are passed through.

        Raises:
            ConnectionError: API not reachable.
            TimeoutError: No answer within ``timeout`` seconds.
            RuntimeError: API error or a reply without text.
        """
        from anthropic import APIConnectionError, APIError, APITimeoutError

        system, chat_messages = self.split_system(messages)
        request: dict[str, Any] = {
            "model": model or self.model,
            "messages": chat_messages,
            "max_tokens": max_tokens or self.default_max_tokens,
            "temperature": temperature,
        }
        if system:
            request["system"] = system
        request.update(
            {k: v for k, v in kwargs.items() if k in ("top_p", "top_k", "stop_sequences")}
        )

        # APITimeoutError subclasses APIConnectionError, so it is caught first
        try:
            response = self._client.messages.create(**request)
        except APITimeoutError as e:
            raise TimeoutError(f"Anthropic did not answer within {self.timeout}s: {e}") from e
        except APIConnectionError as e:
            raise ConnectionError(f"Could not reach the Anthropic API: {e}") from e
        except APIError as e:
            raise RuntimeError(f"Anthropic API error: {e}") from e

        text = [block.text for block in response.content if hasattr(block, "text")]
        if not text:
            raise RuntimeError("Anthropic reply contained no text")
        return "\n".join(text)

    def list_models(self) -> list[str]:
        """Alias targets plus the configured model; no API call is made."""
        return sorted(set(self.MODEL_ALIASES.values()) | {self.model})

    def is_available(self) -> bool:
        from anthropic import APIError

        try:
            self._client.messages.create(
                model=self.model,
                max_tokens=1,
                messages=[{"role": "user", "content": "ping"}],
            )
        except APIError:
            return False
        return True

    def __repr__(self) -> str:
        return f"AnthropicBackend(model={self.model!r})"
