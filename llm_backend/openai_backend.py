"""OpenAI-compatible backend, used for OpenAI itself and for LM Studio."""

import os
from typing import Any

from .base import LLMBackend

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class OpenAIBackend(LLMBackend):
    """Chat Completions backend.

    The key comes from ``api_key`` or OPENAI_API_KEY; LM Studio accepts any
    key and is reached through ``base_url``.
    """

    MODEL_ALIASES = {
        "haiku": DEFAULT_OPENAI_MODEL,
        "sonnet": "gpt-4o",
        "opus": "gpt-4o",
    }

    def __init__(
        self,
        model: str = DEFAULT_OPENAI_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int = 120,
        **kwargs: Any,
    ) -> None:
        try:
            from openai import OpenAI
        except ImportError:
            raise ImportError(
                "The openai and lmstudio backends need the openai package: "
                "pip install 'persona-kit[openai]'"
            )

        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("No OpenAI API key: set OPENAI_API_KEY or pass api_key")

        self.model = model
        self.timeout = timeout
        self._client = OpenAI(
            api_key=api_key,
            timeout=timeout,
            **({"base_url": base_url} if base_url else {}),
        )

    def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
        **kwargs: Any,
    ) -> str:
        """Run one chat completion.

        json_mode maps to ``response_format={"type": "json_object"}``;
        ``top_p`` and ``stop`` are passed through.

        Raises:
            ConnectionError: API not reachable.
            TimeoutError: No answer within ``timeout`` seconds.
            RuntimeError: API error or an empty reply.
        """
        from openai import APIConnectionError, APIError, APITimeoutError

        request: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            request["max_tokens"] = max_tokens
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        request.update({k: v for k, v in kwargs.items() if k in ("top_p", "stop")})

        # APITimeoutError subclasses APIConnectionError, so it is caught first
        try:
            response = self._client.chat.completions.create(**request)
        except APITimeoutError as e:
            raise TimeoutError(f"OpenAI did not answer within {self.timeout}s: {e}") from e
        except APIConnectionError as e:
            raise ConnectionError(f"Could not reach the OpenAI API: {e}") from e
        except APIError as e:
            raise RuntimeError(f"OpenAI API error: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise RuntimeError("OpenAI reply contained no content")
        return content

    def list_models(self) -> list[str]:
        from openai import APIError

        try:
            return sorted(m.id for m in self._client.models.list().data)
        except APIError as e:
            raise ConnectionError(f"Could not list OpenAI models: {e}") from e

    def is_available(self) -> bool:
        from openai import APIError

        try:
            self._client.models.list()
        except APIError:
            return False
        return True

    def __repr__(self) -> str:
        return f"OpenAIBackend(model={self.model!r})"
