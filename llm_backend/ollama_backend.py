"""Ollama backend: personas run against a local Ollama server."""

from typing import Any

import requests

from .base import LLMBackend

DEFAULT_OLLAMA_MODEL = "qwen2.5-coder:7b"


class OllamaBackend(LLMBackend):
    """Talks to Ollama's /api/chat endpoint (https://ollama.ai/).

    Ollama has no notion of "sonnet" or "opus", so persona model aliases
    resolve to None and the configured model is used.
    """

    def __init__(
        self,
        model: str = DEFAULT_OLLAMA_MODEL,
        base_url: str = "http://localhost:11434",
        timeout: int = 600,
    ) -> None:
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/api/{endpoint}"

    def chat(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
        **kwargs: Any,
    ) -> str:
        """Run one non-streaming chat turn.

        json_mode maps to Ollama's ``format: json``; extra sampling options
        can be passed as ``options={...}``.

        Raises:
            ConnectionError: Server not reachable.
            TimeoutError: No answer within ``timeout`` seconds.
            RuntimeError: HTTP error or a reply without message content.
        """
        options: dict[str, Any] = {"temperature": temperature}
        if max_tokens is not None:
            options["num_predict"] = max_tokens
        options.update(kwargs.get("options", {}))

        payload: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "stream": False,
            "options": options,
        }
        if json_mode:
            payload["format"] = "json"

        try:
            response = requests.post(self._url("chat"), json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.ConnectionError as e:
            raise ConnectionError(
                f"Failed to connect to Ollama at {self.base_url} (is `ollama serve` running?)"
            ) from e
        except requests.exceptions.Timeout as e:
            raise TimeoutError(f"Ollama did not answer within {self.timeout}s") from e
        except requests.exceptions.HTTPError as e:
            raise RuntimeError(f"Ollama returned an error: {e}") from e

        data = response.json()
        content = (data.get("message") or {}).get("content")
        if content is None:
            raise RuntimeError(f"Unexpected Ollama response format: {data}")
        return content

    def list_models(self) -> list[str]:
        """Names of the models pulled on the server."""
        try:
            response = requests.get(self._url("tags"), timeout=10)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise ConnectionError(f"Could not list Ollama models: {e}") from e
        return sorted(m["name"] for m in response.json().get("models", []))

    def is_available(self) -> bool:
        try:
            return requests.get(self._url("tags"), timeout=5).status_code == 200
        except requests.exceptions.RequestException:
            return False

    def __repr__(self) -> str:
        return f"OllamaBackend(model={self.model!r}, base_url={self.base_url!r})"
