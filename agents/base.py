"""Base agent class for hosted personas."""

from __future__ import annotations

import copy
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LLMProtocol(Protocol):
    """Protocol for LLM backends.

    Any LLM client implementing this protocol can be used with agents.
    """

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        """Send messages and get the assistant response content."""
        ...


@dataclass
class AgentInput:
    """Standard input format for agents.

    Attributes:
        context: Request data (request text, file contents, options)
        history: Optional conversation history for multi-turn runs
    """

    context: dict[str, Any]
    history: list[dict[str, str]] | None = None

    def safe_context(self) -> dict[str, Any]:
        """Return a shallow copy of context to prevent mutation."""
        return copy.copy(self.context)


@dataclass
class AgentOutput:
    """Standard output format for agents.

    Attributes:
        success: Whether the agent completed successfully
        data: Output data dictionary
        errors: List of error messages if any
        metadata: Execution metadata (timing, model, etc.)
        agent_name: Name of the agent that produced this output
    """

    success: bool
    data: dict[str, Any]
    errors: list[str] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    agent_name: str | None = None

    def __repr__(self) -> str:
        status = "OK" if self.success else "FAILED"
        errors_str = f", errors={len(self.errors or [])}" if self.errors else ""
        return f"AgentOutput({status}, data_keys={list(self.data.keys())}{errors_str})"


class BaseAgent(ABC):
    """Abstract base class for agents.

    Each agent has:
    - A name and description for identification
    - A system prompt (defines role and behavior)
    - Structured input and output

    Example:
        class EchoAgent(BaseAgent):
            def default_system_prompt(self) -> str:
                return "Repeat the user's message."

            def run(self, input_data: AgentInput) -> AgentOutput:
                response = self._chat(input_data.context["request"])
                return AgentOutput(success=True, data={"response": response})
    """

    def __init__(
        self,
        llm: LLMProtocol,
        name: str | None = None,
        system_prompt: str | None = None,
        description: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize agent.

        Args:
            llm: LLM backend for inference (must implement LLMProtocol)
            name: Agent identifier (defaults to class name)
            system_prompt: Override default system prompt
            description: Human-readable description of agent's purpose
            logger: Optional logger instance
        """
        self.llm = llm
        self.name = name or self.__class__.__name__
        self.description = description or ""
        self.system_prompt = system_prompt or self.default_system_prompt()
        self.logger = logger or logging.getLogger(f"agent.{self.name}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

    @abstractmethod
    def default_system_prompt(self) -> str:
        """Return the default system prompt for this agent."""
        ...

    @abstractmethod
    def run(self, input_data: AgentInput) -> AgentOutput:
        """Execute the agent's task."""
        ...

    def _build_messages(
        self,
        user_content: str,
        history: list[dict[str, str]] | None = None,
    ) -> list[dict[str, str]]:
        """Build message list: system prompt, history, then the user message."""
        messages: list[dict[str, str]] = [
            {"role": "system", "content": self.system_prompt}
        ]
        if history:
            messages.extend(history)
        messages.append({"role": "user", "content": user_content})
        return messages

    def _chat(
        self,
        user_content: str,
        history: list[dict[str, str]] | None = None,
        **kwargs: Any,
    ) -> str:
        """Send a chat message with the system prompt.

        Returns:
            Assistant response content.
        """
        messages = self._build_messages(user_content, history)
        self.logger.debug("Sending %d messages to LLM", len(messages))
        return self.llm.chat(messages, **kwargs)

    def _create_output(
        self,
        success: bool,
        data: dict[str, Any],
        errors: list[str] | None = None,
        start_time: float | None = None,
        **metadata: Any,
    ) -> AgentOutput:
        """Helper to create AgentOutput with metadata.

        Args:
            success: Whether agent succeeded
            data: Output data
            errors: Error messages if any
            start_time: Start timestamp for duration calculation
            **metadata: Extra metadata entries (None values are dropped)
        """
        meta = {k: v for k, v in metadata.items() if v is not None}
        if start_time is not None:
            meta["duration_sec"] = round(time.time() - start_time, 3)

        return AgentOutput(
            success=success,
            data=data,
            errors=errors,
            metadata=meta,
            agent_name=self.name,
        )

    def _log_run_start(self, input_data: AgentInput) -> float:
        """Log run start and return start time."""
        self.logger.info(
            "Starting %s (context: %s)",
            self.name,
            sorted(input_data.context.keys()),
        )
        return time.time()

    def _log_run_end(self, output: AgentOutput, start_time: float) -> None:
        """Log run completion."""
        duration = time.time() - start_time
        if output.success:
            self.logger.info("Completed %s in %.2fs", self.name, duration)
        else:
            self.logger.warning(
                "Failed %s in %.2fs: %s",
                self.name,
                duration,
                output.errors,
            )
