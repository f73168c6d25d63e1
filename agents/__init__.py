"""Agents that host persona documents."""

from .base import AgentInput, AgentOutput, BaseAgent, LLMProtocol
from .persona_agent import (
    CollectedFiles,
    PersonaAgent,
    ReportParseError,
    apply_fixes,
    collect_files,
    held_back_paths,
    parse_report,
)

__all__ = [
    "AgentInput",
    "AgentOutput",
    "BaseAgent",
    "CollectedFiles",
    "LLMProtocol",
    "PersonaAgent",
    "ReportParseError",
    "apply_fixes",
    "collect_files",
    "held_back_paths",
    "parse_report",
]
