"""Shared fixtures for persona-kit tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from personas.document import PersonaDocument
from personas.loader import BUILTIN_DIR

RELEASE_NOTES_PERSONA = """---
name: release-notes-writer
description: |
  Use this agent to draft release notes and changelog entries from merged work.

  <example>
  Context: A release is being prepared.
  user: "Draft the changelog for version 2.0"
  assistant: "I'll use the release-notes-writer agent to draft the changelog."
  <commentary>
  Changelog drafting is this agent's job.
  </commentary>
  </example>
keywords: [release notes, changelog]
---
You write release notes.

## Methodology

1. Collect merged changes.
2. Group them by type.
3. Write the notes.
"""


class FakeLLM:
    """Scripted LLM: returns queued replies and records every call."""

    def __init__(self, *replies: Any):
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    def chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        self.calls.append({"messages": messages, "kwargs": kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture
def builtin_persona() -> PersonaDocument:
    return PersonaDocument.from_file(BUILTIN_DIR / "code-quality-enforcer.md")


@pytest.fixture
def release_notes_persona() -> PersonaDocument:
    return PersonaDocument.from_markdown(RELEASE_NOTES_PERSONA)


@pytest.fixture
def write_persona(tmp_path: Path):
    """Write persona text to a file under tmp_path/personas and return its path."""
    personas_dir = tmp_path / "personas"
    personas_dir.mkdir(exist_ok=True)

    def _write(filename: str, text: str) -> Path:
        path = personas_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def report_payload() -> dict[str, Any]:
    return {
        "summary": "Formatted app.py; one naming issue left.",
        "findings": [
            {
                "file_path": "app.py",
                "line": 1,
                "category": "unused_import",
                "severity": "warning",
                "message": "'os' is imported but unused",
                "suggested_fix": "Remove the import",
                "fixed": True,
            },
            {
                "file_path": "app.py",
                "line": 4,
                "category": "naming",
                "severity": "warning",
                "message": "Function 'DoThing' should be snake_case",
                "suggested_fix": "Rename to 'do_thing'",
                "fixed": False,
            },
        ],
        "review_flags": [],
        "fixed_files": [
            {"file_path": "app.py", "content": "def DoThing():\n    return 1\n"},
        ],
    }


@pytest.fixture
def release_notes_text() -> str:
    return RELEASE_NOTES_PERSONA


@pytest.fixture
def fake_llm():
    """Factory: fake_llm(reply, ...) -> FakeLLM."""
    return FakeLLM
