"""Persona document schema.

A persona document is a Markdown file with a YAML front-matter block:

    ---
    name: code-quality-enforcer
    description: Use this agent when ... <example>...</example>
    model: sonnet
    ---
    You are the Code Quality Enforcer...

The front-matter carries the metadata a host uses to decide when to route a
request to the persona; the body is the persona's system prompt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

NAME_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

_FRONT_MATTER = re.compile(r"\A---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)(.*)\Z", re.DOTALL)
_EXAMPLE_BLOCK = re.compile(r"<example>(.*?)</example>", re.DOTALL | re.IGNORECASE)
_COMMENTARY = re.compile(r"<commentary>(.*?)</commentary>", re.DOTALL | re.IGNORECASE)
_TURN_MARKER = re.compile(r"^\s*(user|assistant)\s*:\s*(.*)$", re.IGNORECASE)
_CONTEXT_MARKER = re.compile(r"^\s*context\s*:\s*(.*)$", re.IGNORECASE)
_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_NUMBERED_ITEM = re.compile(r"^\s*(\d+)[.)]\s+(.*)$")

DEFAULT_PRIORITY = 50
DEFAULT_VERSION = "1.0.0"


class PersonaError(Exception):
    """Raised when a persona document cannot be parsed."""

    pass


@dataclass
class DialogueTurn:
    """One utterance in an example dialogue."""

    role: str  # "user" or "assistant"
    content: str


@dataclass
class ExampleDialogue:
    """An example interaction showing when the persona should be used.

    Attributes:
        context: Situation the example takes place in ("Context:" line).
        turns: Ordered user/assistant turns.
        commentary: Why the persona was chosen, if given.
        raw: Original text of the example block.
    """

    context: str = ""
    turns: list[DialogueTurn] = field(default_factory=list)
    commentary: str = ""
    raw: str = ""

    @property
    def user_turns(self) -> list[str]:
        return [t.content for t in self.turns if t.role == "user"]

    @property
    def assistant_turns(self) -> list[str]:
        return [t.content for t in self.turns if t.role == "assistant"]

    @classmethod
    def parse(cls, block: str) -> ExampleDialogue:
        """Parse the inside of an <example> block."""
        commentary_parts = [m.strip() for m in _COMMENTARY.findall(block)]
        text = _COMMENTARY.sub("\n", block)

        context = ""
        turns: list[DialogueTurn] = []
        current: DialogueTurn | None = None

        for line in text.splitlines():
            turn_match = _TURN_MARKER.match(line)
            if turn_match:
                current = DialogueTurn(
                    role=turn_match.group(1).lower(),
                    content=turn_match.group(2).strip(),
                )
                turns.append(current)
                continue

            context_match = _CONTEXT_MARKER.match(line)
            if context_match and not turns:
                context = context_match.group(1).strip()
                continue

            stripped = line.strip()
            if not stripped:
                continue
            if current is not None:
                current.content = f"{current.content} {stripped}".strip()
            elif context:
                context = f"{context} {stripped}"

        for turn in turns:
            turn.content = _unquote(turn.content)

        return cls(
            context=context,
            turns=turns,
            commentary="\n".join(p for p in commentary_parts if p),
            raw=block.strip(),
        )


@dataclass
class PersonaDocument:
    """A parsed persona document.

    Attributes:
        name: Unique persona identifier (lowercase, hyphens allowed).
        description: Raw description, including any embedded examples.
        body: Markdown body used as the persona's system prompt.
        model: Preferred model alias, if any.
        color: Display colour hint, if any.
        tools: Tool names the persona may use.
        keywords: Explicit routing keywords.
        priority: Routing tie-breaker (lower = preferred, default 50).
        version: Document version string.
        examples: Example dialogues; parsed from the description and body
            when not given.
        extra: Unrecognised front-matter keys, preserved on round-trip.
        source: File the document was loaded from.
    """

    name: str
    description: str
    body: str = ""
    model: str | None = None
    color: str | None = None
    tools: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    priority: int = DEFAULT_PRIORITY
    version: str = DEFAULT_VERSION
    examples: list[ExampleDialogue] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    source: Path | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise PersonaError("Persona name is required")
        if not NAME_PATTERN.match(self.name):
            raise PersonaError(
                f"Invalid persona name: {self.name!r}. "
                "Use lowercase letters, digits and single hyphens."
            )
        if not isinstance(self.description, str) or not self.description.strip():
            raise PersonaError(f"Persona {self.name!r} has no description")
        if not self.examples:
            self.examples = [
                ExampleDialogue.parse(block)
                for block in _EXAMPLE_BLOCK.findall(self.description)
                + _EXAMPLE_BLOCK.findall(self.body)
            ]

    @classmethod
    def from_file(cls, path: Path) -> PersonaDocument:
        """Load a persona document from disk.

        Raises:
            PersonaError: If the file is missing or invalid.
        """
        path = Path(path)
        if not path.is_file():
            raise PersonaError(f"Persona document not found: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersonaError(f"Could not read {path}: {e}") from e
        return cls.from_markdown(text, source=path)

    @classmethod
    def from_markdown(cls, text: str, source: Path | None = None) -> PersonaDocument:
        """Parse a persona document from its Markdown text.

        Raises:
            PersonaError: If the front-matter is missing or invalid.
        """
        where = f" in {source}" if source else ""
        text = text.replace("\r\n", "\n").lstrip("\ufeff")

        match = _FRONT_MATTER.match(text)
        if not match:
            raise PersonaError(f"Missing YAML front-matter{where}")

        try:
            meta = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise PersonaError(f"Invalid YAML front-matter{where}: {e}") from e

        if not isinstance(meta, dict):
            raise PersonaError(f"Front-matter must be a YAML mapping{where}")

        return cls.from_dict(meta, body=match.group(2).strip(), source=source)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        body: str = "",
        source: Path | None = None,
    ) -> PersonaDocument:
        """Create a persona from front-matter data and a body."""
        description = data.get("description") or ""
        if not isinstance(description, str):
            raise PersonaError("Persona description must be a string")

        try:
            priority = int(data.get("priority", DEFAULT_PRIORITY))
        except (TypeError, ValueError) as e:
            raise PersonaError(f"Invalid priority: {data.get('priority')!r}") from e

        known = {
            "name", "description", "model", "color", "tools",
            "keywords", "priority", "version",
        }
        return cls(
            name=str(data.get("name") or ""),
            description=description,
            body=body,
            model=_as_scalar(data.get("model"), "model"),
            color=_as_scalar(data.get("color"), "color"),
            tools=_as_list(data.get("tools")),
            keywords=_as_list(data.get("keywords")),
            priority=priority,
            version=str(data.get("version", DEFAULT_VERSION)),
            extra={k: v for k, v in data.items() if k not in known},
            source=source,
        )

    def to_dict(self) -> dict[str, Any]:
        """Front-matter representation of the persona."""
        result: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
        }
        if self.model:
            result["model"] = self.model
        if self.color:
            result["color"] = self.color
        if self.tools:
            result["tools"] = list(self.tools)
        if self.keywords:
            result["keywords"] = list(self.keywords)
        if self.priority != DEFAULT_PRIORITY:
            result["priority"] = self.priority
        if self.version != DEFAULT_VERSION:
            result["version"] = self.version
        result.update(self.extra)
        return result

    def to_markdown(self) -> str:
        """Render the persona back to a Markdown document."""
        front = yaml.safe_dump(
            self.to_dict(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
        return f"---\n{front}---\n{self.body}\n"

    @property
    def summary(self) -> str:
        """Description with the example blocks removed."""
        text = _EXAMPLE_BLOCK.sub("", self.description)
        text = re.sub(r"\bExamples?:\s*$", "", text.strip(), flags=re.IGNORECASE)
        return re.sub(r"\n\s*\n+", "\n\n", text).strip()

    @property
    def system_prompt(self) -> str:
        return self.body

    @property
    def estimated_tokens(self) -> int:
        """Rough token estimate (words * 1.3) of the description and body."""
        words = len(self.description.split()) + len(self.body.split())
        return int(words * 1.3)

    def sections(self) -> dict[str, str]:
        """Map Markdown headings in the body to the text under them."""
        result: dict[str, str] = {}
        heading: str | None = None
        lines: list[str] = []

        for line in self.body.splitlines():
            match = _HEADING.match(line)
            if match:
                if heading is not None:
                    result[heading] = "\n".join(lines).strip()
                heading = match.group(2).strip()
                lines = []
            elif heading is not None:
                lines.append(line)

        if heading is not None:
            result[heading] = "\n".join(lines).strip()
        return result

    def methodology(self) -> list[tuple[int, str]]:
        """Numbered methodology steps as (number, text) pairs.

        Uses the first section whose heading mentions "methodology", falling
        back to the first numbered list anywhere in the body.
        """
        for heading, text in self.sections().items():
            if "methodology" in heading.lower():
                steps = _numbered_items(text)
                if steps:
                    return steps
        return _numbered_items(self.body, first_list_only=True)

    def __repr__(self) -> str:
        return (
            f"PersonaDocument(name={self.name!r}, version={self.version!r}, "
            f"examples={len(self.examples)})"
        )


def _numbered_items(text: str, first_list_only: bool = False) -> list[tuple[int, str]]:
    items: list[tuple[int, str]] = []
    for line in text.splitlines():
        match = _NUMBERED_ITEM.match(line)
        if match:
            items.append((int(match.group(1)), match.group(2).strip()))
        elif items and first_list_only and line.strip() and not line.startswith((" ", "\t")):
            break
    return items


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    raise PersonaError(f"Expected a list or comma-separated string, got {value!r}")


def _unquote(text: str) -> str:
    text = text.strip()
    for quote, closing in (("\"", "\""), ("'", "'"), ("\u201c", "\u201d")):
        if len(text) >= 2 and text.startswith(quote) and text.endswith(closing):
            return text[1:-1].strip()
    return text


def _as_scalar(value: Any, key: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple, dict)):
        raise PersonaError(f"Expected a single value for {key!r}, got {value!r}")
    return str(value)
