"""Persona document validation.

Validates persona documents for:
- Required content (description text, system prompt body)
- Well-formed example dialogues
- Contradictory directives
- Sequential methodology numbering
- Prompt size limits
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from personas.document import PersonaDocument, PersonaError

# Model aliases understood by common agent hosts
KNOWN_MODELS = {"inherit", "sonnet", "opus", "haiku"}

# Token limits
MAX_PROMPT_TOKENS = 4000
RECOMMENDED_PROMPT_TOKENS = 2000

# Order matters: negative forms are checked first so "do not" is not read as "do"
NEGATIVE_DIRECTIVES = ("must not", "should not", "do not", "don't", "never", "avoid")
POSITIVE_DIRECTIVES = ("always", "must", "should", "do")

_BULLET = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.*)$")
_FILLER = {"a", "an", "the", "to", "any", "all", "every", "your", "you"}


@dataclass
class ValidationResult:
    """Outcome of validating one persona document."""

    name: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    source: Path | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_persona(doc: PersonaDocument) -> ValidationResult:
    """Validate a parsed persona document.

    Args:
        doc: The persona to check.

    Returns:
        ValidationResult with errors (blocking) and warnings (advisory).
    """
    result = ValidationResult(name=doc.name, source=doc.source)

    if not doc.summary:
        result.errors.append("Description has no text outside the example blocks")
    if not doc.body.strip():
        result.errors.append("Persona body (system prompt) is empty")

    _check_examples(doc, result)
    _check_contradictions(doc, result)
    _check_methodology(doc, result)

    tokens = doc.estimated_tokens
    if tokens > MAX_PROMPT_TOKENS:
        result.errors.append(
            f"Persona is ~{tokens} tokens, limit is {MAX_PROMPT_TOKENS}"
        )
    elif tokens > RECOMMENDED_PROMPT_TOKENS:
        result.warnings.append(
            f"Persona is ~{tokens} tokens, recommended maximum is {RECOMMENDED_PROMPT_TOKENS}"
        )

    if doc.model and doc.model not in KNOWN_MODELS:
        result.warnings.append(f"Unknown model alias: {doc.model!r}")

    return result


def validate_path(path: Path) -> ValidationResult:
    """Load and validate a persona document.

    Parse failures are reported as errors rather than raised.
    """
    path = Path(path)
    try:
        doc = PersonaDocument.from_file(path)
    except PersonaError as e:
        return ValidationResult(name=path.stem, errors=[str(e)], source=path)
    return validate_persona(doc)


def _check_examples(doc: PersonaDocument, result: ValidationResult) -> None:
    if not doc.examples:
        result.warnings.append("No example dialogues; routing will rely on keywords only")
        return

    for index, example in enumerate(doc.examples, start=1):
        label = f"Example {index}"
        roles = [turn.role for turn in example.turns]

        if "user" not in roles:
            result.errors.append(f"{label} has no user turn")
        elif "assistant" not in roles[roles.index("user") + 1:]:
            result.errors.append(f"{label} has no assistant reply after the user turn")

        for turn in example.turns:
            if not turn.content:
                result.errors.append(f"{label} has an empty {turn.role} turn")

        if not example.context:
            result.warnings.append(f"{label} has no Context line")
        if not example.commentary:
            result.warnings.append(f"{label} has no commentary")


def _check_contradictions(doc: PersonaDocument, result: ValidationResult) -> None:
    positive: dict[str, str] = {}
    negative: dict[str, str] = {}

    for line in doc.body.splitlines():
        match = _BULLET.match(line)
        if not match:
            continue
        parsed = _parse_directive(match.group(1))
        if parsed is None:
            continue
        polarity, action = parsed
        target = positive if polarity else negative
        target.setdefault(action, match.group(1).strip())

    for action in sorted(positive.keys() & negative.keys()):
        result.errors.append(
            f"Contradictory directives: {positive[action]!r} vs {negative[action]!r}"
        )


def _parse_directive(text: str) -> tuple[bool, str] | None:
    """Split a bullet into (is_positive, normalised action)."""
    lowered = text.lower().replace("\u2019", "'").strip()
    for prefix in NEGATIVE_DIRECTIVES:
        if lowered.startswith(prefix + " "):
            return False, _normalise_action(lowered[len(prefix):])
    for prefix in POSITIVE_DIRECTIVES:
        if lowered.startswith(prefix + " "):
            return True, _normalise_action(lowered[len(prefix):])
    return None


def _normalise_action(text: str) -> str:
    words = re.findall(r"[a-z0-9']+", text)
    return " ".join(w for w in words if w not in _FILLER)


def _check_methodology(doc: PersonaDocument, result: ValidationResult) -> None:
    steps = doc.methodology()
    if not steps:
        result.warnings.append("No numbered methodology found")
        return

    numbers = [number for number, _ in steps]
    expected = list(range(1, len(steps) + 1))
    if numbers != expected:
        result.errors.append(
            f"Methodology steps are numbered {numbers}, expected {expected}"
        )

    for number, text in steps:
        if not text:
            result.errors.append(f"Methodology step {number} is empty")
