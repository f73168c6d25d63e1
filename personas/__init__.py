"""Persona documents for persona-kit.

A persona is a Markdown document with YAML front-matter that describes an
assistant role, when to use it (including example dialogues), and the
system prompt the hosted model runs with.
"""

from personas.document import (
    DialogueTurn,
    ExampleDialogue,
    PersonaDocument,
    PersonaError,
)
from personas.loader import BUILTIN_DIR, PersonaLoader, PersonaNotFoundError
from personas.validate import ValidationResult, validate_path, validate_persona

__all__ = [
    "BUILTIN_DIR",
    "DialogueTurn",
    "ExampleDialogue",
    "PersonaDocument",
    "PersonaError",
    "PersonaLoader",
    "PersonaNotFoundError",
    "ValidationResult",
    "validate_path",
    "validate_persona",
]
