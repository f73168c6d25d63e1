"""Persona loader.

Discovers, loads, and manages persona documents from the built-in directory
and any configured search directories.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from personas.document import PersonaDocument, PersonaError

logger = logging.getLogger(__name__)

BUILTIN_DIR = Path(__file__).parent / "builtin"


class PersonaNotFoundError(PersonaError):
    """Raised when a requested persona is not registered."""

    pass


@dataclass
class PersonaRegistry:
    """Registry of loaded personas keyed by name."""

    personas: dict[str, PersonaDocument] = field(default_factory=dict)

    def add(self, doc: PersonaDocument) -> None:
        previous = self.personas.get(doc.name)
        if previous is not None:
            logger.info(
                "Persona %s from %s overrides %s",
                doc.name,
                doc.source,
                previous.source,
            )
        self.personas[doc.name] = doc

    def ordered(self) -> list[PersonaDocument]:
        """Personas sorted by priority, then name."""
        return sorted(self.personas.values(), key=lambda p: (p.priority, p.name))


class PersonaLoader:
    """Load and register persona documents.

    Personas are plain Markdown files:
    ~/.persona-kit/personas/
    ├── code-quality-enforcer.md
    └── team/
        └── release-notes-writer.md

    Later directories override earlier ones, so a user persona with the same
    name as a built-in replaces it.

    Example:
        >>> loader = PersonaLoader([Path.home() / ".persona-kit/personas"])
        >>> loader.discover()
        >>> persona = loader.require("code-quality-enforcer")
    """

    DEFAULT_PERSONAS_DIR = Path.home() / ".persona-kit" / "personas"

    def __init__(
        self,
        search_dirs: list[Path] | None = None,
        enabled: list[str] | None = None,
        disabled: list[str] | None = None,
        include_builtin: bool = True,
    ):
        """Initialize the persona loader.

        Args:
            search_dirs: Directories to scan (None = default user directory).
            enabled: Whitelist of persona names (None = all).
            disabled: Blacklist of persona names.
            include_builtin: Whether to load the bundled personas first.
        """
        if search_dirs is None:
            search_dirs = [self.DEFAULT_PERSONAS_DIR]
        self.search_dirs = [Path(d).expanduser() for d in search_dirs]
        self.enabled = set(enabled) if enabled else None
        self.disabled = set(disabled or [])
        self.include_builtin = include_builtin

        self.registry = PersonaRegistry()
        self.failures: dict[Path, str] = {}

    def discover(self) -> list[str]:
        """Discover and load all persona documents.

        Returns:
            Names of the loaded personas, in load order.
        """
        loaded: list[str] = []

        directories = [BUILTIN_DIR] if self.include_builtin else []
        directories.extend(self.search_dirs)

        for directory in directories:
            if not directory.is_dir():
                logger.debug("Skipping missing persona directory %s", directory)
                continue

            for path in self._iter_documents(directory):
                try:
                    doc = PersonaDocument.from_file(path)
                except PersonaError as e:
                    # Log error but continue loading other personas
                    logger.warning("Failed to load persona %s: %s", path, e)
                    self.failures[path] = str(e)
                    continue

                if self._is_disabled(doc.name):
                    logger.debug("Persona %s is disabled", doc.name)
                    continue

                self.registry.add(doc)
                if doc.name not in loaded:
                    loaded.append(doc.name)

        logger.info("Loaded %d persona(s)", len(self.registry.personas))
        return loaded

    def reload(self) -> list[str]:
        """Clear the registry and discover again."""
        self.registry = PersonaRegistry()
        self.failures = {}
        return self.discover()

    def get(self, name: str) -> PersonaDocument | None:
        return self.registry.personas.get(name)

    def require(self, name: str) -> PersonaDocument:
        """Get a persona by name.

        Raises:
            PersonaNotFoundError: If no persona with that name is loaded.
        """
        doc = self.get(name)
        if doc is None:
            available = ", ".join(sorted(self.registry.personas)) or "none"
            raise PersonaNotFoundError(
                f"Persona {name!r} not found. Available: {available}"
            )
        return doc

    def list(self) -> list[PersonaDocument]:
        return self.registry.ordered()

    def _is_disabled(self, name: str) -> bool:
        if name in self.disabled:
            return True
        if self.enabled is not None and name not in self.enabled:
            return True
        return False

    def _iter_documents(self, directory: Path) -> list[Path]:
        """Markdown files directly in a directory and one level below it."""
        found = [p for p in directory.glob("*.md") if p.is_file()]
        for child in sorted(directory.iterdir()):
            if child.is_dir() and not child.name.startswith((".", "_")):
                found.extend(p for p in child.glob("*.md") if p.is_file())
        return sorted(
            (p for p in found if not p.name.startswith(".") and p.name.lower() != "readme.md"),
            key=lambda p: (p.parent != directory, str(p)),
        )
