"""persona-kit CLI.

Command-line interface for hosting persona documents.
"""

__version__ = "0.1.0"

from cli.personakit.cli import app, main

__all__ = ["__version__", "app", "main"]
