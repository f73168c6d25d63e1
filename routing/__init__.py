"""Persona routing.

Routes user requests to the persona whose metadata and example dialogues
best match them.
"""

from .router import PersonaRouter, RoutingDecision

__all__ = ["PersonaRouter", "RoutingDecision"]
