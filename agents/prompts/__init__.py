"""Shared prompt components for persona agents."""

from .code_principles import ENFORCEMENT_PRINCIPLES, QUALITY_REPORT_CONTRACT

__all__ = [
    "ENFORCEMENT_PRINCIPLES",
    "QUALITY_REPORT_CONTRACT",
]
