"""Pydantic schemas for persona-kit outputs."""

from .quality_report import (
    FindingCategory,
    FindingSeverity,
    FixedFile,
    HumanReviewFlag,
    QualityCounts,
    QualityFinding,
    QualityReport,
    QualityStatus,
)

__all__ = [
    "FindingCategory",
    "FindingSeverity",
    "FixedFile",
    "HumanReviewFlag",
    "QualityCounts",
    "QualityFinding",
    "QualityReport",
    "QualityStatus",
]
