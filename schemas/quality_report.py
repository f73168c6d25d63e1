"""Quality report schema.

Defines the structured output a persona run returns: findings, fixes
applied, and ambiguous cases handed to a human.
"""

from enum import Enum

from pydantic import BaseModel, Field


class QualityStatus(str, Enum):
    """Overall outcome of a run."""

    CLEAN = "clean"  # Nothing to fix
    FIXED = "fixed"  # Every finding was fixed
    ISSUES_FOUND = "issues_found"  # Unfixed errors or warnings remain
    NEEDS_REVIEW = "needs_review"  # A human has to decide something


class FindingSeverity(str, Enum):
    """Severity of a finding."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class FindingCategory(str, Enum):
    """Category of a finding."""

    FORMATTING = "formatting"  # Layout, whitespace, line length
    UNUSED_IMPORT = "unused_import"  # Unused imports, aliases, requires
    LINT = "lint"  # Linter rule violations
    NAMING = "naming"  # Naming convention violations
    OTHER = "other"


class QualityFinding(BaseModel):
    """A single issue found in the code."""

    file_path: str = Field(..., description="File containing the issue")
    line: int | None = Field(None, description="Line number, if known")
    category: FindingCategory = Field(FindingCategory.OTHER, description="Issue category")
    severity: FindingSeverity = Field(FindingSeverity.WARNING, description="Issue severity")
    message: str = Field(..., description="What is wrong")
    suggested_fix: str | None = Field(None, description="How to fix it")
    fixed: bool = Field(False, description="Whether the fix is included in fixed_files")


class HumanReviewFlag(BaseModel):
    """An ambiguous case that needs a human decision."""

    file_path: str = Field(..., description="File the question is about")
    line: int | None = Field(None, description="Line number, if known")
    question: str = Field(..., description="The decision a human has to make")
    options: list[str] = Field(default_factory=list, description="Possible answers")


class FixedFile(BaseModel):
    """Full corrected content for one file."""

    file_path: str = Field(..., description="File path, relative to the run root")
    content: str = Field(..., description="Corrected file content")


class QualityCounts(BaseModel):
    """Finding counts by severity."""

    total: int = 0
    errors: int = 0
    warnings: int = 0
    info: int = 0
    fixed: int = 0
    review_flags: int = 0


class QualityReport(BaseModel):
    """Report from a persona run."""

    summary: str = Field("", description="Short summary of the run")
    findings: list[QualityFinding] = Field(default_factory=list)
    review_flags: list[HumanReviewFlag] = Field(default_factory=list)
    fixed_files: list[FixedFile] = Field(default_factory=list)
    counts: QualityCounts = Field(default_factory=QualityCounts)
    status: QualityStatus = Field(QualityStatus.CLEAN)

    def update_counts(self) -> None:
        """Recompute counts from findings and flags."""
        by_severity = {severity: 0 for severity in FindingSeverity}
        for finding in self.findings:
            by_severity[finding.severity] += 1

        self.counts = QualityCounts(
            total=len(self.findings),
            errors=by_severity[FindingSeverity.ERROR],
            warnings=by_severity[FindingSeverity.WARNING],
            info=by_severity[FindingSeverity.INFO],
            fixed=sum(1 for f in self.findings if f.fixed),
            review_flags=len(self.review_flags),
        )

    def determine_status(self) -> QualityStatus:
        """Set status from findings and review flags.

        Returns:
            The new status.
        """
        unfixed = [
            f for f in self.findings
            if not f.fixed and f.severity != FindingSeverity.INFO
        ]
        if self.review_flags:
            self.status = QualityStatus.NEEDS_REVIEW
        elif unfixed:
            self.status = QualityStatus.ISSUES_FOUND
        elif any(f.fixed for f in self.findings):
            self.status = QualityStatus.FIXED
        else:
            self.status = QualityStatus.CLEAN
        return self.status

    def flagged_paths(self) -> set[str]:
        return {flag.file_path for flag in self.review_flags}

    def findings_for(self, file_path: str) -> list[QualityFinding]:
        return [f for f in self.findings if f.file_path == file_path]
