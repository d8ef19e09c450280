"""Parse result validation models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

IssueType = Literal[
    "truncation", "missing_field", "low_quality", "format_mismatch", "data_loss"
]
Severity = Literal["critical", "warning", "info"]


class ValidationIssue(BaseModel):
    """One problem found in an extraction result."""

    model_config = ConfigDict(frozen=True)

    type: IssueType
    severity: Severity
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


class ValidationStatistics(BaseModel):
    """Length and coverage figures behind a validation result.

    Lengths are counted with all whitespace removed.
    """

    model_config = ConfigDict(frozen=True)

    original_length: int = 0
    parsed_length: int = 0
    coverage: float = 0.0
    field_count: int = 0
    empty_fields: int = 0
    average_field_length: float = 0.0
    content_distribution: dict[str, int] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Aggregate output of the parse result validator."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    confidence: float
    issues: list[ValidationIssue] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    statistics: ValidationStatistics = Field(default_factory=ValidationStatistics)


class QuickValidation(BaseModel):
    """Result of the coverage-and-empty-fields fast path."""

    model_config = ConfigDict(frozen=True)

    has_issues: bool
    critical_issues: list[str] = Field(default_factory=list)
    coverage: float = 0.0
