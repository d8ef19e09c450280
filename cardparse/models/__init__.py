"""Data models for the note extraction pipeline."""

from cardparse.models.choice import ParsedChoiceQuestion, ParsedOption
from cardparse.models.diff import DiffStatistics, ParsingDiffResult
from cardparse.models.outcome import ExtractionOutcome
from cardparse.models.region import (
    MarkerValidation,
    ParsedRegion,
    RegionMarkers,
    RegionParseResult,
    RegionPreview,
    RegionStats,
)
from cardparse.models.template import (
    FieldTemplate,
    FieldTemplateField,
    MarkdownTemplate,
    ParseOptions,
    RegexTemplate,
    RegexValidation,
)
from cardparse.models.validation import (
    QuickValidation,
    ValidationIssue,
    ValidationResult,
    ValidationStatistics,
)

__all__ = [
    "DiffStatistics",
    "ExtractionOutcome",
    "FieldTemplate",
    "FieldTemplateField",
    "MarkdownTemplate",
    "MarkerValidation",
    "ParseOptions",
    "ParsedChoiceQuestion",
    "ParsedOption",
    "ParsedRegion",
    "ParsingDiffResult",
    "QuickValidation",
    "RegexTemplate",
    "RegexValidation",
    "RegionMarkers",
    "RegionParseResult",
    "RegionPreview",
    "RegionStats",
    "ValidationIssue",
    "ValidationResult",
    "ValidationStatistics",
]
