"""Extraction audits: parse result validation and diff detection."""

from cardparse.validation.diff_detector import (
    ParsingDiffDetector,
    detect_parsing_loss,
    generate_diff_report,
    should_preserve_original_text,
)
from cardparse.validation.result_validator import ParseResultValidator

__all__ = [
    "ParseResultValidator",
    "ParsingDiffDetector",
    "detect_parsing_loss",
    "generate_diff_report",
    "should_preserve_original_text",
]
