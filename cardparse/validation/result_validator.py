"""Parse result validation: coverage, field completeness and quality checks."""

import logging
import re

from cardparse.config import ValidationConfig
from cardparse.models.validation import (
    QuickValidation,
    ValidationIssue,
    ValidationResult,
    ValidationStatistics,
)

logger = logging.getLogger(__name__)

NOTES_FIELD = "notes"

WHITESPACE = re.compile(r"\s+")

# Markdown constructs whose loss matters regardless of raw coverage.
IMPORTANT_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"```[\s\S]*?```"),  # code blocks
    re.compile(r"!\[.*?\]\(.*?\)"),  # images
    re.compile(r"\[.*?\]\(.*?\)"),  # links
    re.compile(r"\[\[.*?\]\]"),  # wiki links
    re.compile(r"#{1,6}\s+.+"),  # headings
    re.compile(r"\*\*.*?\*\*"),  # bold
    re.compile(r"\*.*?\*"),  # italic
]

QUESTION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"[？?]$"),
    re.compile(
        r"^(什么|如何|为什么|怎么|哪个|哪些|何时|何地|Who|What|When|Where|Why|How)",
        re.IGNORECASE,
    ),
    re.compile(r"^(请|试|解释|说明|描述|分析|比较|列举)", re.IGNORECASE),
]

SEVERITY_FACTORS: dict[str, float] = {"critical": 0.3, "warning": 0.8, "info": 0.95}

SUGGESTIONS: dict[str, list[str]] = {
    "truncation": [
        "Check the regex boundaries; a lazy capture may stop too early",
        "Verify that the template's field mappings point at the right groups",
        "Consider a boundary-aware template for this note layout",
    ],
    "missing_field": [
        "Check that the note contains every required field",
        "Verify the capture groups of the regex template",
        "Adjust the template to match the note's actual layout",
    ],
    "low_quality": [
        "Check that field content is recognized and split correctly",
        "Verify that the note follows the template layout",
    ],
    "format_mismatch": [
        "One field holds most of the content; check the separators between fields",
    ],
    "data_loss": [
        "Keep the untouched note text in the notes field",
        "Check how code blocks, links and images are handled",
    ],
}
LOW_COVERAGE_SUGGESTION = "Coverage is very low; keep the original text alongside the fields"


def _strip_whitespace(text: str) -> str:
    return WHITESPACE.sub("", text)


class ParseResultValidator:
    """Grades an extraction result against its source text.

    Checks run independently and each may add issues:

    1. Coverage: share of the source's non-whitespace characters that
       ended up in the fields.
    2. Completeness: requested fields present, no empty fields.
    3. Quality: field lengths and the shape of the question field.
    4. Distribution: no single field holding most of the content.
    5. Data loss: markdown constructs of the source kept verbatim.

    Args:
        config: ValidationConfig with the thresholds. Defaults are used
                when omitted.
    """

    def __init__(self, config: ValidationConfig | None = None) -> None:
        self._config = config or ValidationConfig()

    def validate_parse_result(
        self,
        original_text: str,
        fields: dict[str, str],
        expected_fields: list[str] | None = None,
    ) -> ValidationResult:
        """Validate a field map against the text it was extracted from.

        Args:
            original_text: The source text.
            fields: Extracted field values by key.
            expected_fields: Field keys the caller requires, if any.

        Returns:
            ValidationResult; ``is_valid`` is False iff a critical issue
            was found.
        """
        original_text = original_text if isinstance(original_text, str) else ""
        fields = fields or {}

        statistics = self.calculate_statistics(original_text, fields)
        issues: list[ValidationIssue] = []

        self._check_coverage(statistics, issues)
        self._check_completeness(fields, expected_fields, issues)
        self._check_quality(fields, issues)
        self._check_distribution(statistics, issues)
        self._check_data_loss(original_text, fields, issues)

        confidence = self._calculate_confidence(statistics, issues)
        is_valid = not any(issue.severity == "critical" for issue in issues)

        if not is_valid:
            logger.debug(
                "Extraction failed validation: coverage %.2f, %d issues",
                statistics.coverage,
                len(issues),
            )

        return ValidationResult(
            is_valid=is_valid,
            confidence=confidence,
            issues=issues,
            suggestions=self._generate_suggestions(issues, statistics),
            statistics=statistics,
        )

    def calculate_statistics(
        self, original_text: str, fields: dict[str, str]
    ) -> ValidationStatistics:
        """Compute lengths, coverage and per-field sizes.

        Args:
            original_text: The source text.
            fields: Extracted field values by key.

        Returns:
            ValidationStatistics with whitespace-free lengths.
        """
        values = list(fields.values())
        original_length = len(_strip_whitespace(original_text))
        parsed_length = len(_strip_whitespace("".join(values)))

        non_empty = [value for value in values if value.strip()]
        average = sum(len(v) for v in non_empty) / len(non_empty) if non_empty else 0.0

        return ValidationStatistics(
            original_length=original_length,
            parsed_length=parsed_length,
            coverage=parsed_length / original_length if original_length > 0 else 0.0,
            field_count=len(fields),
            empty_fields=len(values) - len(non_empty),
            average_field_length=average,
            content_distribution={key: len(value) for key, value in fields.items()},
        )

    def _check_coverage(
        self, statistics: ValidationStatistics, issues: list[ValidationIssue]
    ) -> None:
        coverage = statistics.coverage
        if coverage >= self._config.min_coverage:
            return

        severity = "critical" if coverage < self._config.critical_coverage else "warning"
        missing = (1 - coverage) * 100
        issues.append(
            ValidationIssue(
                type="truncation",
                severity=severity,
                message=(
                    f"Coverage is only {coverage * 100:.1f}%; "
                    f"{missing:.1f}% of the content may be truncated"
                ),
                details={
                    "coverage": coverage,
                    "original_length": statistics.original_length,
                    "parsed_length": statistics.parsed_length,
                    "missing_characters": statistics.original_length - statistics.parsed_length,
                },
            )
        )

    def _check_completeness(
        self,
        fields: dict[str, str],
        expected_fields: list[str] | None,
        issues: list[ValidationIssue],
    ) -> None:
        for expected in expected_fields or []:
            if fields.get(expected):
                continue
            if expected in self._config.critical_fields:
                issues.append(
                    ValidationIssue(
                        type="missing_field",
                        severity="critical",
                        message=f'Required field "{expected}" is missing',
                        field=expected,
                    )
                )
            else:
                issues.append(
                    ValidationIssue(
                        type="missing_field",
                        severity="warning",
                        message=f'Expected field "{expected}" is missing',
                        field=expected,
                    )
                )

        empty = [key for key, value in fields.items() if key != NOTES_FIELD and not value.strip()]
        if empty:
            issues.append(
                ValidationIssue(
                    type="missing_field",
                    severity="warning",
                    message=f"{len(empty)} empty fields: {', '.join(empty)}",
                    details={"empty_fields": empty},
                )
            )

    def _check_quality(self, fields: dict[str, str], issues: list[ValidationIssue]) -> None:
        for key, value in fields.items():
            if key == NOTES_FIELD:
                continue

            trimmed = value.strip()
            if 0 < len(trimmed) < self._config.min_field_length:
                issues.append(
                    ValidationIssue(
                        type="low_quality",
                        severity="warning",
                        message=f'Field "{key}" is very short ({len(trimmed)} characters)',
                        field=key,
                        details={"length": len(trimmed), "content": trimmed},
                    )
                )

            if len(trimmed) > self._config.max_field_length:
                issues.append(
                    ValidationIssue(
                        type="low_quality",
                        severity="warning",
                        message=(
                            f'Field "{key}" is very long ({len(trimmed)} characters) '
                            "and may contain other fields"
                        ),
                        field=key,
                        details={"length": len(trimmed)},
                    )
                )

            if key == "question" and trimmed and not is_question_like(trimmed):
                issues.append(
                    ValidationIssue(
                        type="low_quality",
                        severity="info",
                        message=f'Question field may not be a question: "{trimmed[:50]}..."',
                        field=key,
                    )
                )

    def _check_distribution(
        self, statistics: ValidationStatistics, issues: list[ValidationIssue]
    ) -> None:
        distribution = statistics.content_distribution
        total = sum(distribution.values())
        if total == 0:
            return

        for key, length in distribution.items():
            if key == NOTES_FIELD:
                continue
            share = length / total
            if share > self._config.max_field_share:
                issues.append(
                    ValidationIssue(
                        type="format_mismatch",
                        severity="warning",
                        message=(
                            f'Field "{key}" holds {share * 100:.1f}% of the content; '
                            "a field boundary may be misplaced"
                        ),
                        field=key,
                        details={"percentage": share * 100, "length": length},
                    )
                )

    def _check_data_loss(
        self, original_text: str, fields: dict[str, str], issues: list[ValidationIssue]
    ) -> None:
        parsed = "\n".join(fields.values())

        # dict keeps first-seen order without duplicates
        constructs: dict[str, None] = {}
        for pattern in IMPORTANT_PATTERNS:
            for match in pattern.findall(original_text):
                constructs.setdefault(match, None)

        lost = [construct for construct in constructs if construct not in parsed]
        if lost:
            issues.append(
                ValidationIssue(
                    type="data_loss",
                    severity="warning",
                    message=(
                        f"{len(lost)} markdown constructs (code blocks, images, links...) "
                        "may have been lost"
                    ),
                    details={"lost_content": lost[: self._config.max_lost_fragments]},
                )
            )

    def _calculate_confidence(
        self, statistics: ValidationStatistics, issues: list[ValidationIssue]
    ) -> float:
        confidence = statistics.coverage
        for issue in issues:
            confidence *= SEVERITY_FACTORS[issue.severity]

        if statistics.empty_fields > 0:
            empty_ratio = statistics.empty_fields / statistics.field_count
            confidence *= 1 - empty_ratio * 0.5

        return max(0.0, min(1.0, confidence))

    def _generate_suggestions(
        self, issues: list[ValidationIssue], statistics: ValidationStatistics
    ) -> list[str]:
        seen: list[str] = []
        for issue in issues:
            if issue.type not in seen:
                seen.append(issue.type)

        suggestions: list[str] = []
        for issue_type in seen:
            suggestions.extend(SUGGESTIONS[issue_type])

        if statistics.coverage < self._config.critical_coverage:
            suggestions.append(LOW_COVERAGE_SUGGESTION)

        return suggestions

    def quick_validate(self, original_text: str, fields: dict[str, str]) -> QuickValidation:
        """Check only for severe truncation and empty fields.

        Args:
            original_text: The source text.
            fields: Extracted field values by key.

        Returns:
            QuickValidation listing the problems found.
        """
        original_text = original_text if isinstance(original_text, str) else ""
        fields = fields or {}
        statistics = self.calculate_statistics(original_text, fields)
        problems: list[str] = []

        if statistics.coverage < self._config.critical_coverage:
            problems.append(f"Severe truncation: coverage is only {statistics.coverage * 100:.1f}%")

        empty = [key for key, value in fields.items() if key != NOTES_FIELD and not value.strip()]
        if empty:
            problems.append(f"Empty fields: {', '.join(empty)}")

        return QuickValidation(
            has_issues=bool(problems),
            critical_issues=problems,
            coverage=statistics.coverage,
        )


def is_question_like(text: str) -> bool:
    """Whether text ends in a question mark or opens with a question word."""
    stripped = text.strip()
    return any(pattern.search(stripped) for pattern in QUESTION_PATTERNS)
