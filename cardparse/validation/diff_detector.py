"""Keyword and markdown-construct diff between a note and its extracted fields."""

import logging
import re

from cardparse.config import DiffConfig
from cardparse.models.diff import DiffStatistics, ParsingDiffResult

logger = logging.getLogger(__name__)

CJK_WORD = re.compile(r"[\u4e00-\u9fa5]{2,}")
LATIN_WORD = re.compile(r"[a-zA-Z]{3,}")

CODE_BLOCK = re.compile(r"```[\s\S]*?```")
MARKDOWN_LINK = re.compile(r"\[.*?\]\(.*?\)")
WIKI_LINK = re.compile(r"\[\[.*?\]\]")
IMAGE = re.compile(r"!\[.*?\]\(.*?\)")

# Share of confidence removed per missing keyword, and its cap.
KEYWORD_PENALTY = 0.1
MAX_KEYWORD_PENALTY = 0.3
LENGTH_PENALTY = 0.3
CONSTRUCT_PENALTY = 0.2


def extract_keywords(text: str) -> list[str]:
    """Collect CJK runs of 2+ characters and lower-cased Latin words of 3+.

    Args:
        text: Text to scan.

    Returns:
        Unique keywords in first-seen order, CJK words first.
    """
    keywords = CJK_WORD.findall(text)
    keywords.extend(word.lower() for word in LATIN_WORD.findall(text))
    return list(dict.fromkeys(keywords))


def count_special_constructs(text: str) -> dict[str, int]:
    """Count code blocks, links (markdown and wiki) and images in text."""
    code_blocks = len(CODE_BLOCK.findall(text))
    links = len(MARKDOWN_LINK.findall(text)) + len(WIKI_LINK.findall(text))
    images = len(IMAGE.findall(text))
    return {
        "code_blocks": code_blocks,
        "links": links,
        "images": images,
        "total": code_blocks + links + images,
    }


CONSTRUCT_LABELS: list[tuple[str, str]] = [
    ("code_blocks", "Code blocks lost"),
    ("links", "Links lost"),
    ("images", "Images lost"),
]


class ParsingDiffDetector:
    """Flags content lost between a note and the fields extracted from it.

    Works on raw lengths, keyword sets and markdown construct counts. It is
    coarser than ParseResultValidator and scores confidence its own way.

    Args:
        config: DiffConfig with the loss thresholds. Defaults are used
                when omitted.
    """

    def __init__(self, config: DiffConfig | None = None) -> None:
        self._config = config or DiffConfig()

    def detect_parsing_loss(
        self, original_text: str, fields: dict[str, str]
    ) -> ParsingDiffResult:
        """Compare a note with the fields extracted from it.

        Args:
            original_text: The source text.
            fields: Extracted field values by key.

        Returns:
            ParsingDiffResult with loss details and a confidence score.
        """
        original_text = original_text if isinstance(original_text, str) else ""
        parsed_text = " ".join((fields or {}).values())

        original_length = len(original_text.strip())
        parsed_length = len(parsed_text.strip())
        loss_percentage = (
            (original_length - parsed_length) / original_length * 100
            if original_length > 0
            else 0.0
        )

        parsed_keywords = set(extract_keywords(parsed_text))
        missing_keywords = [
            keyword for keyword in extract_keywords(original_text)
            if keyword not in parsed_keywords
        ]

        original_constructs = count_special_constructs(original_text)
        parsed_constructs = count_special_constructs(parsed_text)

        loss_details: list[str] = []
        for key, label in CONSTRUCT_LABELS:
            lost = original_constructs[key] - parsed_constructs[key]
            if lost > 0:
                loss_details.append(f"{label}: {lost}")
        construct_loss = bool(loss_details)

        if missing_keywords:
            more = "..." if len(missing_keywords) > 5 else ""
            loss_details.append(f"Missing keywords: {', '.join(missing_keywords[:5])}{more}")

        loss_detected = (
            loss_percentage > self._config.max_loss_percentage
            or len(missing_keywords) > self._config.max_missing_keywords
            or construct_loss
        )

        confidence = 1.0
        if loss_percentage > 0:
            confidence -= loss_percentage / 100 * LENGTH_PENALTY
        if missing_keywords:
            confidence -= min(len(missing_keywords) * KEYWORD_PENALTY, MAX_KEYWORD_PENALTY)
        if original_constructs["total"] != parsed_constructs["total"]:
            confidence -= CONSTRUCT_PENALTY
        confidence = max(0.0, min(1.0, confidence))

        if loss_detected:
            logger.debug(
                "Content loss detected: %.1f%% shorter, %d keywords missing",
                loss_percentage,
                len(missing_keywords),
            )

        return ParsingDiffResult(
            loss_detected=loss_detected,
            confidence=confidence,
            loss_details=loss_details,
            statistics=DiffStatistics(
                original_length=original_length,
                parsed_length=parsed_length,
                loss_percentage=round(loss_percentage, 1),
                missing_keywords=missing_keywords,
            ),
        )

    def should_preserve_original_text(
        self, original_text: str, fields: dict[str, str]
    ) -> bool:
        """Whether the untouched note should be stored next to the fields."""
        return self.detect_parsing_loss(original_text, fields).loss_detected


def detect_parsing_loss(original_text: str, fields: dict[str, str]) -> ParsingDiffResult:
    """Run ParsingDiffDetector with default thresholds."""
    return ParsingDiffDetector().detect_parsing_loss(original_text, fields)


def should_preserve_original_text(original_text: str, fields: dict[str, str]) -> bool:
    return ParsingDiffDetector().should_preserve_original_text(original_text, fields)


def generate_diff_report(result: ParsingDiffResult) -> str:
    """Format a diff result as a plain-text report.

    Args:
        result: The diff result to describe.

    Returns:
        Multi-line report with statistics, loss details and up to ten
        missing keywords.
    """
    stats = result.statistics
    lines = ["=== Parsing diff report ===", ""]

    if result.loss_detected:
        lines.append("Content loss detected")
    else:
        lines.append("No significant content loss")

    lines.extend([
        "",
        "Statistics:",
        f"  - Original length: {stats.original_length} characters",
        f"  - Parsed length: {stats.parsed_length} characters",
        f"  - Loss: {stats.loss_percentage:.1f}%",
        f"  - Confidence: {result.confidence * 100:.1f}%",
    ])

    if result.loss_details:
        lines.extend(["", "Loss details:"])
        lines.extend(f"  - {detail}" for detail in result.loss_details)

    if stats.missing_keywords:
        lines.extend(["", "Missing keywords (partial):"])
        lines.append(f"  {', '.join(stats.missing_keywords[:10])}")
        if len(stats.missing_keywords) > 10:
            lines.append(f"  ({len(stats.missing_keywords) - 10} more)")

    return "\n".join(lines)
