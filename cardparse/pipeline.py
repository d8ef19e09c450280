"""Note extraction pipeline: split, extract, audit and decide."""

import logging
import re

from cardparse.config import AppConfig
from cardparse.models.outcome import ExtractionOutcome
from cardparse.models.region import RegionMarkers
from cardparse.models.template import FieldTemplate, RegexTemplate
from cardparse.parsing.choice_parser import format_options_for_display, parse_choice_options
from cardparse.parsing.region_parser import RegionParser
from cardparse.parsing.template_generator import TemplateGenerator, assign_field_roles
from cardparse.validation.diff_detector import ParsingDiffDetector
from cardparse.validation.result_validator import ParseResultValidator

logger = logging.getLogger(__name__)

OPTIONS_FIELD = "options"
CORRECT_ANSWER_FIELD = "correct_answer"

CHECKBOX_OPTION = re.compile(r"^-\s*\[[ x]\]\s*\S")
LABELED_OPTION = re.compile(r"^([A-E])\.\s*\S")
OPTIONS_HEADING = re.compile(r"^\*\*(?:选项|Options)\*\*\s*[:：]?\s*$", re.MULTILINE)


def find_option_block(text: str) -> int | None:
    """Locate the option block that closes a question text.

    The block is a run of at least two consecutive lines at the end of
    the text: either checkbox lines (``- [ ] text``), or lettered lines
    (``A. text``) that start at ``A`` with no repeated letter. A stem
    must precede it.

    Args:
        text: The question field text.

    Returns:
        Offset of the block's first line, or None when there is no block.
    """
    lines = text.split("\n")
    end = len(lines)
    while end > 0 and not lines[end - 1].strip():
        end -= 1

    start = end
    while start > 0 and CHECKBOX_OPTION.match(lines[start - 1].strip()):
        start -= 1

    if end - start < 2:
        start = end
        labels: list[str] = []
        while start > 0:
            match = LABELED_OPTION.match(lines[start - 1].strip())
            if not match:
                break
            labels.insert(0, match.group(1))
            start -= 1

        if "A" not in labels:
            return None
        skip = labels.index("A")
        labels = labels[skip:]
        start += skip
        if len(labels) < 2 or len(set(labels)) != len(labels):
            return None

    if start == 0:
        return None
    return sum(len(line) + 1 for line in lines[:start])


class NoteExtractor:
    """Runs the full extraction over a note and grades every card.

    For each card the regex template derived from the field template is
    applied, option blocks are normalized, and the validator and the diff
    detector audit the result independently. Their reports are combined:
    the lower confidence wins and either one can demand that the original
    text be kept.

    Args:
        config: AppConfig; defaults are used when omitted.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()
        self._generator = TemplateGenerator(self._config.regex)
        self._validator = ParseResultValidator(self._config.validation)
        self._detector = ParsingDiffDetector(self._config.diff)

    def split_cards(self, text: str, markers: RegionMarkers | None = None) -> list[str]:
        """Card texts of a note: the whole note, or every card of every region.

        Args:
            text: The raw note text.
            markers: Region markers; None treats the note as one card.

        Returns:
            Non-empty card texts in note order.
        """
        if not isinstance(text, str):
            return []
        if markers is None:
            return [text.strip()] if text.strip() else []

        result = RegionParser(markers).parse_regions(text)
        return [card for region in result.regions for card in region.cards]

    def extract(
        self,
        text: str,
        field_template: FieldTemplate,
        markers: RegionMarkers | None = None,
        expected_fields: list[str] | None = None,
    ) -> list[ExtractionOutcome]:
        """Extract and audit every card of a note.

        Args:
            text: The raw note text.
            field_template: Template describing the card fields.
            markers: Optional region markers.
            expected_fields: Field keys the caller requires.

        Returns:
            One ExtractionOutcome per card.
        """
        regex_template = self._generator.generate_regex_template(field_template)
        outcomes = [
            self.extract_card(card, field_template, regex_template, expected_fields)
            for card in self.split_cards(text, markers)
        ]

        accepted = sum(1 for outcome in outcomes if outcome.decision == "accept")
        logger.info("Extracted %d cards, %d accepted", len(outcomes), accepted)
        return outcomes

    def extract_card(
        self,
        card: str,
        field_template: FieldTemplate,
        regex_template: RegexTemplate,
        expected_fields: list[str] | None = None,
    ) -> ExtractionOutcome:
        """Extract one card and combine both audit reports into a decision.

        Args:
            card: The card text.
            field_template: Template describing the card fields.
            regex_template: Regex template generated from field_template.
            expected_fields: Field keys the caller requires.

        Returns:
            ExtractionOutcome with decision "accept", "review" or
            "preserve_original".
        """
        fields = self._generator.parse_markdown_to_fields(card, regex_template)
        fields = self._split_options(fields, field_template)

        validation = self._validator.validate_parse_result(card, fields, expected_fields)
        diff = self._detector.detect_parsing_loss(card, fields)
        confidence = min(validation.confidence, diff.confidence)

        preserve = diff.loss_detected or not validation.is_valid
        if preserve:
            decision = "preserve_original"
        elif confidence >= self._config.pipeline.review_threshold:
            decision = "accept"
        else:
            decision = "review"

        notes_field = self._config.pipeline.notes_field
        declared = {field.key for field in field_template.field_items}
        if preserve and notes_field in declared:
            fields = {**fields, notes_field: card}

        if decision != "accept":
            logger.debug(
                "Card flagged for %s (confidence %.2f): %s",
                decision,
                confidence,
                card[:60],
            )

        return ExtractionOutcome(
            card=card,
            fields=fields,
            validation=validation,
            diff=diff,
            confidence=confidence,
            decision=decision,
            preserve_original=preserve,
        )

    def _split_options(
        self, fields: dict[str, str], field_template: FieldTemplate
    ) -> dict[str, str]:
        """Move an option block out of the title field into ``options``.

        Only applies when the template declares an ``options`` field and
        the title text ends in an option block found by ``find_option_block``.

        Args:
            fields: Fields extracted by the regex template.
            field_template: Template describing the card fields.

        Returns:
            The field map, with options and correct answers filled in.
        """
        declared = {field.key for field in field_template.field_items}
        title, _, _ = assign_field_roles(field_template.field_items)
        if OPTIONS_FIELD not in declared or title is None:
            return fields

        text = fields.get(title.key, "")
        start = find_option_block(text)
        if start is None:
            return fields

        parsed = parse_choice_options(text[start:])
        if not parsed.has_valid_structure:
            return fields

        stem = OPTIONS_HEADING.sub("", text[:start]).strip()
        updated = {**fields, title.key: stem, OPTIONS_FIELD: format_options_for_display(parsed.options)}

        correct = [option.label for option in parsed.options if option.is_correct]
        if CORRECT_ANSWER_FIELD in declared and correct and not fields.get(CORRECT_ANSWER_FIELD):
            updated[CORRECT_ANSWER_FIELD] = ",".join(correct)

        return updated
