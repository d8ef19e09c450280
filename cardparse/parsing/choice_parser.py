"""Multiple-choice option parsing and helpers."""

import logging
import re
from collections.abc import Callable, Mapping

from cardparse.models.choice import ParsedChoiceQuestion, ParsedOption

logger = logging.getLogger(__name__)

OPTION_LABELS: list[str] = ["A", "B", "C", "D", "E"]
MAX_OPTIONS = len(OPTION_LABELS)

CHECKBOX_DETECT = re.compile(r"^-\s*\[([ x])\]\s*")
CHECKBOX_LINE = re.compile(r"^-\s*\[([ x])\]\s*(.+)$")
LABELED_DETECT = re.compile(r"^[A-E][.\s]")
LABELED_LINE = re.compile(r"^([A-E])[.\s]\s*(.+)$")

# Front-content heuristics for cards written as markdown
H2_OPTIONS_PATTERN = re.compile(
    r"##\s*.+?\n\*\*选项\*\*:\s*\n(?:[A-E]\..+?\n?){2,}", re.MULTILINE | re.DOTALL
)
DIRECT_OPTIONS_PATTERN = re.compile(
    r"^.+?\n(?:[A-E]\..+?\n?){2,}", re.MULTILINE | re.DOTALL
)
LETTERED_LINE = re.compile(r"[A-E]\.\s*.+")

LEGACY_OPTION_KEYS: list[str] = ["option_a", "option_b", "option_c", "option_d"]


def _parse_checkbox(lines: list[str]) -> list[ParsedOption]:
    options: list[ParsedOption] = []
    for i, line in enumerate(lines[:MAX_OPTIONS]):
        match = CHECKBOX_LINE.match(line)
        if match:
            checked, text = match.groups()
            options.append(
                ParsedOption(
                    label=OPTION_LABELS[i],
                    text=text.strip(),
                    index=i,
                    is_correct=checked == "x",
                )
            )
    return options


def _parse_labeled(lines: list[str]) -> list[ParsedOption]:
    options: list[ParsedOption] = []
    for i, line in enumerate(lines[:MAX_OPTIONS]):
        match = LABELED_LINE.match(line)
        if match:
            label, text = match.groups()
            label = label.upper()
            options.append(
                ParsedOption(label=label, text=text.strip(), index=OPTION_LABELS.index(label))
            )
        else:
            # Unlabeled line inside a labeled block keeps its position
            options.append(ParsedOption(label=OPTION_LABELS[i], text=line, index=i))
    return options


def _parse_plain(lines: list[str]) -> list[ParsedOption]:
    return [
        ParsedOption(label=OPTION_LABELS[i], text=line, index=i)
        for i, line in enumerate(lines[:MAX_OPTIONS])
    ]


# Format detection in priority order: first predicate that holds wins.
FORMAT_HANDLERS: list[
    tuple[str, Callable[[list[str]], bool], Callable[[list[str]], list[ParsedOption]]]
] = [
    ("checkbox", lambda lines: any(CHECKBOX_DETECT.match(line) for line in lines), _parse_checkbox),
    ("labeled", lambda lines: any(LABELED_DETECT.match(line) for line in lines), _parse_labeled),
    ("plain", lambda lines: True, _parse_plain),
]


def detect_option_format(lines: list[str]) -> str:
    """Name of the first option format whose predicate holds for lines."""
    return _select_format(lines)[0]


def _select_format(
    lines: list[str],
) -> tuple[str, Callable[[list[str]], list[ParsedOption]]]:
    for name, predicate, handler in FORMAT_HANDLERS:
        if predicate(lines):
            return name, handler
    return FORMAT_HANDLERS[-1][0], FORMAT_HANDLERS[-1][2]


def parse_choice_options(text: str) -> ParsedChoiceQuestion:
    """Normalize a block of option text into labeled options.

    Supported formats, detected in this order:

    1. ``- [ ] text`` / ``- [x] text`` checkboxes; ``x`` marks the
       correct option and labels are assigned by position.
    2. ``A. text`` or ``A text`` labeled lines.
    3. Plain lines, labeled A, B, C... by position.

    At most five non-empty lines are used.

    Args:
        text: The option block.

    Returns:
        ParsedChoiceQuestion with options sorted by index.
    """
    if not isinstance(text, str) or not text:
        return ParsedChoiceQuestion()

    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return ParsedChoiceQuestion()

    name, handler = _select_format(lines)
    logger.debug("Parsing %d option lines as %s format", len(lines), name)
    options = handler(lines)
    options.sort(key=lambda option: option.index)

    return ParsedChoiceQuestion(
        options=options,
        has_valid_structure=len(options) >= 2,
        total_options=len(options),
    )


def format_options_for_display(options: list[ParsedOption]) -> str:
    """Render options as ``A. text`` lines."""
    return "\n".join(f"{option.label}. {option.text}" for option in options)


def format_options_for_template(options: list[ParsedOption]) -> str:
    """Render options as ``A. text`` joined with ``<br>`` for card templates."""
    return "<br>".join(f"{option.label}. {option.text}" for option in options)


def get_option_by_label(options: list[ParsedOption], label: str) -> ParsedOption | None:
    """Find an option by label, ignoring case."""
    if not isinstance(label, str):
        return None
    wanted = label.strip().upper()
    for option in options:
        if option.label.upper() == wanted:
            return option
    return None


def validate_answer(options: list[ParsedOption], answer: str) -> bool:
    """Check that a free-text answer names one of the option labels."""
    if not isinstance(answer, str) or not answer:
        return False
    normalized = answer.strip().upper()
    return any(option.label == normalized for option in options)


def get_available_labels(options: list[ParsedOption]) -> list[str]:
    return [option.label for option in options]


def convert_legacy_options(fields: Mapping[str, str]) -> str:
    """Merge ``option_a`` .. ``option_e`` fields into one labeled block.

    Args:
        fields: Card fields in the legacy per-letter layout.

    Returns:
        Newline-separated ``A. text`` lines for every non-empty option.
    """
    lines: list[str] = []
    for label in OPTION_LABELS:
        value = fields.get(f"option_{label.lower()}") or ""
        if value.strip():
            lines.append(f"{label}. {value.strip()}")
    return "\n".join(lines)


def detect_markdown_choice(fields: Mapping[str, str]) -> bool:
    """Check whether a card's front content is written as a choice question.

    Recognizes ``## heading`` + ``**选项**:`` + two or more lettered lines,
    and free text followed by two or more lettered lines.
    """
    front = fields.get("front") or fields.get("Front") or ""
    if not front:
        return False

    if H2_OPTIONS_PATTERN.search(front):
        return True

    if DIRECT_OPTIONS_PATTERN.search(front):
        return len(LETTERED_LINE.findall(front)) >= 2

    return False


def is_multiple_choice_card(fields: Mapping[str, str]) -> bool:
    """Classify a card's fields as a multiple-choice question.

    Args:
        fields: The card's field map.

    Returns:
        True for the unified layout with a valid option block, the legacy
        per-letter layout with an answer, or a markdown choice front.
    """
    options = fields.get("options") or ""
    question = fields.get("question") or ""
    correct = fields.get("correct_answer") or ""

    if options and question and correct:
        return parse_choice_options(options).has_valid_structure

    has_legacy_options = all((fields.get(key) or "").strip() for key in LEGACY_OPTION_KEYS)
    if has_legacy_options and correct.strip():
        return True

    return detect_markdown_choice(fields)
