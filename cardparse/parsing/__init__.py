"""Note parsing: regions, choice options and template-driven extraction."""

from cardparse.parsing.choice_parser import (
    convert_legacy_options,
    detect_markdown_choice,
    format_options_for_display,
    format_options_for_template,
    get_available_labels,
    get_option_by_label,
    is_multiple_choice_card,
    parse_choice_options,
    validate_answer,
)
from cardparse.parsing.region_parser import RegionParser
from cardparse.parsing.template_generator import TemplateGenerator

__all__ = [
    "RegionParser",
    "TemplateGenerator",
    "convert_legacy_options",
    "detect_markdown_choice",
    "format_options_for_display",
    "format_options_for_template",
    "get_available_labels",
    "get_option_by_label",
    "is_multiple_choice_card",
    "parse_choice_options",
    "validate_answer",
]
