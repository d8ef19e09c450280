"""Entry point: extract card fields from a note file and print the outcomes."""

import argparse
import json
import logging
import sys

from cardparse.config import load_config
from cardparse.models import FieldTemplate, FieldTemplateField, RegionMarkers
from cardparse.notes import read_note_text
from cardparse.parsing.region_parser import RegionParser
from cardparse.parsing.template_generator import TemplateGenerator
from cardparse.pipeline import NoteExtractor
from cardparse.validation.diff_detector import generate_diff_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cardparse",
        description="Extract structured card fields from a markdown note",
    )
    parser.add_argument("note", help="Path to a .md or .txt note")
    parser.add_argument(
        "--fields",
        default="question,answer",
        help="Comma-separated field keys of the card template",
    )
    parser.add_argument("--config", default="config.yaml", help="Path to config YAML")
    parser.add_argument(
        "--regions",
        action="store_true",
        help="Only extract cards inside start/end markers",
    )
    parser.add_argument("--start-marker", help="Override the configured start marker")
    parser.add_argument("--end-marker", help="Override the configured end marker")
    parser.add_argument("--separator", help="Override the configured card separator")
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print a diff report per card instead of JSON",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the extraction pipeline over one note file."""
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(level=config.logging.level, format=config.logging.format)

    keys = [key.strip() for key in args.fields.split(",") if key.strip()]
    template = FieldTemplate(
        id="cli",
        name="Command line template",
        fields=[FieldTemplateField(key=key, name=key) for key in keys],
    )

    markers = None
    if args.regions:
        markers = RegionMarkers(
            start_marker=args.start_marker or config.parsing.start_marker,
            end_marker=args.end_marker or config.parsing.end_marker,
            card_separator=(
                args.separator if args.separator is not None else config.parsing.card_separator
            ),
        )
        check = RegionParser.validate_markers(markers)
        if not check.valid:
            logger.error("Invalid region markers: %s", "; ".join(check.errors))
            return 2

    try:
        text = read_note_text(args.note)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    # Tag fields have no capture group
    captured = TemplateGenerator(config.regex).generate_regex_template(template).field_mappings
    outcomes = NoteExtractor(config).extract(
        text, template, markers=markers, expected_fields=list(captured)
    )

    if args.report:
        for i, outcome in enumerate(outcomes, start=1):
            print(f"Card {i}: {outcome.decision} (confidence {outcome.confidence:.2f})")
            print(generate_diff_report(outcome.diff))
            print()
    else:
        print(json.dumps([o.model_dump() for o in outcomes], ensure_ascii=False, indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
