"""Tests for the note extraction pipeline."""

import logging
from pathlib import Path

import pytest

from cardparse.config import AppConfig, PipelineConfig
from cardparse.models.region import RegionMarkers
from cardparse.models.template import FieldTemplate, FieldTemplateField
from cardparse.pipeline import NoteExtractor, find_option_block

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "sample_notes"


def _template(*keys: str) -> FieldTemplate:
    return FieldTemplate(
        id="tpl-test",
        name="Test",
        fields=[FieldTemplateField(key=key, name=key) for key in keys],
    )


def _read(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def extractor() -> NoteExtractor:
    return NoteExtractor()


@pytest.fixture
def markers() -> RegionMarkers:
    config = AppConfig().parsing
    return RegionMarkers(
        start_marker=config.start_marker,
        end_marker=config.end_marker,
        card_separator=config.card_separator,
    )


# ── Card splitting ──────────────────────────────────────────────────────────


class TestSplitCards:
    def test_whole_note_is_one_card(self, extractor: NoteExtractor) -> None:
        assert extractor.split_cards("  Q ---div--- A \n") == ["Q ---div--- A"]

    def test_blank_note_has_no_cards(self, extractor: NoteExtractor) -> None:
        assert extractor.split_cards(" \n\t") == []

    def test_non_string_note(self, extractor: NoteExtractor) -> None:
        assert extractor.split_cards(None) == []  # type: ignore[arg-type]

    def test_regions(self, extractor: NoteExtractor, markers: RegionMarkers) -> None:
        cards = extractor.split_cards(_read("regions.md"), markers)
        assert len(cards) == 3
        assert cards[0].startswith("What is a closure?")
        assert cards[1].startswith("What does `yield` do?")


# ── Extraction ──────────────────────────────────────────────────────────────


class TestExtract:
    def test_basic_note_is_accepted(self, extractor: NoteExtractor) -> None:
        outcomes = extractor.extract(_read("basic.md"), _template("question", "answer"))

        assert len(outcomes) == 1
        outcome = outcomes[0]
        assert outcome.fields == {
            "question": "What is a closure?",
            "answer": "A function bundled with references to its enclosing scope.",
        }
        assert outcome.decision == "accept"
        assert outcome.preserve_original is False
        assert outcome.validation.is_valid is True
        assert outcome.diff.loss_detected is False

    def test_confidence_is_lower_of_both_audits(self, extractor: NoteExtractor) -> None:
        outcome = extractor.extract(_read("basic.md"), _template("question", "answer"))[0]
        assert outcome.confidence == min(outcome.validation.confidence, outcome.diff.confidence)

    def test_card_text_is_kept_verbatim(self, extractor: NoteExtractor) -> None:
        outcome = extractor.extract(_read("basic.md"), _template("question", "answer"))[0]
        assert outcome.card == _read("basic.md").strip()

    def test_regions_note(self, extractor: NoteExtractor, markers: RegionMarkers) -> None:
        outcomes = extractor.extract(
            _read("regions.md"), _template("question", "answer", "python"), markers=markers
        )

        assert len(outcomes) == 3
        assert outcomes[0].fields["question"] == "What is a closure?"
        assert outcomes[1].fields["answer"] == "It turns a function into a generator."
        assert outcomes[2].fields["question"] == "什么是装饰器？"

    def test_low_confidence_goes_to_review(self) -> None:
        config = AppConfig(pipeline=PipelineConfig(review_threshold=0.95))
        outcome = NoteExtractor(config).extract(
            _read("basic.md"), _template("question", "answer")
        )[0]

        assert outcome.decision == "review"
        assert outcome.preserve_original is False

    def test_missing_expected_field_is_reported(self, extractor: NoteExtractor) -> None:
        outcome = extractor.extract(
            _read("basic.md"),
            _template("question", "answer"),
            expected_fields=["question", "answer", "source"],
        )[0]

        missing = [i.field for i in outcome.validation.issues if i.type == "missing_field"]
        assert missing == ["source"]
        assert outcome.validation.is_valid is True

    def test_logs_summary(
        self, extractor: NoteExtractor, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.INFO)
        extractor.extract(_read("basic.md"), _template("question", "answer"))
        assert "Extracted 1 cards, 1 accepted" in caplog.text


# ── Preserving the original ─────────────────────────────────────────────────


class TestPreserveOriginal:
    NOTE = (
        "Closures capture variables from an enclosing scope, "
        "see [the docs](https://docs.python.org) for details"
    )

    def test_unmatched_card_keeps_original_in_notes(self, extractor: NoteExtractor) -> None:
        outcome = extractor.extract(self.NOTE, _template("question", "answer", "notes"))[0]

        assert outcome.decision == "preserve_original"
        assert outcome.preserve_original is True
        assert outcome.fields == {"notes": self.NOTE}
        assert outcome.validation.is_valid is False
        assert outcome.diff.loss_detected is True

    def test_without_notes_field_fields_stay_as_extracted(
        self, extractor: NoteExtractor
    ) -> None:
        outcome = extractor.extract(self.NOTE, _template("question", "answer"))[0]

        assert outcome.decision == "preserve_original"
        assert outcome.fields == {}

    def test_notes_field_name_is_configurable(self) -> None:
        config = AppConfig(pipeline=PipelineConfig(notes_field="raw"))
        outcome = NoteExtractor(config).extract(self.NOTE, _template("question", "answer", "raw"))[0]
        assert outcome.fields == {"raw": self.NOTE}


# ── Multiple-choice cards ───────────────────────────────────────────────────


class TestChoiceCards:
    def test_options_are_split_from_the_question(self, extractor: NoteExtractor) -> None:
        template = _template("question", "answer", "options", "correct_answer")
        fields = extractor.extract(_read("choice.md"), template)[0].fields

        assert fields["question"] == "## Which city is the capital of Germany?"
        assert fields["options"] == "A. Paris\nB. Berlin\nC. Rome"
        assert fields["correct_answer"] == "B"
        assert fields["answer"] == "Berlin has been the capital since reunification in 1990."

    def test_labeled_options(self, extractor: NoteExtractor) -> None:
        note = "德国的首都是哪里？\n**选项**:\nA. 巴黎\nB. 柏林\n\n---div---\n\n柏林"
        template = _template("question", "answer", "options")
        fields = extractor.extract(note, template)[0].fields

        assert fields["question"] == "德国的首都是哪里？"
        assert fields["options"] == "A. 巴黎\nB. 柏林"
        assert "correct_answer" not in fields

    def test_no_split_without_options_field(self, extractor: NoteExtractor) -> None:
        fields = extractor.extract(_read("choice.md"), _template("question", "answer"))[0].fields

        assert "options" not in fields
        assert "- [x] Berlin" in fields["question"]

    def test_no_split_when_question_is_only_options(self, extractor: NoteExtractor) -> None:
        note = "A. Paris\nB. Berlin\n\n---div---\n\nBerlin"
        fields = extractor.extract(note, _template("question", "answer", "options"))[0].fields

        assert fields["question"] == "A. Paris\nB. Berlin"
        assert "options" not in fields

    def test_stem_starting_with_capital_letter_is_not_an_option(
        self, extractor: NoteExtractor
    ) -> None:
        note = "A cat sits on\nthe mat. Where?\n\n---div---\n\nOn the mat"
        fields = extractor.extract(note, _template("question", "answer", "options"))[0].fields
        assert "options" not in fields

    def test_prose_with_lettered_abbreviation_is_kept(self, extractor: NoteExtractor) -> None:
        question = "Explain closures.\nE.g. a counter factory\nKeep it short"
        note = f"{question}\n\n---div---\n\nA function that captures its scope."
        fields = extractor.extract(note, _template("question", "answer", "options"))[0].fields

        assert fields["question"] == question
        assert "options" not in fields


class TestFindOptionBlock:
    def test_checkbox_block(self) -> None:
        text = "Pick one\n- [ ] Paris\n- [x] Berlin"
        assert find_option_block(text) == len("Pick one\n")

    def test_lettered_block_starts_at_a(self) -> None:
        text = "Pick one\nD. not an option\nA. Paris\nB. Berlin\n\n"
        assert find_option_block(text) == len("Pick one\nD. not an option\n")

    def test_single_option_line_is_not_a_block(self) -> None:
        assert find_option_block("Pick one\nA. Paris") is None

    def test_block_not_starting_at_a(self) -> None:
        assert find_option_block("Explain closures.\nE.g. a counter factory\nD. Done") is None

    def test_repeated_letters(self) -> None:
        assert find_option_block("Pick one\nA. Paris\nA. Berlin") is None

    def test_options_must_close_the_text(self) -> None:
        assert find_option_block("Pick one\nA. Paris\nB. Berlin\nThen explain why") is None

    def test_block_needs_a_stem(self) -> None:
        assert find_option_block("A. Paris\nB. Berlin") is None
