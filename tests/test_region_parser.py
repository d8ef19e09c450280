"""Tests for the region scanner and card splitter."""

from pathlib import Path

import pytest

from cardparse.models.region import RegionMarkers
from cardparse.parsing.region_parser import RegionParser

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "sample_notes"

START = "<!-- cards:start -->"
END = "<!-- cards:end -->"


@pytest.fixture
def markers() -> RegionMarkers:
    return RegionMarkers(start_marker=START, end_marker=END, card_separator="---card---")


@pytest.fixture
def parser(markers: RegionMarkers) -> RegionParser:
    return RegionParser(markers)


# ── Region scanning ─────────────────────────────────────────────────────────


class TestParseRegions:
    def test_single_region_content_is_trimmed(self, parser: RegionParser) -> None:
        body = "\n  What is a closure?\n\n---div---\n\nA function with its scope.  \n"
        result = parser.parse_regions(START + body + END)

        assert len(result.regions) == 1
        assert result.regions[0].content == body.strip()
        assert result.errors == []

    def test_region_offsets(self, parser: RegionParser) -> None:
        text = "intro " + START + "card" + END + " outro"
        region = parser.parse_regions(text).regions[0]

        assert region.start_index == len("intro ") + len(START)
        assert region.end_index == text.index(END)
        assert 0 <= region.start_index < region.end_index <= len(text)

    def test_multiple_regions_in_order(self, parser: RegionParser) -> None:
        text = f"{START}first{END}\nnoise\n{START}second{END}"
        result = parser.parse_regions(text)

        assert [r.content for r in result.regions] == ["first", "second"]
        assert result.regions[0].end_index < result.regions[1].start_index
        assert result.stats.total_regions == 2
        assert result.stats.total_content == len(text)

    def test_text_without_markers(self, parser: RegionParser) -> None:
        result = parser.parse_regions("just a plain note")
        assert result.regions == []
        assert result.total_cards == 0
        assert result.errors == []

    def test_empty_region_is_skipped(self, parser: RegionParser) -> None:
        result = parser.parse_regions(f"{START}   {END}{START}card{END}")
        assert [r.content for r in result.regions] == ["card"]

    def test_empty_input(self, parser: RegionParser) -> None:
        result = parser.parse_regions("")
        assert result.regions == []
        assert result.total_cards == 0
        assert result.errors == []

    def test_non_string_input(self, parser: RegionParser) -> None:
        result = parser.parse_regions(None)  # type: ignore[arg-type]
        assert result.regions == []
        assert result.errors == []


class TestUnterminatedRegion:
    def test_unterminated_region_reports_error(self, parser: RegionParser) -> None:
        result = parser.parse_regions(START + "abc")
        assert len(result.regions) == 0
        assert len(result.errors) == 1
        assert "Unterminated region" in result.errors[0]

    def test_earlier_regions_are_kept(self, parser: RegionParser) -> None:
        text = f"{START}first{END}{START}second without end"
        result = parser.parse_regions(text)

        assert [r.content for r in result.regions] == ["first"]
        assert result.errors

    def test_scan_stops_at_first_unterminated_region(self, parser: RegionParser) -> None:
        text = f"{START}first{END}{START}broken{START}"
        result = parser.parse_regions(text)

        assert [r.content for r in result.regions] == ["first"]
        assert len(result.errors) == 1

    def test_unterminated_region_logs_warning(
        self, parser: RegionParser, caplog: pytest.LogCaptureFixture
    ) -> None:
        parser.parse_regions(START + "abc")
        assert "no matching end marker" in caplog.text


# ── Card splitting ──────────────────────────────────────────────────────────


class TestCardSplitting:
    def test_cards_split_and_trimmed(self, parser: RegionParser) -> None:
        text = f"{START}\nQ1 ---div--- A1\n---card---\n  Q2 ---div--- A2  \n{END}"
        region = parser.parse_regions(text).regions[0]

        assert region.cards == ["Q1 ---div--- A1", "Q2 ---div--- A2"]
        assert region.card_count == 2

    def test_empty_cards_discarded(self, parser: RegionParser) -> None:
        text = f"{START}one---card---   ---card------card---two{END}"
        region = parser.parse_regions(text).regions[0]
        assert region.cards == ["one", "two"]

    def test_blank_separator_keeps_whole_region(self) -> None:
        parser = RegionParser(RegionMarkers(start_marker=START, end_marker=END, card_separator="  "))
        region = parser.parse_regions(f"{START}a\n---\nb{END}").regions[0]
        assert region.cards == ["a\n---\nb"]

    def test_total_cards_matches_sum(self, parser: RegionParser) -> None:
        text = (
            f"{START}a---card---b---card---c{END}"
            f"{START}d{END}"
            f"{START}e---card---{END}"
        )
        result = parser.parse_regions(text)

        assert result.total_cards == 5
        assert result.total_cards == sum(len(r.cards) for r in result.regions)
        assert all(card and card == card.strip() for r in result.regions for card in r.cards)

    def test_fixture_note(self, parser: RegionParser) -> None:
        text = (FIXTURES_DIR / "regions.md").read_text(encoding="utf-8")
        result = parser.parse_regions(text)

        assert result.stats.total_regions == 2
        assert result.total_cards == 3
        assert result.errors == []

    def test_repeated_runs_are_identical(self, parser: RegionParser) -> None:
        text = (FIXTURES_DIR / "regions.md").read_text(encoding="utf-8")
        assert parser.parse_regions(text).model_dump() == parser.parse_regions(text).model_dump()


# ── Static helpers ──────────────────────────────────────────────────────────


class TestDetectSeparator:
    def test_most_frequent_wins(self) -> None:
        text = "a\n***\nb\n***\nc\n---\nd"
        assert RegionParser.detect_separator(text) == "***"

    def test_tie_goes_to_earlier_candidate(self) -> None:
        assert RegionParser.detect_separator("a --- b === c") == "---"

    def test_no_separator(self) -> None:
        assert RegionParser.detect_separator("plain text only") is None

    def test_empty_text(self) -> None:
        assert RegionParser.detect_separator("") is None


class TestValidateMarkers:
    def test_valid_markers(self, markers: RegionMarkers) -> None:
        result = RegionParser.validate_markers(markers)
        assert result.valid is True
        assert result.errors == []

    def test_empty_markers(self) -> None:
        result = RegionParser.validate_markers(
            RegionMarkers(start_marker="", end_marker=" ", card_separator="---")
        )
        assert result.valid is False
        assert "Start marker must not be empty" in result.errors
        assert "End marker must not be empty" in result.errors

    def test_identical_markers(self) -> None:
        result = RegionParser.validate_markers(
            RegionMarkers(start_marker="%%", end_marker="%%", card_separator="---")
        )
        assert result.valid is False
        assert "Start and end markers must differ" in result.errors

    def test_marker_containing_separator(self) -> None:
        result = RegionParser.validate_markers(
            RegionMarkers(start_marker="---start---", end_marker="===end", card_separator="---")
        )
        assert result.valid is False
        assert result.errors == ["Start marker must not contain the card separator"]

    def test_end_marker_containing_separator(self) -> None:
        result = RegionParser.validate_markers(
            RegionMarkers(start_marker="<<", end_marker="--->>", card_separator="---")
        )
        assert result.errors == ["End marker must not contain the card separator"]


class TestPreviewRegions:
    def test_preview_line_numbers(self, parser: RegionParser) -> None:
        text = f"line one\n{START}\ncard body\n{END}\n"
        previews = parser.preview_regions(text)

        assert len(previews) == 1
        assert previews[0].index == 1
        assert previews[0].preview == "card body"
        assert previews[0].start_line == 2
        assert previews[0].end_line == 4

    def test_preview_truncates(self, parser: RegionParser) -> None:
        previews = parser.preview_regions(f"{START}{'x' * 30}{END}", max_preview_length=10)
        assert previews[0].preview == "x" * 10 + "..."

    def test_update_markers(self, parser: RegionParser) -> None:
        new_markers = RegionMarkers(start_marker="<<", end_marker=">>")
        parser.update_markers(new_markers)
        assert parser.markers == new_markers
        assert [r.content for r in parser.parse_regions("<<a>>").regions] == ["a"]
