"""Marker-bounded region scanner and card splitter."""

import logging

from cardparse.models.region import (
    MarkerValidation,
    ParsedRegion,
    RegionMarkers,
    RegionParseResult,
    RegionPreview,
    RegionStats,
)

logger = logging.getLogger(__name__)

# Candidate card separators in tie-break order (earlier wins on equal counts).
COMMON_SEPARATORS: list[str] = [
    "---",
    "***",
    "___",
    "===",
    "###",
    "---\n",
    "\n---\n",
    "\n***\n",
    "\n___\n",
]


class RegionParser:
    """Finds marker-bounded regions in a note and splits them into cards.

    A region is the text strictly between a start marker and the next end
    marker. Each region is split on the card separator; a blank separator
    keeps the whole region as one card.

    Args:
        markers: Start/end markers and the card separator.
    """

    def __init__(self, markers: RegionMarkers) -> None:
        self._markers = markers

    @property
    def markers(self) -> RegionMarkers:
        return self._markers

    def update_markers(self, markers: RegionMarkers) -> None:
        self._markers = markers

    def parse_regions(self, text: str) -> RegionParseResult:
        """Scan text for regions and split each region into cards.

        The scan stops at the first start marker without a matching end
        marker. Regions found before it are kept and an entry is added
        to ``errors``.

        Args:
            text: The raw note text.

        Returns:
            A RegionParseResult with regions ordered by position.
        """
        if not isinstance(text, str) or not text:
            return RegionParseResult()

        regions, errors = self._extract_regions(text)
        total_cards = sum(region.card_count for region in regions)

        logger.debug(
            "Parsed %d regions with %d cards (%d errors)",
            len(regions),
            total_cards,
            len(errors),
        )

        return RegionParseResult(
            regions=regions,
            total_cards=total_cards,
            stats=RegionStats(total_regions=len(regions), total_content=len(text)),
            errors=errors,
        )

    def _extract_regions(self, text: str) -> tuple[list[ParsedRegion], list[str]]:
        """Walk the text from start marker to end marker.

        Args:
            text: The raw note text.

        Returns:
            Tuple of the regions found and any scan errors.
        """
        start_marker = self._markers.start_marker
        end_marker = self._markers.end_marker
        regions: list[ParsedRegion] = []
        errors: list[str] = []

        if not start_marker or not end_marker:
            errors.append("Start and end markers must not be empty")
            return regions, errors

        cursor = 0
        while cursor < len(text):
            start = text.find(start_marker, cursor)
            if start == -1:
                break

            content_start = start + len(start_marker)
            end = text.find(end_marker, content_start)
            if end == -1:
                logger.warning(
                    "Start marker at %d has no matching end marker; stopping scan",
                    start,
                )
                errors.append(
                    f"Unterminated region: start marker at position {start} "
                    f"has no matching end marker"
                )
                break

            content = text[content_start:end].strip()
            if content:
                cards = self._split_cards(content)
                regions.append(
                    ParsedRegion(
                        content=content,
                        start_index=content_start,
                        end_index=end,
                        card_count=len(cards),
                        cards=cards,
                    )
                )

            cursor = end + len(end_marker)

        return regions, errors

    def _split_cards(self, content: str) -> list[str]:
        """Split region content on the card separator.

        Args:
            content: Trimmed region content.

        Returns:
            Trimmed, non-empty card texts in order.
        """
        separator = self._markers.card_separator
        if not separator or not separator.strip():
            return [content]

        cards = [card.strip() for card in content.split(separator)]
        return [card for card in cards if card]

    def preview_regions(
        self, text: str, max_preview_length: int = 100
    ) -> list[RegionPreview]:
        """Describe each region with a short preview and its line span.

        Args:
            text: The raw note text.
            max_preview_length: Characters of content shown before "...".

        Returns:
            One RegionPreview per region, numbered from 1.
        """
        result = self.parse_regions(text)
        previews: list[RegionPreview] = []

        for i, region in enumerate(result.regions, start=1):
            preview = region.content
            if len(preview) > max_preview_length:
                preview = preview[:max_preview_length] + "..."

            previews.append(
                RegionPreview(
                    index=i,
                    preview=preview,
                    card_count=region.card_count,
                    start_line=text.count("\n", 0, region.start_index) + 1,
                    end_line=text.count("\n", 0, region.end_index) + 1,
                )
            )

        return previews

    @staticmethod
    def detect_separator(text: str) -> str | None:
        """Guess the card separator used in a text.

        Counts non-overlapping occurrences of each common separator and
        returns the most frequent one.

        Args:
            text: Sample text, usually the body of a region.

        Returns:
            The most frequent separator, or None if none occurs.
        """
        if not isinstance(text, str) or not text:
            return None

        best: str | None = None
        best_count = 0
        for separator in COMMON_SEPARATORS:
            count = text.count(separator)
            if count > best_count:
                best, best_count = separator, count
        return best

    @staticmethod
    def validate_markers(markers: RegionMarkers) -> MarkerValidation:
        """Check a marker configuration before it is used for scanning.

        Args:
            markers: The configuration to check.

        Returns:
            MarkerValidation listing every problem found.
        """
        errors: list[str] = []
        start = markers.start_marker
        end = markers.end_marker
        separator = markers.card_separator

        if not start or not start.strip():
            errors.append("Start marker must not be empty")
        if not end or not end.strip():
            errors.append("End marker must not be empty")
        if start == end:
            errors.append("Start and end markers must differ")
        if start and separator and separator in start:
            errors.append("Start marker must not contain the card separator")
        if end and separator and separator in end:
            errors.append("End marker must not contain the card separator")

        return MarkerValidation(valid=not errors, errors=errors)
