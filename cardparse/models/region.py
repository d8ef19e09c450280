"""Region scan data models."""

from pydantic import BaseModel, ConfigDict, Field


class RegionMarkers(BaseModel):
    """Marker configuration for a region scan.

    Construction does not check the markers; use
    ``RegionParser.validate_markers`` before scanning user-supplied values.
    """

    model_config = ConfigDict(frozen=True)

    start_marker: str
    end_marker: str
    card_separator: str = ""


class MarkerValidation(BaseModel):
    """Outcome of checking a RegionMarkers configuration."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: list[str] = Field(default_factory=list)


class ParsedRegion(BaseModel):
    """One bounded region of raw text and the cards split out of it."""

    model_config = ConfigDict(frozen=True)

    content: str  # Trimmed text strictly between the markers
    start_index: int  # Offset just after the start marker
    end_index: int  # Offset of the end marker
    card_count: int
    cards: list[str] = Field(default_factory=list)


class RegionStats(BaseModel):
    """Summary counters of a region scan."""

    model_config = ConfigDict(frozen=True)

    total_regions: int = 0
    total_content: int = 0  # Length of the scanned text


class RegionParseResult(BaseModel):
    """The result of scanning a text for regions.

    ``errors`` may be non-empty alongside valid regions: a scan that hits
    an unterminated region keeps everything found before it.
    """

    model_config = ConfigDict(frozen=True)

    regions: list[ParsedRegion] = Field(default_factory=list)
    total_cards: int = 0
    stats: RegionStats = Field(default_factory=RegionStats)
    errors: list[str] = Field(default_factory=list)


class RegionPreview(BaseModel):
    """Short description of a region for display before import."""

    model_config = ConfigDict(frozen=True)

    index: int  # 1-based
    preview: str
    card_count: int
    start_line: int  # 1-based
    end_line: int
