"""Parsing diff models."""

from pydantic import BaseModel, ConfigDict, Field


class DiffStatistics(BaseModel):
    """Length and keyword figures of a diff run.

    Lengths are of the trimmed texts, whitespace kept.
    """

    model_config = ConfigDict(frozen=True)

    original_length: int = 0
    parsed_length: int = 0
    loss_percentage: float = 0.0  # Rounded to one decimal
    missing_keywords: list[str] = Field(default_factory=list)


class ParsingDiffResult(BaseModel):
    """Aggregate output of the parsing diff detector."""

    model_config = ConfigDict(frozen=True)

    loss_detected: bool
    confidence: float
    loss_details: list[str] = Field(default_factory=list)
    statistics: DiffStatistics = Field(default_factory=DiffStatistics)
