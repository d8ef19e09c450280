"""Pipeline outcome model."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cardparse.models.diff import ParsingDiffResult
from cardparse.models.validation import ValidationResult

Decision = Literal["accept", "review", "preserve_original"]


class ExtractionOutcome(BaseModel):
    """One card's extracted fields together with both audit reports."""

    model_config = ConfigDict(frozen=True)

    card: str  # Untouched card text the fields were extracted from
    fields: dict[str, str] = Field(default_factory=dict)
    validation: ValidationResult
    diff: ParsingDiffResult
    confidence: float  # Lower of the two audit confidences
    decision: Decision
    preserve_original: bool = False
