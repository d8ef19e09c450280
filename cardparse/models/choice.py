"""Multiple-choice option models."""

from pydantic import BaseModel, ConfigDict, Field


class ParsedOption(BaseModel):
    """A single labeled option of a multiple-choice question."""

    model_config = ConfigDict(frozen=True)

    label: str  # "A" .. "E"
    text: str
    index: int  # 0 .. 4, position of the label in A..E
    is_correct: bool | None = None  # Only set by the checkbox format


class ParsedChoiceQuestion(BaseModel):
    """A normalized option set."""

    model_config = ConfigDict(frozen=True)

    options: list[ParsedOption] = Field(default_factory=list)
    has_valid_structure: bool = False
    total_options: int = 0
