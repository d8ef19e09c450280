"""Field template and generated template models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FieldTemplateField(BaseModel):
    """One entry in a field template.

    Entries of type ``"hr"`` are layout dividers and carry no field value.
    """

    model_config = ConfigDict(frozen=True)

    key: str = ""
    name: str = ""
    type: Literal["field", "hr"] = "field"
    side: Literal["front", "back", "both"] = "both"


class FieldTemplate(BaseModel):
    """An ordered list of fields describing one kind of card."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    fields: list[FieldTemplateField] = Field(default_factory=list)

    @property
    def field_items(self) -> list[FieldTemplateField]:
        """Entries that hold a value, in declared order."""
        return [f for f in self.fields if f.type == "field"]


class ParseOptions(BaseModel):
    """Regex flags stored with a regex template."""

    model_config = ConfigDict(frozen=True)

    multiline: bool = True
    ignore_case: bool = False
    global_match: bool = False  # Recorded for stored templates; extraction uses the first match


class MarkdownTemplate(BaseModel):
    """A markdown skeleton with ``{{key}}`` placeholders."""

    model_config = ConfigDict(frozen=True)

    name: str
    field_template_id: str
    markdown_content: str
    field_placeholders: dict[str, str] = Field(default_factory=dict)
    example_content: str = ""


class RegexTemplate(BaseModel):
    """An extraction regex plus the capture group of each field key."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    field_template_id: str = ""
    regex: str
    field_mappings: dict[str, int] = Field(default_factory=dict)
    parse_options: ParseOptions = Field(default_factory=ParseOptions)


class RegexValidation(BaseModel):
    """Syntax and complexity check of a regex pattern."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    complexity: int = 0
    warnings: list[str] = Field(default_factory=list)
