"""Markdown skeleton and extraction regex generation from field templates."""

import logging
import re

from cardparse.config import RegexConfig
from cardparse.models.template import (
    FieldTemplate,
    FieldTemplateField,
    MarkdownTemplate,
    ParseOptions,
    RegexTemplate,
    RegexValidation,
)

logger = logging.getLogger(__name__)

DIV_SEPARATOR = "---div---"
DEFAULT_REGEX = r"([\s\S]*)"

TITLE_CAPTURE = r"^\s*([\s\S]+?)\s*"
CONTENT_CAPTURE = r"---div---\s*([\s\S]*?)\s*"
END_OF_TEXT = r"\Z"

# Role inference in priority order: a field takes the first role whose
# key fragments it contains and that is still unassigned.
FIELD_ROLES: list[tuple[str, tuple[str, ...]]] = [
    ("title", ("question", "title", "front")),
    ("content", ("answer", "content", "back")),
]

# Example values keyed by key/name fragment, checked in order.
EXAMPLE_VALUES: list[tuple[tuple[str, ...], str]] = [
    (("question", "问题"), "What is a closure?"),
    (("answer", "答案"), "A function bundled with references to its enclosing scope."),
    (("title", "标题"), "Closures"),
    (("content", "内容"), "A detailed description goes here..."),
    (("tag", "标签"), "programming, python"),
    (("category", "分类"), "Programming languages"),
    (("source", "来源"), "Official documentation"),
]

# Complexity weight per regex metacharacter.
COMPLEXITY_WEIGHTS: dict[str, int] = {"*": 2, "+": 2, "{": 1, "(": 1, "[": 1}


def assign_field_roles(
    fields: list[FieldTemplateField],
) -> tuple[FieldTemplateField | None, FieldTemplateField | None, list[FieldTemplateField]]:
    """Split template fields into title, content and tag fields.

    Args:
        fields: Value-holding fields in declared order.

    Returns:
        Tuple of (title field, content field, remaining fields in order).
    """
    chosen: dict[str, FieldTemplateField] = {}
    for role, fragments in FIELD_ROLES:
        for field in fields:
            if any(field is taken for taken in chosen.values()):
                continue
            if any(fragment in field.key for fragment in fragments):
                chosen[role] = field
                break

    title = chosen.get("title")
    content = chosen.get("content")
    tags = [f for f in fields if f is not title and f is not content]
    return title, content, tags


def _tag_token_pattern(tags: list[FieldTemplateField]) -> str | None:
    """Pattern matching any declared ``#key`` token, or None without tags."""
    if not tags:
        return None
    keys = "|".join(re.escape(field.key) for field in tags)
    return rf"#(?:{keys})(?!\w)"


class TemplateGenerator:
    """Derives markdown and regex templates from a field template.

    The markdown layout is the title placeholder, a ``---div---`` line,
    the content placeholder, then ``#key`` tokens for all other fields.
    The generated regex reads that layout back into a field map.

    Args:
        config: Regex guard settings. Defaults are used when omitted.
    """

    def __init__(self, config: RegexConfig | None = None) -> None:
        self._config = config or RegexConfig()

    def generate_markdown_template(self, field_template: FieldTemplate) -> MarkdownTemplate:
        """Build the markdown skeleton for a field template.

        Args:
            field_template: The template to render.

        Returns:
            MarkdownTemplate with ``{{key}}`` placeholders and an example.
        """
        fields = field_template.field_items
        title, content, tags = assign_field_roles(fields)

        parts: list[str] = []
        if title:
            parts.append(f"{{{{{title.key}}}}}")
        if content:
            parts.append(DIV_SEPARATOR)
            parts.append(f"{{{{{content.key}}}}}")
        if tags:
            parts.append(" ".join(f"#{field.key}" for field in tags))

        return MarkdownTemplate(
            name=f"{field_template.name} - Markdown template",
            field_template_id=field_template.id,
            markdown_content="\n\n".join(parts),
            field_placeholders={field.key: f"{{{{{field.key}}}}}" for field in fields},
            example_content=self.generate_example_content(field_template),
        )

    def generate_regex_template(self, field_template: FieldTemplate) -> RegexTemplate:
        """Build the extraction regex matching the markdown skeleton.

        Only the title and content fields get capture groups, numbered
        from 1 in that order. Tag fields become optional ``#key`` anchors.
        The content capture ends at the first declared ``#key`` token, so a
        bare ``#`` inside the content is kept. Without a content field the
        title capture ends there instead.

        Args:
            field_template: The template to read.

        Returns:
            RegexTemplate with field mappings and parse options.
        """
        title, content, tags = assign_field_roles(field_template.field_items)
        tag_token = _tag_token_pattern(tags)

        regex = ""
        field_mappings: dict[str, int] = {}
        group_index = 1

        if title:
            stops = [DIV_SEPARATOR]
            if not content and tag_token:
                stops.append(tag_token)
            stops.append(END_OF_TEXT)
            regex += TITLE_CAPTURE + f"(?={'|'.join(stops)})"
            field_mappings[title.key] = group_index
            group_index += 1

        if content:
            stops = [tag_token, END_OF_TEXT] if tag_token else [END_OF_TEXT]
            regex += CONTENT_CAPTURE + f"(?={'|'.join(stops)})"
            field_mappings[content.key] = group_index
            group_index += 1

        for field in tags:
            regex += rf"(?:\s*#{re.escape(field.key)})?"

        return RegexTemplate(
            name=f"{field_template.name} - Regex template",
            field_template_id=field_template.id,
            regex=regex or DEFAULT_REGEX,
            field_mappings=field_mappings,
            parse_options=ParseOptions(multiline=True, ignore_case=False, global_match=False),
        )

    def render_markdown(self, field_template: FieldTemplate, values: dict[str, str]) -> str:
        """Fill the markdown skeleton with field values.

        Args:
            field_template: The template whose skeleton is filled.
            values: Field values by key; missing keys render empty.

        Returns:
            Markdown text that the regex template parses back into values.
        """
        markdown = self.generate_markdown_template(field_template).markdown_content
        for field in field_template.field_items:
            markdown = markdown.replace(f"{{{{{field.key}}}}}", values.get(field.key, ""))
        return markdown

    def generate_example_content(self, field_template: FieldTemplate) -> str:
        """The markdown skeleton filled with sample values."""
        values = {
            field.key: self._example_value(field) for field in field_template.field_items
        }
        title, content, tags = assign_field_roles(field_template.field_items)

        parts: list[str] = []
        if title:
            parts.append(values[title.key])
        if content:
            parts.append(DIV_SEPARATOR)
            parts.append(values[content.key])
        if tags:
            parts.append(" ".join(f"#{field.key}" for field in tags))
        return "\n\n".join(parts)

    def _example_value(self, field: FieldTemplateField) -> str:
        key = field.key.lower()
        name = field.name.lower()
        for fragments, value in EXAMPLE_VALUES:
            if any(fragment in key or fragment in name for fragment in fragments):
                return value
        return f"Example {field.name or field.key}"

    def generate_markdown_from_fields(
        self, field_template: FieldTemplate, values: dict[str, str]
    ) -> str:
        """Render field values as a reader-facing markdown document.

        The title becomes an H1, the content an H2 section named after the
        content field, and other non-empty fields ``**Name**: value`` lines.

        Args:
            field_template: The template describing the fields.
            values: Field values by key.

        Returns:
            The markdown document.
        """
        title, content, others = assign_field_roles(field_template.field_items)
        blocks: list[str] = []

        if title:
            blocks.append(f"# {values.get(title.key, '')}")
        if content:
            blocks.append(f"## 📝 {content.name}\n{values.get(content.key, '')}")
        for field in others:
            value = values.get(field.key, "")
            if value.strip():
                blocks.append(f"**{field.name}**: {value}")

        return "\n\n".join(blocks).strip()

    def parse_markdown_to_fields(
        self, content: str, regex_template: RegexTemplate
    ) -> dict[str, str]:
        """Apply a regex template to content and collect the mapped groups.

        The pattern is checked with ``validate_regex`` first. Invalid
        patterns, and risky ones when ``reject_risky_patterns`` is set,
        yield an empty map. Only the first match is used.

        Args:
            content: The card text.
            regex_template: Pattern, field mappings and parse options.

        Returns:
            Trimmed group text per mapped field key ("" for groups that did
            not participate), or an empty dict when nothing matched.
        """
        if not isinstance(content, str):
            return {}

        check = self.validate_regex(regex_template.regex)
        if not check.is_valid:
            logger.warning("Rejected invalid regex template: %s", "; ".join(check.warnings))
            return {}
        if check.warnings:
            if self._config.reject_risky_patterns:
                logger.warning("Rejected risky regex template: %s", "; ".join(check.warnings))
                return {}
            logger.warning("Applying risky regex template: %s", "; ".join(check.warnings))

        match = re.search(regex_template.regex, content, self._flags(regex_template.parse_options))
        if not match:
            logger.debug("Regex template %r did not match", regex_template.name)
            return {}

        fields: dict[str, str] = {}
        for field_key, group_index in regex_template.field_mappings.items():
            value = match.group(group_index) if 0 < group_index <= match.re.groups else None
            fields[field_key] = (value or "").strip()
        return fields

    @staticmethod
    def _flags(options: ParseOptions) -> int:
        flags = 0
        if options.multiline:
            flags |= re.MULTILINE
        if options.ignore_case:
            flags |= re.IGNORECASE
        return flags

    def validate_regex(self, pattern: str) -> RegexValidation:
        """Check regex syntax and score its complexity.

        Complexity is 2 per ``*`` and ``+`` and 1 per ``{``, ``(`` and
        ``[``. Nested greedy quantifiers, catastrophic backtracking shapes
        and scores above the configured maximum produce warnings.

        Args:
            pattern: The regex source.

        Returns:
            RegexValidation; syntax errors give ``is_valid=False``.
        """
        if not isinstance(pattern, str):
            return RegexValidation(is_valid=False, warnings=["Regex pattern must be a string"])

        try:
            re.compile(pattern)
        except re.error as exc:
            return RegexValidation(is_valid=False, warnings=[f"Invalid regex syntax: {exc}"])

        complexity = sum(pattern.count(char) * weight for char, weight in COMPLEXITY_WEIGHTS.items())

        warnings: list[str] = []
        if ".*.*" in pattern:
            warnings.append("Nested greedy quantifiers may cause slow matching")
        if "(.+)+" in pattern:
            warnings.append("Pattern can backtrack catastrophically")
        if complexity > self._config.max_complexity:
            warnings.append(
                f"Regex is too complex ({complexity} > {self._config.max_complexity}); "
                "consider simplifying it"
            )

        return RegexValidation(is_valid=True, complexity=complexity, warnings=warnings)
