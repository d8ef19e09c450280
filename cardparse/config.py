"""Configuration loader for the note extraction pipeline."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "cardparse"
    version: str = "0.1.0"


class ParsingConfig(BaseModel):
    """Region scanning defaults used when the caller supplies no markers."""

    start_marker: str = "<!-- cards:start -->"
    end_marker: str = "<!-- cards:end -->"
    card_separator: str = "---card---"


class RegexConfig(BaseModel):
    """Guard settings for user-supplied and generated extraction regexes."""

    max_complexity: int = 50
    reject_risky_patterns: bool = False


class ValidationConfig(BaseModel):
    """Thresholds for the parse result validator."""

    min_coverage: float = 0.85
    critical_coverage: float = 0.5
    min_field_length: int = 3
    max_field_length: int = 10000
    max_field_share: float = 0.8
    max_lost_fragments: int = 5
    critical_fields: list[str] = Field(
        default_factory=lambda: ["question", "answer", "front", "back"]
    )


class DiffConfig(BaseModel):
    """Thresholds for the parsing diff detector."""

    max_loss_percentage: float = 20.0
    max_missing_keywords: int = 5


class PipelineConfig(BaseModel):
    """How the pipeline turns the two audit reports into a decision."""

    review_threshold: float = 0.6
    notes_field: str = "notes"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    regex: RegexConfig = Field(default_factory=RegexConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Override log level from environment
    log_level = os.getenv("CARDPARSE_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config
