"""Note file reading with encoding detection."""

import logging
from pathlib import Path

import chardet

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS: set[str] = {".md", ".markdown", ".txt"}


def read_note_text(file_path: str | Path) -> str:
    """Read a markdown or plain text note with encoding detection.

    Tries UTF-8 first, then uses chardet for fallback detection.

    Args:
        file_path: Path to the note file.

    Returns:
        The file content as a string.

    Raises:
        FileNotFoundError: If file_path does not exist.
        ValueError: If the file extension is not supported.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    ext = path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported note format: '{ext}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        pass

    raw_bytes = path.read_bytes()
    detected = chardet.detect(raw_bytes)
    encoding = detected.get("encoding") or "utf-8"
    confidence = detected.get("confidence") or 0

    if confidence < 0.7:
        logger.warning(
            "Low confidence encoding detection for %s: %s (%.0f%%)",
            path,
            encoding,
            confidence * 100,
        )

    try:
        return raw_bytes.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        logger.error("Failed to decode note %s as %s", path, encoding)
        return raw_bytes.decode("utf-8", errors="replace")
