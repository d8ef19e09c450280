"""Markdown note to structured card field extraction and validation."""

__version__ = "0.1.0"
