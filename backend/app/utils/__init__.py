"""Utility functions for the marketplace backend."""

from app.utils.text import sanitize_html, sanitize_text

__all__ = [
    "sanitize_html",
    "sanitize_text",
]
