"""Summary formatting utilities for consistent terminal output."""

from __future__ import annotations


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "file")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 file" or "3 files"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


def normalize_extension(ext: str) -> str:
    """Normalize a file extension filter to its bare lower-case form.

    Examples:
        ".DLL" -> "dll"
        "*.dll" -> "dll"
        "winmd" -> "winmd"
    """
    return ext.strip().lstrip("*").lstrip(".").lower()
