# docflow/utils/text.py
# ============================================================
# Text Utility Functions
# ============================================================
# Shared helpers for keeping failure reports bounded: tool
# output is reported as a handful of non-blank lines and LLM
# payloads as a short preview, never in full.
#
# Usage:
#   from docflow.utils.text import excerpt_lines, preview
#   lines = excerpt_lines(result.stderr, limit=10)
# ============================================================

from typing import Optional


def excerpt_lines(text: Optional[str], limit: int = 10) -> list[str]:
    """
    Return the first `limit` non-blank lines of `text`, stripped.

    Args:
        text: Captured tool output (may be None or empty).
        limit: Maximum number of lines to keep.

    Returns:
        List of stripped lines, possibly empty.

    Example:
        >>> excerpt_lines("a\\n\\n  b  \\nc", limit=2)
        ['a', 'b']
    """
    if not text:
        return []
    lines = []
    for line in text.splitlines():
        if len(lines) >= limit:
            break
        if line.strip():
            lines.append(line.strip())
    return lines


def preview(text: str, limit: int = 200) -> str:
    """Truncate a payload for logging, marking when it was cut."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... (truncated)"
