from __future__ import annotations

import html

ADDED_CLASS = "i"
REMOVED_CLASS = "d"


def highlight_line(line: str) -> str:
    """Escape one diff line and wrap it according to its leading character.

    Args:
        line (str): a raw line of a unified diff

    Returns:
        str: the HTML-safe line, wrapped in a span for added (``+``) or removed (``-``) lines
    """
    if not line:
        return line
    escaped = html.escape(line)
    if line[0] == "+":
        return f'<span class="{ADDED_CLASS}">{escaped}</span>'
    if line[0] == "-":
        return f'<span class="{REMOVED_CLASS}">{escaped}</span>'
    return escaped


def highlight_diff(diff: str) -> str:
    """Highlight a whole unified diff, line by line."""
    return "\n".join(highlight_line(line) for line in diff.split("\n"))
