"""Error message and filename sanitization utilities."""

import re

# ESC or CSI, "[", one or two numeric params, then SGR (m) or erase-line (K).
_ANSI_ESCAPE = re.compile(r"[\u001b\u009b]\[\d{1,2}(?:;\d{1,2})?[mK]")
_UNSAFE_TITLE_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def strip_ansi(text: str) -> str:
    """Remove ANSI colour and erase-line sequences."""
    return _ANSI_ESCAPE.sub("", text)


def sanitize_error_message(message: str | None, full: bool = False) -> str:
    """Strip ANSI sequences and whitespace from an error message.

    Only the first line is kept unless ``full`` is set, which is how stack
    traces are stored.
    """
    if not message:
        return ""
    sanitized = strip_ansi(message).strip()
    # Removing one sequence can expose another built from its neighbours.
    while _ANSI_ESCAPE.search(sanitized):
        sanitized = strip_ansi(sanitized).strip()
    if full:
        return sanitized
    return sanitized.split("\n")[0].strip()


def safe_title(title: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9]`` with an underscore."""
    return _UNSAFE_TITLE_CHARS.sub("_", title)


def safe_timestamp(timestamp: str) -> str:
    """Make an ISO timestamp usable in a filename."""
    return timestamp.replace(":", "-")
