"""Resolving screenshot paths into embeddable data URLs."""

from __future__ import annotations

import base64
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
}


def embed_screenshot(path: str | Path) -> str:
    """Return the image at ``path`` as a ``data:`` URL, or ``""`` if unavailable."""
    if not path:
        return ""
    path = Path(path)
    mime = _MIME_TYPES.get(path.suffix.lower(), "image/png")
    try:
        data = path.read_bytes()
    except (OSError, ValueError) as exc:
        error = getattr(exc, "strerror", None) or str(exc)
        logger.warning("screenshot_unavailable", path=str(path), error=error)
        return ""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
