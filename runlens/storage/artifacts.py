"""Filesystem storage for run reports and screenshots.

Everything lives next to the configured output file: reports are written
as timestamped JSON files in its directory, screenshots under a
``screenshots/`` directory beside them.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from pathlib import Path

import structlog

from runlens.exceptions import CaptureError, OutputWriteError
from runlens.utils.sanitize import safe_timestamp, safe_title

logger = structlog.get_logger(__name__)

SCREENSHOTS_DIR = "screenshots"
REPORT_PREFIX = "test-report"


class ArtifactStore:
    """Writes report documents and screenshots beside an output file."""

    def __init__(self, output_file: str | Path) -> None:
        self._base = Path(output_file).expanduser().parent.resolve()
        self._base.mkdir(parents=True, exist_ok=True)

    def _safe_path(self, *parts: str) -> Path:
        """Resolve path with traversal protection."""
        path = (self._base / Path(*parts)).resolve()
        if not path.is_relative_to(self._base):
            msg = f"Path traversal detected: {'/'.join(parts)}"
            raise ValueError(msg)
        return path

    def screenshot_path(self, title: str, timestamp: str) -> Path:
        """Get a collision-resistant path for a test's screenshot."""
        name = f"screenshot-{safe_title(title)}-{safe_timestamp(timestamp)}.png"
        return self._safe_path(SCREENSHOTS_DIR, name)

    def report_path(self, timestamp: str) -> Path:
        """Get the path of a report written at ``timestamp``."""
        return self._safe_path(f"{REPORT_PREFIX}-{safe_timestamp(timestamp)}.json")

    async def save_screenshot(self, title: str, timestamp: str, data_b64: str) -> Path:
        """Decode a base64 screenshot and write it to disk."""
        try:
            data = base64.b64decode(data_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = f"Screenshot for {title!r} is not valid base64"
            raise CaptureError(msg) from exc

        path = self.screenshot_path(title, timestamp)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            msg = f"Could not write screenshot {path}"
            raise CaptureError(msg) from exc
        logger.debug("screenshot_saved", path=str(path), size=len(data))
        return path

    async def write_report(self, timestamp: str, payload: str) -> Path:
        """Write a serialized report document."""
        path = self.report_path(timestamp)
        try:
            await asyncio.to_thread(path.write_text, payload, encoding="utf-8")
        except OSError as exc:
            msg = f"Could not write report {path}"
            raise OutputWriteError(msg) from exc
        logger.info("report_written", path=str(path), size=len(payload))
        return path
