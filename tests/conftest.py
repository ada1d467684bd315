"""Shared test fixtures."""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any

import pytest
import structlog

from runlens.config.settings import Settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n fake screenshot data"


class FakeDriver:
    """In-memory BrowserDriver for collector tests."""

    def __init__(
        self,
        browser_name: str = "chrome",
        logs: list[str] | None = None,
        screenshot_error: Exception | None = None,
        logs_error: Exception | None = None,
        log_types: tuple[str, ...] = ("browser",),
    ) -> None:
        self._browser_name = browser_name
        self._logs = logs or []
        self._screenshot_error = screenshot_error
        self._logs_error = logs_error
        self._log_types = log_types
        self.screenshots_taken = 0

    @property
    def capabilities(self) -> dict[str, Any]:
        return {"browserName": self._browser_name}

    async def take_screenshot(self) -> str:
        if self._screenshot_error:
            raise self._screenshot_error
        self.screenshots_taken += 1
        return base64.b64encode(PNG_BYTES).decode("ascii")

    def supports_logs(self, log_type: str) -> bool:
        return log_type in self._log_types

    async def get_logs(self, log_type: str) -> list[str]:
        if self._logs_error:
            raise self._logs_error
        return list(self._logs)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(output_file=str(tmp_path / "reports" / "test-report.json"))


@pytest.fixture()
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture()
def write_json(tmp_path: Path):
    """Write a JSON document into ``tmp_path/results`` and return its path."""
    folder = tmp_path / "results"
    folder.mkdir(exist_ok=True)

    def _write(name: str, payload: Any) -> Path:
        path = folder / name
        path.write_text(json.dumps(payload))
        return path

    return _write


@pytest.fixture(autouse=True)
def stdlib_structlog():
    """Route structlog through stdlib logging so nothing lands on stdout."""
    structlog.configure(
        processors=[structlog.stdlib.add_log_level, structlog.processors.JSONRenderer()],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()
