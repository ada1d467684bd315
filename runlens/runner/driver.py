"""Browser automation drivers consumed by the result collector."""

from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog

if TYPE_CHECKING:
    from playwright.async_api import ConsoleMessage, Page

logger = structlog.get_logger(__name__)

BROWSER_LOG_TYPE = "browser"


@runtime_checkable
class BrowserDriver(Protocol):
    """What the collector needs from a browser automation handle."""

    @property
    def capabilities(self) -> Mapping[str, Any]: ...

    async def take_screenshot(self) -> str:
        """Return a base64 encoded PNG of the current viewport."""
        ...

    def supports_logs(self, log_type: str) -> bool: ...

    async def get_logs(self, log_type: str) -> list[str]: ...


class PlaywrightDriver:
    """Adapts an async Playwright page to the BrowserDriver protocol.

    Console messages are buffered from the page's ``console`` event and
    drained by each ``get_logs("browser")`` call.
    """

    def __init__(self, page: Page) -> None:
        self._page = page
        self._console: list[str] = []
        page.on("console", self._on_console)

    def _on_console(self, msg: ConsoleMessage) -> None:
        self._console.append(f"[{msg.type}] {msg.text}")

    @property
    def capabilities(self) -> Mapping[str, Any]:
        browser = self._page.context.browser
        if browser is None:
            return {}
        return {"browserName": browser.browser_type.name, "browserVersion": browser.version}

    async def take_screenshot(self) -> str:
        data = await self._page.screenshot(full_page=True)
        return base64.b64encode(data).decode("ascii")

    def supports_logs(self, log_type: str) -> bool:
        return log_type == BROWSER_LOG_TYPE

    async def get_logs(self, log_type: str) -> list[str]:
        if not self.supports_logs(log_type):
            return []
        logs, self._console = self._console, []
        logger.debug("browser_logs_drained", count=len(logs))
        return logs
