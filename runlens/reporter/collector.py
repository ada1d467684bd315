"""Live test result collection into a run report."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import structlog

from runlens.config.settings import DEFAULT_SUITE, UNKNOWN_BROWSER, Settings, get_settings
from runlens.exceptions import CaptureError
from runlens.models.domain import RunMetadata, RunReport, TestResult
from runlens.reporter.suite_names import resolve_policy
from runlens.storage.artifacts import ArtifactStore
from runlens.types import ScreenshotOption, TestStatus
from runlens.utils.sanitize import sanitize_error_message
from runlens.utils.timing import StopWatch, iso_timestamp, utc_now

if TYPE_CHECKING:
    from pathlib import Path

    from runlens.runner.driver import BrowserDriver
    from runlens.types import SuiteNameTransform

logger = structlog.get_logger(__name__)


@dataclass
class TestError:
    """Error attached to a failed test."""

    __test__: ClassVar[bool] = False

    message: str = ""
    stack: str = ""


@dataclass
class TestInfo:
    """The parts of a test the collector reads from the engine."""

    __test__: ClassVar[bool] = False

    title: str
    parent: str | None = None
    error: TestError | None = None
    uid: str | None = None


class ResultCollector:
    """Turns test lifecycle callbacks into a RunReport.

    Test output written between ``on_test_start`` and the pass/fail callback
    is attached to that test. The buffer is flushed when the result is
    assembled, so output delivered after that point lands on the next test.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        driver: BrowserDriver | None = None,
        suite_name_policy: str | SuiteNameTransform | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._driver = driver
        self._normalize_suite = resolve_policy(
            suite_name_policy if suite_name_policy is not None else self._settings.suite_name_policy
        )
        self._store = ArtifactStore(self._settings.output_file)
        self._results: list[TestResult] = []
        self._seen_uids: set[str] = set()
        self._log_buffer: list[str] = []
        self._browser_name = UNKNOWN_BROWSER
        self._clock = StopWatch()

    @property
    def results(self) -> list[TestResult]:
        return list(self._results)

    def attach_driver(self, driver: BrowserDriver | None) -> None:
        """Swap the browser driver, e.g. when each test gets its own page."""
        self._driver = driver

    # --- Lifecycle ---

    def on_test_start(self, test: TestInfo) -> None:
        self._log_buffer = []
        logger.debug("test_started", test=test.title)

    def on_stdout(self, chunk: str) -> None:
        self._log_buffer.append(chunk)

    async def on_test_pass(self, test: TestInfo) -> None:
        await self.add_test_result(test, TestStatus.PASSED)

    async def on_test_fail(self, test: TestInfo) -> None:
        await self.add_test_result(test, TestStatus.FAILED)

    async def on_runner_end(self) -> Path:
        """Write the run report and return its path."""
        metadata = self._build_metadata()
        report = RunReport(metadata=metadata, test_results=list(self._results))
        payload = report.model_dump_json(by_alias=True, indent=2)
        path = await self._store.write_report(metadata.execution_end_time, payload)
        logger.info(
            "run_report_written",
            path=str(path),
            total=len(self._results),
            passed=sum(1 for r in self._results if r.status == TestStatus.PASSED),
            failed=sum(1 for r in self._results if r.status == TestStatus.FAILED),
        )
        return path

    # --- Assembly ---

    async def add_test_result(self, test: TestInfo, status: TestStatus) -> None:
        """Build a result for ``test`` and record it unless its uid was seen."""
        timestamp = iso_timestamp(utc_now())
        uid = test.uid or f"{test.title}-{timestamp}"
        suite_name = self._suite_name(test)
        error = sanitize_error_message(test.error.message) if test.error else ""
        stack = sanitize_error_message(test.error.stack, full=True) if test.error else ""

        screenshot = ""
        if self._wants_screenshot(status):
            screenshot = await self._capture_screenshot(test.title, timestamp)

        browser_logs = await self._collect_browser_logs(test.title)
        spec_logs = self._flush_log_buffer()

        if uid in self._seen_uids:
            logger.debug("duplicate_result_ignored", uid=uid, test=test.title)
            return

        self._seen_uids.add(uid)
        self._results.append(
            TestResult(
                uid=uid,
                timestamp=timestamp,
                suite_name=suite_name,
                test_name=test.title,
                status=status,
                error=error,
                stack=stack,
                screenshot=screenshot,
                browser_console_logs=browser_logs,
                spec_console_logs=spec_logs,
            )
        )
        logger.info("result_collected", suite=suite_name, test=test.title, status=status.value)

    def build_report(self) -> RunReport:
        """Snapshot the collected results with run metadata."""
        return RunReport(metadata=self._build_metadata(), test_results=list(self._results))

    def _build_metadata(self) -> RunMetadata:
        return RunMetadata(
            browser_name=self._resolve_browser_name(),
            execution_start_time=iso_timestamp(self._clock.started_at),
            execution_end_time=iso_timestamp(utc_now()),
            total_time_in_minutes=self._clock.elapsed_minutes(),
        )

    def _suite_name(self, test: TestInfo) -> str:
        parent = test.parent.strip() if test.parent else ""
        if not parent:
            return DEFAULT_SUITE
        try:
            normalized = self._normalize_suite(parent)
        except Exception:
            logger.exception("suite_name_policy_failed", suite=parent, test=test.title)
            return parent
        return normalized or DEFAULT_SUITE

    def _wants_screenshot(self, status: TestStatus) -> bool:
        option = self._settings.screenshot_option
        return option == ScreenshotOption.FULL or (
            option == ScreenshotOption.ON_FAILURE and status == TestStatus.FAILED
        )

    async def _capture_screenshot(self, title: str, timestamp: str) -> str:
        if self._driver is None:
            logger.warning("screenshot_skipped_no_driver", test=title)
            return ""
        try:
            data = await self._driver.take_screenshot()
            path = await self._store.save_screenshot(title, timestamp, data)
        except CaptureError as exc:
            logger.warning("screenshot_failed", test=title, error=str(exc))
            return ""
        except Exception as exc:
            logger.warning("screenshot_failed", test=title, error=repr(exc))
            return ""
        return str(path)

    async def _collect_browser_logs(self, title: str) -> list[str]:
        if not self._settings.capture_browser_logs or self._driver is None:
            return []
        log_type = self._settings.browser_log_type
        try:
            if not self._driver.supports_logs(log_type):
                return []
            return list(await self._driver.get_logs(log_type))
        except (ConnectionError, OSError) as exc:
            logger.warning("browser_logs_unavailable", test=title, error=str(exc))
        except Exception:
            logger.exception("browser_logs_failed", test=title)
        return []

    def _flush_log_buffer(self) -> list[str]:
        text = "".join(self._log_buffer)
        self._log_buffer = []
        return [line for line in text.splitlines() if line.strip()]

    def _resolve_browser_name(self) -> str:
        if self._driver is not None:
            try:
                name = self._driver.capabilities.get("browserName")
            except Exception as exc:
                logger.warning("capabilities_unavailable", error=repr(exc))
                name = None
            if name:
                self._browser_name = str(name)
        return self._browser_name
