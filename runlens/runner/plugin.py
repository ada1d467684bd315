"""pytest plugin that records each test into a runlens run report.

Enable with ``--runlens-output PATH`` (or ``RUNLENS_OUTPUT_FILE``). Results
are collected without a browser unless a driver is attached to the
collector, e.g. from a conftest fixture via ``config.stash[COLLECTOR_KEY]``.
"""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING, Any

import pytest
import structlog

from runlens.config.settings import get_settings
from runlens.exceptions import RunLensError
from runlens.reporter.collector import ResultCollector, TestError, TestInfo
from runlens.types import ScreenshotOption

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = structlog.get_logger(__name__)

COLLECTOR_KEY = pytest.StashKey[ResultCollector]()
REPORT_PATH_KEY = pytest.StashKey[str]()


class RunLensPlugin:
    """Maps pytest's runtest hooks onto ResultCollector callbacks."""

    def __init__(self, collector: ResultCollector) -> None:
        self.collector = collector
        self._loop = asyncio.new_event_loop()
        self._tests: dict[str, TestInfo] = {}

    def _run(self, coro: Coroutine[Any, Any, Any]) -> Any:
        return self._loop.run_until_complete(coro)

    def pytest_runtest_logstart(self, nodeid: str, location: tuple[str, int | None, str]) -> None:
        test = info_from_location(nodeid, location)
        self._tests[nodeid] = test
        self.collector.on_test_start(test)

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        if report.skipped:
            return
        if report.when != "call" and not (report.when == "setup" and report.failed):
            return

        test = self._tests.pop(report.nodeid, None)
        if test is None:
            test = TestInfo(title=report.nodeid, uid=report.nodeid)
        if report.capstdout:
            self.collector.on_stdout(report.capstdout)

        if report.passed:
            self._run(self.collector.on_test_pass(test))
            return
        test.error = error_from_report(report)
        self._run(self.collector.on_test_fail(test))

    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:
        try:
            path = self._run(self.collector.on_runner_end())
        except RunLensError as exc:
            logger.error("run_report_failed", error=str(exc), exitstatus=exitstatus)
        else:
            session.config.stash[REPORT_PATH_KEY] = str(path)
        finally:
            self._loop.close()


def info_from_location(nodeid: str, location: tuple[str, int | None, str]) -> TestInfo:
    """Derive title and suite from a node id and its reported location.

    ``location[2]`` is ``"TestClass.test_name"`` for methods and
    ``"test_name"`` for module level functions; the module stem is the
    suite of the latter.
    """
    path, _, domain = location
    parent, _, title = domain.rpartition(".")
    if not parent:
        parent = os.path.splitext(os.path.basename(path))[0]
    return TestInfo(title=title or domain, parent=parent, uid=nodeid)


def error_from_report(report: pytest.TestReport) -> TestError:
    longrepr = report.longrepr
    if longrepr is None:
        return TestError()
    crash = getattr(longrepr, "reprcrash", None)
    message = crash.message if crash is not None else str(longrepr)
    return TestError(message=message, stack=str(longrepr))


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("runlens", "runlens JSON run reports")
    group.addoption(
        "--runlens-output",
        action="store",
        default=None,
        help="Write a timestamped JSON run report into this file's directory.",
    )
    group.addoption(
        "--runlens-screenshots",
        action="store",
        choices=["No", "OnFailure", "Full"],
        default=None,
        help="Screenshot capture when a browser driver is attached.",
    )


def pytest_configure(config: pytest.Config) -> None:
    output = config.getoption("runlens_output")
    if not output and "RUNLENS_OUTPUT_FILE" not in os.environ:
        return
    # xdist workers each write their own file; the controller writes none.
    if not hasattr(config, "workerinput") and config.pluginmanager.hasplugin("dsession"):
        return

    overrides: dict[str, Any] = {}
    if output:
        overrides["output_file"] = output
    screenshots = config.getoption("runlens_screenshots")
    if screenshots:
        overrides["screenshot_option"] = ScreenshotOption(screenshots)
    settings = get_settings().model_copy(update=overrides)

    collector = ResultCollector(settings=settings)
    config.stash[COLLECTOR_KEY] = collector
    config.pluginmanager.register(RunLensPlugin(collector), "runlens-reporter")
