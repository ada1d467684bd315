"""Enums and type aliases for runlens."""

from collections.abc import Callable
from enum import StrEnum


class TestStatus(StrEnum):
    __test__ = False

    PASSED = "PASSED"
    FAILED = "FAILED"


class ScreenshotOption(StrEnum):
    NO = "No"
    ON_FAILURE = "OnFailure"
    FULL = "Full"


SuiteNameTransform = Callable[[str], str]
