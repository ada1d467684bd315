"""Result documents and the derived report model.

JSON documents use camelCase keys (``suiteName``, ``testResults``); the
models expose snake_case attributes and accept either form on input.
Dump with ``by_alias=True`` to produce the on-disk shape.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    ValidationInfo,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from runlens.config.settings import NOT_AVAILABLE, UNKNOWN_BROWSER
from runlens.types import TestStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def _default_for(cls, value: object, info: ValidationInfo) -> object:
        """Replace a JSON null with the field's default."""
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


def percentage(part: int, total: int) -> float:
    """Return ``part`` as a percentage of ``total``, rounded to 2 decimals."""
    if total <= 0:
        return 0.0
    return round(part / total * 100, 2)


class TestResult(_CamelModel):
    model_config = ConfigDict(frozen=True)
    __test__: ClassVar[bool] = False

    uid: str = ""
    timestamp: str = ""
    suite_name: str = ""
    test_name: str = ""
    status: TestStatus
    error: str = ""
    stack: str = ""
    screenshot: str = ""
    browser_console_logs: list[str] = []
    spec_console_logs: list[str] = []

    @field_validator(
        "uid",
        "timestamp",
        "suite_name",
        "test_name",
        "error",
        "stack",
        "screenshot",
        "browser_console_logs",
        "spec_console_logs",
        mode="before",
    )
    @classmethod
    def _null_to_default(cls, value: object, info: ValidationInfo) -> object:
        return cls._default_for(value, info)


class RunMetadata(_CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    browser_name: str = UNKNOWN_BROWSER
    execution_start_time: str = NOT_AVAILABLE
    execution_end_time: str = NOT_AVAILABLE
    total_time_in_minutes: str = NOT_AVAILABLE

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_sentinel(cls, value: object, info: ValidationInfo) -> object:
        return cls._default_for(value, info)


class RunReport(_CamelModel):
    metadata: RunMetadata | None = None
    test_results: list[TestResult] = []


class SuiteCounts(_CamelModel):
    total: int = 0
    passed: int = 0
    failed: int = 0

    def record(self, status: TestStatus) -> None:
        self.total += 1
        if status == TestStatus.PASSED:
            self.passed += 1
        elif status == TestStatus.FAILED:
            self.failed += 1

    @computed_field(alias="passRate")  # type: ignore[prop-decorator]
    @property
    def pass_rate(self) -> float:
        return percentage(self.passed, self.total)

    @computed_field(alias="failRate")  # type: ignore[prop-decorator]
    @property
    def fail_rate(self) -> float:
        return percentage(self.failed, self.total)


# --- History ---


class DefectComparison(_CamelModel):
    new_defects: list[str] = []
    resolved_defects: list[str] = []


class HistorySuiteEntry(_CamelModel):
    total_tests: int = 0
    passed: int = 0
    failed: int = 0
    defect_comparison: DefectComparison | None = None


class HistoryRecord(_CamelModel):
    timestamp: str
    suites: dict[str, HistorySuiteEntry] = {}


class HistorySeries(RootModel[list[HistoryRecord]]):
    pass


class TrendPoint(_CamelModel):
    timestamp: str
    total_tests: int
    passed: int
    failed: int
    pass_rate: float
    fail_rate: float
    new_issues: list[str] = []
    resolved_issues: list[str] = []


# --- Aggregation output ---


class PartialInputWarning(_CamelModel):
    """An input file that was skipped during aggregation."""

    path: str
    reason: str


class ReportModel(_CamelModel):
    merged_results: list[TestResult] = []
    overall_summary: SuiteCounts = Field(default_factory=SuiteCounts)
    suite_stats: dict[str, SuiteCounts] = {}
    unique_errors: dict[str, int] = {}
    aggregate_metadata: RunMetadata = Field(default_factory=RunMetadata)
    history_trend: dict[str, list[TrendPoint]] | None = None
    warnings: list[PartialInputWarning] = []
    files_read: int = 0
    files_skipped: int = 0
