import json
from pathlib import Path

import pytest

from runlens.aggregator.aggregate import (
    ResultAggregator,
    aggregate_metadata,
    history_trend,
    suite_stats,
    summarize,
    unique_errors,
)
from runlens.exceptions import ReadError
from runlens.models.domain import HistorySeries, RunMetadata, RunReport, TestResult
from runlens.types import TestStatus

RUN1 = {
    "metadata": {
        "browserName": "chrome",
        "executionStartTime": "2024-01-01T00:00:00Z",
        "executionEndTime": "2024-01-01T00:10:00Z",
    },
    "testResults": [
        {"suiteName": "S1", "testName": "t1", "status": "PASSED"},
        {"suiteName": "S1", "testName": "t2", "status": "FAILED", "error": "boom"},
    ],
}
RUN2 = {
    "metadata": {
        "browserName": "firefox",
        "executionStartTime": "2024-01-01T00:05:00Z",
        "executionEndTime": "2024-01-01T00:20:00Z",
    },
    "testResults": [{"suiteName": "S2", "testName": "t3", "status": "PASSED"}],
}


def _result(status: str = "PASSED", suite: str = "S", error: str = "", name: str = "t") -> TestResult:
    return TestResult(suite_name=suite, test_name=name, status=TestStatus(status), error=error)


@pytest.mark.unit
class TestAggregationEndToEnd:
    @pytest.fixture()
    def aggregator(self) -> ResultAggregator:
        return ResultAggregator()

    def test_two_runs(self, aggregator: ResultAggregator, write_json, tmp_path: Path) -> None:
        write_json("run1.json", RUN1)
        write_json("run2.json", RUN2)

        model = aggregator.aggregate_folder(tmp_path / "results")

        summary = model.overall_summary
        assert (summary.total, summary.passed, summary.failed) == (3, 2, 1)
        stats = {name: (c.total, c.passed, c.failed) for name, c in model.suite_stats.items()}
        assert stats == {"S1": (2, 1, 1), "S2": (1, 1, 0)}
        assert model.unique_errors == {"boom": 1}
        assert [r.test_name for r in model.merged_results] == ["t1", "t2", "t3"]
        assert model.history_trend is None
        assert model.warnings == []
        assert model.files_read == 2

    def test_metadata_spans_all_runs(self, aggregator: ResultAggregator, write_json, tmp_path: Path) -> None:
        write_json("run1.json", RUN1)
        write_json("run2.json", RUN2)

        metadata = aggregator.aggregate_folder(tmp_path / "results").aggregate_metadata

        assert metadata.browser_name == "chrome"
        assert metadata.execution_start_time == "2024-01-01T00:00:00Z"
        assert metadata.execution_end_time == "2024-01-01T00:20:00Z"
        assert metadata.total_time_in_minutes == "20.00"

    def test_partial_failure_isolation(
        self, aggregator: ResultAggregator, write_json, tmp_path: Path
    ) -> None:
        write_json("run1.json", RUN1)
        write_json("run2.json", RUN2)
        (tmp_path / "results" / "corrupt.json").write_text("{\"testResults\": [")

        model = aggregator.aggregate_folder(tmp_path / "results")

        assert model.overall_summary.total == 3
        assert len(model.warnings) == 1
        assert model.files_read == 2
        assert model.files_skipped == 1

    def test_cross_file_duplicates_are_counted_twice(
        self, aggregator: ResultAggregator, write_json, tmp_path: Path
    ) -> None:
        record = {"uid": "same", "suiteName": "S1", "testName": "t1", "status": "PASSED"}
        write_json("a.json", [record])
        write_json("b.json", [record])
        model = aggregator.aggregate_folder(tmp_path / "results")
        assert model.overall_summary.total == 2

    def test_with_history(self, aggregator: ResultAggregator, write_json, tmp_path: Path) -> None:
        write_json("run1.json", RUN1)
        history = tmp_path / "history.json"
        history.write_text(
            json.dumps([{"timestamp": "2024-01-01T00:00:00Z", "suites": {"S1": {"totalTests": 2, "passed": 2}}}])
        )
        model = aggregator.aggregate_folder(tmp_path / "results", history_path=history)
        assert model.history_trend is not None
        assert model.history_trend["S1"][0].pass_rate == 100.0

    def test_unlistable_folder_is_fatal(self, aggregator: ResultAggregator, tmp_path: Path) -> None:
        with pytest.raises(ReadError):
            aggregator.aggregate_folder(tmp_path / "nope")

    def test_empty_input(self, aggregator: ResultAggregator) -> None:
        model = aggregator.aggregate([])
        assert model.overall_summary.total == 0
        assert model.suite_stats == {}
        assert model.aggregate_metadata == RunMetadata()


@pytest.mark.unit
class TestStatistics:
    def test_summary_total_is_passed_plus_failed(self) -> None:
        results = [_result("PASSED"), _result("FAILED"), _result("FAILED")]
        summary = summarize(results)
        assert summary.total == summary.passed + summary.failed == 3

    def test_suite_stats_sum_to_total(self) -> None:
        results = [_result(suite="A"), _result(suite="B", status="FAILED"), _result(suite="A")]
        stats = suite_stats(results)
        assert sum(c.total for c in stats.values()) == summarize(results).total

    def test_missing_suite_is_unknown(self) -> None:
        stats = suite_stats([_result(suite="")])
        assert list(stats) == ["Unknown"]

    def test_unique_errors_first_seen_order(self) -> None:
        results = [_result(error="E1"), _result(error="E2"), _result(error="E1"), _result(error="")]
        errors = unique_errors(results)
        assert list(errors.items()) == [("E1", 2), ("E2", 1)]

    def test_unique_errors_keeps_exact_strings(self) -> None:
        errors = unique_errors([_result(error="boom"), _result(error="Boom"), _result(error="boom ")])
        assert errors == {"boom": 1, "Boom": 1, "boom ": 1}


@pytest.mark.unit
class TestAggregateMetadata:
    def test_skips_documents_without_metadata(self) -> None:
        documents = [
            RunReport(metadata=None, test_results=[]),
            RunReport.model_validate(RUN2),
        ]
        assert aggregate_metadata(documents).browser_name == "firefox"

    def test_ignores_unparseable_times(self) -> None:
        documents = [
            RunReport.model_validate({"metadata": {"executionStartTime": "N/A"}, "testResults": []}),
            RunReport.model_validate(RUN1),
        ]
        metadata = aggregate_metadata(documents)
        assert metadata.browser_name == "Unknown"
        assert metadata.execution_start_time == "2024-01-01T00:00:00Z"
        assert metadata.total_time_in_minutes == "10.00"

    def test_no_times_gives_sentinels(self) -> None:
        documents = [RunReport.model_validate({"metadata": {"browserName": "edge"}, "testResults": []})]
        metadata = aggregate_metadata(documents)
        assert metadata.browser_name == "edge"
        assert metadata.execution_start_time == "N/A"
        assert metadata.total_time_in_minutes == "N/A"


@pytest.mark.unit
class TestHistoryTrend:
    @pytest.fixture()
    def series(self) -> HistorySeries:
        return HistorySeries.model_validate(
            [
                {
                    "timestamp": "2024-01-03T00:00:00Z",
                    "suites": {
                        "S1": {
                            "totalTests": 3,
                            "passed": 3,
                            "failed": 0,
                            "defectComparison": {"newDefects": [], "resolvedDefects": ["t2"]},
                        }
                    },
                },
                {
                    "timestamp": "2024-01-01T00:00:00Z",
                    "suites": {
                        "S1": {
                            "totalTests": 3,
                            "passed": 2,
                            "failed": 1,
                            "defectComparison": {"newDefects": ["t2"], "resolvedDefects": []},
                        },
                        "S2": {"totalTests": 0, "passed": 0, "failed": 0},
                    },
                },
            ]
        )

    def test_sorted_ascending_by_timestamp(self, series: HistorySeries) -> None:
        trend = history_trend(series)
        assert [p.timestamp for p in trend["S1"]] == ["2024-01-01T00:00:00Z", "2024-01-03T00:00:00Z"]

    def test_rates(self, series: HistorySeries) -> None:
        first = history_trend(series)["S1"][0]
        assert first.pass_rate == 66.67
        assert first.fail_rate == 33.33

    def test_zero_total_has_zero_rates(self, series: HistorySeries) -> None:
        point = history_trend(series)["S2"][0]
        assert point.pass_rate == 0
        assert point.fail_rate == 0

    def test_issues_carried_through(self, series: HistorySeries) -> None:
        first, second = history_trend(series)["S1"]
        assert first.new_issues == ["t2"]
        assert first.resolved_issues == []
        assert second.resolved_issues == ["t2"]

    def test_missing_comparison_gives_empty_lists(self, series: HistorySeries) -> None:
        point = history_trend(series)["S2"][0]
        assert point.new_issues == []
        assert point.resolved_issues == []
