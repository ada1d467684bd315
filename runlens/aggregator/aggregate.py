"""Merging run reports into the report model a dashboard displays."""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from runlens.aggregator.loader import load_folder, load_history
from runlens.config.settings import NOT_AVAILABLE, UNKNOWN_BROWSER, UNKNOWN_SUITE
from runlens.models.domain import (
    ReportModel,
    RunMetadata,
    SuiteCounts,
    TrendPoint,
    percentage,
)
from runlens.utils.timing import minutes_between, parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from runlens.models.domain import (
        HistoryRecord,
        HistorySeries,
        PartialInputWarning,
        RunReport,
        TestResult,
    )

logger = structlog.get_logger(__name__)


def summarize(results: Iterable[TestResult]) -> SuiteCounts:
    counts = SuiteCounts()
    for result in results:
        counts.record(result.status)
    return counts


def suite_stats(results: Iterable[TestResult]) -> dict[str, SuiteCounts]:
    """Per-suite counts, keyed in first-seen order."""
    stats: dict[str, SuiteCounts] = {}
    for result in results:
        suite = result.suite_name or UNKNOWN_SUITE
        stats.setdefault(suite, SuiteCounts()).record(result.status)
    return stats


def unique_errors(results: Iterable[TestResult]) -> dict[str, int]:
    """Occurrences of each distinct non-empty error, in first-seen order."""
    return dict(Counter(r.error for r in results if r.error))


def aggregate_metadata(documents: Sequence[RunReport]) -> RunMetadata:
    """Widest execution window across every document that carries metadata.

    The browser name comes from the first document with metadata.
    Timestamps that do not parse are ignored.
    """
    browser_name: str | None = None
    start: tuple[datetime, str] | None = None
    end: tuple[datetime, str] | None = None

    for document in documents:
        metadata = document.metadata
        if metadata is None:
            continue
        if browser_name is None:
            browser_name = metadata.browser_name
        doc_start = parse_timestamp(metadata.execution_start_time)
        doc_end = parse_timestamp(metadata.execution_end_time)
        if doc_start is not None and (start is None or doc_start < start[0]):
            start = (doc_start, metadata.execution_start_time)
        if doc_end is not None and (end is None or doc_end > end[0]):
            end = (doc_end, metadata.execution_end_time)

    return RunMetadata(
        browser_name=browser_name or UNKNOWN_BROWSER,
        execution_start_time=start[1] if start else NOT_AVAILABLE,
        execution_end_time=end[1] if end else NOT_AVAILABLE,
        total_time_in_minutes=minutes_between(start[0], end[0]) if start and end else NOT_AVAILABLE,
    )


def _history_sort_key(record: HistoryRecord) -> tuple[bool, datetime, str]:
    parsed = parse_timestamp(record.timestamp)
    return (parsed is None, parsed or datetime.min.replace(tzinfo=UTC), record.timestamp)


def history_trend(history: HistorySeries) -> dict[str, list[TrendPoint]]:
    """Per-suite time series with pass/fail rates.

    New and resolved issues are copied from each record's defect
    comparison as-is; they are never derived from the counts.
    """
    trend: dict[str, list[TrendPoint]] = {}
    for record in sorted(history.root, key=_history_sort_key):
        for suite, entry in record.suites.items():
            comparison = entry.defect_comparison
            trend.setdefault(suite, []).append(
                TrendPoint(
                    timestamp=record.timestamp,
                    total_tests=entry.total_tests,
                    passed=entry.passed,
                    failed=entry.failed,
                    pass_rate=percentage(entry.passed, entry.total_tests),
                    fail_rate=percentage(entry.failed, entry.total_tests),
                    new_issues=list(comparison.new_defects) if comparison else [],
                    resolved_issues=list(comparison.resolved_defects) if comparison else [],
                )
            )
    return trend


class ResultAggregator:
    """Builds a ReportModel from run reports and an optional history series.

    The model is recomputed on every call and never persisted here.
    Results are not de-duplicated across documents: a record present in
    two files is counted twice.
    """

    def aggregate(
        self,
        documents: Sequence[RunReport],
        history: HistorySeries | None = None,
        warnings: Sequence[PartialInputWarning] = (),
    ) -> ReportModel:
        merged = [result for document in documents for result in document.test_results]
        model = ReportModel(
            merged_results=merged,
            overall_summary=summarize(merged),
            suite_stats=suite_stats(merged),
            unique_errors=unique_errors(merged),
            aggregate_metadata=aggregate_metadata(documents),
            history_trend=history_trend(history) if history is not None else None,
            warnings=list(warnings),
            files_read=len(documents),
            files_skipped=len(warnings),
        )
        logger.info(
            "results_aggregated",
            documents=len(documents),
            skipped=len(warnings),
            total=model.overall_summary.total,
            passed=model.overall_summary.passed,
            failed=model.overall_summary.failed,
            suites=len(model.suite_stats),
            unique_errors=len(model.unique_errors),
        )
        return model

    def aggregate_folder(
        self,
        folder: str | Path,
        history_path: str | Path | None = None,
    ) -> ReportModel:
        """Load every report in ``folder`` and aggregate them.

        Raises ReadError when the folder cannot be listed or the history
        file cannot be read; individual bad reports only add warnings.
        """
        loaded = load_folder(folder)
        history = load_history(history_path) if history_path is not None else None
        return self.aggregate(loaded.documents, history=history, warnings=loaded.warnings)
