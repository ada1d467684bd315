"""Self-contained HTML dashboard rendering with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from jinja2 import Environment, PackageLoader, select_autoescape

from runlens.aggregator.screenshots import embed_screenshot
from runlens.exceptions import OutputWriteError

if TYPE_CHECKING:
    from runlens.models.domain import ReportModel

logger = structlog.get_logger(__name__)

TEMPLATE_NAME = "report.html.j2"
DEFAULT_PAGE_SIZE = 25


def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("runlens.render", "templates"),
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _rows(model: ReportModel) -> list[dict[str, Any]]:
    rows = []
    for result in model.merged_results:
        rows.append(
            {
                "timestamp": result.timestamp,
                "suite_name": result.suite_name,
                "test_name": result.test_name,
                "status": result.status.value,
                "error": result.error,
                "stack": result.stack,
                "screenshot": embed_screenshot(result.screenshot),
                "browser_console_logs": result.browser_console_logs,
                "spec_console_logs": result.spec_console_logs,
            }
        )
    return rows


def render_html(model: ReportModel, title: str = "Test Execution Report") -> str:
    """Render a ReportModel as a single HTML document."""
    template = _environment().get_template(TEMPLATE_NAME)
    summary = model.overall_summary
    return template.render(
        title=title,
        model=model,
        metadata=model.aggregate_metadata,
        summary=summary,
        rows=_rows(model),
        page_size=DEFAULT_PAGE_SIZE,
        chart_data={
            "labels": ["Passed", "Failed"],
            "values": [summary.passed, summary.failed],
            "suites": list(model.suite_stats),
            "suitePassed": [s.passed for s in model.suite_stats.values()],
            "suiteFailed": [s.failed for s in model.suite_stats.values()],
        },
    )


def write_html(
    model: ReportModel, output_file: str | Path, title: str = "Test Execution Report"
) -> Path:
    """Render and write the dashboard, creating parent directories."""
    path = Path(output_file)
    html = render_html(model, title=title)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
    except OSError as exc:
        msg = f"Could not write HTML report {path}: {exc.strerror or exc}"
        raise OutputWriteError(msg) from exc
    logger.info("html_report_written", path=str(path), results=len(model.merged_results))
    return path
