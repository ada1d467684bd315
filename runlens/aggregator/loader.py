"""Reading run report documents and history series from disk."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from pydantic import TypeAdapter, ValidationError

from runlens.exceptions import ReadError
from runlens.models.domain import HistorySeries, PartialInputWarning, RunReport, TestResult

logger = structlog.get_logger(__name__)

_RESULT_LIST = TypeAdapter(list[TestResult])


@dataclass
class LoadResult:
    """Documents accepted from a folder, plus one warning per skipped file."""

    documents: list[RunReport] = field(default_factory=list)
    warnings: list[PartialInputWarning] = field(default_factory=list)
    files_seen: int = 0


def list_report_files(folder: Path) -> list[Path]:
    """List ``*.json`` files directly inside ``folder`` in name order."""
    try:
        entries = list(folder.iterdir())
    except OSError as exc:
        msg = f"Cannot list input folder {folder}: {exc.strerror or exc}"
        raise ReadError(msg) from exc
    return sorted(p for p in entries if p.suffix.lower() == ".json" and p.is_file())


def parse_document(raw: object) -> RunReport:
    """Accept ``{metadata, testResults}`` or a bare list of result records.

    Raises ValueError for any other shape and ValidationError for
    records that do not look like results.
    """
    if isinstance(raw, list):
        return RunReport(metadata=None, test_results=_RESULT_LIST.validate_python(raw))
    if isinstance(raw, dict) and isinstance(raw.get("testResults"), list):
        return RunReport.model_validate(raw)
    msg = "expected an object with a testResults array or an array of results"
    raise ValueError(msg)


def load_document(path: Path) -> RunReport:
    text = path.read_text(encoding="utf-8")
    return parse_document(json.loads(text))


def load_folder(folder: str | Path) -> LoadResult:
    """Load every report in ``folder``, skipping files that cannot be used."""
    folder = Path(folder)
    result = LoadResult()
    for path in list_report_files(folder):
        result.files_seen += 1
        try:
            document = load_document(path)
        except OSError as exc:
            reason = f"unreadable: {exc.strerror or exc}"
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            reason = f"malformed JSON: {exc}"
        except ValidationError as exc:
            reason = f"invalid result record: {exc.error_count()} validation error(s)"
        except ValueError as exc:
            reason = f"unrecognized document: {exc}"
        else:
            result.documents.append(document)
            logger.debug("input_file_loaded", path=str(path), results=len(document.test_results))
            continue

        result.warnings.append(PartialInputWarning(path=str(path), reason=reason))
        logger.warning("input_file_skipped", path=str(path), reason=reason)

    logger.info(
        "input_folder_loaded",
        folder=str(folder),
        files=result.files_seen,
        accepted=len(result.documents),
        skipped=len(result.warnings),
    )
    return result


def load_history(path: str | Path) -> HistorySeries:
    """Load a history series; any failure is fatal to the caller."""
    path = Path(path)
    try:
        return HistorySeries.model_validate_json(path.read_bytes())
    except OSError as exc:
        msg = f"Cannot read history file {path}: {exc.strerror or exc}"
        raise ReadError(msg) from exc
    except ValidationError as exc:
        msg = f"Invalid history file {path}: {exc.error_count()} validation error(s)"
        raise ReadError(msg) from exc
