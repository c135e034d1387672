import json
from pathlib import Path

from gridexport.domain.reporting.collector import ReportCollector
from gridexport.infra.artifacts.report_writer import finalizeReport, formatReportSummary, writeReportJson


def test_export_summary_line_includes_paging_counters():
    report = ReportCollector(run_id="r1", command="export")
    report.summary.columns_total = 3
    report.summary.rows_exported = 4
    report.summary.rows_total = 6
    report.summary.pages_fetched = 3
    report.summary.ended_early = True
    report.set_context("api", {"retry_attempts": 2})

    assert formatReportSummary(report) == "columns=3 rows=4/6 pages=3 ended_early=true api_retries=2"


def test_columns_summary_line_has_only_columns():
    report = ReportCollector(run_id="r1", command="columns")
    report.summary.columns_total = 2

    assert formatReportSummary(report) == "columns=2"


def test_write_report_names_file_after_command_and_run(tmp_path: Path):
    report = ReportCollector(run_id="r9", command="columns")
    finalizeReport(report, durationMs=5, logFile="x.log", exportDir="exports", reportDir=str(tmp_path))

    path = writeReportJson(report, str(tmp_path))

    assert path == str(tmp_path / "report_columns_r9.json")
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    assert data["status"] == "SUCCESS"
    assert data["meta"]["duration_ms"] == 5
    assert data["context"]["runtime"] == {"log_file": "x.log", "report_dir": str(tmp_path)}
