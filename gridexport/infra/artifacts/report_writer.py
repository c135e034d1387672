from __future__ import annotations

import json
from pathlib import Path

from gridexport.domain.reporting.collector import ReportCollector, asdict_report


def createEmptyReport(runId: str, command: str, configSources: list[str]) -> ReportCollector:
    """Скелет отчёта команды; источники настроек попадают в context.config."""
    collector = ReportCollector(run_id=runId, command=command)
    if configSources:
        collector.set_context("config", {"sources": configSources})
    return collector


def finalizeReport(report: ReportCollector, durationMs: int, logFile: str | None, exportDir: str, reportDir: str) -> None:
    """
    Назначение:
        Закрывает отчёт: статус, длительность, пути артефактов запуска.

    Поведение:
        - export_dir попадает в context.runtime только если команда записала файл.
    """
    runtime: dict[str, str | None] = {"log_file": logFile, "report_dir": reportDir}
    if report.meta.output_path:
        runtime["export_dir"] = exportDir
    report.set_context("runtime", runtime)
    report.finish(duration_ms=durationMs)


def formatReportSummary(report: ReportCollector) -> str:
    """
    Назначение:
        Однострочная сводка грида для консоли и лога.

    Пример:
        columns=3 rows=5/5 pages=3 ended_early=false
    """
    summary = report.summary
    line = f"columns={summary.columns_total}"
    if report.meta.command == "export":
        total = "?" if summary.rows_total is None else summary.rows_total
        line += (
            f" rows={summary.rows_exported}/{total} pages={summary.pages_fetched}"
            f" ended_early={'true' if summary.ended_early else 'false'}"
        )
    retries = report.context.get("api", {}).get("retry_attempts")
    if retries:
        line += f" api_retries={retries}"
    return line


def getReportPath(report: ReportCollector, reportDir: str) -> Path:
    return Path(reportDir) / f"report_{report.meta.command}_{report.meta.run_id}.json"


def writeReportJson(report: ReportCollector, reportDir: str) -> str:
    """
    Назначение:
        Пишет отчёт в <reportDir>/report_<command>_<run_id>.json и возвращает путь.
    """
    reportPath = getReportPath(report, reportDir)
    reportPath.parent.mkdir(parents=True, exist_ok=True)
    with reportPath.open("w", encoding="utf-8") as f:
        json.dump(asdict_report(report.build()), f, ensure_ascii=False, indent=2, default=str)
    return str(reportPath)
