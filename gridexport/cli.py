from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable

import typer

from gridexport.common.run_id import generate_run_id
from gridexport.common.sanitize import maskSecret
from gridexport.common.time import getDurationMs
from gridexport.config import Settings, loadSettings
from gridexport.domain.grid import Grid
from gridexport.domain.grid_source import GridSource
from gridexport.errors import AppError
from gridexport.export.csv_export import CsvExportType
from gridexport.infra.artifacts.grid_config_reader import GridConfig, readGridConfig
from gridexport.infra.artifacts.report_writer import (
    createEmptyReport,
    finalizeReport,
    formatReportSummary,
    writeReportJson,
)
from gridexport.infra.http.grid_api_client import GridApiClient
from gridexport.infra.logging.setup import closeCommandLogger, createCommandLogger, logEvent
from gridexport.infra.sources.api_grid_source import ApiGridSourceType
from gridexport.infra.sources.csv_grid_source import CsvGridSourceType
from gridexport.usecases.columns_usecase import ColumnsUseCase
from gridexport.usecases.export_usecase import ExportUseCase

app = typer.Typer(no_args_is_help=True, add_completion=False)


def ensureDir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Печатает безопасную сводку параметров запуска (без секретов).
    """
    typer.echo(
        f"run_id={runId} command={command} "
        f"api_base_url={settings.api_base_url} api_username={settings.api_username} "
        f"api_password={maskSecret(settings.api_password)} sources={sources} "
        f"log_level={settings.log_level}"
    )


def requireSource(csvPath: str | None, apiPath: str | None, settings: Settings) -> None:
    """
    Назначение:
        Проверяет, что задан ровно один источник данных и он доступен.

    Поведение:
        - Нет источника, оба источника, CSV не найден, нет api_base_url -> exit code 2.
    """
    if not csvPath and not apiPath:
        typer.echo("ERROR: one of --csv or --api-path is required", err=True)
        raise typer.Exit(code=2)
    if csvPath and apiPath:
        typer.echo("ERROR: --csv and --api-path are mutually exclusive", err=True)
        raise typer.Exit(code=2)
    if csvPath:
        p = Path(csvPath)
        if not p.exists() or not p.is_file():
            typer.echo(f"ERROR: CSV file not found: {csvPath}", err=True)
            raise typer.Exit(code=2)
    if apiPath and not settings.api_base_url:
        typer.echo("ERROR: missing API settings: api_base_url", err=True)
        raise typer.Exit(code=2)


def buildSourceType(
    settings: Settings,
    csvPath: str | None,
    apiPath: str | None,
    apiColumns: list[str] | None,
    apiTransport=None,
):
    """
    Назначение:
        Создаёт адаптер источника грида (CSV или HTTP API).

    Выходные данные:
        (source_type, source_label, client | None)
    """
    if csvPath:
        return CsvGridSourceType(csvPath), f"csv:{csvPath}", None
    client = GridApiClient(
        baseUrl=settings.api_base_url or "",
        username=settings.api_username,
        password=settings.api_password,
        timeoutSeconds=settings.api_timeout_seconds,
        tlsSkipVerify=settings.tls_skip_verify,
        retries=settings.api_retries,
        retryBackoffSeconds=settings.api_retry_backoff_seconds,
        transport=apiTransport,
    )
    return ApiGridSourceType(client, apiPath or "", column_keys=apiColumns), f"api:{apiPath}", client


def closeApiClient(client: GridApiClient | None, report) -> None:
    """Закрывает HTTP-клиент источника и сохраняет число его повторных попыток в context.api."""
    if client is None:
        return
    report.set_context("api", {"retry_attempts": client.getRetryAttempts()})
    client.close()


def loadGridConfig(gridConfigPath: str | None) -> GridConfig:
    if not gridConfigPath:
        return GridConfig()
    return readGridConfig(gridConfigPath)


def runWithReport(
    ctx: typer.Context,
    commandName: str,
    runner: Callable[[logging.Logger, Any], int],
) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - создаёт report.json skeleton
        - AppError -> ошибка в лог и report, exit code 1
        - гарантирует запись отчёта в finally
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )
    report = createEmptyReport(runId=runId, command=commandName, configSources=sources)

    exitCode: int | None = None

    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        printRunHeader(runId, commandName, settings, sources)
        try:
            exitCode = runner(logger, report)
        except AppError as exc:
            logEvent(logger, logging.ERROR, runId, exc.category, f"{exc.code}: {exc.message}")
            report.set_error(exc)
            typer.echo(f"ERROR: {exc.message} (see logs/report)", err=True)
            exitCode = 1
        except Exception as exc:
            logEvent(logger, logging.ERROR, runId, "core", f"Unexpected error: {exc!r}")
            report.set_error(exc)
            raise
    finally:
        durationMs = getDurationMs(startMonotonic, time.monotonic())
        finalizeReport(
            report=report,
            durationMs=durationMs,
            logFile=logFilePath,
            exportDir=settings.export_dir,
            reportDir=settings.report_dir,
        )
        summaryLine = formatReportSummary(report)
        logEvent(logger, logging.INFO, runId, "report", f"Summary: {summaryLine}")
        if exitCode == 0:
            typer.echo(summaryLine)
        reportPath = writeReportJson(report, settings.report_dir)
        logEvent(logger, logging.INFO, runId, "report", f"Report written: {reportPath}")
        closeCommandLogger(logger)

    if exitCode:
        raise typer.Exit(code=exitCode)


def runColumnsCommand(
    ctx: typer.Context,
    csvPath: str | None,
    apiPath: str | None,
    apiColumns: list[str] | None,
    gridConfigPath: str | None,
    keepAll: bool | None,
    apiTransport=None,
) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]
    requireSource(csvPath, apiPath, settings)

    def execute(logger, report) -> int:
        gridConfig = loadGridConfig(gridConfigPath)
        sourceType, sourceLabel, client = buildSourceType(settings, csvPath, apiPath, apiColumns, apiTransport)
        report.meta.source = sourceLabel
        try:
            grid = Grid(
                GridSource(sourceType),
                included_columns=gridConfig.columns,
                keep_all_source_cols=keepAll if keepAll is not None else gridConfig.keep_all_source_cols,
            )
            columns = ColumnsUseCase().run(grid, logger, runId, report)
        finally:
            closeApiClient(client, report)
        for column in columns:
            typer.echo(f"{column.sort_order}\t{column.key}\t{column.display_label}")
        return 0

    runWithReport(ctx=ctx, commandName="columns", runner=execute)


def runExportCommand(
    ctx: typer.Context,
    csvPath: str | None,
    apiPath: str | None,
    apiColumns: list[str] | None,
    gridConfigPath: str | None,
    keepAll: bool | None,
    outName: str | None,
    pageSize: int | None,
    apiTransport=None,
) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]
    requireSource(csvPath, apiPath, settings)

    def execute(logger, report) -> int:
        gridConfig = loadGridConfig(gridConfigPath)
        effectivePageSize = pageSize or gridConfig.page_size or settings.page_size
        sourceType, sourceLabel, client = buildSourceType(settings, csvPath, apiPath, apiColumns, apiTransport)
        report.meta.source = sourceLabel
        try:
            grid = Grid(
                GridSource(sourceType),
                included_columns=gridConfig.columns,
                keep_all_source_cols=keepAll if keepAll is not None else gridConfig.keep_all_source_cols,
            )
            exportType = CsvExportType(
                grid,
                file_name=outName or f"export_{runId}.csv",
                export_dir=settings.export_dir,
                page_size=effectivePageSize,
            )
            path = ExportUseCase().run(exportType, logger, runId, report)
        finally:
            closeApiClient(client, report)
        typer.echo(f"exported rows={report.summary.rows_exported} file={path}")
        if report.summary.ended_early:
            typer.echo(
                f"WARNING: source ended before reported total ({report.summary.rows_total})",
                err=True,
            )
        return 0

    runWithReport(ctx=ctx, commandName="export", runner=execute)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    reportDir: str | None = typer.Option(None, "--report-dir", help="Directory for reports."),
    exportDir: str | None = typer.Option(None, "--export-dir", help="Directory for exported files."),
    apiBaseUrl: str | None = typer.Option(None, "--api-base-url", help="API base URL"),
    apiUsername: str | None = typer.Option(None, "--api-username", help="API username"),
    apiPassword: str | None = typer.Option(None, "--api-password", help="API password (avoid; use env/config)"),
    tlsSkipVerify: bool | None = typer.Option(None, "--tls-skip-verify", help="Disable TLS verification"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    retries: int | None = typer.Option(None, "--retries", help="Retry attempts for API calls"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - создаёт каталоги log/report/export
        - сохраняет всё в ctx.obj для подкоманд
    """
    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "report_dir": reportDir,
        "export_dir": exportDir,
        "api_base_url": apiBaseUrl,
        "api_username": apiUsername,
        "api_password": apiPassword,
        "tls_skip_verify": tlsSkipVerify,
        "api_timeout_seconds": timeoutSeconds,
        "api_retries": retries,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid settings: {exc}", err=True)
        raise typer.Exit(code=2)

    ensureDir(loaded.settings.log_dir)
    ensureDir(loaded.settings.report_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command("columns")
def columns(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to source CSV (with header)"),
    apiPath: str | None = typer.Option(None, "--api-path", help="API path of a paged JSON endpoint"),
    apiColumns: list[str] | None = typer.Option(None, "--api-column", help="Column key of the API source (repeatable)"),
    gridConfig: str | None = typer.Option(None, "--grid-config", help="Path to grid columns YAML"),
    keepAll: bool | None = typer.Option(
        None,
        "--keep-all/--no-keep-all",
        help="Keep all source columns in addition to configured ones",
    ),
):
    runColumnsCommand(ctx, csv, apiPath, apiColumns or None, gridConfig, keepAll)


@app.command("export")
def export(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to source CSV (with header)"),
    apiPath: str | None = typer.Option(None, "--api-path", help="API path of a paged JSON endpoint"),
    apiColumns: list[str] | None = typer.Option(None, "--api-column", help="Column key of the API source (repeatable)"),
    gridConfig: str | None = typer.Option(None, "--grid-config", help="Path to grid columns YAML"),
    keepAll: bool | None = typer.Option(
        None,
        "--keep-all/--no-keep-all",
        help="Keep all source columns in addition to configured ones",
    ),
    out: str | None = typer.Option(None, "--out", help="Output file name inside export dir"),
    pageSize: int | None = typer.Option(None, "--page-size", min=1, help="Rows per fetched page"),
):
    runExportCommand(ctx, csv, apiPath, apiColumns or None, gridConfig, keepAll, out, pageSize)


if __name__ == "__main__":
    app()
