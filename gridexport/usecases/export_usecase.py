from __future__ import annotations

import logging

from gridexport.export.base import AbstractExportType
from gridexport.infra.logging.setup import logEvent


class ExportUseCase:
    """
    Назначение/ответственность:
        Экспорт грида в файл через AbstractExportType с заполнением отчёта.
    Взаимодействия:
        - AbstractExportType: колонки, поток строк, запись файла.
        - report: ReportCollector (колонки, счётчики, путь к файлу).
    Поведение:
        - Ошибки конфигурации и источника не перехватываются (обрабатываются в CLI).
        - Пустая страница до достижения total фиксируется в отчёте и логе (WARNING).
    """

    def run(
        self,
        export_type: AbstractExportType,
        logger: logging.Logger,
        run_id: str,
        report,
    ) -> str:
        columns = export_type.get_columns()
        report.set_columns(columns)
        logEvent(logger, logging.INFO, run_id, "export", f"Export started: columns={len(columns)}")

        def log_page(page_no: int, rows: int) -> None:
            logEvent(logger, logging.DEBUG, run_id, "export", f"Page fetched: page={page_no} rows={rows}")

        export_type.page_listener = log_page

        path = export_type.create_file_to_download()

        stream = export_type.last_stream
        rows_written = getattr(export_type, "rows_written", stream.yielded_count if stream else 0)
        report.meta.output_path = path
        report.summary.rows_exported = rows_written
        if stream is not None:
            report.summary.pages_fetched = stream.pages_fetched
            report.summary.rows_total = stream.last_total_count
            report.summary.ended_early = stream.ended_early
            if stream.ended_early:
                logEvent(
                    logger,
                    logging.WARNING,
                    run_id,
                    "export",
                    f"Source returned an empty page before reported total: "
                    f"exported={stream.yielded_count} total={stream.last_total_count}",
                )

        logEvent(logger, logging.INFO, run_id, "export", f"Export finished: rows={rows_written} file={path}")
        return path
