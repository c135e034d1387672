from __future__ import annotations

from dataclasses import asdict
from typing import Any, Iterable

from gridexport.common.time import getNowIso
from gridexport.domain.columns import ColumnDefinition
from gridexport.domain.reporting.models import ReportEnvelope, ReportMeta, ReportSummary
from gridexport.errors import AppError


class ReportCollector:
    """
    Назначение/ответственность:
        Единый сборщик отчётов для всех команд.
    """

    def __init__(self, run_id: str, command: str, started_at: str | None = None) -> None:
        self.meta = ReportMeta(
            run_id=run_id,
            command=command,
            started_at=started_at or getNowIso(),
        )
        self.summary = ReportSummary()
        self.columns: list[dict[str, Any]] = []
        self.context: dict[str, Any] = {}
        self.error: dict[str, Any] | None = None
        self.status: str | None = None

    def set_context(self, name: str, value: dict[str, Any]) -> None:
        self.context[name] = value

    def set_columns(self, columns: Iterable[ColumnDefinition]) -> None:
        self.columns = [column.to_dict() for column in columns]
        self.summary.columns_total = len(self.columns)

    def set_error(self, exc: Exception) -> None:
        if isinstance(exc, AppError):
            self.error = exc.to_dict()
        else:
            self.error = {
                "category": "unexpected",
                "code": "UNEXPECTED_ERROR",
                "message": str(exc),
                "retryable": False,
                "details": {"type": type(exc).__name__},
            }
        self.status = "FAILED"

    def finish(self, finished_at: str | None = None, duration_ms: int | None = None) -> None:
        self.meta.finished_at = finished_at or getNowIso()
        self.meta.duration_ms = duration_ms
        if self.status is None:
            self.status = "FAILED" if self.error else "SUCCESS"

    def build(self) -> ReportEnvelope:
        return ReportEnvelope(
            status=self.status or ("FAILED" if self.error else "SUCCESS"),
            meta=self.meta,
            summary=self.summary,
            columns=self.columns,
            error=self.error,
            context=self.context,
        )


def asdict_report(report: ReportEnvelope) -> dict[str, Any]:
    return asdict(report)
