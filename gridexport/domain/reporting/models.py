from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ReportMeta:
    """
    Назначение:
        Метаданные запуска команды.
    """

    run_id: str
    command: str
    started_at: str
    finished_at: str | None = None
    duration_ms: int | None = None
    source: str | None = None
    output_path: str | None = None


@dataclass
class ReportSummary:
    """
    Назначение:
        Счётчики выполнения.
    """

    columns_total: int = 0
    rows_total: int | None = None
    rows_exported: int = 0
    pages_fetched: int = 0
    ended_early: bool = False


@dataclass
class ReportEnvelope:
    """
    Назначение:
        Корневой объект отчёта.
    """

    status: str
    meta: ReportMeta
    summary: ReportSummary
    columns: list[dict[str, Any]] = field(default_factory=list)
    error: dict[str, Any] | None = None
    context: dict[str, Any] = field(default_factory=dict)
