from __future__ import annotations

from typing import Any, Iterable

from gridexport.domain.error_codes import ErrorCode
from gridexport.errors import AppError


class ColumnConfigError(AppError):
    """
    Назначение:
        Ошибка конфигурации колонок грида.
    Инварианты/гарантии:
        - category всегда "config".
        - Для неизвестных колонок details["missing"] содержит все ключи, а не только первый.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_COLUMN_CONFIG, details: dict[str, Any] | None = None):
        super().__init__(
            category="config",
            code=code.value,
            message=message,
            retryable=False,
            details=details or {},
        )

    @classmethod
    def unknown_columns(cls, missing: Iterable[str]) -> "ColumnConfigError":
        missing_list = list(missing)
        return cls(
            f"Column(s) not found on source: {', '.join(missing_list)}",
            code=ErrorCode.UNKNOWN_COLUMNS,
            details={"missing": missing_list},
        )

    @property
    def missing_keys(self) -> list[str]:
        return list(self.details.get("missing", []))


class GridConfigError(AppError):
    """
    Назначение:
        Ошибка чтения/структуры файла конфигурации грида (YAML).
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(
            category="config",
            code=ErrorCode.INVALID_GRID_CONFIG.value,
            message=message,
            retryable=False,
            details={"path": path} if path else {},
        )


__all__ = ["ColumnConfigError", "GridConfigError"]
