from __future__ import annotations

from gridexport.domain.error_codes import ErrorCode
from gridexport.errors import AppError


class CsvFormatError(AppError):
    """
    Назначение:
        Ошибка критического формата CSV (нет заголовка, количество колонок и т.п.).
    """

    def __init__(self, message: str, path: str | None = None, line_no: int | None = None):
        details: dict = {}
        if path is not None:
            details["path"] = path
        if line_no is not None:
            details["line_no"] = line_no
        super().__init__(
            category="source",
            code=ErrorCode.CSV_FORMAT_ERROR.value,
            message=message,
            retryable=False,
            details=details,
        )


def parseNull(value: str | None) -> str | None:
    """
    Назначение:
        Преобразует пустые/NULL значения в None и тримит строки.
    """
    if value is None:
        return None
    trimmed = value.strip()
    if trimmed == "" or trimmed.lower() == "null":
        return None
    return trimmed
