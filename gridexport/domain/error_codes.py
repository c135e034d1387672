from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов ошибок для отчётов и исключений.
    """

    UNKNOWN_COLUMNS = "UNKNOWN_COLUMNS"
    INVALID_COLUMN_CONFIG = "INVALID_COLUMN_CONFIG"
    INVALID_GRID_CONFIG = "INVALID_GRID_CONFIG"
    CSV_FORMAT_ERROR = "CSV_FORMAT_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    INVALID_JSON = "INVALID_JSON"
    INVALID_ITEMS_FORMAT = "INVALID_ITEMS_FORMAT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

    @classmethod
    def from_status(cls, status_code: int | None) -> "ErrorCode":
        """
        Назначение:
            Подбор общего кода по HTTP-статусу.
        """
        if status_code == 401:
            return cls.UNAUTHORIZED
        if status_code == 403:
            return cls.FORBIDDEN
        return cls.HTTP_ERROR
