from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s comp=%(component)s msg=%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class EnsureFieldsFilter(logging.Filter):
    """
    Назначение:
        Подставляет runId и component в записи, пришедшие без extra
        (например, от сторонних библиотек), чтобы LOG_FORMAT всегда форматировался.
    """

    def __init__(self, runId: str, defaultComponent: str = "core"):
        super().__init__()
        self.runId = runId
        self.defaultComponent = defaultComponent

    def filter(self, record: logging.LogRecord) -> bool:
        record.runId = getattr(record, "runId", self.runId)
        record.component = getattr(record, "component", self.defaultComponent)
        return True


def mapLogLevel(levelName: str) -> int:
    """ERROR|WARN|INFO|DEBUG (без учёта регистра) -> уровень logging; иначе ValueError."""
    level = _LEVELS.get((levelName or "").strip().upper())
    if level is None:
        raise ValueError(f"Unsupported log level: {levelName}")
    return level


def createCommandLogger(commandName: str, logDir: str, runId: str, logLevel: str) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Отдельный логгер на запуск команды с файлом <logDir>/<command>_<runId>.log.

    Контракт:
        - Логгер не пропагирует записи в root.
        - Повторный вызов с тем же runId заменяет handlers, а не дублирует их.

    Выходные данные:
        (logger, logFilePath)
    """
    logPath = Path(logDir) / f"{commandName}_{runId}.log"
    logPath.parent.mkdir(parents=True, exist_ok=True)

    level = mapLogLevel(logLevel)
    logger = logging.getLogger(f"gridexport.{commandName}.{runId}")
    closeCommandLogger(logger)
    logger.propagate = False
    logger.setLevel(level)

    handler = logging.FileHandler(logPath, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(EnsureFieldsFilter(runId=runId))
    logger.addHandler(handler)

    return logger, str(logPath)


def closeCommandLogger(logger: logging.Logger) -> None:
    """Закрывает и снимает все handlers логгера (файл лога освобождается)."""
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def logEvent(logger: logging.Logger, level: int, runId: str, component: str, message: str) -> None:
    logger.log(level, message, extra={"runId": runId, "component": component})
