from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from gridexport.config import parseBool
from gridexport.domain.exceptions import GridConfigError


@dataclass(frozen=True)
class GridConfig:
    """
    Назначение:
        Конфигурация грида: переопределения колонок и режим сохранения колонок источника.

    Поля:
        columns: key -> частичное описание колонки (порядок как в файле).
        keep_all_source_cols: оставить все колонки источника, а не только сконфигурированные.
        page_size: размер страницы экспорта (None -> из Settings).
    """

    columns: dict[str, dict[str, Any]] = field(default_factory=dict)
    keep_all_source_cols: bool = False
    page_size: int | None = None


def readGridConfig(path: str) -> GridConfig:
    """
    Назначение:
        Читает YAML-конфигурацию грида.

    Формат:
        keep_all_source_cols: false
        page_size: 200
        columns:
          price: {sortOrder: 1, label: Price}
          name: {}

    Поведение:
        - Файл не найден, невалидный YAML или неверная структура -> GridConfigError.
        - columns может быть списком ключей (["sku", "name"]): эквивалент пустых переопределений.
    """
    p = Path(path)
    if not p.exists() or not p.is_file():
        raise GridConfigError(f"Grid config not found: {path}", path=path)

    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise GridConfigError(f"Invalid YAML in grid config: {exc}", path=path) from exc

    if not isinstance(data, dict):
        raise GridConfigError("Grid config must be a mapping", path=path)

    columns = _parse_columns(data.get("columns"), path)

    try:
        keep_all = bool(parseBool(data.get("keep_all_source_cols", False)))
    except ValueError as exc:
        raise GridConfigError(str(exc), path=path) from exc

    page_size = data.get("page_size")
    if page_size is not None:
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            raise GridConfigError(f"Invalid page_size in grid config: {page_size!r}", path=path)

    return GridConfig(columns=columns, keep_all_source_cols=keep_all, page_size=page_size)


def _parse_columns(raw: Any, path: str) -> dict[str, dict[str, Any]]:
    if raw is None:
        return {}
    if isinstance(raw, list):
        columns: dict[str, dict[str, Any]] = {}
        for key in raw:
            if not isinstance(key, str) or not key:
                raise GridConfigError(f"Invalid column key in grid config: {key!r}", path=path)
            columns[key] = {}
        return columns
    if not isinstance(raw, dict):
        raise GridConfigError("'columns' must be a mapping or a list of keys", path=path)

    columns = {}
    for key, value in raw.items():
        if value is None:
            value = {}
        if not isinstance(value, dict):
            raise GridConfigError(f"Column '{key}' must be a mapping", path=path)
        columns[str(key)] = dict(value)
    return columns
