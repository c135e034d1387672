from __future__ import annotations

import csv
from typing import Any, Iterator

from gridexport.domain.columns import ColumnDefinition, ColumnDefinitionFactory
from gridexport.domain.ports.grid_source import (
    ColumnFactoryProtocol,
    GridSourceTypeProtocol,
    RawGridPage,
    SearchCriteria,
)
from gridexport.infra.sources.csv_utils import CsvFormatError, parseNull


class CsvGridSourceType(GridSourceTypeProtocol):
    """
    Назначение/ответственность:
        Адаптер CSV-файла с заголовком как источника грида.
    Контракт:
        - Ключи колонок = заголовок CSV (порядок файла).
        - fetch_data читает файл потоково и держит в памяти только запрошенную страницу,
          попутно считая общее число строк.
        - Пустые значения и NULL -> None.
        - Фильтры criteria.filters применяются как точное совпадение значения колонки.
    """

    def __init__(
        self,
        path: str,
        delimiter: str = ",",
        column_factory: ColumnFactoryProtocol | None = None,
    ) -> None:
        self.path = path
        self.delimiter = delimiter
        self.column_factory = column_factory or ColumnDefinitionFactory()
        self._header: list[str] | None = None

    def _open(self):
        return open(self.path, "r", encoding="utf-8-sig", newline="")

    def get_column_keys(self) -> list[str]:
        if self._header is None:
            with self._open() as f:
                reader = csv.reader(f, delimiter=self.delimiter)
                header = next(reader, None)
            if not header:
                raise CsvFormatError("Missing header in source CSV", path=self.path)
            self._header = [name.strip() for name in header]
        return list(self._header)

    def get_column_definition(self, key: str) -> ColumnDefinition:
        if key not in self.get_column_keys():
            raise KeyError(key)
        return self.column_factory.create({"key": key, "label": None, "source": "csv"})

    def _iter_rows(self) -> Iterator[dict[str, str | None]]:
        header = self.get_column_keys()
        with self._open() as f:
            reader = csv.reader(f, delimiter=self.delimiter)
            next(reader, None)
            for csv_line_no, row in enumerate(reader, start=2):
                if not row:
                    continue
                if len(row) != len(header):
                    raise CsvFormatError(
                        f"Invalid column count at line {csv_line_no}: expected {len(header)}, got {len(row)}",
                        path=self.path,
                        line_no=csv_line_no,
                    )
                yield {key: parseNull(value) for key, value in zip(header, row)}

    def fetch_data(self, criteria: SearchCriteria) -> RawGridPage[dict[str, str | None]]:
        start = criteria.offset
        end = start + criteria.page_size
        records: list[dict[str, str | None]] = []
        total = 0
        for row in self._iter_rows():
            if not _matches(row, criteria.filters):
                continue
            if start <= total < end:
                records.append(row)
            total += 1
        return RawGridPage(records=records, total_count=total)

    def extract_records(self, raw: RawGridPage) -> list[Any]:
        return list(raw.records)

    def extract_total_row_count(self, raw: RawGridPage) -> int:
        return raw.total_count

    def extract_value(self, record: dict[str, Any], key: str) -> Any:
        return record.get(key)


def _matches(row: dict[str, Any], filters) -> bool:
    for key, expected in (filters or {}).items():
        if row.get(key) != expected:
            return False
    return True
