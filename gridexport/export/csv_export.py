from __future__ import annotations

import csv
from typing import Any

from gridexport.domain.columns import ColumnDefinition
from gridexport.domain.grid import Grid
from gridexport.export.base import EXPORT_PAGE_SIZE, AbstractExportType


class CsvExportType(AbstractExportType):
    """
    Назначение/ответственность:
        Экспорт грида в CSV (UTF-8, заголовок = display_label колонок).
    Подсказки колонок:
        null_value: чем заменить пустое значение ячейки (по умолчанию "").
    """

    content_type = "text/csv"

    def __init__(
        self,
        grid: Grid,
        file_name: str = "export.csv",
        export_dir: str = "./exports",
        delimiter: str = ",",
        page_size: int = EXPORT_PAGE_SIZE,
    ) -> None:
        super().__init__(grid, file_name, export_dir, page_size=page_size)
        self.delimiter = delimiter
        self.rows_written = 0

    def create_file_to_download(self) -> str:
        path = self.get_export_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        columns = self.get_columns()

        self.rows_written = 0
        stream = self.iterate_grid()
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, delimiter=self.delimiter)
            writer.writerow([column.display_label for column in columns])
            try:
                for _index, record in stream:
                    values = self.get_row_values(record, columns)
                    writer.writerow([_format_cell(value, column) for value, column in zip(values, columns)])
                    self.rows_written += 1
            finally:
                stream.close()
        return str(path)


def _format_cell(value: Any, column: ColumnDefinition) -> Any:
    if value is None:
        return column.get("null_value", "")
    if isinstance(value, bool):
        return "true" if value else "false"
    return value
