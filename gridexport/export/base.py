from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable

from gridexport.domain.columns import ColumnDefinition
from gridexport.domain.grid import Grid
from gridexport.domain.paging import PaginatedRowStream

EXPORT_PAGE_SIZE = 200


class AbstractExportType(ABC):
    """
    Назначение/ответственность:
        Базовый экспорт грида в файл: заголовки из итоговых колонок, строки потоком по страницам.
    Взаимодействия:
        Grid (колонки, extract_value, постраничные записи).
    Контракт:
        - create_file_to_download() пишет файл и возвращает путь к нему.
        - Последний поток строк доступен в last_stream (статистика для отчёта).
        - page_listener(page_no, rows), если задан, получает каждую прочитанную страницу.
    """

    content_type = "application/octet-stream"

    def __init__(
        self,
        grid: Grid,
        file_name: str,
        export_dir: str = "./exports",
        page_size: int = EXPORT_PAGE_SIZE,
    ) -> None:
        self._grid = grid
        self._file_name = file_name
        self._export_dir = export_dir
        self.page_size = page_size
        self.last_stream: PaginatedRowStream | None = None
        self.page_listener: Callable[[int, int], None] | None = None

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def export_dir(self) -> str:
        return self._export_dir

    @property
    def grid(self) -> Grid:
        return self._grid

    def get_content_type(self) -> str:
        return self.content_type

    def get_export_path(self) -> Path:
        return Path(self._export_dir) / self._file_name

    def get_columns(self) -> list[ColumnDefinition]:
        return self._grid.get_column_definitions()

    def get_header_data(self) -> list[str]:
        return [column.display_label for column in self.get_columns()]

    def get_row_values(self, record: Any, columns: list[ColumnDefinition] | None = None) -> list[Any]:
        columns = columns if columns is not None else self.get_columns()
        return [self._grid.extract_value(record, column.key) for column in columns]

    def iterate_grid(self) -> PaginatedRowStream:
        self.last_stream = self._grid.iterate_rows(page_size=self.page_size, on_page=self.page_listener)
        return self.last_stream

    @abstractmethod
    def create_file_to_download(self) -> str:
        ...
