from __future__ import annotations

from typing import Any, Callable, Mapping

from gridexport.domain.columns import ColumnDefinition
from gridexport.domain.grid_source import GridSource
from gridexport.domain.paging import PaginatedRowStream
from gridexport.domain.ports.grid_source import DEFAULT_PAGE_SIZE, SearchCriteria


class Grid:
    """
    Назначение/ответственность:
        Представление грида для потребителей (экспорт, вывод колонок):
        итоговые колонки + постраничный доступ к записям.
    Взаимодействия:
        Делегирует GridSource; список колонок сводится один раз и далее не меняется.
    """

    def __init__(
        self,
        source: GridSource,
        included_columns: Mapping[str, ColumnDefinition | Mapping[str, Any]] | None = None,
        keep_all_source_cols: bool = False,
        search_criteria: SearchCriteria | None = None,
    ) -> None:
        self.source = source
        self.included_columns = dict(included_columns or {})
        self.keep_all_source_cols = keep_all_source_cols
        self.search_criteria = search_criteria or SearchCriteria()
        self._columns: tuple[ColumnDefinition, ...] | None = None

    def get_column_definitions(self) -> list[ColumnDefinition]:
        if self._columns is None:
            self._columns = tuple(
                self.source.extract_column_definitions(self.included_columns, self.keep_all_source_cols)
            )
        return list(self._columns)

    def get_search_criteria(self) -> SearchCriteria:
        return self.search_criteria

    def get_rows_for_search_criteria(self, criteria: SearchCriteria) -> list[Any]:
        return self.source.get_records(criteria)

    def get_total_rows_count(self, criteria: SearchCriteria | None = None) -> int:
        return self.source.get_total_count(criteria or self.search_criteria)

    def extract_value(self, record: Any, key: str) -> Any:
        return self.source.extract_value(record, key)

    # RowPageSourceProtocol
    def get_records(self, criteria: SearchCriteria) -> list[Any]:
        return self.get_rows_for_search_criteria(criteria)

    def get_total_count(self, criteria: SearchCriteria) -> int:
        return self.get_total_rows_count(criteria)

    def iterate_rows(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        on_page: Callable[[int, int], None] | None = None,
    ) -> PaginatedRowStream:
        return PaginatedRowStream(self, self.search_criteria, page_size=page_size, on_page=on_page)
