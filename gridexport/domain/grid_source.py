from __future__ import annotations

from typing import Any, Mapping

from gridexport.domain.columns import (
    ColumnDefinition,
    ColumnDefinitionFactory,
    add_missing_sort_order,
    merge_column_definitions,
    sort_columns,
)
from gridexport.domain.exceptions import ColumnConfigError
from gridexport.domain.ports.grid_source import (
    ColumnFactoryProtocol,
    GridSourceTypeProtocol,
    SearchCriteria,
)


class GridSource:
    """
    Назначение/ответственность:
        Сведение колонок грида (конфиг + источник) и доступ к записям источника.
    Взаимодействия:
        - GridSourceTypeProtocol: ключи/описания колонок, выборка и извлечение записей.
        - ColumnFactoryProtocol: создание новых ColumnDefinition при merge/нумерации.
    Инварианты/гарантии:
        - Сырые данные кэшируются на один экземпляр SearchCriteria (по identity);
          другой экземпляр criteria вызывает повторный fetch_data.
        - Ошибки адаптера не перехватываются.
    """

    def __init__(
        self,
        source_type: GridSourceTypeProtocol,
        column_factory: ColumnFactoryProtocol | None = None,
    ) -> None:
        self.source_type = source_type
        self.column_factory = column_factory or ColumnDefinitionFactory()
        self._raw_criteria: SearchCriteria | None = None
        self._raw_grid_data: Any = None

    def extract_column_definitions(
        self,
        included_columns: Mapping[str, ColumnDefinition | Mapping[str, Any]],
        keep_all_source_cols: bool = False,
    ) -> list[ColumnDefinition]:
        """
        Назначение:
            Итоговый упорядоченный список колонок грида.

        Алгоритм:
            1. Сконфигурированным колонкам без sort_order проставляется порядок больше максимального.
            2. Все ключи конфига проверяются по ключам источника (ошибка перечисляет все отсутствующие).
            3. Рабочий набор: все колонки источника, если конфиг пуст или keep_all_source_cols,
               иначе только сконфигурированные (в порядке конфига).
            4. Описание колонки из источника дополняется непустыми полями конфига.
            5. Оставшимся колонкам проставляется sort_order (больше любого явного).
            6. Стабильная сортировка по sort_order.
        """
        configured = add_missing_sort_order(self._normalize_included(included_columns), self.column_factory)
        configured_keys = [column.key for column in configured]
        by_key = dict(zip(configured_keys, configured))

        available_keys = list(self.source_type.get_column_keys())
        self._validate_configured_keys(configured_keys, available_keys)

        column_keys = available_keys if not by_key or keep_all_source_cols else configured_keys

        extracted = [
            merge_column_definitions(
                self.source_type.get_column_definition(key),
                by_key.get(key),
                self.column_factory,
            )
            for key in column_keys
        ]
        return sort_columns(add_missing_sort_order(extracted, self.column_factory))

    def _normalize_included(
        self,
        included_columns: Mapping[str, ColumnDefinition | Mapping[str, Any]],
    ) -> list[ColumnDefinition]:
        columns: list[ColumnDefinition] = []
        for key, value in included_columns.items():
            if isinstance(value, ColumnDefinition):
                column = value
            else:
                data = dict(value or {})
                data.setdefault("key", key)
                column = self.column_factory.create(data)
            if column.key != key:
                raise ColumnConfigError(
                    f"Column key mismatch: configured as '{key}', defined as '{column.key}'",
                    details={"column": key, "defined_key": column.key},
                )
            columns.append(column)
        return columns

    @staticmethod
    def _validate_configured_keys(configured_keys: list[str], available_keys: list[str]) -> None:
        available = set(available_keys)
        missing = [key for key in configured_keys if key not in available]
        if missing:
            raise ColumnConfigError.unknown_columns(missing)

    def _get_raw_grid_data(self, criteria: SearchCriteria) -> Any:
        if self._raw_criteria is not criteria:
            self._raw_grid_data = self.source_type.fetch_data(criteria)
            self._raw_criteria = criteria
        return self._raw_grid_data

    def clear_cache(self) -> None:
        self._raw_criteria = None
        self._raw_grid_data = None

    def get_records(self, criteria: SearchCriteria) -> list[Any]:
        return list(self.source_type.extract_records(self._get_raw_grid_data(criteria)))

    def get_total_count(self, criteria: SearchCriteria) -> int:
        return int(self.source_type.extract_total_row_count(self._get_raw_grid_data(criteria)))

    def extract_value(self, record: Any, key: str) -> Any:
        return self.source_type.extract_value(record, key)
