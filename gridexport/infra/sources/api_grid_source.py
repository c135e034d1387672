from __future__ import annotations

from typing import Any

from gridexport.domain.columns import ColumnDefinition, ColumnDefinitionFactory
from gridexport.domain.error_codes import ErrorCode
from gridexport.domain.ports.grid_source import (
    ColumnFactoryProtocol,
    GridSourceTypeProtocol,
    RawGridPage,
    SearchCriteria,
)
from gridexport.infra.http.grid_api_client import ApiError, GridApiClient

ITEMS_KEYS = ("items", "data", "rows", "records", "result")
TOTAL_KEYS = ("total", "totalCount", "total_count", "resultCount")


class ApiGridSourceType(GridSourceTypeProtocol):
    """
    Назначение/ответственность:
        Адаптер постраничного JSON API как источника грида.
    Взаимодействия:
        GridApiClient (httpx) с параметрами page/rows и фильтрами criteria.
    Контракт:
        - Ключи колонок из column_keys или из первой записи первой страницы.
        - Ответ: список записей или объект с массивом (items|data|rows|records|result)
          и общим числом (total|totalCount|total_count|resultCount).
        - Ошибки ApiError пробрасываются без изменений.
    """

    def __init__(
        self,
        client: GridApiClient,
        path: str,
        column_keys: list[str] | None = None,
        column_factory: ColumnFactoryProtocol | None = None,
    ) -> None:
        self.client = client
        self.path = path
        self.column_factory = column_factory or ColumnDefinitionFactory()
        self._column_keys = list(column_keys) if column_keys else None

    def get_column_keys(self) -> list[str]:
        if self._column_keys is None:
            probe = self.fetch_data(SearchCriteria(page_size=1, current_page=1))
            first = probe.records[0] if probe.records else {}
            if not isinstance(first, dict):
                raise ApiError(
                    "Unexpected record format: object expected",
                    code=ErrorCode.INVALID_ITEMS_FORMAT.value,
                )
            self._column_keys = list(first.keys())
        return list(self._column_keys)

    def get_column_definition(self, key: str) -> ColumnDefinition:
        return self.column_factory.create({"key": key, "label": None, "source": "api"})

    def _build_params(self, criteria: SearchCriteria) -> dict[str, Any]:
        params: dict[str, Any] = {"page": criteria.current_page, "rows": criteria.page_size}
        if criteria.sort_field:
            params["sort"] = criteria.sort_field
            params["direction"] = criteria.sort_direction
        for key, value in (criteria.filters or {}).items():
            params[f"filter[{key}]"] = value
        return params

    def fetch_data(self, criteria: SearchCriteria) -> RawGridPage[Any]:
        data = self.client.getJson(self.path, params=self._build_params(criteria))
        items = _extract_items(data)
        total = _extract_total(data)
        if total is None:
            # без total в ответе: короткая страница означает последнюю
            total = criteria.offset + len(items)
            if len(items) >= criteria.page_size:
                total += 1
        return RawGridPage(records=items, total_count=total)

    def extract_records(self, raw: RawGridPage) -> list[Any]:
        return list(raw.records)

    def extract_total_row_count(self, raw: RawGridPage) -> int:
        return raw.total_count

    def extract_value(self, record: Any, key: str) -> Any:
        if isinstance(record, dict):
            return record.get(key)
        return getattr(record, key, None)


def _extract_items(data: Any) -> list[Any]:
    """Пытается вытащить массив записей из разных возможных ключей."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ITEMS_KEYS:
            if key in data and isinstance(data[key], list):
                return data[key]
    raise ApiError(
        "Unexpected response format: no items array",
        code=ErrorCode.INVALID_ITEMS_FORMAT.value,
        retryable=False,
    )


def _extract_total(data: Any) -> int | None:
    if not isinstance(data, dict):
        return None
    for key in TOTAL_KEYS:
        value = data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
    return None
