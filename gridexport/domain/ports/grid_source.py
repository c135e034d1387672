from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Generic, Literal, Mapping, Protocol, Sequence, TypeVar

if TYPE_CHECKING:
    from gridexport.domain.columns import ColumnDefinition

RawT = TypeVar("RawT")
DEFAULT_PAGE_SIZE = 200


@dataclass(frozen=True)
class SearchCriteria:
    """
    Назначение:
        Параметры выборки страницы (размер страницы, номер страницы, фильтры, сортировка).

    Инварианты/гарантии:
        - Неизменяемый объект: смена страницы создаёт новый экземпляр (with_page).
        - current_page начинается с 1.
    """

    page_size: int = DEFAULT_PAGE_SIZE
    current_page: int = 1
    filters: Mapping[str, Any] = field(default_factory=dict, hash=False)
    sort_field: str | None = None
    sort_direction: Literal["asc", "desc"] = "asc"

    def with_page(self, page: int) -> "SearchCriteria":
        return replace(self, current_page=page)

    def with_page_size(self, page_size: int) -> "SearchCriteria":
        return replace(self, page_size=page_size)

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.page_size


@dataclass(frozen=True)
class RawGridPage(Generic[RawT]):
    """
    Назначение:
        Сырые данные одной выборки для встроенных адаптеров: записи страницы и общее число строк.
    """

    records: Sequence[RawT]
    total_count: int


class ColumnFactoryProtocol(Protocol):
    """
    Назначение/ответственность:
        Порт создания неизменяемых ColumnDefinition из словаря атрибутов.
    """

    def create(self, mapping: Mapping[str, Any]) -> "ColumnDefinition":
        ...


class GridSourceTypeProtocol(Protocol):
    """
    Назначение/ответственность:
        Порт адаптера источника данных грида (файл, БД, API).
    Взаимодействия:
        Используется GridSource; адаптер сам определяет формат сырых данных (fetch_data).
    Контракт:
        - Ошибки адаптера пробрасываются вызывающему без изменений.
    """

    def get_column_keys(self) -> list[str]:
        """
        Контракт:
            Упорядоченный список ключей колонок источника.
        """
        ...

    def get_column_definition(self, key: str) -> "ColumnDefinition":
        ...

    def fetch_data(self, criteria: SearchCriteria) -> Any:
        """
        Контракт:
            Возвращает сырые данные выборки (формат определяет адаптер).
        """
        ...

    def extract_records(self, raw: Any) -> list[Any]:
        ...

    def extract_total_row_count(self, raw: Any) -> int:
        ...

    def extract_value(self, record: Any, key: str) -> Any:
        ...


class RowPageSourceProtocol(Protocol):
    """
    Назначение/ответственность:
        Минимальный порт постраничного чтения записей (для PaginatedRowStream).
    """

    def get_records(self, criteria: SearchCriteria) -> list[Any]:
        ...

    def get_total_count(self, criteria: SearchCriteria) -> int:
        ...


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ColumnFactoryProtocol",
    "GridSourceTypeProtocol",
    "RawGridPage",
    "RowPageSourceProtocol",
    "SearchCriteria",
]
